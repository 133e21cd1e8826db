import pytest
from sqlalchemy import text
from sqlalchemy.pool import QueuePool, StaticPool

from campushub.database.connection import Database, is_memory_sqlite
from campushub.database.daos import UserDao
from campushub.database.entities import UserRole
from campushub.errors import ConflictError, DuplicateAccount


@pytest.fixture
def file_db(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'campushub.db'}", pool_size=2)
    db.create_all()
    yield db
    db.dispose()


def add_user(session, email):
    return UserDao(session).create(name="Someone", email=email, password_hash="x", role=UserRole.FELLOW)


def count_users(db):
    with db.session() as session:
        return UserDao(session).count()


@pytest.mark.parametrize("url, expected", [
    ("sqlite://", True),
    ("sqlite:///:memory:", True),
    ("sqlite:///file:shared?mode=memory&uri=true", True),
    ("sqlite:///./campushub.db", False),
    ("postgresql+psycopg://user:pw@localhost/campushub", False),
])
def test_is_memory_sqlite(url, expected):
    assert is_memory_sqlite(url) is expected


def test_pool_choice_by_url(tmp_path):
    memory = Database("sqlite://")
    on_disk = Database(f"sqlite:///{tmp_path / 'pool.db'}", pool_size=3)
    try:
        assert isinstance(memory.engine.pool, StaticPool)
        assert isinstance(on_disk.engine.pool, QueuePool)
        assert on_disk.engine.pool.size() == 3
    finally:
        memory.dispose()
        on_disk.dispose()


def test_file_sessions_do_not_share_a_transaction(file_db):
    writer = file_db._session_factory()
    bystander = file_db._session_factory()
    try:
        add_user(writer, "writer@hacettepe.edu.tr")
        bystander.execute(text("select 1"))
        bystander.rollback()
        writer.commit()
    finally:
        writer.close()
        bystander.close()

    assert count_users(file_db) == 1


def test_failed_transaction_keeps_committed_rows(file_db):
    with file_db.transaction() as session:
        add_user(session, "kept@hacettepe.edu.tr")

    with pytest.raises(DuplicateAccount):
        with file_db.transaction() as session:
            add_user(session, "dropped@hacettepe.edu.tr")
            raise DuplicateAccount()

    with pytest.raises(ConflictError):
        with file_db.transaction() as session:
            add_user(session, "kept@hacettepe.edu.tr")

    with file_db.session() as session:
        users = UserDao(session)
        assert users.count() == 1
        assert users.get_by_email("kept@hacettepe.edu.tr") is not None
