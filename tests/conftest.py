import pytest
from fastapi.testclient import TestClient

from campushub.database.config.config import Settings
from campushub.database.daos import UserDao
from campushub.database.entities import UserRole, UserStatus
from campushub.main import create_app
from campushub.security import hash_password

DOMAIN = "hacettepe.edu.tr"
PASSWORD = "secret123"


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        BCRYPT_ROUNDS=4,
        EXPOSE_RESET_TOKEN=True,
        JWT_SECRET="test-access-secret-0123456789abcdef",
        JWT_REFRESH_SECRET="test-refresh-secret-0123456789abcdef",
        INSTITUTION_EMAIL_DOMAIN=DOMAIN,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def app(settings):
    app = create_app(settings)
    yield app
    app.state.db.dispose()


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(app):
    return app.state.db


@pytest.fixture
def sessions(app):
    return app.state.session_manager


@pytest.fixture
def store(app):
    return app.state.conversation_store


@pytest.fixture
def make_user(app, db):
    """Insert a user directly and return its id, email and auth headers."""
    signer = app.state.session_manager.signer
    counter = {"n": 0}

    def factory(name=None, role=UserRole.FELLOW, status=UserStatus.ACTIVE, email=None):
        counter["n"] += 1
        name = name or f"User {counter['n']}"
        email = email or f"user{counter['n']}@{DOMAIN}"
        with db.transaction() as session:
            user = UserDao(session).create(
                name=name, email=email, password_hash=hash_password(PASSWORD, 4), role=role, status=status
            )
            user_id = user.id
        token = signer.sign(user_id)
        return {
            "id": user_id,
            "name": name,
            "email": email,
            "token": token,
            "headers": {"Authorization": f"Bearer {token}"},
        }

    return factory


@pytest.fixture
def alice(make_user):
    return make_user("Alice")


@pytest.fixture
def bob(make_user):
    return make_user("Bob")
