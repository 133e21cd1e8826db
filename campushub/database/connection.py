"""
Database engine and session handling.

`Database` owns the SQLAlchemy engine (and therefore the connection pool)
for one application instance. It is created by the composition root and
handed to every component that needs persistence.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from campushub.database.entities import Base
from campushub.errors import CampusHubError, ConflictError, UpstreamError

log = logging.getLogger(__name__)


def is_memory_sqlite(url: str) -> bool:
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return False
    return parsed.database in (None, "", ":memory:") or parsed.query.get("mode") == "memory"


def _engine_for(url: str, pool_size: int, pool_timeout: int, echo: bool):
    if is_memory_sqlite(url):
        # one shared connection so in-memory databases survive across threads
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if url.startswith("sqlite"):
        # file databases get a connection per checkout like any other backend
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=QueuePool,
            pool_size=pool_size,
            max_overflow=0,
            pool_timeout=pool_timeout,
        )
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+psycopg://", 1)
    return create_engine(
        url,
        echo=echo,
        pool_size=pool_size,
        max_overflow=0,
        pool_timeout=pool_timeout,
        pool_pre_ping=True,
    )


class Database:
    """
    Bounded connection pool plus session factory.

    Parameters
    ----------
    url : str
        SQLAlchemy database URL.
    pool_size : int
        Maximum pooled connections; further callers wait up to `pool_timeout`.
    pool_timeout : int
        Seconds to wait for a free connection.
    echo : bool
        Log emitted SQL.
    """

    def __init__(self, url: str, pool_size: int = 10, pool_timeout: int = 30, echo: bool = False):
        self.engine = _engine_for(url, pool_size, pool_timeout, echo)
        self._session_factory = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)

    @classmethod
    def from_settings(cls, settings) -> "Database":
        return cls(
            settings.DATABASE_URL,
            pool_size=settings.DB_POOL_SIZE,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            echo=settings.DB_ECHO,
        )

    def create_all(self):
        Base.metadata.create_all(self.engine)

    def drop_all(self):
        Base.metadata.drop_all(self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Read-only unit: a session that is always closed, never committed."""
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            log.error(f"Database error: {e}")
            raise UpstreamError() from e
        finally:
            session.close()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        All-or-nothing unit of work.

        Commits when the block exits normally, rolls back on any exception,
        and always returns the connection to the pool. Driver errors are
        re-raised as `UpstreamError`; domain errors pass through unchanged.
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except CampusHubError:
            session.rollback()
            raise
        except IntegrityError as e:
            session.rollback()
            log.warning(f"Integrity error, rolled back: {e.orig}")
            raise ConflictError("Duplicate entry found") from e
        except SQLAlchemyError as e:
            session.rollback()
            log.error(f"Transaction rolled back: {e}")
            raise UpstreamError() from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self):
        self.engine.dispose()
