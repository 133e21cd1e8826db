from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application configuration settings loaded from environment variables
    or a `.env` file. Provides strongly typed access to environment values.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./campushub.db"
    """SQLAlchemy database URL (e.g. `postgresql+psycopg://user:pw@host/db`)."""

    DB_POOL_SIZE: int = 10
    """Number of pooled connections. Callers wait when all are checked out."""

    DB_POOL_TIMEOUT: int = 30
    """Seconds a caller waits for a free pooled connection."""

    DB_ECHO: bool = False
    """Echo emitted SQL through the `sqlalchemy.engine` logger."""

    CREATE_TABLES: bool = True
    """Create missing tables on startup."""

    JWT_SECRET: str = "change-me-access-secret"
    """Secret used to sign access and password-reset tokens."""

    JWT_REFRESH_SECRET: str = "change-me-refresh-secret"
    """Secret used to sign refresh tokens."""

    JWT_ALGORITHM: str = "HS256"
    """Symmetric signing algorithm for every token."""

    JWT_EXPIRES_IN_MINUTES: int = 7 * 24 * 60
    """Access token lifetime."""

    JWT_REFRESH_EXPIRES_IN_MINUTES: int = 30 * 24 * 60
    """Refresh token lifetime."""

    RESET_TOKEN_EXPIRES_IN_MINUTES: int = 60
    """Password-reset token lifetime."""

    BCRYPT_ROUNDS: int = 10
    """bcrypt work factor."""

    INSTITUTION_EMAIL_DOMAIN: str = "hacettepe.edu.tr"
    """Email domain required for fellows, community admins and plain users."""

    EXPOSE_RESET_TOKEN: bool = False
    """Return the reset token in the forgot-password response (development only)."""

    ALLOWED_ORIGINS: str = "http://localhost:3000"
    """Comma separated CORS origins, or `*`."""

    API_PREFIX: str = "/api"
    """Prefix mounted in front of every REST router."""

    LOG_LEVEL: str = "INFO"
    """Root level for the application logger."""

    @property
    def allowed_origins(self) -> List[str]:
        if self.ALLOWED_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Return the process settings, read once from the environment / `.env`."""
    return Settings()
