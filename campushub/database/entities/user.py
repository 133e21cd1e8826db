import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campushub.database.entities.base import Base, utcnow


class UserRole(str, enum.Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    CONTENT_ADMIN = "CONTENT_ADMIN"
    USER_ADMIN = "USER_ADMIN"
    ANALYTICS_ADMIN = "ANALYTICS_ADMIN"
    MENTOR = "MENTOR"
    FELLOW = "FELLOW"
    COMMUNITY_ADMIN = "COMMUNITY_ADMIN"
    USER = "USER"


ADMIN_ROLES = frozenset(
    {UserRole.SUPER_ADMIN, UserRole.CONTENT_ADMIN, UserRole.USER_ADMIN, UserRole.ANALYTICS_ADMIN}
)


class UserStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class User(Base):
    """
    A registered account.

    Accounts start as PENDING and are moved to ACTIVE by an admin. The
    password is only ever stored as a bcrypt hash.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    avatar: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, native_enum=False, length=20), default=UserRole.FELLOW, nullable=False
    )
    status: Mapped[UserStatus] = mapped_column(
        Enum(UserStatus, native_enum=False, length=20), default=UserStatus.PENDING, nullable=False
    )
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    fellow = relationship("FellowProfile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    mentor = relationship("MentorProfile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    community_admins = relationship("CommunityAdmin", back_populates="user", cascade="all, delete-orphan")
    participations = relationship("ConversationParticipant", back_populates="user", cascade="all, delete-orphan")
    messages = relationship("Message", back_populates="sender", cascade="all, delete-orphan")
    password_reset = relationship("PasswordResetToken", back_populates="user", uselist=False, cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES
