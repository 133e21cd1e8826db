"""
SQLAlchemy declarative entities, one module per table group.

Accounts and their role profiles, password-reset tokens, and the direct
messaging tables (conversations, participants, messages) all share the
`Base` metadata that `Database.create_all()` materializes.

Contents
--------
- User
    Represents a registered account.
    * Stores credentials (bcrypt hash), role and approval status
    * Tracks last login

- FellowProfile, MentorProfile, Community, CommunityAdmin
    Role-specific profile rows created together with the user at
    registration time.

- PasswordResetToken
    The single outstanding password-reset token of a user.

- Conversation, ConversationParticipant
    A two-party conversation and its participants.
    * Conversation keeps the last message text/time for list views
    * Each participant keeps its own unread counter

- Message
    A single direct message with its read flag.
"""

from campushub.database.entities.base import Base, utcnow
from campushub.database.entities.user import ADMIN_ROLES, User, UserRole, UserStatus
from campushub.database.entities.profiles import Community, CommunityAdmin, FellowProfile, MentorProfile
from campushub.database.entities.password_reset import PasswordResetToken
from campushub.database.entities.conversation import Conversation, ConversationParticipant
from campushub.database.entities.message import Message

__all__ = [
    "ADMIN_ROLES",
    "Base",
    "Community",
    "CommunityAdmin",
    "Conversation",
    "ConversationParticipant",
    "FellowProfile",
    "Message",
    "MentorProfile",
    "PasswordResetToken",
    "User",
    "UserRole",
    "UserStatus",
    "utcnow",
]
