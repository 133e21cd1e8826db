"""
Service layer: the operations the API exposes, built on the DAOs.

- SessionManager: registration, login, token rotation, password reset.
- ConversationStore: two-party conversations, messages, unread counters.
- UserAdmin: account status changes and deletion.
"""

from campushub.database.core.admin import UserAdmin
from campushub.database.core.auth import SessionManager
from campushub.database.core.messaging import ConversationStore

__all__ = ["ConversationStore", "SessionManager", "UserAdmin"]
