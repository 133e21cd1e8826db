"""
Query objects over the entities, one class per table group.

A DAO is built around a session that the service layer already opened,
reads and writes through it, and flushes when it needs generated ids.
DAOs never commit; the caller's `Database.transaction()` decides.

Contents
--------
- UserDao
    Handles user persistence:
    * Creates users with an already hashed password
    * Fetches users by id or email, optionally with role profiles
    * Updates last login, password hash and status
    * Lists, counts and deletes users for the admin surface

- ProfileDao
    Creates fellow/mentor profiles and community-admin links.

- PasswordResetDao
    Upserts, looks up and deletes the single reset token of a user.

- ConversationDao
    Manages conversation and participant records:
    * Finds the conversation shared by two users
    * Creates a conversation with its participants
    * Reads list-view summaries ordered by last activity
    * Maintains the denormalized last message and unread counters

- MessageDao
    Manages message records:
    * Creates messages within a conversation
    * Fetches messages newest first, latest message per conversation
    * Flips the read flag and counts unread messages
"""

from campushub.database.daos.user_dao import UserDao
from campushub.database.daos.profile_dao import ProfileDao
from campushub.database.daos.password_reset_dao import PasswordResetDao
from campushub.database.daos.conversation_dao import ConversationDao
from campushub.database.daos.message_dao import MessageDao

__all__ = ["ConversationDao", "MessageDao", "PasswordResetDao", "ProfileDao", "UserDao"]
