"""
Direct messaging between two users.

`ConversationStore` owns conversations, their participants and messages,
and keeps two denormalized values up to date: the conversation's last
message (for list views) and each participant's unread counter.

Every multi-statement mutation runs inside one `Database.transaction()`.
"""

import logging
from typing import Any, Dict, List, Tuple

from campushub.database.connection import Database
from campushub.database.core.serializers import iso, message_view, public_user
from campushub.database.daos import ConversationDao, MessageDao, UserDao
from campushub.database.entities import utcnow
from campushub.errors import NotFoundError, NotParticipant, SelfConversation, ValidationError

log = logging.getLogger(__name__)


def page_window(page: int, page_size: int) -> Tuple[int, int]:
    if page < 1 or page_size < 1:
        raise ValidationError("page and limit must be positive")
    return (page - 1) * page_size, page_size


class ConversationStore:
    def __init__(self, db: Database):
        self.db = db

    def find_or_create_conversation(self, user_a: int, user_b: int) -> Dict[str, Any]:
        """
        Return the conversation shared by `user_a` and `user_b`, creating it if needed.

        Returns
        -------
        dict
            {'id': int, 'other_user': {...}, 'created': bool}

        Raises
        ------
        SelfConversation
            `user_a == user_b`.
        NotFoundError
            No conversation exists yet and `user_b` is unknown.
        """
        if user_a == user_b:
            raise SelfConversation()

        with self.db.transaction() as session:
            conversations = ConversationDao(session)
            existing_id = conversations.find_between(user_a, user_b)
            if existing_id is not None:
                conversation = conversations.get_conversation_with_participants(existing_id)
                other = next((p for p in conversation.participants if p.user_id != user_a), None)
                return {
                    "id": conversation.id,
                    "other_user": public_user(other.user) if other else None,
                    "created": False,
                }

            other_user = UserDao(session).get_by_id(user_b)
            if other_user is None:
                raise NotFoundError("User not found")

            conversation = conversations.create_with_participants([user_a, user_b])
            result = {"id": conversation.id, "other_user": public_user(other_user), "created": True}

        log.info(f"Conversation {result['id']} created between users {user_a} and {user_b}")
        return result

    def list_conversations(self, user_id: int, page: int = 1, page_size: int = 20) -> Tuple[List[Dict[str, Any]], int]:
        """
        The user's conversations, most recently active first.

        Each entry carries the other participant, the latest message and the
        caller's own unread counter. Returns `(items, total)`.
        """
        offset, limit = page_window(page, page_size)
        with self.db.session() as session:
            conversations = ConversationDao(session)
            rows = conversations.get_conversation_summaries_for_list(user_id, offset, limit)
            total = conversations.count_for_user(user_id)

            ids = [p.conversation_id for p in rows]
            others = conversations.other_participants(ids, user_id)
            latest = MessageDao(session).latest_by_conversation(ids)

            items = []
            for p in rows:
                conversation = p.conversation
                other = others.get(p.conversation_id)
                last = latest.get(p.conversation_id)
                items.append({
                    "id": p.conversation_id,
                    "other_user": public_user(other.user) if other else None,
                    "last_message": {
                        "content": last.content,
                        "timestamp": iso(last.created_at),
                        "sender_id": last.sender_id,
                    } if last else None,
                    "unread_count": p.unread_count,
                    "last_message_at": iso(conversation.last_message_at or conversation.created_at),
                })
        return items, total

    def send_message(self, conversation_id: int, sender_id: int, content: str) -> Dict[str, Any]:
        """
        Append a message and update the derived state in one transaction.

        Inserts the message unread, moves the conversation's last message
        forward and adds one to every other participant's unread counter.
        """
        if not content or not content.strip():
            raise ValidationError("Message content is required")

        with self.db.transaction() as session:
            conversations = ConversationDao(session)
            if conversations.get_participant(conversation_id, sender_id) is None:
                raise NotParticipant()

            messages = MessageDao(session)
            message = messages.create(conversation_id, sender_id, content)
            conversations.touch_last_message(conversation_id, content, message.created_at)
            conversations.increment_unread(conversation_id, exclude_user_id=sender_id)
            view = message_view(messages.get_with_sender(message.id))

        return view

    def list_messages(self, conversation_id: int, requester_id: int, page: int = 1,
                      page_size: int = 50) -> Tuple[List[Dict[str, Any]], int]:
        """
        One page of history. Pages are cut newest-first, then each page is
        returned oldest-first for display. Returns `(items, total)`.
        """
        offset, limit = page_window(page, page_size)
        with self.db.session() as session:
            if ConversationDao(session).get_participant(conversation_id, requester_id) is None:
                raise NotParticipant()
            messages = MessageDao(session)
            newest = messages.newest_first(conversation_id, offset, limit)
            total = messages.count(conversation_id)
            items = [message_view(m) for m in reversed(newest)]
        return items, total

    def mark_read(self, conversation_id: int, user_id: int) -> int:
        """
        Mark everything the other side sent as read and reset the caller's counter.

        The caller's participant row is locked first, so a concurrent
        `send_message` either lands before (and is marked read here) or
        after (and increments the counter from the recomputed value). The
        counter is recomputed from the message table rather than blindly
        zeroed. Returns the number of messages flipped to read.
        """
        with self.db.transaction() as session:
            conversations = ConversationDao(session)
            participant = conversations.get_participant(conversation_id, user_id, for_update=True)
            if participant is None:
                raise NotParticipant()
            messages = MessageDao(session)
            flipped = messages.mark_read_from_others(conversation_id, user_id)
            conversations.set_unread(participant, messages.count_unread_from_others(conversation_id, user_id))
        return flipped

    def leave_conversation(self, conversation_id: int, user_id: int) -> None:
        """Remove only the caller's participant row; the conversation and the other side remain."""
        with self.db.transaction() as session:
            conversations = ConversationDao(session)
            participant = conversations.get_participant(conversation_id, user_id)
            if participant is None:
                raise NotParticipant()
            conversations.delete_participant(participant.id)

        log.info(f"User {user_id} left conversation {conversation_id}")

    def is_participant(self, conversation_id: int, user_id: int) -> bool:
        with self.db.session() as session:
            return ConversationDao(session).get_participant(conversation_id, user_id) is not None

    def unread_count(self, conversation_id: int, user_id: int) -> int:
        with self.db.session() as session:
            participant = ConversationDao(session).get_participant(conversation_id, user_id)
            if participant is None:
                raise NotParticipant()
            return participant.unread_count
