from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session, aliased, selectinload

from campushub.database.entities import Conversation, ConversationParticipant


class ConversationDao:
    """Persistence operations on `conversations` and `conversation_participants`."""

    def __init__(self, session: Session):
        self.session = session

    def find_between(self, user_a: int, user_b: int) -> Optional[int]:
        """Id of a conversation both users participate in, if any."""
        p1 = aliased(ConversationParticipant)
        p2 = aliased(ConversationParticipant)
        stmt = (
            select(p1.conversation_id)
            .join(p2, p1.conversation_id == p2.conversation_id)
            .where(p1.user_id == user_a, p2.user_id == user_b)
            .order_by(p1.conversation_id)
            .limit(1)
        )
        return self.session.scalar(stmt)

    def create_with_participants(self, user_ids: Iterable[int]) -> Conversation:
        conversation = Conversation()
        self.session.add(conversation)
        self.session.flush()
        for user_id in user_ids:
            self.session.add(
                ConversationParticipant(conversation_id=conversation.id, user_id=user_id, unread_count=0)
            )
        self.session.flush()
        return conversation

    def get_conversation_with_participants(self, conversation_id: int) -> Optional[Conversation]:
        stmt = (
            select(Conversation)
            .where(Conversation.id == conversation_id)
            .options(selectinload(Conversation.participants).selectinload(ConversationParticipant.user))
        )
        return self.session.scalars(stmt).first()

    def get_participant(self, conversation_id: int, user_id: int,
                        for_update: bool = False) -> Optional[ConversationParticipant]:
        stmt = select(ConversationParticipant).where(
            ConversationParticipant.conversation_id == conversation_id,
            ConversationParticipant.user_id == user_id,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.scalars(stmt).first()

    def get_conversation_summaries_for_list(self, user_id: int, offset: int,
                                            limit: int) -> List[ConversationParticipant]:
        """
        The caller's participant rows, most recent activity first.

        Activity is `last_message_at`, falling back to the conversation's
        creation time for conversations without messages.
        """
        activity = func.coalesce(Conversation.last_message_at, Conversation.created_at)
        stmt = (
            select(ConversationParticipant)
            .join(Conversation, Conversation.id == ConversationParticipant.conversation_id)
            .where(ConversationParticipant.user_id == user_id)
            .options(selectinload(ConversationParticipant.conversation))
            .order_by(activity.desc(), Conversation.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(self.session.scalars(stmt))

    def count_for_user(self, user_id: int) -> int:
        return self.session.scalar(
            select(func.count(ConversationParticipant.id)).where(ConversationParticipant.user_id == user_id)
        )

    def other_participants(self, conversation_ids: List[int], user_id: int) -> Dict[int, ConversationParticipant]:
        """Map conversation id -> the participant that is not `user_id`."""
        if not conversation_ids:
            return {}
        stmt = (
            select(ConversationParticipant)
            .where(
                ConversationParticipant.conversation_id.in_(conversation_ids),
                ConversationParticipant.user_id != user_id,
            )
            .options(selectinload(ConversationParticipant.user))
        )
        return {p.conversation_id: p for p in self.session.scalars(stmt)}

    def touch_last_message(self, conversation_id: int, content: str, at: datetime):
        self.session.execute(
            update(Conversation)
            .where(Conversation.id == conversation_id)
            .values(last_message=content, last_message_at=at, updated_at=at)
        )

    def increment_unread(self, conversation_id: int, exclude_user_id: int):
        # single UPDATE, so concurrent senders never lose an increment
        self.session.execute(
            update(ConversationParticipant)
            .where(
                ConversationParticipant.conversation_id == conversation_id,
                ConversationParticipant.user_id != exclude_user_id,
            )
            .values(unread_count=ConversationParticipant.unread_count + 1)
        )

    def set_unread(self, participant: ConversationParticipant, count: int):
        participant.unread_count = count

    def delete_participant(self, participant_id: int):
        self.session.execute(delete(ConversationParticipant).where(ConversationParticipant.id == participant_id))
