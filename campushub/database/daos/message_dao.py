from typing import Dict, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, selectinload

from campushub.database.entities import Message


class MessageDao:
    """Persistence operations on `messages`."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, conversation_id: int, sender_id: int, content: str) -> Message:
        message = Message(conversation_id=conversation_id, sender_id=sender_id, content=content, is_read=False)
        self.session.add(message)
        self.session.flush()
        return message

    def get_with_sender(self, message_id: int) -> Optional[Message]:
        stmt = select(Message).where(Message.id == message_id).options(selectinload(Message.sender))
        return self.session.scalars(stmt).first()

    def newest_first(self, conversation_id: int, offset: int, limit: int) -> List[Message]:
        stmt = (
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .options(selectinload(Message.sender))
            .order_by(Message.created_at.desc(), Message.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(self.session.scalars(stmt))

    def count(self, conversation_id: int) -> int:
        return self.session.scalar(select(func.count(Message.id)).where(Message.conversation_id == conversation_id))

    def latest_by_conversation(self, conversation_ids: List[int]) -> Dict[int, Message]:
        if not conversation_ids:
            return {}
        latest_ids = (
            select(func.max(Message.id))
            .where(Message.conversation_id.in_(conversation_ids))
            .group_by(Message.conversation_id)
        )
        stmt = select(Message).where(Message.id.in_(latest_ids))
        return {m.conversation_id: m for m in self.session.scalars(stmt)}

    def mark_read_from_others(self, conversation_id: int, reader_id: int) -> int:
        result = self.session.execute(
            update(Message)
            .where(
                Message.conversation_id == conversation_id,
                Message.sender_id != reader_id,
                Message.is_read.is_(False),
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def count_unread_from_others(self, conversation_id: int, reader_id: int) -> int:
        return self.session.scalar(
            select(func.count(Message.id)).where(
                Message.conversation_id == conversation_id,
                Message.sender_id != reader_id,
                Message.is_read.is_(False),
            )
        )
