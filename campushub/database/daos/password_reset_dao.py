from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from campushub.database.entities import PasswordResetToken


class PasswordResetDao:
    def __init__(self, session: Session):
        self.session = session

    def upsert(self, user_id: int, token: str, expires_at: datetime) -> PasswordResetToken:
        """Store `token` as the only outstanding reset token of `user_id`."""
        row = self.session.scalars(
            select(PasswordResetToken).where(PasswordResetToken.user_id == user_id)
        ).first()
        if row is None:
            row = PasswordResetToken(user_id=user_id, token=token, expires_at=expires_at)
            self.session.add(row)
        else:
            row.token = token
            row.expires_at = expires_at
        self.session.flush()
        return row

    def find_active(self, user_id: int, token: str, now: datetime) -> Optional[PasswordResetToken]:
        stmt = select(PasswordResetToken).where(
            PasswordResetToken.user_id == user_id,
            PasswordResetToken.token == token,
            PasswordResetToken.expires_at > now,
        )
        return self.session.scalars(stmt).first()

    def delete_for_user(self, user_id: int):
        self.session.execute(delete(PasswordResetToken).where(PasswordResetToken.user_id == user_id))
