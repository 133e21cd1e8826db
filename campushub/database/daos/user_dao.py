from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from campushub.database.entities import CommunityAdmin, User, UserRole, UserStatus


class UserDao:
    """Persistence operations on `users`."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.session.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.session.scalars(select(User).where(User.email == email)).first()

    def get_with_profile(self, user_id: int) -> Optional[User]:
        stmt = (
            select(User)
            .where(User.id == user_id)
            .options(
                selectinload(User.fellow),
                selectinload(User.mentor),
                selectinload(User.community_admins).selectinload(CommunityAdmin.community),
            )
        )
        return self.session.scalars(stmt).first()

    def create(self, name: str, email: str, password_hash: str, role: UserRole,
               status: UserStatus = UserStatus.PENDING) -> User:
        user = User(name=name, email=email, password_hash=password_hash, role=role, status=status)
        self.session.add(user)
        self.session.flush()
        return user

    def set_last_login(self, user: User, when: datetime):
        user.last_login = when

    def set_password_hash(self, user: User, password_hash: str):
        user.password_hash = password_hash

    def set_status(self, user: User, status: UserStatus):
        user.status = status

    def delete(self, user: User):
        self.session.delete(user)

    def list(self, status: Optional[UserStatus], offset: int, limit: int) -> List[User]:
        stmt = select(User).order_by(User.created_at.desc(), User.id.desc()).offset(offset).limit(limit)
        if status is not None:
            stmt = stmt.where(User.status == status)
        return list(self.session.scalars(stmt))

    def count(self, status: Optional[UserStatus] = None) -> int:
        stmt = select(func.count(User.id))
        if status is not None:
            stmt = stmt.where(User.status == status)
        return self.session.scalar(stmt)
