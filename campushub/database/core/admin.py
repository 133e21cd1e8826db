"""Account administration: approval/suspension and deletion."""

import logging
from typing import Any, Dict, List, Optional, Tuple

from campushub.database.connection import Database
from campushub.database.core.messaging import page_window
from campushub.database.core.serializers import user_view
from campushub.database.daos import UserDao
from campushub.database.entities import ADMIN_ROLES, UserRole, UserStatus
from campushub.errors import AuthorizationError, NotFoundError, ValidationError

log = logging.getLogger(__name__)


class UserAdmin:
    def __init__(self, db: Database):
        self.db = db

    def list_users(self, status: Optional[UserStatus] = None, page: int = 1,
                   page_size: int = 20) -> Tuple[List[Dict[str, Any]], int]:
        offset, limit = page_window(page, page_size)
        with self.db.session() as session:
            users = UserDao(session)
            items = [user_view(u) for u in users.list(status, offset, limit)]
            return items, users.count(status)

    def update_status(self, actor_id: int, user_id: int, status: UserStatus) -> Dict[str, Any]:
        with self.db.transaction() as session:
            users = UserDao(session)
            user = users.get_by_id(user_id)
            if user is None:
                raise NotFoundError("User not found")
            users.set_status(user, UserStatus(status))
            view = user_view(user)

        log.info(f"User {actor_id} set status of {view['email']} to {view['status']}")
        return view

    def delete_user(self, actor_id: int, actor_role: UserRole, user_id: int) -> None:
        """
        Delete an account and everything it owns.

        Nobody can delete themselves or a SUPER_ADMIN; only a SUPER_ADMIN can
        delete other admins.
        """
        if actor_id == user_id:
            raise ValidationError("You cannot delete your own account")

        with self.db.transaction() as session:
            users = UserDao(session)
            user = users.get_by_id(user_id)
            if user is None:
                raise NotFoundError("User not found")
            if user.role == UserRole.SUPER_ADMIN:
                raise AuthorizationError("Super admins cannot be deleted")
            if user.role in ADMIN_ROLES and UserRole(actor_role) != UserRole.SUPER_ADMIN:
                raise AuthorizationError("Only SUPER_ADMIN can delete other admins")
            email = user.email
            users.delete(user)

        log.info(f"User {actor_id} deleted user {email}")
