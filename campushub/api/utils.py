"""
Request-scoped helpers: service lookup on `app.state` and bearer-token
authentication / role checks used as FastAPI dependencies.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from campushub.database.core import ConversationStore, SessionManager, UserAdmin
from campushub.database.entities import UserRole
from campushub.errors import AuthenticationError, InsufficientRole

bearer = HTTPBearer(auto_error=False)


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def get_conversation_store(request: Request) -> ConversationStore:
    return request.app.state.conversation_store


def get_user_admin(request: Request) -> UserAdmin:
    return request.app.state.user_admin


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    sessions: SessionManager = Depends(get_session_manager),
) -> dict:
    """
    Resolve the `Authorization: Bearer <token>` header to the ACTIVE user.

    Raises
    ------
    AuthenticationError
        Header missing, token invalid or expired.
    AccountInactive
        The user behind the token is not ACTIVE.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("No token provided")
    return sessions.authenticate(credentials.credentials)


def require_roles(*roles: UserRole):
    """Dependency factory: the current user must hold one of `roles`."""
    allowed = {UserRole(r).value for r in roles}

    def checker(user: dict = Depends(get_current_user)) -> dict:
        if user["role"] not in allowed:
            raise InsufficientRole()
        return user

    return checker
