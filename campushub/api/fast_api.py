"""
FastAPI Router: Authentication, Direct Messaging, and User Administration

This module defines the HTTP API endpoints exposed by the backend. It handles:
- Registration, login, token refresh, logout and the password flows
- The current user's profile
- Conversation find-or-create and listing
- Messaging (send, paginated history, mark read, leave)
- Account status changes and deletion for administrators

Each endpoint validates input via Pydantic models and returns the standard
`{success, message, data}` envelope. Errors raised by the services are
turned into responses by the handlers in `campushub.api.errors`.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from starlette.concurrency import run_in_threadpool

from campushub.api.models import (
    AuthResult,
    ChangePasswordRequest,
    ConversationOut,
    ConversationSummary,
    CreateConversationRequest,
    ForgotPasswordRequest,
    ForgotPasswordResult,
    LoginRequest,
    MarkReadResult,
    MessageOut,
    ProfileOut,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SendMessageRequest,
    TokenPair,
    UpdateStatusRequest,
    UserOut,
)
from campushub.api.responses import paginated, success
from campushub.api.utils import (
    get_conversation_store,
    get_current_user,
    get_session_manager,
    get_user_admin,
    require_roles,
)
from campushub.database.core import ConversationStore, SessionManager, UserAdmin
from campushub.database.entities import UserRole, UserStatus

router = APIRouter()
"""Creates the FastAPI router in which we define its routes"""

admin_only = require_roles(UserRole.SUPER_ADMIN, UserRole.USER_ADMIN)


# --- auth ---
@router.post("/auth/register", status_code=201)
def register(data: RegisterRequest, sessions: SessionManager = Depends(get_session_manager)):
    """
    Register a new account in PENDING status.

    Request Body
    ------------
    RegisterRequest {name, email, password, role?, role-specific fields}

    Returns
    -------
    dict
        Envelope with {'user': {...}, 'accessToken': str, 'refreshToken': str}.

    Raises
    ------
    ValidationError 400
        Email outside the institutional domain, or missing role fields.
    ConflictError 409
        Email already registered.
    """
    result = sessions.register(
        name=data.name,
        email=data.email,
        password=data.password,
        role=data.role,
        role_data=data.role_data(),
    )
    return success("Registration successful. Your account is pending approval.", AuthResult(**result))


@router.post("/auth/login")
def login(data: LoginRequest, sessions: SessionManager = Depends(get_session_manager)):
    """
    Authenticate a user and issue an access/refresh token pair.

    Raises
    ------
    AuthenticationError 401
        Unknown email or wrong password.
    AuthorizationError 403
        Account PENDING or otherwise not ACTIVE.
    """
    result = sessions.login(data.email, data.password)
    return success("Login successful", AuthResult(**result))


@router.post("/auth/refresh")
def refresh(data: RefreshRequest, sessions: SessionManager = Depends(get_session_manager)):
    """Exchange a refresh token for a new token pair."""
    pair = sessions.refresh(data.refresh_token)
    return success("Token refreshed successfully", TokenPair(**pair))


@router.post("/auth/forgot-password")
def forgot_password(data: ForgotPasswordRequest, sessions: SessionManager = Depends(get_session_manager)):
    """
    Request a password reset token.

    The response is the same whether or not the email is registered. The
    token itself is only included when `EXPOSE_RESET_TOKEN` is enabled.
    """
    result = sessions.forgot_password(data.email)
    return success(
        "If an account exists with this email, a password reset link has been sent",
        ForgotPasswordResult(**result),
    )


@router.post("/auth/reset-password")
def reset_password(data: ResetPasswordRequest, sessions: SessionManager = Depends(get_session_manager)):
    """
    Set a new password using a reset token.

    Raises
    ------
    ValidationError 400
        Token invalid, expired, or superseded by a newer request.
    """
    sessions.reset_password(data.token, data.new_password)
    return success("Password reset successful")


@router.put("/auth/change-password")
def change_password(
    data: ChangePasswordRequest,
    user: dict = Depends(get_current_user),
    sessions: SessionManager = Depends(get_session_manager),
):
    sessions.change_password(user["id"], data.current_password, data.new_password)
    return success("Password changed successfully")


@router.get("/auth/me")
def me(user: dict = Depends(get_current_user), sessions: SessionManager = Depends(get_session_manager)):
    """
    Retrieve the authenticated user with their role profile.

    Returns
    -------
    dict
        Envelope with the user, plus `fellow`, `mentor` and `communities`.
    """
    return success("User retrieved successfully", ProfileOut(**sessions.get_current_user(user["id"])))


@router.post("/auth/logout")
def logout(user: dict = Depends(get_current_user)):
    """Acknowledge logout. Tokens are stateless; the client discards them."""
    return success("Logout successful")


# --- messages ---
@router.get("/messages/conversations")
def list_conversations(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: dict = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store),
):
    """
    Fetch the user's conversations, most recently active first.

    Query Parameters
    ----------------
    page : int
    limit : int

    Returns
    -------
    dict
        Paginated envelope of {'id', 'otherUser', 'lastMessage', 'unreadCount', 'lastMessageAt'}.
    """
    items, total = store.list_conversations(user["id"], page=page, page_size=limit)
    return paginated(
        "Conversations retrieved successfully",
        [ConversationSummary(**item) for item in items],
        page, limit, total,
    )


@router.post("/messages/conversations")
def create_conversation(
    data: CreateConversationRequest,
    response: Response,
    user: dict = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store),
):
    """
    Find or create the conversation with another user.

    Request Body
    ------------
    CreateConversationRequest {userId: int}

    Returns
    -------
    dict
        Envelope with {'id': int, 'otherUser': {...}}; 201 when the
        conversation was just created, 200 when it already existed.

    Raises
    ------
    ConflictError 409
        `userId` is the caller.
    NotFoundError 404
        `userId` does not exist.
    """
    result = store.find_or_create_conversation(user["id"], data.user_id)
    if result["created"]:
        response.status_code = 201
        message = "Conversation created successfully"
    else:
        message = "Conversation retrieved successfully"
    return success(message, ConversationOut(**result))


@router.post("/messages", status_code=201)
async def send_message(
    data: SendMessageRequest,
    request: Request,
    user: dict = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store),
):
    """
    Persist a message and push it to the conversation's room.

    Request Body
    ------------
    SendMessageRequest {conversationId: int, content: str}

    Raises
    ------
    AuthorizationError 403
        Caller is not a participant.
    """
    view = await run_in_threadpool(store.send_message, data.conversation_id, user["id"], data.content)
    message = MessageOut(**view)
    await request.app.state.broadcaster.broadcast_message(
        data.conversation_id, message.model_dump(by_alias=True, mode="json")
    )
    return success("Message sent successfully", message)


@router.get("/messages/{conversation_id}")
def get_messages(
    conversation_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    user: dict = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store),
):
    """
    Fetch one page of a conversation's history.

    Pages count back from the newest message; each page is returned in
    ascending timestamp order.
    """
    items, total = store.list_messages(conversation_id, user["id"], page=page, page_size=limit)
    return paginated("Messages retrieved successfully", [MessageOut(**item) for item in items], page, limit, total)


@router.put("/messages/{conversation_id}/read")
def mark_read(
    conversation_id: int,
    user: dict = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store),
):
    marked = store.mark_read(conversation_id, user["id"])
    return success("Messages marked as read", MarkReadResult(marked=marked))


@router.delete("/messages/{conversation_id}")
async def leave_conversation(
    conversation_id: int,
    request: Request,
    user: dict = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store),
):
    """
    Remove the caller from a conversation. The other participant keeps it.

    The caller's open sockets are taken out of the conversation's room, so
    no further messages are pushed to them.
    """
    await run_in_threadpool(store.leave_conversation, conversation_id, user["id"])
    request.app.state.broadcaster.evict_user(conversation_id, user["id"])
    return success("Conversation deleted successfully")


# --- admin ---
@router.get("/admin/users")
def list_users(
    status: Optional[UserStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: dict = Depends(admin_only),
    users: UserAdmin = Depends(get_user_admin),
):
    items, total = users.list_users(status=status, page=page, page_size=limit)
    return paginated("Users retrieved successfully", [UserOut(**item) for item in items], page, limit, total)


@router.put("/admin/users/{user_id}/status")
def update_user_status(
    user_id: int,
    data: UpdateStatusRequest,
    admin: dict = Depends(admin_only),
    users: UserAdmin = Depends(get_user_admin),
):
    """
    Approve, suspend or otherwise change an account's status.

    Request Body
    ------------
    UpdateStatusRequest {status: PENDING | ACTIVE | INACTIVE | SUSPENDED}
    """
    view = users.update_status(admin["id"], user_id, data.status)
    return success("User status updated successfully", UserOut(**view))


@router.delete("/admin/users/{user_id}")
def delete_user(
    user_id: int,
    admin: dict = Depends(admin_only),
    users: UserAdmin = Depends(get_user_admin),
):
    """
    Delete an account with its profile, participations and messages.

    Raises
    ------
    ValidationError 400
        Deleting your own account.
    AuthorizationError 403
        Target is a SUPER_ADMIN, or an admin and the caller is not SUPER_ADMIN.
    """
    users.delete_user(admin["id"], admin["role"], user_id)
    return success("User deleted successfully")
