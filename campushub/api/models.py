"""
Pydantic schemas for request/response validation.

Wire format is camelCase (`conversationId`, `unreadCount`, ...); every
model also accepts its snake_case field names.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator
from pydantic.alias_generators import to_camel

from campushub.database.entities import UserRole, UserStatus


class Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- requests ---
class RegisterRequest(Schema):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    role: UserRole = UserRole.FELLOW
    # mentor
    title: Optional[str] = None
    company: Optional[str] = None
    expertise: Optional[List[str]] = None
    experience: Optional[str] = None
    # fellow
    team: Optional[str] = Field(None, max_length=100)
    department: Optional[str] = Field(None, max_length=100)
    interests: Optional[List[str]] = None
    # community admin
    community_name: Optional[str] = Field(None, min_length=2, max_length=200)
    category: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def check_role_fields(self):
        if self.role == UserRole.MENTOR:
            if not self.title:
                raise ValueError("title is required for mentors")
            if self.expertise is None:
                raise ValueError("expertise is required for mentors")
        if self.role == UserRole.COMMUNITY_ADMIN and not self.community_name:
            raise ValueError("communityName is required for community admins")
        if self.role != UserRole.COMMUNITY_ADMIN and self.community_name is not None:
            raise ValueError("communityName is only allowed for community admins")
        return self

    def role_data(self) -> dict:
        return self.model_dump(exclude={"name", "email", "password", "role"}, exclude_none=True)


class LoginRequest(Schema):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshRequest(Schema):
    refresh_token: str = Field(..., min_length=1)


class ForgotPasswordRequest(Schema):
    email: EmailStr


class ResetPasswordRequest(Schema):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=72)


class ChangePasswordRequest(Schema):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=72)
    confirm_password: Optional[str] = None

    @model_validator(mode="after")
    def passwords_match(self):
        if self.confirm_password is not None and self.confirm_password != self.new_password:
            raise ValueError("Passwords do not match")
        return self


class CreateConversationRequest(Schema):
    user_id: int


class SendMessageRequest(Schema):
    conversation_id: int
    content: str = Field(..., min_length=1, max_length=5000)


class UpdateStatusRequest(Schema):
    status: UserStatus


# --- websocket payloads ---
class RoomPayload(Schema):
    conversation_id: int


class TypingPayload(Schema):
    conversation_id: int
    is_typing: bool = True


# --- responses ---
class PublicUser(Schema):
    id: int
    name: str
    avatar: Optional[str] = None


class UserOut(Schema):
    id: int
    name: str
    email: str
    avatar: Optional[str] = None
    role: UserRole
    status: UserStatus
    last_login: Optional[str] = None
    created_at: Optional[str] = None


class FellowOut(Schema):
    team: Optional[str] = None
    department: Optional[str] = None
    bio: Optional[str] = None
    interests: List[str] = []


class MentorOut(Schema):
    title: str
    company: str = ""
    expertise: List[str] = []
    bio: str = ""
    experience: str = ""


class CommunityOut(Schema):
    id: int
    name: str
    slug: str
    status: str
    role: str


class ProfileOut(UserOut):
    fellow: Optional[FellowOut] = None
    mentor: Optional[MentorOut] = None
    communities: List[CommunityOut] = []


class TokenPair(Schema):
    access_token: str
    refresh_token: str


class AuthResult(TokenPair):
    user: UserOut


class ForgotPasswordResult(Schema):
    reset_token: Optional[str] = None


class ConversationOut(Schema):
    id: int
    other_user: Optional[PublicUser] = None


class LastMessage(Schema):
    content: str
    timestamp: str
    sender_id: int


class ConversationSummary(Schema):
    id: int
    other_user: Optional[PublicUser] = None
    last_message: Optional[LastMessage] = None
    unread_count: int
    last_message_at: Optional[str] = None


class MessageOut(Schema):
    id: int
    conversation_id: int
    sender_id: int
    content: str
    is_read: bool
    timestamp: str
    sender: Optional[PublicUser] = None


class MarkReadResult(Schema):
    marked: int
