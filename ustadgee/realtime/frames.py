"""
WebSocket frame schemas

Inbound frames are validated with pydantic; outbound frames are frozen so a
frame queued for several connections can never be mutated between sends.
"""

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MAX_CHAT_MESSAGE_LENGTH = 5000


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def utc_iso(value: datetime) -> str:
    """ISO 8601 with offset; naive database timestamps are UTC"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def parse_user_id(value) -> int:
    """Syntactic check for a user identity: a positive integer or its decimal string"""
    if isinstance(value, bool):
        raise ValueError("user id must be an integer")
    if isinstance(value, int):
        user_id = value
    elif isinstance(value, str) and value.strip().isdigit():
        user_id = int(value.strip())
    else:
        raise ValueError(f"malformed user id: {value!r}")
    if user_id <= 0:
        raise ValueError(f"user id must be positive: {user_id}")
    return user_id


# ============================================================================
# CLIENT -> SERVER
# ============================================================================


class AuthFrame(BaseModel):
    type: Literal["auth"]
    userId: int
    token: Optional[str] = None

    @field_validator("userId", mode="before")
    @classmethod
    def validate_user_id(cls, v):
        return parse_user_id(v)


class ChatFrame(BaseModel):
    type: Literal["chat"]
    senderId: Optional[int] = None
    recipientId: int
    message: str = Field(min_length=1, max_length=MAX_CHAT_MESSAGE_LENGTH)

    @field_validator("senderId", mode="before")
    @classmethod
    def validate_sender(cls, v):
        if v is None:
            return v
        return parse_user_id(v)

    @field_validator("recipientId", mode="before")
    @classmethod
    def validate_recipient(cls, v):
        return parse_user_id(v)

    @field_validator("message")
    @classmethod
    def validate_message(cls, v):
        if not v.strip():
            raise ValueError("message must not be blank")
        return v


class NotificationPermissionFrame(BaseModel):
    # Web clients send the state as "status", the settings page as "permission"
    type: Literal["notification_permission"]
    status: Optional[str] = Field(default=None, max_length=20)
    permission: Optional[str] = Field(default=None, max_length=20)

    @model_validator(mode="after")
    def require_state(self):
        if not (self.status or self.permission):
            raise ValueError("status is required")
        return self

    @property
    def declared(self) -> str:
        return self.status or self.permission


# ============================================================================
# SERVER -> CLIENT
# ============================================================================


class OutboundFrame(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)


class AuthSuccessFrame(OutboundFrame):
    type: Literal["auth_success"] = "auth_success"
    message: str = "Authentication successful"


class ChatDeliveryFrame(OutboundFrame):
    type: Literal["chat"] = "chat"
    senderId: int
    message: str
    timestamp: str = Field(default_factory=utc_now_iso)


class PermissionUpdateFrame(OutboundFrame):
    type: Literal["notification_permission_update"] = "notification_permission_update"
    status: str = "success"


class NotificationFrame(OutboundFrame):
    type: Literal["notification"] = "notification"
    title: str
    message: str = ""
    notificationType: int
    timestamp: str = Field(default_factory=utc_now_iso)
    linkId: Optional[int] = None
    notificationId: Optional[int] = None
