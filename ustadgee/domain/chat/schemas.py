"""Chat domain schemas"""

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator


class StartChatRequest(BaseModel):
    # Mobile client sends recipientId, older web builds send recipient_id
    recipient_id: int = Field(validation_alias=AliasChoices("recipientId", "recipient_id"), gt=0)
    message: str = Field(min_length=1, max_length=5000)
    type: str = Field(default="text", max_length=20)

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Message cannot be empty")
        return v


class ChatUpdateRequest(BaseModel):
    chat_id: int
    message: str = Field(min_length=1, max_length=5000)
    type: str = Field(default="text", max_length=20)


class ChatPartner(BaseModel):
    id: int
    fullName: str
    profileImage: Optional[str] = None


class ChatThreadResponse(BaseModel):
    id: int
    lastMsg: str
    type: str
    timeStamp: Optional[datetime] = None
    otherUser: Optional[ChatPartner] = None


class ChatMessageResponse(BaseModel):
    id: int
    senderId: int
    recipientId: int
    message: str
    type: str
    createdAt: Optional[datetime] = None
