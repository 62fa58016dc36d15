from datetime import datetime
from enum import IntEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class NotificationType(IntEnum):
    TASK_REQUEST = 1
    TASK_STATUS = 2
    REVIEW = 3
    GENERAL = 4


# Snapshots returned by the data store. They are detached copies of the ORM
# rows so nothing outside the store ever holds a live session object.


class TaskRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    worker_id: int
    user_id: int
    service_id: int
    total_amount: int
    status_id: int
    offer_expiration_date: Optional[datetime] = None
    arrival_time: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class NotificationCreate(BaseModel):
    recipient_id: int
    title: str
    message: str = ""
    type: NotificationType
    post_id: Optional[int] = None
    notifier_id: Optional[int] = None


class NotificationRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    recipient_id: int
    notifier_id: Optional[int] = None
    title: str
    message: str
    type: int
    post_id: Optional[int] = None
    is_read: bool
    time_stamp: Optional[datetime] = None


class ChatCreate(BaseModel):
    sender_id: int
    recipient_id: int
    message: str
    type: str = "text"


class ChatRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    thread_id: int
    sender_id: int
    recipient_id: int
    message: str
    type: str
    created_at: Optional[datetime] = None
