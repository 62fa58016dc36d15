from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# user_type values
USER_TYPE_PROVIDER = 1  # Ustadgee / Karigar
USER_TYPE_REQUESTER = 2
USER_TYPE_ADMIN = 3


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    phone_number = Column(String(50), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=False)
    profile_image = Column(String(500), nullable=True)
    user_type = Column(Integer, index=True, nullable=False, default=USER_TYPE_REQUESTER)
    active = Column(Boolean, default=True, nullable=False)
    # Browser notification permission: default, granted, denied, all, none
    notification_permission = Column(String(20), default="default", nullable=False)
    device_token = Column(String(500), nullable=True)  # Push token for mobile clients
    created_at = Column(DateTime, server_default=func.now())

    services = relationship("Service", back_populates="provider")


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)  # Provider
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=False, default="")
    charges = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now())

    provider = relationship("User", back_populates="services")


class TaskAssign(Base):
    """A requester's booking of a provider's service"""

    __tablename__ = "task_assigns"

    id = Column(Integer, primary_key=True, index=True)
    worker_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), index=True, nullable=False)
    description = Column(String(500), nullable=False, default="")
    est_time = Column(Integer, nullable=False, default=0)  # Estimated hours
    total_amount = Column(Integer, nullable=False, default=0)
    offer_expiration_date = Column(DateTime, nullable=True)
    arrival_time = Column(DateTime, nullable=True)
    status_id = Column(Integer, index=True, nullable=False, default=1)
    audio_name = Column(String(500), nullable=False, default="")  # Voice note upload
    cnic = Column(String(50), nullable=False, default="")
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    worker = relationship("User", foreign_keys=[worker_id])
    requester = relationship("User", foreign_keys=[user_id])
    service = relationship("Service")


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (UniqueConstraint("worker_id", "user_id", name="worker_user_idx"),)

    id = Column(Integer, primary_key=True, index=True)
    worker_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    rating = Column(Integer, nullable=False)
    description = Column(String(255), nullable=False, default="")
    created_at = Column(DateTime, server_default=func.now())

    reviewer = relationship("User", foreign_keys=[user_id])


class ChatThread(Base):
    """One row per pair of participants, carrying the latest message"""

    __tablename__ = "chat_list"
    __table_args__ = (UniqueConstraint("user1", "user2", name="users_idx"),)

    id = Column(Integer, primary_key=True, index=True)
    user1 = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    user2 = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    last_msg = Column(Text, nullable=False, default="")
    type = Column(String(20), nullable=False, default="text")
    deleted_by = Column(Integer, nullable=True)  # Participant who soft-deleted the thread
    time_stamp = Column(DateTime, server_default=func.now(), onupdate=func.now())

    messages = relationship(
        "ChatMessage", back_populates="thread", cascade="all, delete-orphan"
    )


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, index=True)
    thread_id = Column(Integer, ForeignKey("chat_list.id"), index=True, nullable=False)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    recipient_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(20), nullable=False, default="text")
    created_at = Column(DateTime, server_default=func.now())

    thread = relationship("ChatThread", back_populates="messages")


class Notification(Base):
    __tablename__ = "notification"

    id = Column(Integer, primary_key=True, index=True)
    recipient_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    notifier_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    title = Column(String(500), nullable=False)
    message = Column(String(1000), nullable=False, default="")
    type = Column(Integer, nullable=False)  # NotificationType
    post_id = Column(Integer, nullable=True)  # Task / review the event refers to
    is_read = Column(Boolean, default=False, nullable=False)
    time_stamp = Column(DateTime, server_default=func.now(), index=True)

    notifier = relationship("User", foreign_keys=[notifier_id])
