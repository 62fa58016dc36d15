"""Notification repository - Database operations for notification records"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Notification, User


class NotificationRepository:
    """Repository for notification database operations"""

    @staticmethod
    def list_for_user(db: Session, user_id: int, limit: int, offset: int) -> list[Notification]:
        return (
            db.query(Notification)
            .options(joinedload(Notification.notifier))
            .filter(Notification.recipient_id == user_id)
            .order_by(Notification.time_stamp.desc(), Notification.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )

    @staticmethod
    def count_for_user(db: Session, user_id: int, unread_only: bool = False) -> int:
        query = db.query(func.count(Notification.id)).filter(Notification.recipient_id == user_id)
        if unread_only:
            query = query.filter(Notification.is_read.is_(False))
        return query.scalar() or 0

    @staticmethod
    def get_for_user(db: Session, notification_id: int, user_id: int) -> Optional[Notification]:
        return (
            db.query(Notification)
            .filter(Notification.id == notification_id, Notification.recipient_id == user_id)
            .first()
        )

    @staticmethod
    def mark_read(db: Session, notification: Notification) -> Notification:
        notification.is_read = True
        db.commit()
        db.refresh(notification)
        return notification

    @staticmethod
    def mark_all_read(db: Session, user_id: int) -> int:
        updated = (
            db.query(Notification)
            .filter(Notification.recipient_id == user_id, Notification.is_read.is_(False))
            .update({Notification.is_read: True}, synchronize_session=False)
        )
        db.commit()
        return updated

    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def set_notification_permission(db: Session, user: User, permission: str) -> User:
        user.notification_permission = permission
        db.commit()
        db.refresh(user)
        return user
