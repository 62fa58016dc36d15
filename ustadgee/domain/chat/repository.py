"""Chat repository - Database operations for chat threads and history"""

from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ...models import ChatMessage, ChatThread, User


def _between(user_a: int, user_b: int):
    return or_(
        and_(ChatThread.user1 == user_a, ChatThread.user2 == user_b),
        and_(ChatThread.user1 == user_b, ChatThread.user2 == user_a),
    )


class ChatRepository:
    """Repository for chat database operations"""

    @staticmethod
    def get_threads(db: Session, user_id: int) -> list[ChatThread]:
        """Threads the user participates in and has not deleted"""
        return (
            db.query(ChatThread)
            .filter(
                or_(ChatThread.user1 == user_id, ChatThread.user2 == user_id),
                or_(ChatThread.deleted_by.is_(None), ChatThread.deleted_by != user_id),
            )
            .order_by(ChatThread.time_stamp.desc(), ChatThread.id.desc())
            .all()
        )

    @staticmethod
    def get_thread(db: Session, thread_id: int) -> Optional[ChatThread]:
        return db.query(ChatThread).filter(ChatThread.id == thread_id).first()

    @staticmethod
    def get_thread_between(db: Session, user_a: int, user_b: int) -> Optional[ChatThread]:
        return db.query(ChatThread).filter(_between(user_a, user_b)).first()

    @staticmethod
    def get_history(db: Session, thread_id: int) -> list[ChatMessage]:
        return (
            db.query(ChatMessage)
            .filter(ChatMessage.thread_id == thread_id)
            .order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc())
            .all()
        )

    @staticmethod
    def get_users(db: Session, user_ids: set[int]) -> dict[int, User]:
        if not user_ids:
            return {}
        users = db.query(User).filter(User.id.in_(user_ids)).all()
        return {u.id: u for u in users}

    @staticmethod
    def update_last_message(db: Session, thread: ChatThread, message: str, msg_type: str) -> ChatThread:
        thread.last_msg = message
        thread.type = msg_type
        db.commit()
        db.refresh(thread)
        return thread

    @staticmethod
    def soft_delete(db: Session, thread: ChatThread, user_id: int) -> None:
        thread.deleted_by = user_id
        db.commit()

    @staticmethod
    def hard_delete(db: Session, thread: ChatThread) -> None:
        db.delete(thread)
        db.commit()
