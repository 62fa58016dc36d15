"""
Asynchronous data store used by the messaging core

Wraps the blocking SQLAlchemy session in the thread pool so the socket loop
never waits on the database. Every call opens its own session and returns a
pydantic snapshot; SQLAlchemy failures surface as StoreError.
"""

import logging
from typing import Callable, Optional, TypeVar

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from .database import SessionLocal
from .exceptions import InvalidTransition, StoreError, TaskNotFound
from .models import ChatMessage, ChatThread, Notification, TaskAssign, User
from .schemas import (
    ChatCreate,
    ChatRecord,
    NotificationCreate,
    NotificationRecord,
    TaskRecord,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SqlAlchemyStore:
    """Data store backed by a SQLAlchemy session factory"""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self._session_factory = session_factory

    async def _run(self, operation: str, work: Callable[[Session], T]) -> T:
        def _in_session() -> T:
            db = self._session_factory()
            try:
                return work(db)
            except SQLAlchemyError as e:
                db.rollback()
                raise StoreError(f"{operation} failed: {e}") from e
            finally:
                db.close()

        try:
            return await run_in_threadpool(_in_session)
        except StoreError as e:
            logger.error(f"❌ {e}")
            raise

    async def find_task(self, task_id: int) -> Optional[TaskRecord]:
        def work(db: Session) -> Optional[TaskRecord]:
            task = db.query(TaskAssign).filter(TaskAssign.id == task_id).first()
            return TaskRecord.model_validate(task) if task else None

        return await self._run("find_task", work)

    async def update_task_status(
        self, task_id: int, status_id: int, expected_status: Optional[int] = None
    ) -> TaskRecord:
        """
        Set a task's status; with expected_status the write only applies while
        the row still holds that status (compare-and-set)
        """

        def work(db: Session) -> TaskRecord:
            query = db.query(TaskAssign).filter(TaskAssign.id == task_id)
            if expected_status is not None:
                query = query.filter(TaskAssign.status_id == int(expected_status))
            updated = query.update(
                {TaskAssign.status_id: int(status_id)}, synchronize_session=False
            )
            db.commit()

            task = db.query(TaskAssign).filter(TaskAssign.id == task_id).first()
            if not task:
                raise TaskNotFound(task_id)
            if not updated:
                raise InvalidTransition(
                    f"Task {task_id} changed to {task.status_id} before the update applied",
                    current_status=task.status_id,
                    new_status=int(status_id),
                )
            return TaskRecord.model_validate(task)

        return await self._run("update_task_status", work)

    async def insert_notification_record(self, data: NotificationCreate) -> NotificationRecord:
        def work(db: Session) -> NotificationRecord:
            notification = Notification(
                recipient_id=data.recipient_id,
                notifier_id=data.notifier_id,
                title=data.title,
                message=data.message,
                type=int(data.type),
                post_id=data.post_id,
                is_read=False,
            )
            db.add(notification)
            db.commit()
            db.refresh(notification)
            return NotificationRecord.model_validate(notification)

        return await self._run("insert_notification_record", work)

    async def insert_chat_record(self, data: ChatCreate) -> ChatRecord:
        """Append a message and create or refresh the thread between the two users"""

        def find_thread(db: Session) -> Optional[ChatThread]:
            return (
                db.query(ChatThread)
                .filter(
                    or_(
                        and_(ChatThread.user1 == data.sender_id, ChatThread.user2 == data.recipient_id),
                        and_(ChatThread.user1 == data.recipient_id, ChatThread.user2 == data.sender_id),
                    )
                )
                .first()
            )

        def work(db: Session) -> ChatRecord:
            thread = find_thread(db)
            if not thread:
                # New threads store the pair lowest id first so users_idx covers both directions
                low, high = sorted((data.sender_id, data.recipient_id))
                thread = ChatThread(user1=low, user2=high)
                db.add(thread)
                try:
                    db.flush()
                except IntegrityError:
                    # The other participant created the thread first
                    db.rollback()
                    thread = find_thread(db)
                    if not thread:
                        raise

            thread.last_msg = data.message
            thread.type = data.type
            thread.deleted_by = None  # A new message revives a soft-deleted thread
            thread.time_stamp = func.now()

            message = ChatMessage(
                thread_id=thread.id,
                sender_id=data.sender_id,
                recipient_id=data.recipient_id,
                message=data.message,
                type=data.type,
            )
            db.add(message)
            db.commit()
            db.refresh(message)
            return ChatRecord.model_validate(message)

        return await self._run("insert_chat_record", work)

    async def update_notification_permission(self, user_id: int, permission: str) -> bool:
        def work(db: Session) -> bool:
            user = db.query(User).filter(User.id == user_id).first()
            if not user:
                return False
            user.notification_permission = permission
            db.commit()
            return True

        return await self._run("update_notification_permission", work)
