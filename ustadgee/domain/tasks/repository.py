"""Task repository - Database operations for task requests"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Service, TaskAssign
from .state_machine import TaskStatus


class TaskRepository:
    """Repository for task database operations"""

    @staticmethod
    def get_service(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def create_task(db: Session, user_id: int, **task_data) -> TaskAssign:
        """Create a new task in the Pending state"""
        task = TaskAssign(user_id=user_id, status_id=int(TaskStatus.PENDING), **task_data)
        db.add(task)
        db.commit()
        db.refresh(task)
        return task

    @staticmethod
    def get_provider_tasks(db: Session, worker_id: int) -> list[TaskAssign]:
        """Tasks assigned to a provider, newest first"""
        return (
            db.query(TaskAssign)
            .options(joinedload(TaskAssign.service), joinedload(TaskAssign.requester))
            .filter(TaskAssign.worker_id == worker_id)
            .order_by(TaskAssign.created_at.desc(), TaskAssign.id.desc())
            .all()
        )

    @staticmethod
    def get_requester_tasks(
        db: Session, user_id: int, status_id: Optional[int] = None
    ) -> list[TaskAssign]:
        """Tasks requested by a user, optionally filtered by status, newest first"""
        query = (
            db.query(TaskAssign)
            .options(joinedload(TaskAssign.service), joinedload(TaskAssign.worker))
            .filter(TaskAssign.user_id == user_id)
        )
        if status_id is not None:
            query = query.filter(TaskAssign.status_id == status_id)
        return query.order_by(TaskAssign.created_at.desc(), TaskAssign.id.desc()).all()
