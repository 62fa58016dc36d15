"""Task service - Business logic for task requests"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...exceptions import InvalidTransition, StoreError, TaskAccessDenied, TaskNotFound
from ...models import TaskAssign, User
from ...realtime.hub import RealtimeHub
from ...schemas import NotificationType
from ...services.notification_service import NotificationPayload
from .repository import TaskRepository
from .schemas import PartySummary, ServiceSummary, TaskCreate
from .state_machine import STATUS_LABELS, TaskStatus, TaskStatusMachine

logger = logging.getLogger(__name__)


def _party(user: Optional[User]) -> Optional[dict]:
    if not user:
        return None
    return PartySummary(
        id=user.id,
        fullName=user.full_name,
        phoneNumber=user.phone_number,
        profileImage=user.profile_image,
    ).model_dump()


def _status_label(status_id: int) -> str:
    try:
        return STATUS_LABELS[TaskStatus(status_id)]
    except ValueError:
        return "Unknown"


def format_task(task: TaskAssign, counterpart_key: str, counterpart: Optional[User]) -> dict:
    return {
        "id": task.id,
        "worker_id": task.worker_id,
        "user_id": task.user_id,
        "service_id": task.service_id,
        "description": task.description,
        "est_time": task.est_time,
        "total_amount": task.total_amount,
        "offer_expiration_date": (
            task.offer_expiration_date.isoformat() if task.offer_expiration_date else None
        ),
        "arrival_time": task.arrival_time.isoformat() if task.arrival_time else None,
        "status_id": task.status_id,
        "status": _status_label(task.status_id),
        "created_at": task.created_at.isoformat() if task.created_at else None,
        "service": (
            ServiceSummary(
                id=task.service.id,
                title=task.service.title,
                description=task.service.description,
                charges=task.service.charges,
            ).model_dump()
            if task.service
            else None
        ),
        counterpart_key: _party(counterpart),
    }


class TaskService:
    """Service layer for task business logic"""

    def __init__(self, db: Session, hub: RealtimeHub):
        self.db = db
        self.repo = TaskRepository()
        self.hub = hub
        self.machine = TaskStatusMachine(hub.store, hub.bridge)

    async def add_task(self, data: TaskCreate, user: User) -> TaskAssign:
        """Create a Pending task and notify the provider"""
        service = self.repo.get_service(self.db, data.service_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")
        if service.user_id != data.worker_id:
            raise HTTPException(status_code=400, detail="Service does not belong to this provider")
        if data.worker_id == user.id:
            raise HTTPException(status_code=400, detail="You cannot request your own service")

        task = self.repo.create_task(self.db, user.id, **data.model_dump())
        logger.info(f"📥 Task {task.id} created by user {user.id} for provider {data.worker_id}")

        try:
            await self.hub.bridge.deliver(
                data.worker_id,
                NotificationPayload(
                    title="New Task Request",
                    message=f"{user.full_name} requested {service.title}",
                    type=NotificationType.TASK_REQUEST,
                    link_id=task.id,
                    notifier_id=user.id,
                ),
            )
        except StoreError as e:
            logger.error(f"❌ Task {task.id} created but provider notification failed: {e}")

        return task

    def get_provider_requests(self, user: User) -> list[dict]:
        tasks = self.repo.get_provider_tasks(self.db, user.id)
        return [format_task(t, "customer", t.requester) for t in tasks]

    def get_user_requests(self, user: User, status: Optional[TaskStatus] = None) -> list[dict]:
        tasks = self.repo.get_requester_tasks(
            self.db, user.id, int(status) if status is not None else None
        )
        return [format_task(t, "provider", t.worker) for t in tasks]

    async def update_status(self, task_id: int, status_id: int, user: User) -> dict:
        """Apply a status transition requested over HTTP"""
        try:
            task = await self.machine.transition(task_id, status_id, user.id)
        except InvalidTransition as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        except TaskNotFound as e:
            raise HTTPException(status_code=404, detail="Task not found") from e
        except TaskAccessDenied as e:
            raise HTTPException(status_code=403, detail="Not authorized to update this task") from e
        except StoreError as e:
            raise HTTPException(status_code=500, detail="Failed to update task status") from e

        data = task.model_dump(mode="json")
        data["status"] = _status_label(task.status_id)
        return data
