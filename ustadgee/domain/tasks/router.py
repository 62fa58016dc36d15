"""Task router - FastAPI endpoints for the task request lifecycle"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_provider, get_current_requester, get_current_user
from ...database import get_db
from ...models import User
from ...realtime.hub import RealtimeHub, get_hub
from .schemas import TaskCreate, TaskStatusUpdate
from .service import TaskService
from .state_machine import TaskStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Tasks"])


def get_task_service(
    db: Session = Depends(get_db), hub: RealtimeHub = Depends(get_hub)
) -> TaskService:
    """Dependency injection for TaskService"""
    return TaskService(db, hub)


@router.post("/addTask", status_code=201)
async def add_task(
    data: TaskCreate,
    current_user: User = Depends(get_current_requester),
    service: TaskService = Depends(get_task_service),
):
    """Request a provider's service"""
    task = await service.add_task(data, current_user)
    return {
        "success": True,
        "message": "Task added successfully",
        "data": {"id": task.id, "status_id": task.status_id},
    }


@router.post("/getUstadRequests")
async def get_ustad_requests(
    current_user: User = Depends(get_current_provider),
    service: TaskService = Depends(get_task_service),
):
    """Tasks assigned to the current provider"""
    return {"success": True, "data": service.get_provider_requests(current_user)}


@router.post("/getUserRequests")
async def get_user_requests(
    current_user: User = Depends(get_current_requester),
    service: TaskService = Depends(get_task_service),
):
    """Tasks requested by the current user"""
    return {"success": True, "data": service.get_user_requests(current_user)}


@router.post("/getUserRequestsCompleted")
async def get_user_requests_completed(
    current_user: User = Depends(get_current_requester),
    service: TaskService = Depends(get_task_service),
):
    """Completed tasks requested by the current user"""
    return {
        "success": True,
        "data": service.get_user_requests(current_user, status=TaskStatus.COMPLETED),
    }


@router.post("/updateRequestStatus/{task_id}")
async def update_request_status(
    task_id: int,
    data: TaskStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    """Move a task through its lifecycle; the other party is notified"""
    task = await service.update_status(task_id, data.status_id, current_user)
    return {"success": True, "message": "Task status updated successfully", "data": task}
