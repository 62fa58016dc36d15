"""
Task request lifecycle

    Pending(1) → Accepted(2) → InProgress(3) → Completed(4)
    Pending(1) → Cancelled(5)
    Accepted(2) → Cancelled(5)

Completed and Cancelled are terminal. Every committed transition notifies
the other party of the task exactly once.
"""

import logging
from enum import IntEnum

from ...config import STRICT_TASK_TRANSITIONS
from ...exceptions import InvalidTransition, StoreError, TaskAccessDenied, TaskNotFound
from ...schemas import NotificationType, TaskRecord
from ...services.notification_service import NotificationBridge, NotificationPayload

logger = logging.getLogger(__name__)


class TaskStatus(IntEnum):
    PENDING = 1
    ACCEPTED = 2
    IN_PROGRESS = 3
    COMPLETED = 4
    CANCELLED = 5

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]


STATUS_LABELS = {
    TaskStatus.PENDING: "Pending",
    TaskStatus.ACCEPTED: "Accepted",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.COMPLETED: "Completed",
    TaskStatus.CANCELLED: "Cancelled",
}

VALID_TRANSITIONS = {
    TaskStatus.PENDING: {TaskStatus.ACCEPTED, TaskStatus.CANCELLED},
    TaskStatus.ACCEPTED: {TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED},
    TaskStatus.IN_PROGRESS: {TaskStatus.COMPLETED},
    TaskStatus.COMPLETED: set(),  # Terminal state
    TaskStatus.CANCELLED: set(),  # Terminal state
}


def parse_status(value) -> TaskStatus:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise InvalidTransition(f"Invalid status: {value!r}", new_status=value)
    try:
        return TaskStatus(int(value))
    except (TypeError, ValueError):
        raise InvalidTransition(f"Invalid status: {value!r}", new_status=value) from None


def validate_status_transition(current_status: int, new_status: TaskStatus) -> bool:
    """
    Validate if a task status transition is allowed

    Unknown current statuses (legacy rows) may only move to Cancelled.
    """
    try:
        current = TaskStatus(current_status)
    except ValueError:
        return new_status is TaskStatus.CANCELLED
    return new_status in VALID_TRANSITIONS[current]


class TaskStatusMachine:
    def __init__(self, store, bridge: NotificationBridge, strict: bool = STRICT_TASK_TRANSITIONS):
        self.store = store
        self.bridge = bridge
        self.strict = strict

    async def transition(self, task_id: int, new_status, actor_id: int) -> TaskRecord:
        """
        Move a task to new_status on behalf of actor_id and notify the other party

        Raises:
            InvalidTransition: status outside 1..5, or (strict mode) not adjacent
                or changed by a concurrent transition
            TaskNotFound: no such task
            TaskAccessDenied: actor is neither requester nor provider
            StoreError: the status change could not be committed
        """
        status = parse_status(new_status)

        task = await self.store.find_task(task_id)
        if task is None:
            raise TaskNotFound(task_id)

        if actor_id not in (task.user_id, task.worker_id):
            logger.warning(f"🚫 User {actor_id} tried to update task {task_id}")
            raise TaskAccessDenied(f"User {actor_id} is not a party to task {task_id}")

        if self.strict and not validate_status_transition(task.status_id, status):
            raise InvalidTransition(
                f"Cannot move task {task_id} from {task.status_id} to {status.label}",
                current_status=task.status_id,
                new_status=int(status),
            )

        # Persistence failures propagate; nothing is notified for an uncommitted change.
        # Strict mode writes only while the row still holds the status checked above.
        updated = await self.store.update_task_status(
            task_id, int(status), expected_status=task.status_id if self.strict else None
        )
        logger.info(f"✅ Task {task_id} transitioned: {task.status_id} → {status.label} by user {actor_id}")

        recipient_id = task.user_id if actor_id == task.worker_id else task.worker_id
        payload = NotificationPayload(
            title=f"Task status updated to {status.label}",
            message=f"Request #{task_id} is now {status.label}",
            type=NotificationType.TASK_STATUS,
            link_id=task_id,
            notifier_id=actor_id,
        )
        try:
            await self.bridge.deliver(recipient_id, payload)
        except StoreError as e:
            # The transition is committed; the live push (if any) already went out
            logger.error(f"❌ Task {task_id} status notification not recorded: {e}")

        return updated
