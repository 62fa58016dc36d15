"""
Unified Notification Service
Turns a workflow event (task request, status change, review) into a delivery:
a durable notification row plus a live push to every open socket of the recipient
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..exceptions import StoreError
from ..realtime.connection import send_to_all
from ..realtime.frames import NotificationFrame, utc_iso, utc_now_iso
from ..realtime.registry import ConnectionRegistry
from ..schemas import NotificationCreate, NotificationRecord, NotificationType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationPayload:
    title: str
    message: str = ""
    type: NotificationType = NotificationType.GENERAL
    link_id: Optional[int] = None  # Task / review id the event refers to
    notifier_id: Optional[int] = None  # User whose action produced the event


@dataclass
class DeliveryResult:
    record: Optional[NotificationRecord]
    live_sent: int

    @property
    def recorded(self) -> bool:
        return self.record is not None


class NotificationBridge:
    """Durable-record + live-push delivery of notification events"""

    def __init__(self, registry: ConnectionRegistry, store):
        self.registry = registry
        self.store = store

    async def deliver(self, recipient_id: int, payload: NotificationPayload) -> DeliveryResult:
        """
        Deliver a notification event to a user

        The durable write and the live push are independent: a store failure
        does not stop the push and a dead socket never touches the record.
        Offline recipients simply pick the record up from GET /api/notifications.

        Args:
            recipient_id: User that should see the notification
            payload: Title, message, type and link of the event

        Returns:
            DeliveryResult with the stored record and the number of live sends

        Raises:
            StoreError: If the durable write failed (after the live push was attempted)
        """
        record = None
        store_error = None

        try:
            record = await self.store.insert_notification_record(
                NotificationCreate(
                    recipient_id=recipient_id,
                    notifier_id=payload.notifier_id,
                    title=payload.title,
                    message=payload.message,
                    type=payload.type,
                    post_id=payload.link_id,
                )
            )
        except StoreError as e:
            store_error = e
            logger.error(f"❌ Failed to store {payload.type.name} notification for user {recipient_id}: {e}")

        live_sent = 0
        connections = self.registry.connections_for(recipient_id)
        if connections:
            frame = NotificationFrame(
                title=payload.title,
                message=payload.message,
                notificationType=int(payload.type),
                timestamp=(
                    utc_iso(record.time_stamp) if record and record.time_stamp else utc_now_iso()
                ),
                linkId=payload.link_id,
                notificationId=record.id if record else None,
            )
            live_sent = await send_to_all(connections, frame, self.registry)
            logger.info(
                f"📣 {payload.type.name} notification pushed to user {recipient_id} "
                f"on {live_sent}/{len(connections)} connection(s)"
            )
        else:
            logger.debug(f"ℹ️ User {recipient_id} offline, {payload.type.name} notification stored only")

        if store_error is not None:
            raise store_error

        return DeliveryResult(record=record, live_sent=live_sent)
