"""
Inbound frame router

Single entry point for every frame read off a socket. Malformed, unknown or
premature frames are logged and dropped; nothing here closes the connection.
"""

import json
import logging
from typing import Awaitable, Callable, Union

from pydantic import ValidationError

from ..exceptions import ProtocolError, StoreError, TransportError
from .connection import Connection, send_to_all
from .frames import (
    AuthFrame,
    ChatDeliveryFrame,
    ChatFrame,
    NotificationPermissionFrame,
    PermissionUpdateFrame,
)
from .handshake import PresenceHandshake
from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)

Handler = Callable[[Connection, dict], Awaitable[None]]

# Frame types accepted before the connection is bound
UNBOUND_FRAME_TYPES = frozenset({"auth"})


class MessageRouter:
    def __init__(self, registry: ConnectionRegistry, handshake: PresenceHandshake, store=None):
        self._registry = registry
        self._handshake = handshake
        self._store = store
        self._handlers: dict[str, Handler] = {
            "auth": self._handle_auth,
            "chat": self._handle_chat,
            "notification_permission": self._handle_notification_permission,
        }

    def register_handler(self, frame_type: str, handler: Handler) -> None:
        self._handlers[frame_type] = handler

    async def on_frame(self, connection: Connection, raw: Union[str, bytes]) -> None:
        if isinstance(raw, (bytes, bytearray)):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError:
                logger.warning(f"⚠️ Dropping non UTF-8 binary frame on {connection.id}")
                return

        try:
            data = json.loads(raw)
        except (ValueError, RecursionError) as e:
            logger.warning(f"⚠️ Dropping malformed frame on {connection.id}: {e}")
            return
        if not isinstance(data, dict):
            logger.warning(f"⚠️ Dropping non-object frame on {connection.id}")
            return

        frame_type = data.get("type")
        handler = self._handlers.get(frame_type) if isinstance(frame_type, str) else None
        if handler is None:
            logger.debug(f"Ignoring unknown frame type {frame_type!r} on {connection.id}")
            return
        if frame_type not in UNBOUND_FRAME_TYPES and not connection.is_bound:
            logger.debug(f"Ignoring {frame_type} frame on unauthenticated {connection.id}")
            return

        try:
            await handler(connection, data)
        except ValidationError as e:
            logger.warning(
                f"⚠️ Dropping invalid {frame_type} frame on {connection.id}: {e.error_count()} error(s)"
            )
        except ProtocolError as e:
            logger.warning(f"⚠️ Dropping {frame_type} frame on {connection.id}: {e}")
        except Exception:
            # A single frame never takes the connection down
            logger.exception(f"❌ {frame_type} handler failed on {connection.id}, frame dropped")

    async def _handle_auth(self, connection: Connection, data: dict) -> None:
        await self._handshake.on_auth(connection, AuthFrame.model_validate(data))

    async def _handle_chat(self, connection: Connection, data: dict) -> None:
        frame = ChatFrame.model_validate(data)
        if frame.senderId is not None and frame.senderId != connection.user_id:
            raise ProtocolError(
                f"senderId {frame.senderId} does not match authenticated user {connection.user_id}"
            )
        await self.relay_chat(connection.user_id, frame.recipientId, frame.message)

    async def relay_chat(self, sender_id: int, recipient_id: int, message: str) -> int:
        """
        Best-effort live delivery to every open connection of the recipient.

        Nothing is queued when the recipient is offline; the durable copy is
        written by the HTTP chat endpoint.
        """
        recipients = self._registry.connections_for(recipient_id)
        if not recipients:
            logger.debug(f"User {recipient_id} offline, chat from {sender_id} not relayed")
            return 0
        frame = ChatDeliveryFrame(senderId=sender_id, message=message)
        return await send_to_all(recipients, frame, self._registry)

    async def _handle_notification_permission(self, connection: Connection, data: dict) -> None:
        frame = NotificationPermissionFrame.model_validate(data)
        connection.notification_permission = frame.declared

        if self._store is not None:
            try:
                await self._store.update_notification_permission(connection.user_id, frame.declared)
            except StoreError as e:
                logger.warning(f"⚠️ Permission for user {connection.user_id} not persisted: {e}")

        try:
            await connection.send(PermissionUpdateFrame())
        except TransportError as e:
            logger.warning(f"⚠️ Could not acknowledge permission update: {e}")
            self._registry.unregister(connection.user_id, connection)
