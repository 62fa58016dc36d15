"""Live transport session wrapper and fire-and-forget fan-out"""

import asyncio
import logging
import time
import uuid
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Optional

from ..exceptions import TransportError
from .frames import OutboundFrame

if TYPE_CHECKING:
    from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class Connection:
    """
    A single live socket session.

    Starts unbound (user_id is None) and becomes bound after a valid auth
    frame. The transport only needs async send_text() and close(code=...),
    which starlette's WebSocket provides.
    """

    def __init__(self, transport, connection_id: Optional[str] = None):
        self.id = connection_id or uuid.uuid4().hex
        self.transport = transport
        self.user_id: Optional[int] = None
        self.state = ConnectionState.OPEN
        self.notification_permission: Optional[str] = None
        self.opened_at = time.monotonic()

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN

    @property
    def is_bound(self) -> bool:
        return self.user_id is not None

    async def send(self, frame: OutboundFrame) -> None:
        if not self.is_open:
            raise TransportError(f"Connection {self.id} is closed")
        try:
            await self.transport.send_text(frame.to_json())
        except Exception as e:
            self.state = ConnectionState.CLOSED
            raise TransportError(f"Send on connection {self.id} failed: {e}") from e

    def mark_closed(self) -> None:
        self.state = ConnectionState.CLOSED

    async def close(self, code: int = 1000) -> None:
        if not self.is_open:
            return
        self.state = ConnectionState.CLOSED
        try:
            await self.transport.close(code=code)
        except Exception as e:
            logger.debug(f"Close on connection {self.id} failed (non-critical): {e}")

    def __repr__(self) -> str:
        return f"<Connection {self.id} user={self.user_id} {self.state.value}>"


async def _send_quietly(
    connection: Connection, frame: OutboundFrame, registry: Optional["ConnectionRegistry"]
) -> bool:
    try:
        await connection.send(frame)
        return True
    except TransportError as e:
        logger.warning(f"⚠️ Dropping {frame.type} frame: {e}")
        if registry is not None and connection.user_id is not None:
            registry.unregister(connection.user_id, connection)
        return False


async def send_to_all(
    connections: Iterable[Connection],
    frame: OutboundFrame,
    registry: Optional["ConnectionRegistry"] = None,
) -> int:
    """
    Send one frame to every open connection, returning how many sends succeeded.

    A failing connection never aborts delivery to the others; when a registry
    is given the failing connection is removed from it straight away.
    """
    targets = [c for c in connections if c.is_open]
    if not targets:
        return 0
    results = await asyncio.gather(*(_send_quietly(c, frame, registry) for c in targets))
    return sum(1 for sent in results if sent)
