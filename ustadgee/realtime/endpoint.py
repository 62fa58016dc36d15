"""
WebSocket transport endpoint (/ws)

Each socket gets its own receive loop, so frames from one connection are
handled strictly in arrival order.
"""

import asyncio
import logging
import time

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..config import WS_AUTH_TIMEOUT_SECONDS
from .connection import Connection
from .hub import RealtimeHub

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])

WS_CLOSE_AUTH_TIMEOUT = 4408


def _receive_timeout(connection: Connection, auth_timeout: float):
    """Seconds left for an unbound connection to authenticate; None once bound"""
    if connection.is_bound or auth_timeout <= 0:
        return None
    return max(0.0, connection.opened_at + auth_timeout - time.monotonic())


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    hub: RealtimeHub = websocket.app.state.hub
    auth_timeout = getattr(websocket.app.state, "ws_auth_timeout", WS_AUTH_TIMEOUT_SECONDS)

    await websocket.accept()
    connection = Connection(websocket)
    logger.info(f"🔌 WebSocket connection opened: {connection.id}")

    try:
        while connection.is_open:
            try:
                message = await asyncio.wait_for(
                    websocket.receive(), timeout=_receive_timeout(connection, auth_timeout)
                )
            except asyncio.TimeoutError:
                logger.info(f"⏰ Connection {connection.id} did not authenticate in {auth_timeout}s")
                await connection.close(code=WS_CLOSE_AUTH_TIMEOUT)
                break

            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            if raw is None:
                continue
            await hub.router.on_frame(connection, raw)
    except WebSocketDisconnect as e:
        logger.debug(f"Connection {connection.id} disconnected (code={e.code})")
    except Exception as e:
        logger.error(f"❌ WebSocket error on {connection.id}: {e}")
        await connection.close(code=1011)
    finally:
        await hub.handshake.on_close(connection)
