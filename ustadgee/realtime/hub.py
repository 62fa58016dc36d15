"""Wiring of the realtime core around one registry instance"""

import logging

from fastapi import Request

from ..auth import decode_access_token
from ..services.notification_service import NotificationBridge
from .handshake import PresenceHandshake
from .registry import ConnectionRegistry
from .router import MessageRouter

logger = logging.getLogger(__name__)

WS_CLOSE_GOING_AWAY = 1001


class RealtimeHub:
    """
    Owns the connection registry and the components that share it.

    One hub lives on app.state for the life of the process; tests build
    their own so every test starts from an empty registry.
    """

    def __init__(self, store, registry: ConnectionRegistry = None, require_token: bool = False):
        self.store = store
        self.registry = registry if registry is not None else ConnectionRegistry()
        self.handshake = PresenceHandshake(
            self.registry, token_verifier=decode_access_token, require_token=require_token
        )
        self.router = MessageRouter(self.registry, self.handshake, store)
        self.bridge = NotificationBridge(self.registry, store)

    async def shutdown(self) -> None:
        connections = self.registry.all_connections()
        for connection in connections:
            await connection.close(code=WS_CLOSE_GOING_AWAY)
        self.registry.clear()
        logger.info(f"Closed {len(connections)} live connection(s)")


def get_hub(request: Request) -> RealtimeHub:
    """Dependency returning the application's realtime hub"""
    return request.app.state.hub
