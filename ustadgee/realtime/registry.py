"""Process-wide map of user identity -> live connections"""

import logging
from threading import Lock
from typing import Optional

from .connection import Connection

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """
    Tracks every open connection per user (one per browser tab / device).

    Invariants:
    - a user key exists only while it has at least one connection
    - a connection is filed under at most one user at a time

    Reads return frozen snapshots, so callers can iterate while other
    connections register or drop.
    """

    def __init__(self):
        self._connections: dict[int, set[Connection]] = {}
        self._owners: dict[Connection, int] = {}
        self._lock = Lock()

    def register(self, user_id: int, connection: Connection) -> None:
        with self._lock:
            previous = self._owners.get(connection)
            if previous is not None and previous != user_id:
                self._discard(previous, connection)
            self._connections.setdefault(user_id, set()).add(connection)
            self._owners[connection] = user_id
        logger.debug(f"Registered {connection} for user {user_id}")

    def unregister(self, user_id: int, connection: Connection) -> bool:
        """Remove the pair; returns False when it was not registered"""
        with self._lock:
            if self._owners.get(connection) != user_id:
                return False
            del self._owners[connection]
            self._discard(user_id, connection)
        logger.debug(f"Unregistered {connection} for user {user_id}")
        return True

    def _discard(self, user_id: int, connection: Connection) -> None:
        connections = self._connections.get(user_id)
        if connections is None:
            return
        connections.discard(connection)
        if not connections:
            del self._connections[user_id]

    def connections_for(self, user_id: int) -> frozenset[Connection]:
        with self._lock:
            return frozenset(self._connections.get(user_id, ()))

    def user_for(self, connection: Connection) -> Optional[int]:
        with self._lock:
            return self._owners.get(connection)

    def is_online(self, user_id: int) -> bool:
        with self._lock:
            return user_id in self._connections

    def user_ids(self) -> frozenset[int]:
        with self._lock:
            return frozenset(self._connections)

    def all_connections(self) -> list[Connection]:
        with self._lock:
            return list(self._owners)

    @property
    def connection_count(self) -> int:
        with self._lock:
            return len(self._owners)

    def clear(self) -> None:
        with self._lock:
            self._connections.clear()
            self._owners.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def __contains__(self, user_id: int) -> bool:
        return self.is_online(user_id)
