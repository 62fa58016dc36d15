"""
Presence / auth handshake

Binds an anonymous connection to a user after an explicit auth frame.

Trust boundary: by default the claimed userId is trusted as-is, because the
client only opens the socket after signing in over HTTP with a verified
bearer token. With WS_REQUIRE_TOKEN enabled the auth frame must also carry
that bearer token and its "id" claim must equal userId.
"""

import logging
from typing import Callable, Optional

from ..exceptions import ProtocolError, TransportError
from .connection import Connection
from .frames import AuthFrame, AuthSuccessFrame
from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)

TokenVerifier = Callable[[str], Optional[dict]]


class PresenceHandshake:
    def __init__(
        self,
        registry: ConnectionRegistry,
        token_verifier: Optional[TokenVerifier] = None,
        require_token: bool = False,
    ):
        if require_token and token_verifier is None:
            raise ValueError("require_token needs a token_verifier")
        self._registry = registry
        self._token_verifier = token_verifier
        self._require_token = require_token

    def _check_token(self, frame: AuthFrame) -> None:
        if not frame.token:
            raise ProtocolError("auth frame is missing a token")
        claims = self._token_verifier(frame.token)
        if not claims:
            raise ProtocolError("auth token is invalid or expired")
        try:
            claimed_id = int(claims.get("id"))
        except (TypeError, ValueError):
            raise ProtocolError("auth token carries no user id") from None
        if claimed_id != frame.userId:
            raise ProtocolError(f"auth token belongs to user {claimed_id}, not {frame.userId}")

    async def on_auth(self, connection: Connection, frame: AuthFrame) -> None:
        """Bind (or rebind) the connection to frame.userId and acknowledge"""
        if not connection.is_open:
            return
        if self._require_token:
            self._check_token(frame)

        user_id = frame.userId
        previous = connection.user_id
        if previous is not None and previous != user_id:
            self._registry.unregister(previous, connection)
            logger.info(f"🔁 Connection {connection.id} rebound: user {previous} → {user_id}")

        self._registry.register(user_id, connection)
        connection.user_id = user_id
        logger.info(f"✅ Connection {connection.id} authenticated as user {user_id}")

        try:
            await connection.send(AuthSuccessFrame())
        except TransportError as e:
            logger.warning(f"⚠️ Could not acknowledge auth: {e}")
            await self.on_close(connection)

    async def on_close(self, connection: Connection) -> None:
        """Release the connection whatever its bind state"""
        if connection.user_id is not None:
            self._registry.unregister(connection.user_id, connection)
            logger.info(f"🔌 User {connection.user_id} connection {connection.id} closed")
        connection.mark_closed()
