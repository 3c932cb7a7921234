"""Connection manager — every live WebSocket, keyed by connection id.

Learn: The manager knows nothing about users. It only:
1. Accepts a socket and hands back a fresh connection id
2. Sends one event to one connection (unicast)
3. Sends one event to every connection (broadcast)
4. Forgets a connection when it closes

Frames on the wire are JSON envelopes: {"event": "<name>", "data": {...}}.
A socket that fails on send is dropped; its own receive loop will then
see the disconnect and clean up presence.
"""

import uuid
from typing import Any

import structlog
from fastapi import WebSocket

logger = structlog.get_logger()


def envelope(event: str, data: Any) -> dict[str, Any]:
    return {"event": event, "data": data}


class ConnectionManager:
    """Multiplexes many long-lived WebSocket connections."""

    def __init__(self):
        self._connections: dict[str, WebSocket] = {}

    @property
    def active_count(self) -> int:
        return len(self._connections)

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self._connections

    async def connect(self, websocket: WebSocket) -> str:
        """Accept the socket and assign it a new connection id."""
        await websocket.accept()
        connection_id = uuid.uuid4().hex
        self._connections[connection_id] = websocket
        logger.info(
            "channel.connected",
            connection_id=connection_id,
            active=len(self._connections),
        )
        return connection_id

    def disconnect(self, connection_id: str) -> None:
        if self._connections.pop(connection_id, None) is not None:
            logger.info(
                "channel.disconnected",
                connection_id=connection_id,
                active=len(self._connections),
            )

    async def send_to(self, connection_id: str, event: str, data: Any) -> bool:
        """Unicast. Returns False if the connection is gone or the send failed."""
        websocket = self._connections.get(connection_id)
        if websocket is None:
            return False
        try:
            await websocket.send_json(envelope(event, data))
        except Exception as e:
            logger.warning(
                "channel.send_failed",
                connection_id=connection_id,
                event_name=event,
                error=str(e),
            )
            self.disconnect(connection_id)
            return False
        return True

    async def broadcast(self, event: str, data: Any) -> int:
        """Send to every open connection. Returns how many received it."""
        delivered = 0
        for connection_id in list(self._connections):
            if await self.send_to(connection_id, event, data):
                delivered += 1
        logger.info("channel.broadcast", event_name=event, recipients=delivered)
        return delivered
