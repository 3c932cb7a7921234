"""FastAPI dependencies — hand out the process-wide components.

Learn: The presence registry, connection manager and persistence service
are created once in create_app() and stored on app.state. Handlers get
them through these dependencies instead of importing module globals, so
tests (or a Redis-backed registry) can swap any of them per app.

HTTPConnection works for both HTTP requests and WebSockets.
"""

from fastapi import Depends
from starlette.requests import HTTPConnection

from jobrelay.realtime.channel import ConnectionManager
from jobrelay.realtime.presence import PresenceRegistry
from jobrelay.services.notification_router import NotificationRouter
from jobrelay.services.persistence import Persistence


def get_presence(conn: HTTPConnection) -> PresenceRegistry:
    return conn.app.state.presence


def get_channel(conn: HTTPConnection) -> ConnectionManager:
    return conn.app.state.channel


def get_persistence(conn: HTTPConnection) -> Persistence:
    return conn.app.state.persistence


def get_router(
    presence: PresenceRegistry = Depends(get_presence),
    channel: ConnectionManager = Depends(get_channel),
    persistence: Persistence = Depends(get_persistence),
) -> NotificationRouter:
    return NotificationRouter(presence, channel, persistence)
