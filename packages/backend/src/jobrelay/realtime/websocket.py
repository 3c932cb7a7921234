"""WebSocket endpoint — the real-time side of the notification router.

Learn: Each client connects to /ws and then sends JSON frames shaped
{"event": "<name>", "data": ...}. The handler:
1. Accepts the socket and gets a connection id from the ConnectionManager
2. Reads frames one at a time and dispatches them by event name
3. On disconnect, drops the presence entry this connection owns (if any)

Frames from one connection are handled strictly in order: the next frame
is not read until the previous handler (including any database write)
has finished. Different connections interleave freely.

A client must send "register" with its email before it can receive
targeted notifications. Broadcasts (job-posted) arrive regardless.
"""

import json
from typing import Any, Awaitable, Callable

import structlog
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from redis.exceptions import RedisError

from jobrelay.dependencies import get_channel, get_presence, get_router
from jobrelay.events.types import (
    APPLICATION_SUBMITTED,
    ERROR,
    JOB_POSTED,
    PING,
    PONG,
    REGISTER,
    REGISTERED,
    SEND_MESSAGE,
)
from jobrelay.realtime.channel import ConnectionManager
from jobrelay.realtime.presence import PresenceRegistry
from jobrelay.schemas.job import JobPosted
from jobrelay.schemas.message import SendMessage
from jobrelay.schemas.notification import ApplicationSubmitted
from jobrelay.services.notification_router import NotificationRouter
from jobrelay.services.persistence import PersistenceError

logger = structlog.get_logger()
router = APIRouter()


class MalformedEventError(Exception):
    """Raised when an inbound frame is missing required fields."""


class EventSession:
    """Per-connection dispatcher for inbound events."""

    def __init__(
        self,
        connection_id: str,
        presence: PresenceRegistry,
        channel: ConnectionManager,
        notifications: NotificationRouter,
    ):
        self.connection_id = connection_id
        self.presence = presence
        self.channel = channel
        self.notifications = notifications
        self._handlers: dict[str, Callable[[Any], Awaitable[None]]] = {
            REGISTER: self.on_register,
            JOB_POSTED: self.on_job_posted,
            APPLICATION_SUBMITTED: self.on_application_submitted,
            SEND_MESSAGE: self.on_send_message,
            PING: self.on_ping,
        }

    async def reply(self, event: str, data: Any) -> None:
        await self.channel.send_to(self.connection_id, event, data)

    async def reject(self, event: str, detail: str) -> None:
        logger.warning("ws.event_rejected", event_name=event, detail=detail)
        await self.reply(ERROR, {"event": event, "detail": detail})

    async def handle_frame(self, raw: str) -> None:
        try:
            frame = json.loads(raw)
        except json.JSONDecodeError:
            await self.reject("", "Frame is not valid JSON")
            return
        if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
            await self.reject("", "Frame must be an object with an 'event' name")
            return

        event = frame["event"]
        handler = self._handlers.get(event)
        if handler is None:
            await self.reject(event, f"Unknown event '{event}'")
            return

        try:
            await handler(frame.get("data"))
        except (ValidationError, MalformedEventError) as e:
            await self.reject(event, str(e))
        except PersistenceError as e:
            logger.error("ws.persistence_failed", event_name=event, error=str(e))
            await self.reply(ERROR, {"event": event, "detail": str(e)})
        except (RedisError, OSError) as e:
            logger.error("ws.backend_unavailable", event_name=event, error=str(e))
            await self.reply(
                ERROR, {"event": event, "detail": "Presence backend unavailable"}
            )

    # ─── Handlers ─────────────────────────────────────────

    async def on_register(self, data: Any) -> None:
        if not isinstance(data, str) or not data.strip():
            raise MalformedEventError("register expects a non-empty user identity")
        await self.presence.register(data, self.connection_id)
        await self.reply(
            REGISTERED, {"userIdentity": data, "connectionId": self.connection_id}
        )

    async def on_job_posted(self, data: Any) -> None:
        posted = JobPosted.model_validate(data)
        await self.notifications.notify_job_posted(posted)

    async def on_application_submitted(self, data: Any) -> None:
        body = ApplicationSubmitted.model_validate(data)
        await self.notifications.notify_employer(
            body.employer_identity,
            job_title=body.job_title,
            applicant_name=body.applicant_name,
        )

    async def on_send_message(self, data: Any) -> None:
        body = SendMessage.model_validate(data)
        await self.notifications.send_message(
            body.sender_identity, body.receiver_identity, body.text
        )

    async def on_ping(self, data: Any) -> None:
        await self.reply(PONG, {})


@router.websocket("/ws")
async def notifications_websocket(
    websocket: WebSocket,
    presence: PresenceRegistry = Depends(get_presence),
    channel: ConnectionManager = Depends(get_channel),
    notifications: NotificationRouter = Depends(get_router),
):
    """Long-lived connection: one per browser tab."""
    connection_id = await channel.connect(websocket)
    structlog.contextvars.bind_contextvars(connection_id=connection_id)
    session = EventSession(connection_id, presence, channel, notifications)

    user = None
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            text = message.get("text")
            if text is None:
                await session.reject("", "Binary frames are not supported")
                continue
            await session.handle_frame(text)
    except WebSocketDisconnect:
        pass
    finally:
        # The socket must leave the manager even if the registry is unreachable.
        channel.disconnect(connection_id)
        try:
            user = await presence.unregister(connection_id)
        except (RedisError, OSError) as e:
            logger.error("ws.unregister_failed", error=str(e))
        logger.info("ws.closed", connection_id=connection_id, user=user)
        structlog.contextvars.unbind_contextvars("connection_id")
