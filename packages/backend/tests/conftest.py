"""Test fixtures — an app wired to in-memory persistence.

Learn: Testing pattern for the notification relay:

1. Each test builds its own app with create_app(persistence=...), so the
   presence registry and connection manager start empty every time.
2. Persistence is an in-memory store implementing the same four methods
   as SqlPersistence. Setting fail_writes=True makes every write raise
   PersistenceError, which is how "persist before deliver" is tested.
3. FakeWebSocket stands in for a browser tab: whatever the server sends
   lands in .sent, so tests can assert on exact deliveries without a
   real socket.

No Postgres or Redis is needed to run the suite.
"""

import uuid
from datetime import datetime
from typing import Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from jobrelay.main import create_app
from jobrelay.realtime.channel import ConnectionManager
from jobrelay.realtime.presence import PresenceRegistry
from jobrelay.schemas.job import JobCreate
from jobrelay.schemas.message import ChatMessageRead
from jobrelay.services.notification_router import NotificationRouter
from jobrelay.services.persistence import PersistenceError


class InMemoryPersistence:
    """Same contract as SqlPersistence, backed by dicts and lists."""

    def __init__(self):
        self.jobs: dict[str, dict] = {}
        self.messages: list[ChatMessageRead] = []
        self.fail_writes = False
        self.fail_reads = False

    async def insert_job(self, job: JobCreate) -> str:
        if self.fail_writes:
            raise PersistenceError("Failed to store job")
        job_id = str(uuid.uuid4())
        self.jobs[job_id] = {
            **job.extra_fields(),
            "id": job_id,
            "title": job.title,
            "companyName": job.company_name,
        }
        return job_id

    async def find_job(self, job_id: str) -> Optional[dict]:
        if self.fail_reads:
            raise PersistenceError("Failed to look up job")
        return self.jobs.get(job_id)

    async def insert_message(
        self,
        *,
        sender_identity: str,
        receiver_identity: str,
        text: str,
        room_id: str,
        timestamp: datetime,
    ) -> ChatMessageRead:
        if self.fail_writes:
            raise PersistenceError("Failed to store message")
        message = ChatMessageRead(
            sender_identity=sender_identity,
            receiver_identity=receiver_identity,
            text=text,
            room_id=room_id,
            timestamp=timestamp,
        )
        self.messages.append(message)
        return message

    async def find_conversation(
        self,
        user_a: str,
        user_b: str,
        *,
        before: Optional[datetime] = None,
        limit: int = 50,
    ) -> list[ChatMessageRead]:
        pair = {user_a, user_b}
        found = [
            m
            for m in self.messages
            if {m.sender_identity, m.receiver_identity} == pair
            and (before is None or m.timestamp < before)
        ]
        found.sort(key=lambda m: m.timestamp, reverse=True)
        return found[:limit]


class FakeWebSocket:
    """Records every JSON frame the server sends to it."""

    def __init__(self, fail_on_send: bool = False):
        self.accepted = False
        self.sent: list[dict] = []
        self.fail_on_send = fail_on_send

    async def accept(self):
        self.accepted = True

    async def send_json(self, data):
        if self.fail_on_send:
            raise RuntimeError("socket closed")
        self.sent.append(data)

    def events(self, name: Optional[str] = None) -> list[dict]:
        return [f for f in self.sent if name is None or f["event"] == name]


@pytest.fixture()
def persistence():
    return InMemoryPersistence()


@pytest.fixture()
def presence():
    return PresenceRegistry()


@pytest.fixture()
def channel():
    return ConnectionManager()


@pytest.fixture()
def notifications(presence, channel, persistence):
    return NotificationRouter(presence, channel, persistence)


@pytest.fixture()
def app(persistence):
    return create_app(persistence=persistence)


@pytest_asyncio.fixture()
async def client(app):
    """HTTP client against the app, no lifespan (no Redis, no Postgres)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def connect(app):
    """Open a fake connection on the app's channel, optionally registered.

    Usage: ws, connection_id = await connect("a@x")
    """

    async def _connect(user_identity: Optional[str] = None):
        ws = FakeWebSocket()
        connection_id = await app.state.channel.connect(ws)
        if user_identity is not None:
            await app.state.presence.register(user_identity, connection_id)
        return ws, connection_id

    return _connect
