"""SqlPersistence tests — the PostgreSQL store behind the router.

Learn: Two layers of tests:

1. Failure mapping runs everywhere. The session factory is a mock whose
   session raises the errors SQLAlchemy and asyncpg produce when the
   database is gone; every operation must surface them as PersistenceError.
2. Query behaviour runs against the real database at JOBRELAY_DATABASE_URL,
   one rolled-back transaction per test. join_transaction_mode=
   "create_savepoint" turns each commit() inside SqlPersistence into a
   SAVEPOINT, so nothing survives the test. When no database answers,
   these tests are skipped.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from jobrelay.config import settings
from jobrelay.db.models import Base
from jobrelay.schemas.job import JobCreate
from jobrelay.services.notification_router import room_id
from jobrelay.services.persistence import PersistenceError, SqlPersistence

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _failing_factory(error: Exception) -> MagicMock:
    """Session factory whose sessions fail on every round trip."""
    db = MagicMock()
    db.commit = AsyncMock(side_effect=error)
    db.get = AsyncMock(side_effect=error)
    db.execute = AsyncMock(side_effect=error)

    session = MagicMock()
    session.__aenter__ = AsyncMock(return_value=db)
    session.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=session)


def _db_down() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("connection refused"))


async def _store(store, sender, receiver, text, timestamp):
    return await store.insert_message(
        sender_identity=sender,
        receiver_identity=receiver,
        text=text,
        room_id=room_id(sender, receiver),
        timestamp=timestamp,
    )


# ═══════════════════════════════════════════════════════════
# Failure mapping (no database needed)
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_insert_job_wraps_database_error():
    store = SqlPersistence(_failing_factory(_db_down()))
    with pytest.raises(PersistenceError) as exc:
        await store.insert_job(JobCreate(title="SRE", company_name="Acme"))
    assert isinstance(exc.value.__cause__, SQLAlchemyError)


@pytest.mark.asyncio
async def test_find_job_wraps_database_error():
    store = SqlPersistence(_failing_factory(_db_down()))
    with pytest.raises(PersistenceError):
        await store.find_job("0b7c6f1e-6a3c-4d1e-9a57-2f0f3f0c9a11")


@pytest.mark.asyncio
async def test_insert_message_wraps_connection_refused():
    store = SqlPersistence(_failing_factory(ConnectionRefusedError(111, "refused")))
    with pytest.raises(PersistenceError):
        await _store(store, "a@x", "b@x", "hi", T0)


@pytest.mark.asyncio
async def test_find_conversation_wraps_database_error():
    store = SqlPersistence(_failing_factory(_db_down()))
    with pytest.raises(PersistenceError):
        await store.find_conversation("a@x", "b@x")


@pytest.mark.asyncio
async def test_find_job_malformed_id_is_none_without_query():
    factory = MagicMock()
    store = SqlPersistence(factory)

    assert await store.find_job("not-a-uuid") is None
    factory.assert_not_called()


# ═══════════════════════════════════════════════════════════
# Against PostgreSQL
# ═══════════════════════════════════════════════════════════


@pytest_asyncio.fixture()
async def sql_store():
    """SqlPersistence bound to one connection whose transaction is rolled back."""
    engine = create_async_engine(settings.database_url, echo=False)
    try:
        conn = await engine.connect()
    except (OSError, SQLAlchemyError) as e:
        await engine.dispose()
        pytest.skip(f"PostgreSQL not reachable: {e}")

    trans = await conn.begin()
    try:
        await conn.run_sync(Base.metadata.create_all)
        factory = async_sessionmaker(
            bind=conn,
            expire_on_commit=False,
            join_transaction_mode="create_savepoint",
        )
        yield SqlPersistence(factory)
    finally:
        await trans.rollback()
        await conn.close()
        await engine.dispose()


@pytest.mark.asyncio
async def test_job_round_trip_keeps_payload(sql_store):
    job = JobCreate.model_validate(
        {"title": "Backend Engineer", "companyName": "Acme", "salary": 120000, "tags": ["py"]}
    )
    job_id = await sql_store.insert_job(job)

    doc = await sql_store.find_job(job_id)
    assert doc["id"] == job_id
    assert doc["title"] == "Backend Engineer"
    assert doc["companyName"] == "Acme"
    assert doc["salary"] == 120000
    assert doc["tags"] == ["py"]
    assert doc["createdAt"] is not None


@pytest.mark.asyncio
async def test_find_unknown_job_is_none(sql_store):
    assert await sql_store.find_job("0b7c6f1e-6a3c-4d1e-9a57-2f0f3f0c9a11") is None


@pytest.mark.asyncio
async def test_conversation_covers_both_directions_newest_first(sql_store):
    await _store(sql_store, "a@x", "b@x", "one", T0)
    await _store(sql_store, "b@x", "a@x", "two", T0 + timedelta(minutes=1))
    await _store(sql_store, "a@x", "b@x", "three", T0 + timedelta(minutes=2))
    await _store(sql_store, "a@x", "c@x", "elsewhere", T0 + timedelta(minutes=3))

    history = await sql_store.find_conversation("b@x", "a@x")

    assert [m.text for m in history] == ["three", "two", "one"]
    assert {m.room_id for m in history} == {"a@x_b@x"}


@pytest.mark.asyncio
async def test_conversation_before_and_limit(sql_store):
    for i in range(5):
        await _store(sql_store, "a@x", "b@x", f"m{i}", T0 + timedelta(minutes=i))

    page = await sql_store.find_conversation(
        "a@x", "b@x", before=T0 + timedelta(minutes=4), limit=2
    )
    assert [m.text for m in page] == ["m3", "m2"]

    older = await sql_store.find_conversation("a@x", "b@x", before=page[-1].timestamp)
    assert [m.text for m in older] == ["m1", "m0"]


@pytest.mark.asyncio
async def test_stored_message_reads_back_as_sent(sql_store):
    sent = await _store(sql_store, "a@x", "b@x", "hello", T0)

    [stored] = await sql_store.find_conversation("a@x", "b@x")
    assert stored == sent
    assert stored.timestamp == T0
