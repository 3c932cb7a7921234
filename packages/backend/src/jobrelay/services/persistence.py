"""Persistence service — jobs and chat messages in PostgreSQL.

Learn: The notification router never sees SQLAlchemy. It talks to the
Persistence protocol below, which has four operations: insert a job,
find a job by id, insert a chat message, and query a conversation by
participant pair + time. SqlPersistence is the real implementation;
tests plug in an in-memory one.

Every operation opens its own short session from the session factory
and commits before returning. Any database failure is re-raised as
PersistenceError so callers handle one exception type.
"""

import uuid
from datetime import datetime
from typing import Optional, Protocol

import structlog
from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from jobrelay.db.models import ChatMessage, Job
from jobrelay.schemas.job import JobCreate
from jobrelay.schemas.message import ChatMessageRead

logger = structlog.get_logger()


class PersistenceError(Exception):
    """Raised when a read or write against the store did not complete."""


class JobNotFoundError(Exception):
    """Raised when a job id does not resolve to a stored job."""


class Persistence(Protocol):
    async def insert_job(self, job: JobCreate) -> str: ...

    async def find_job(self, job_id: str) -> Optional[dict]: ...

    async def insert_message(
        self,
        *,
        sender_identity: str,
        receiver_identity: str,
        text: str,
        room_id: str,
        timestamp: datetime,
    ) -> ChatMessageRead: ...

    async def find_conversation(
        self,
        user_a: str,
        user_b: str,
        *,
        before: Optional[datetime] = None,
        limit: int = 50,
    ) -> list[ChatMessageRead]: ...


def job_document(job: Job) -> dict:
    """Flatten a Job row back into the document the client posted."""
    return {
        **(job.payload or {}),
        "id": str(job.id),
        "title": job.title,
        "companyName": job.company_name,
        "createdAt": job.created_at.isoformat() if job.created_at else None,
    }


class SqlPersistence:
    """PostgreSQL-backed store, one session per operation."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    # ─── Jobs ─────────────────────────────────────────────

    async def insert_job(self, job: JobCreate) -> str:
        row = Job(
            title=job.title,
            company_name=job.company_name,
            payload=job.extra_fields(),
        )
        try:
            async with self.session_factory() as db:
                db.add(row)
                await db.commit()
        except (SQLAlchemyError, OSError) as e:
            logger.error("persistence.job_insert_failed", error=str(e))
            raise PersistenceError("Failed to store job") from e
        return str(row.id)

    async def find_job(self, job_id: str) -> Optional[dict]:
        """Return the job document, or None if the id is unknown or malformed."""
        try:
            key = uuid.UUID(job_id)
        except ValueError:
            return None
        try:
            async with self.session_factory() as db:
                job = await db.get(Job, key)
        except (SQLAlchemyError, OSError) as e:
            logger.error("persistence.job_lookup_failed", job_id=job_id, error=str(e))
            raise PersistenceError("Failed to look up job") from e
        return job_document(job) if job else None

    # ─── Chat messages ────────────────────────────────────

    async def insert_message(
        self,
        *,
        sender_identity: str,
        receiver_identity: str,
        text: str,
        room_id: str,
        timestamp: datetime,
    ) -> ChatMessageRead:
        row = ChatMessage(
            sender_identity=sender_identity,
            receiver_identity=receiver_identity,
            text=text,
            room_id=room_id,
            timestamp=timestamp,
        )
        try:
            async with self.session_factory() as db:
                db.add(row)
                await db.commit()
        except (SQLAlchemyError, OSError) as e:
            logger.error("persistence.message_insert_failed", room_id=room_id, error=str(e))
            raise PersistenceError("Failed to store message") from e
        return ChatMessageRead.model_validate(row)

    async def find_conversation(
        self,
        user_a: str,
        user_b: str,
        *,
        before: Optional[datetime] = None,
        limit: int = 50,
    ) -> list[ChatMessageRead]:
        """Messages exchanged between two users, newest first.

        Learn: Queries both directions explicitly so the
        (sender, receiver, timestamp desc) index is usable for each half.
        """
        q = (
            select(ChatMessage)
            .where(
                or_(
                    and_(
                        ChatMessage.sender_identity == user_a,
                        ChatMessage.receiver_identity == user_b,
                    ),
                    and_(
                        ChatMessage.sender_identity == user_b,
                        ChatMessage.receiver_identity == user_a,
                    ),
                )
            )
            .order_by(ChatMessage.timestamp.desc(), ChatMessage.id.desc())
            .limit(limit)
        )
        if before is not None:
            q = q.where(ChatMessage.timestamp < before)

        try:
            async with self.session_factory() as db:
                result = await db.execute(q)
                rows = list(result.scalars().all())
        except (SQLAlchemyError, OSError) as e:
            logger.error("persistence.history_query_failed", error=str(e))
            raise PersistenceError("Failed to load conversation") from e
        return [ChatMessageRead.model_validate(r) for r in rows]
