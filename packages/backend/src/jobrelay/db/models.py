"""SQLAlchemy ORM models — the document store for jobs and chat messages.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Jobs are schema-free documents: title and company name get real columns
(they travel in every job-posted broadcast), the rest of the posting is
kept verbatim in a JSONB payload.

Chat messages are immutable. The composite index on
(sender, receiver, timestamp desc) serves the conversation history query.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Column widths. The wire schemas enforce the same limits so oversize
# input is a 422, not a failed INSERT.
TITLE_MAX_LENGTH = 300
IDENTITY_MAX_LENGTH = 320


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


class Job(Base):
    """A posted job. Insert-only from this service's point of view."""

    __tablename__ = "jobs"

    id: Mapped[uuid.UUID] = mapped_column(
        PG_UUID(as_uuid=True), primary_key=True, default=new_uuid
    )
    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False)
    company_name: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False)
    payload: Mapped[dict] = mapped_column(JSONB, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class ChatMessage(Base):
    """A direct message between two users.

    room_id is derived from the two participants, so both directions
    of a conversation share one room without a lookup.
    """

    __tablename__ = "chat_messages"
    __table_args__ = (
        Index("idx_chat_messages_room", "room_id", "timestamp"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sender_identity: Mapped[str] = mapped_column(String(IDENTITY_MAX_LENGTH), nullable=False)
    receiver_identity: Mapped[str] = mapped_column(String(IDENTITY_MAX_LENGTH), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    room_id: Mapped[str] = mapped_column(String(2 * IDENTITY_MAX_LENGTH + 1), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


# Conversation history: newest first for a participant pair.
Index(
    "idx_chat_messages_participants",
    ChatMessage.sender_identity,
    ChatMessage.receiver_identity,
    ChatMessage.timestamp.desc(),
)
