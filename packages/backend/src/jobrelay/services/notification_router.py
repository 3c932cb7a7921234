"""Notification router — turns domain events into deliveries.

Learn: One method per domain event. Each one is reachable from both the
WebSocket event loop and the HTTP API, and behaves the same either way:

  post_job           persist → broadcast job-posted to everyone
  notify_job_posted  broadcast job-posted (no persistence)
  submit_application look up job → unicast to employer if online
  notify_employer    unicast to employer if online (title given)
  send_message       persist → unicast to receiver if online

Ordering rule: persistence always happens before any delivery. If the
write fails, PersistenceError propagates and nothing is emitted.

Delivery is best-effort. An offline recipient is not an error; the
method returns delivered=False and the caller still reports success.
There are no retries and no offline queue — chat messages stay in the
database and clients fetch them with the history endpoint.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import structlog

from jobrelay.events.types import (
    APPLICATION_NOTIFICATION,
    JOB_POSTED,
    MESSAGE_RECEIVED,
)
from jobrelay.realtime.channel import ConnectionManager
from jobrelay.realtime.presence import PresenceRegistry
from jobrelay.schemas.job import JobCreate, JobPosted
from jobrelay.schemas.message import ChatMessageRead
from jobrelay.schemas.notification import ApplicationNotification
from jobrelay.services.persistence import JobNotFoundError, Persistence

logger = structlog.get_logger()

ROOM_SEPARATOR = "_"


def room_id(user_a: str, user_b: str) -> str:
    """Symmetric conversation key: room_id(a, b) == room_id(b, a)."""
    return ROOM_SEPARATOR.join(sorted([user_a, user_b]))


@dataclass
class SentMessage:
    message: ChatMessageRead
    delivered: bool


class NotificationRouter:
    """Routes job, application and chat events to live connections."""

    def __init__(
        self,
        presence: PresenceRegistry,
        channel: ConnectionManager,
        persistence: Persistence,
    ):
        self.presence = presence
        self.channel = channel
        self.persistence = persistence

    # ─── Jobs ─────────────────────────────────────────────

    async def post_job(self, job: JobCreate) -> str:
        """Store the job, then tell every connection about it."""
        inserted_id = await self.persistence.insert_job(job)
        logger.info("router.job_stored", job_id=inserted_id, title=job.title)
        await self.notify_job_posted(
            JobPosted(title=job.title, company_name=job.company_name)
        )
        return inserted_id

    async def notify_job_posted(self, posted: JobPosted) -> int:
        """Broadcast job-posted. Zero listeners is fine."""
        return await self.channel.broadcast(
            JOB_POSTED, posted.model_dump(mode="json", by_alias=True)
        )

    # ─── Applications ─────────────────────────────────────

    async def submit_application(
        self,
        job_id: str,
        applicant_name: str,
        employer_identity: str,
    ) -> bool:
        """Alert the employer about an application to a stored job.

        Raises JobNotFoundError if job_id doesn't resolve. Returns whether
        the employer was online and got the notification.
        """
        job = await self.persistence.find_job(job_id)
        if job is None:
            logger.warning("router.job_not_found", job_id=job_id)
            raise JobNotFoundError(f"Job {job_id} not found")

        return await self.notify_employer(
            employer_identity,
            job_title=job["title"],
            applicant_name=applicant_name,
        )

    async def notify_employer(
        self,
        employer_identity: str,
        *,
        job_title: str,
        applicant_name: str,
    ) -> bool:
        connection_id = await self.presence.resolve(employer_identity)
        if connection_id is None:
            logger.info("router.employer_offline", employer=employer_identity)
            return False

        payload = ApplicationNotification(
            job_title=job_title, applicant_name=applicant_name
        )
        delivered = await self.channel.send_to(
            connection_id,
            APPLICATION_NOTIFICATION,
            payload.model_dump(mode="json", by_alias=True),
        )
        logger.info(
            "router.employer_notified",
            employer=employer_identity,
            applicant=applicant_name,
            delivered=delivered,
        )
        return delivered

    # ─── Chat ─────────────────────────────────────────────

    async def send_message(
        self,
        sender_identity: str,
        receiver_identity: str,
        text: str,
        *,
        timestamp: Optional[datetime] = None,
    ) -> SentMessage:
        """Store a direct message, then push it to the receiver if online."""
        stored = await self.persistence.insert_message(
            sender_identity=sender_identity,
            receiver_identity=receiver_identity,
            text=text,
            room_id=room_id(sender_identity, receiver_identity),
            timestamp=timestamp or datetime.now(timezone.utc),
        )
        logger.info(
            "router.message_stored",
            sender=sender_identity,
            receiver=receiver_identity,
            room_id=stored.room_id,
        )

        connection_id = await self.presence.resolve(receiver_identity)
        if connection_id is None:
            logger.info("router.receiver_offline", receiver=receiver_identity)
            return SentMessage(message=stored, delivered=False)

        delivered = await self.channel.send_to(
            connection_id,
            MESSAGE_RECEIVED,
            stored.model_dump(mode="json", by_alias=True),
        )
        logger.info(
            "router.message_delivered",
            receiver=receiver_identity,
            delivered=delivered,
        )
        return SentMessage(message=stored, delivered=delivered)

    async def conversation(
        self,
        user_a: str,
        user_b: str,
        *,
        before: Optional[datetime] = None,
        limit: int = 50,
    ) -> list[ChatMessageRead]:
        """Stored messages between two users, newest first."""
        return await self.persistence.find_conversation(
            user_a, user_b, before=before, limit=limit
        )
