"""Notification API routes — application alerts and job announcements.

Learn: Offline recipients are not an error here. /apply and
/notify-employer both answer 200 with success=true; the "delivered"
flag tells the caller whether the employer was actually connected.
Only a missing job (404) or a broken database (500) fails the call.
"""

from fastapi import APIRouter, Depends, HTTPException

from jobrelay.dependencies import get_router
from jobrelay.schemas.job import JobPosted, NotifyJobPostedResult
from jobrelay.schemas.notification import (
    ApplicationSubmitted,
    ApplyRequest,
    DeliveryResult,
)
from jobrelay.services.notification_router import NotificationRouter
from jobrelay.services.persistence import JobNotFoundError, PersistenceError

router = APIRouter()


def _delivery(delivered: bool, employer: str) -> DeliveryResult:
    if delivered:
        return DeliveryResult(delivered=True, message=f"Notified {employer}")
    return DeliveryResult(delivered=False, message=f"{employer} is not connected")


@router.post("/apply", response_model=DeliveryResult)
async def apply(
    body: ApplyRequest,
    notifications: NotificationRouter = Depends(get_router),
):
    """Applicant applies to a stored job; the employer is alerted if online."""
    try:
        delivered = await notifications.submit_application(
            body.job_id, body.applicant_name, body.employer_identity
        )
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")
    except PersistenceError:
        raise HTTPException(status_code=500, detail="Failed to apply.")
    return _delivery(delivered, body.employer_identity)


@router.post("/notify-employer", response_model=DeliveryResult)
async def notify_employer(
    body: ApplicationSubmitted,
    notifications: NotificationRouter = Depends(get_router),
):
    """Alert an employer directly, without a job lookup."""
    delivered = await notifications.notify_employer(
        body.employer_identity,
        job_title=body.job_title,
        applicant_name=body.applicant_name,
    )
    return _delivery(delivered, body.employer_identity)


@router.post("/notify-job-posted", response_model=NotifyJobPostedResult)
async def notify_job_posted(
    body: JobPosted,
    notifications: NotificationRouter = Depends(get_router),
):
    """Broadcast job-posted to every connection. Always succeeds."""
    recipients = await notifications.notify_job_posted(body)
    return NotifyJobPostedResult(recipients=recipients)
