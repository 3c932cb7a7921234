"""Job API routes.

Learn: POST /create-job stores the posting and broadcasts job-posted to
every open WebSocket. The broadcast only happens after the insert
succeeded; a failed insert is a 500 and nobody is notified.
"""

from fastapi import APIRouter, Depends, HTTPException

from jobrelay.dependencies import get_persistence, get_router
from jobrelay.schemas.job import JobCreate, JobCreated
from jobrelay.services.notification_router import NotificationRouter
from jobrelay.services.persistence import Persistence, PersistenceError

router = APIRouter()


@router.post("/create-job", response_model=JobCreated)
async def create_job(
    body: JobCreate,
    notifications: NotificationRouter = Depends(get_router),
):
    """Store a job posting and announce it to all connected clients."""
    try:
        inserted_id = await notifications.post_job(body)
    except PersistenceError:
        raise HTTPException(status_code=500, detail="Failed to post job.")
    return JobCreated(inserted_id=inserted_id)


@router.get("/jobs/{job_id}")
async def get_job(
    job_id: str,
    persistence: Persistence = Depends(get_persistence),
):
    """Get a stored job document by ID."""
    try:
        job = await persistence.find_job(job_id)
    except PersistenceError:
        raise HTTPException(status_code=500, detail="Failed to load job.")
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return job
