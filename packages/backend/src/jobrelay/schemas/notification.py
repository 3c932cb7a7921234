"""Pydantic schemas for application alerts.

Learn: Two ways to alert an employer about an application:
- ApplyRequest references a stored job by id (title looked up)
- ApplicationSubmitted carries the title directly (no lookup)

Either way the employer only receives jobTitle + applicantName.
"""

from pydantic import Field

from jobrelay.db.models import IDENTITY_MAX_LENGTH, TITLE_MAX_LENGTH
from jobrelay.schemas.job import CamelModel


class ApplyRequest(CamelModel):
    job_id: str = Field(..., min_length=1, description="Stored job id")
    applicant_name: str = Field(..., min_length=1)
    employer_identity: str = Field(
        ..., min_length=1, max_length=IDENTITY_MAX_LENGTH, description="Employer email"
    )


class ApplicationSubmitted(CamelModel):
    """Inbound application-submitted event / notify-employer body."""

    employer_identity: str = Field(
        ..., min_length=1, max_length=IDENTITY_MAX_LENGTH, description="Employer email"
    )
    job_title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    applicant_name: str = Field(..., min_length=1)


class ApplicationNotification(CamelModel):
    """What the employer's connection receives."""

    job_title: str
    applicant_name: str


class DeliveryResult(CamelModel):
    """Best-effort delivery outcome. success is true even when offline."""

    success: bool = True
    delivered: bool
    message: str = ""


class PresenceRead(CamelModel):
    user_identity: str
    online: bool
