"""Pydantic schemas for job postings.

Learn: A job is a free-form document. Only title and companyName are
required (they go out in every job-posted broadcast); any extra fields
the client sends are accepted and stored untouched.

Wire format is camelCase; Python attributes stay snake_case.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from jobrelay.db.models import TITLE_MAX_LENGTH


class CamelModel(BaseModel):
    """Base for all wire schemas: camelCase on the wire, either name on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JobCreate(CamelModel):
    """Posting submitted by an employer. Extra fields are kept."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    title: str = Field(
        ..., min_length=1, max_length=TITLE_MAX_LENGTH, description="Job title"
    )
    company_name: str = Field(
        ..., min_length=1, max_length=TITLE_MAX_LENGTH, description="Hiring company"
    )

    def extra_fields(self) -> dict:
        """Fields beyond title/companyName, as the client sent them."""
        return dict(self.model_extra or {})


class JobCreated(CamelModel):
    success: bool = True
    inserted_id: str


class JobPosted(CamelModel):
    """Broadcast payload for the job-posted event."""

    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    company_name: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)


class NotifyJobPostedResult(CamelModel):
    success: bool = True
    recipients: int
