"""Job-related Pydantic schemas."""

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from api.schemas.common import TimestampMixin
from database.models.jobs import JobStatus, JobType


class Salary(BaseModel):
    min: Optional[float] = Field(None, ge=0)
    max: Optional[float] = Field(None, ge=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    period: str = Field(default="year", pattern="^(hour|month|year)$")

    @model_validator(mode="after")
    def check_range(self):
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError("Salary min cannot exceed max")
        return self


class JobCreate(BaseModel):
    """Schema for creating a job posting."""

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=5000)
    company: Optional[str] = Field(
        None, max_length=200, description="Defaults to the recruiter's company"
    )
    location: str = Field(min_length=1, max_length=200)
    job_type: JobType
    department: Optional[str] = Field(None, max_length=100)
    salary: Optional[Salary] = None
    requirements: Optional[dict[str, Any]] = None
    benefits: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    is_remote: bool = False
    is_urgent: bool = False
    application_deadline: Optional[datetime] = None
    start_date: Optional[datetime] = None
    status: JobStatus = Field(
        default=JobStatus.ACTIVE, description="Initial status (draft or active)"
    )


class JobUpdate(BaseModel):
    """
    Partial edit of a posting's content.

    Status, ownership and counters have their own endpoints; sending them
    here is a validation error.
    """

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=5000)
    company: Optional[str] = Field(None, min_length=1, max_length=200)
    location: Optional[str] = Field(None, min_length=1, max_length=200)
    job_type: Optional[JobType] = None
    department: Optional[str] = Field(None, max_length=100)
    salary: Optional[Salary] = None
    requirements: Optional[dict[str, Any]] = None
    benefits: Optional[list[str]] = None
    tags: Optional[list[str]] = None
    is_remote: Optional[bool] = None
    is_urgent: Optional[bool] = None
    application_deadline: Optional[datetime] = None
    start_date: Optional[datetime] = None


class JobStatusUpdate(BaseModel):
    status: JobStatus
    admin_notes: Optional[str] = Field(None, max_length=2000)


class JobFlag(BaseModel):
    flagged: bool = True
    reason: Optional[str] = Field(None, max_length=1000)


class JobResponse(TimestampMixin):
    model_config = ConfigDict(from_attributes=True)

    id: int
    recruiter_id: int
    title: str
    description: str
    company: str
    location: str
    job_type: JobType
    department: Optional[str] = None
    salary: Optional[dict[str, Any]] = None
    requirements: Optional[dict[str, Any]] = None
    benefits: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    is_remote: bool
    is_urgent: bool
    status: JobStatus
    application_deadline: Optional[datetime] = None
    start_date: Optional[datetime] = None
    application_count: int
    view_count: int
    bookmark_count: int
    flagged: bool


class BookmarkResponse(BaseModel):
    job_id: int
    bookmarked: bool
    bookmark_count: int


class CounterReport(BaseModel):
    """Cached counters before and after a recount."""

    job_id: int
    before: dict[str, int]
    after: dict[str, int]
