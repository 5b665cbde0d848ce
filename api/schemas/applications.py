"""Application-related Pydantic schemas."""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from api.schemas.common import TimestampMixin
from database.models.applications import (
    COVER_LETTER_MAX_LENGTH,
    ApplicationStatus,
    InterviewType,
)


class ResumeMetadata(BaseModel):
    """Metadata of a resume already stored by the upload service."""

    filename: str = Field(min_length=1, max_length=255)
    original_name: Optional[str] = Field(None, max_length=255)
    path: str = Field(min_length=1, max_length=1024)
    size: Optional[int] = Field(None, ge=0)
    mimetype: Optional[str] = Field(None, max_length=100)


class ApplicationAnswer(BaseModel):
    question: str = Field(min_length=1, max_length=1000)
    answer: str = Field(max_length=5000)


class ApplicationCreate(BaseModel):
    """Schema for submitting an application."""

    job_id: int = Field(gt=0, description="Job being applied to")
    cover_letter: Optional[str] = Field(
        None,
        max_length=COVER_LETTER_MAX_LENGTH,
        description="Cover letter text",
    )
    answers: list[ApplicationAnswer] = Field(default_factory=list)
    resume: Optional[ResumeMetadata] = None

    @field_validator("cover_letter", mode="before")
    @classmethod
    def strip_cover_letter(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


class StatusUpdate(BaseModel):
    """Recruiter/admin status change. ``withdrawn`` is rejected by the service."""

    status: str = Field(min_length=1, max_length=50)
    note: Optional[str] = Field(None, max_length=1000)


class InterviewSchedule(BaseModel):
    date: date
    time: str = Field(min_length=1, max_length=50, description="Free text, e.g. 14:00")
    location: Optional[str] = Field(None, max_length=500)
    type: InterviewType = InterviewType.VIDEO
    notes: Optional[str] = Field(None, max_length=1000)


class NotesUpdate(BaseModel):
    note: Optional[str] = Field(None, max_length=2000)


class FeedbackCreate(BaseModel):
    rating: int = Field(ge=1, le=5)
    comments: Optional[str] = Field(None, max_length=2000)
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)


class TimelineEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    status: ApplicationStatus
    note: str
    actor_id: Optional[int] = None
    timestamp: datetime = Field(validation_alias="created_at")


class ApplicationResponse(TimestampMixin):
    """Full application representation."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    job_id: int
    student_id: int
    recruiter_id: int
    status: ApplicationStatus
    cover_letter: Optional[str] = None
    resume: Optional[ResumeMetadata] = None
    answers: list[ApplicationAnswer] = Field(default_factory=list)
    notes: dict[str, Optional[str]] = Field(default_factory=dict)
    interview: Optional[dict] = None
    feedback: Optional[dict] = None
    timeline: list[TimelineEntry] = Field(default_factory=list)


class ApplicationStats(BaseModel):
    total: int
    by_status: dict[str, int]
