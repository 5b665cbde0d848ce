"""
Job Models

Recruiter-owned job postings and student bookmarks. The counters on a job
(applications, views, bookmarks) are denormalised caches; the application
and bookmark counts can be rebuilt from their source tables at any time.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Boolean,
    ForeignKey,
    Integer,
    DateTime,
    func,
    Text,
    JSON,
    Enum as SQLEnum,
    Index,
    UniqueConstraint,
)
from database.engine import Base, BigIntPK, enum_values
from core.utils.datetime import now, ensure_utc
from datetime import datetime
from enum import Enum as PyEnum
from typing import Any


# ==================== Job Enums ===================== #
class JobType(str, PyEnum):
    FULL_TIME = "Full-time"
    PART_TIME = "Part-time"
    INTERNSHIP = "Internship"
    CONTRACT = "Contract"
    REMOTE = "Remote"


class JobStatus(str, PyEnum):
    """Posting lifecycle. Only ACTIVE postings accept applications."""

    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    CLOSED = "closed"
    # Moderation states
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# ==================== Job Model ===================== #
class Job(Base):
    """A job posting published by a recruiter."""

    __tablename__ = "jobs"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    recruiter_id: Mapped[int] = mapped_column(
        BigIntPK,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    company: Mapped[str] = mapped_column(String(200), nullable=False)
    location: Mapped[str] = mapped_column(String(200), nullable=False)
    job_type: Mapped[JobType] = mapped_column(
        SQLEnum(JobType, native_enum=False, length=50, values_callable=enum_values),
        nullable=False,
    )
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # {"min": 50000, "max": 70000, "currency": "USD", "period": "year"}
    salary: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    # {"skills": [...], "experience": {"min": 0, "max": 2}, "education": "..."}
    requirements: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    benefits: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    is_remote: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_urgent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    status: Mapped[JobStatus] = mapped_column(
        SQLEnum(JobStatus, native_enum=False, length=50, values_callable=enum_values),
        nullable=False,
        default=JobStatus.PENDING,
        index=True,
    )
    application_deadline: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    start_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Cached counters
    application_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    view_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    bookmark_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )

    # Admin moderation
    flagged: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    flag_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=now,
        server_default=func.now(),
        onupdate=now,
    )

    __table_args__ = (
        Index("idx_jobs_status_created", "status", "created_at"),
        Index("idx_jobs_recruiter_status", "recruiter_id", "status"),
    )

    @property
    def is_accepting_applications(self) -> bool:
        return self.status == JobStatus.ACTIVE

    def deadline_passed(self, at: datetime | None = None) -> bool:
        if self.application_deadline is None:
            return False
        return ensure_utc(at or now()) > ensure_utc(self.application_deadline)

    def __repr__(self) -> str:
        return f"<Job(id={self.id}, title={self.title}, status={self.status})>"


# ==================== Job Bookmark Model ===================== #
class JobBookmark(Base):
    """A student's saved job. Source of truth for ``Job.bookmark_count``."""

    __tablename__ = "job_bookmarks"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    job_id: Mapped[int] = mapped_column(
        BigIntPK, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id: Mapped[int] = mapped_column(
        BigIntPK, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("job_id", "student_id", name="uq_job_bookmark"),
    )
