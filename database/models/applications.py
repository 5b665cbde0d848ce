"""
Application Models

A student's application to a job, its status and the append-only timeline
of status events. All status changes go through ``Application.change_status``;
a flush hook backfills a default timeline entry for any status that was
assigned directly, so ``status == timeline[-1].status`` always holds for
persisted rows.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship, Session
from sqlalchemy import (
    String,
    ForeignKey,
    DateTime,
    func,
    Text,
    JSON,
    Enum as SQLEnum,
    Index,
    UniqueConstraint,
    event,
    inspect,
)
from database.engine import Base, BigIntPK, enum_values
from core.utils.datetime import now
from datetime import datetime
from enum import Enum as PyEnum
from typing import Any


COVER_LETTER_MAX_LENGTH = 2000
SUBMITTED_NOTE = "Application submitted"
WITHDRAWN_NOTE = "Application withdrawn by student"


# ==================== Application Enums ===================== #
class ApplicationStatus(str, PyEnum):
    """Review status of an application."""

    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    INTERVIEW = "interview"
    APPROVED = "approved"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"

    def is_terminal(self) -> bool:
        return self in APPLICATION_STATUS_TERMINALS

    def can_transition_to(self, new: "ApplicationStatus") -> bool:
        allowed = APPLICATION_STATUS_TRANSITIONS.get(self, set())
        return new in allowed

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()

    @classmethod
    def try_parse(cls, value: str) -> "ApplicationStatus | None":
        if value is None:
            return None
        try:
            normalized = str(value).strip().lower().replace(" ", "_").replace("-", "_")
            return cls(normalized)
        except ValueError:
            return None


APPLICATION_STATUS_TERMINALS = {
    ApplicationStatus.APPROVED,
    ApplicationStatus.REJECTED,
    ApplicationStatus.WITHDRAWN,
}

# Recruiter-facing edges. Withdrawal has its own operation and is not listed.
APPLICATION_STATUS_TRANSITIONS = {
    ApplicationStatus.PENDING: {
        ApplicationStatus.UNDER_REVIEW,
        ApplicationStatus.INTERVIEW,
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
    },
    ApplicationStatus.UNDER_REVIEW: {
        ApplicationStatus.PENDING,
        ApplicationStatus.INTERVIEW,
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
    },
    ApplicationStatus.INTERVIEW: {
        ApplicationStatus.UNDER_REVIEW,
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
    },
    ApplicationStatus.APPROVED: set(),
    ApplicationStatus.REJECTED: set(),
    ApplicationStatus.WITHDRAWN: set(),
}

# Statuses a reviewer may set through the status endpoint
REVIEWABLE_STATUSES = frozenset(
    status for status in ApplicationStatus if status != ApplicationStatus.WITHDRAWN
)

# Student can no longer withdraw once a decision is made
NON_WITHDRAWABLE_STATUSES = frozenset(
    {ApplicationStatus.APPROVED, ApplicationStatus.REJECTED}
)


class InterviewType(str, PyEnum):
    PHONE = "phone"
    VIDEO = "video"
    IN_PERSON = "in-person"


def default_status_note(status: ApplicationStatus) -> str:
    return f"Status changed to {status.value}"


# ==================== Application Model ===================== #
class Application(Base):
    """
    A student applying to a specific job.

    ``recruiter_id`` is copied from the job at submission time and is what
    ownership checks compare against.
    """

    __tablename__ = "applications"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    job_id: Mapped[int] = mapped_column(
        BigIntPK,
        ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[int] = mapped_column(
        BigIntPK,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    recruiter_id: Mapped[int] = mapped_column(
        BigIntPK,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    status: Mapped[ApplicationStatus] = mapped_column(
        SQLEnum(
            ApplicationStatus, native_enum=False, length=50, values_callable=enum_values
        ),
        nullable=False,
        default=ApplicationStatus.PENDING,
        index=True,
    )

    cover_letter: Mapped[str | None] = mapped_column(
        String(COVER_LETTER_MAX_LENGTH), nullable=True
    )
    # {"filename", "original_name", "path", "size", "mimetype"}
    resume: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    # [{"question": "...", "answer": "..."}]
    answers: Mapped[list[dict[str, str]]] = mapped_column(
        JSON, nullable=False, default=list
    )
    # {"recruiter": "...", "student": "...", "admin": "..."}
    notes: Mapped[dict[str, str | None]] = mapped_column(
        JSON, nullable=False, default=dict
    )
    # {"scheduled", "date", "time", "location", "type", "notes"}
    interview: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    # {"rating", "comments", "strengths", "improvements"}
    feedback: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

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

    timeline: Mapped[list["TimelineEvent"]] = relationship(
        "TimelineEvent",
        back_populates="application",
        order_by="TimelineEvent.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("job_id", "student_id", name="uq_application_job_student"),
        Index("idx_applications_student_created", "student_id", "created_at"),
        Index("idx_applications_recruiter_status", "recruiter_id", "status"),
    )

    def change_status(
        self,
        status: ApplicationStatus,
        note: str | None = None,
        actor_id: int | None = None,
    ) -> "TimelineEvent":
        """
        Set the status and record it on the timeline.

        This is the only supported way to move an application between
        statuses; exactly one timeline entry is appended per call.
        """
        self.status = status
        entry = TimelineEvent(
            status=status,
            note=note or default_status_note(status),
            actor_id=actor_id,
            created_at=now(),
        )
        self.timeline.append(entry)
        return entry

    @property
    def last_event(self) -> "TimelineEvent | None":
        return self.timeline[-1] if self.timeline else None

    def __repr__(self) -> str:
        return (
            f"<Application(id={self.id}, job_id={self.job_id}, "
            f"student_id={self.student_id}, status={self.status})>"
        )


# ==================== Timeline Model ===================== #
class TimelineEvent(Base):
    """One append-only status event of an application."""

    __tablename__ = "application_timeline"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    application_id: Mapped[int] = mapped_column(
        BigIntPK,
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[ApplicationStatus] = mapped_column(
        SQLEnum(
            ApplicationStatus, native_enum=False, length=50, values_callable=enum_values
        ),
        nullable=False,
    )
    note: Mapped[str] = mapped_column(Text, nullable=False)
    actor_id: Mapped[int | None] = mapped_column(
        BigIntPK, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now, server_default=func.now()
    )

    application: Mapped["Application"] = relationship(
        "Application", back_populates="timeline"
    )


# ==================== Flush hooks ===================== #
def _needs_timeline_entry(application: Application) -> bool:
    last = application.last_event
    return last is None or last.status != application.status


@event.listens_for(Session, "before_flush")
def record_untracked_status_changes(session, flush_context, instances):
    """Append a default timeline entry for status changes made without one."""
    for obj in list(session.new):
        if isinstance(obj, Application) and _needs_timeline_entry(obj):
            if obj.status is None:
                obj.status = ApplicationStatus.PENDING
            note = (
                SUBMITTED_NOTE
                if obj.status == ApplicationStatus.PENDING and not obj.timeline
                else None
            )
            obj.change_status(obj.status, note)

    for obj in list(session.dirty):
        if not isinstance(obj, Application):
            continue
        if not inspect(obj).attrs.status.history.has_changes():
            continue
        if _needs_timeline_entry(obj):
            obj.change_status(obj.status)


@event.listens_for(TimelineEvent, "before_update")
def reject_timeline_updates(mapper, connection, target):
    raise RuntimeError("Timeline events are append-only")
