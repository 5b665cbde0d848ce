"""
Application service functions for API endpoints.

Implements the application lifecycle: submission, review status changes,
interview scheduling, withdrawal, notes, feedback, listing and statistics.
Every function receives the database session and the calling ``Principal``
explicitly, raises ``core.exceptions`` errors on failure and commits once on
success.
"""

from datetime import date
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import select, func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.pagination import Page, paginate
from core.config import settings
from core.exceptions import (
    ConflictError,
    ExpiredError,
    ForbiddenError,
    InvalidStateError,
    InvalidStatusError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from core.middleware.authorization import (
    Principal,
    can_manage_application,
    can_view_application,
)
from core.security import AuditAction, ResourceType, log_audit_event
from core.utils.datetime import format_date, today
from database.models.applications import (
    COVER_LETTER_MAX_LENGTH,
    NON_WITHDRAWABLE_STATUSES,
    REVIEWABLE_STATUSES,
    SUBMITTED_NOTE,
    WITHDRAWN_NOTE,
    Application,
    ApplicationStatus,
    InterviewType,
)
from database.models.jobs import Job

logger = logging.getLogger(__name__)


# ==================== Lookups ===================== #
async def find_existing_application(
    session: AsyncSession, job_id: int, student_id: int
) -> Optional[Application]:
    result = await session.execute(
        select(Application).where(
            Application.job_id == job_id,
            Application.student_id == student_id,
        )
    )
    return result.scalar_one_or_none()


async def _load_application(session: AsyncSession, application_id: int) -> Application:
    application = await session.get(Application, application_id)
    if application is None:
        raise NotFoundError("Application not found")
    return application


async def _load_managed_application(
    session: AsyncSession, application_id: int, principal: Principal
) -> Application:
    application = await _load_application(session, application_id)
    if not can_manage_application(principal, application):
        raise ForbiddenError("Access denied")
    return application


def parse_status(value: ApplicationStatus | str | None) -> Optional[ApplicationStatus]:
    if value is None or isinstance(value, ApplicationStatus):
        return value
    status = ApplicationStatus.try_parse(value)
    if status is None:
        raise InvalidStatusError(f"Invalid status: {value}")
    return status


def check_transition(
    application: Application,
    new_status: ApplicationStatus,
    principal: Principal,
) -> None:
    """
    Enforce the status transition table.

    Administrators may override it; with strict transitions disabled every
    reviewable status is reachable from every state.
    """
    if principal.is_admin or not settings.strict_status_transitions:
        return

    current = application.status
    if current.is_terminal():
        message = f"{current.label} applications can no longer change status"
    elif not current.can_transition_to(new_status):
        message = f"Cannot change status from {current.value} to {new_status.value}"
    else:
        return
    raise InvalidTransitionError(
        message,
        details={"from": current.value, "to": new_status.value},
    )


# ==================== Submission ===================== #
async def submit_application(
    session: AsyncSession,
    job_id: int,
    principal: Principal,
    cover_letter: Optional[str] = None,
    answers: Optional[List[Dict[str, str]]] = None,
    resume: Optional[Dict[str, Any]] = None,
) -> Application:
    """
    Submit a student's application to a job.

    Args:
        session: Database session
        job_id: Job being applied to
        principal: The applying student
        cover_letter: Optional cover letter (at most 2000 characters)
        answers: Optional screening answers as ``{question, answer}`` dicts
        resume: Optional resume metadata from the upload service

    Returns:
        The new application in ``pending`` status with one timeline entry

    Raises:
        ForbiddenError: Caller is not a student
        ValidationError: Cover letter too long
        NotFoundError: Job does not exist
        InvalidStateError: Job is not accepting applications
        ExpiredError: Job's application deadline has passed
        ConflictError: Student already applied to this job
    """
    if not principal.is_student:
        raise ForbiddenError("Only students can apply for jobs")
    if cover_letter and len(cover_letter) > COVER_LETTER_MAX_LENGTH:
        raise ValidationError(
            f"Cover letter cannot exceed {COVER_LETTER_MAX_LENGTH} characters"
        )

    job = await session.get(Job, job_id)
    if job is None:
        raise NotFoundError("Job not found")
    if not job.is_accepting_applications:
        raise InvalidStateError("This job is no longer accepting applications")
    if job.deadline_passed():
        raise ExpiredError("Application deadline has passed")
    if await find_existing_application(session, job_id, principal.id):
        raise ConflictError("You have already applied for this job")

    application = Application(
        job_id=job_id,
        student_id=principal.id,
        recruiter_id=job.recruiter_id,
        cover_letter=cover_letter,
        answers=list(answers or []),
        resume=resume,
        notes={},
    )
    application.change_status(ApplicationStatus.PENDING, SUBMITTED_NOTE, principal.id)
    session.add(application)

    try:
        await session.flush()
    except IntegrityError:
        # Lost a race against a concurrent submission for the same pair
        await session.rollback()
        logger.info(
            f"Duplicate application rejected by constraint: job={job_id} "
            f"student={principal.id}"
        )
        raise ConflictError("You have already applied for this job")

    await session.execute(
        update(Job)
        .where(Job.id == job_id)
        .values(application_count=Job.application_count + 1)
    )
    await session.commit()

    logger.info(f"Application {application.id} submitted for job {job_id}")
    await log_audit_event(
        AuditAction.SUBMIT,
        ResourceType.APPLICATION,
        resource_id=application.id,
        user_id=principal.id,
        details={"job_id": job_id},
    )
    return application


# ==================== Reading ===================== #
async def get_application(
    session: AsyncSession, application_id: int, principal: Principal
) -> Application:
    """Fetch an application the caller is allowed to see."""
    application = await _load_application(session, application_id)
    if not can_view_application(principal, application):
        raise ForbiddenError("Access denied")
    return application


async def list_applications(
    session: AsyncSession,
    *,
    student_id: Optional[int] = None,
    recruiter_id: Optional[int] = None,
    job_id: Optional[int] = None,
    status: ApplicationStatus | str | None = None,
    page: int = 1,
    limit: int = 10,
) -> Page[Application]:
    """
    List applications newest first.

    Args:
        session: Database session
        student_id: Restrict to one student's applications
        recruiter_id: Restrict to applications owned by one recruiter
        job_id: Restrict to one job
        status: Restrict to one status
        page: Page number (1-indexed)
        limit: Page size (1-100)

    Returns:
        One page of applications with totals
    """
    status = parse_status(status)

    query = select(Application)
    if student_id is not None:
        query = query.where(Application.student_id == student_id)
    if recruiter_id is not None:
        query = query.where(Application.recruiter_id == recruiter_id)
    if job_id is not None:
        query = query.where(Application.job_id == job_id)
    if status is not None:
        query = query.where(Application.status == status)
    query = query.order_by(Application.created_at.desc(), Application.id.desc())

    return await paginate(session, query, page, limit)


async def get_application_stats(
    session: AsyncSession, recruiter_id: Optional[int] = None
) -> Dict[str, Any]:
    """
    Count applications grouped by status.

    Args:
        session: Database session
        recruiter_id: Restrict to one recruiter's applications (None = all)

    Returns:
        ``{"total": int, "by_status": {status: count}}`` with every status present
    """
    query = select(Application.status, func.count(Application.id)).group_by(
        Application.status
    )
    if recruiter_id is not None:
        query = query.where(Application.recruiter_id == recruiter_id)

    by_status = {status.value: 0 for status in ApplicationStatus}
    for status, count in (await session.execute(query)).all():
        by_status[ApplicationStatus(status).value] = count

    return {"total": sum(by_status.values()), "by_status": by_status}


# ==================== Review workflow ===================== #
async def update_status(
    session: AsyncSession,
    application_id: int,
    principal: Principal,
    new_status: ApplicationStatus | str,
    note: Optional[str] = None,
) -> Application:
    """
    Change an application's review status.

    Raises:
        InvalidStatusError: Unknown status, or ``withdrawn``
        NotFoundError: Application does not exist
        ForbiddenError: Caller is neither the owning recruiter nor an admin
        InvalidTransitionError: Edge not allowed for this caller
    """
    status = parse_status(new_status)
    if status is None or status not in REVIEWABLE_STATUSES:
        label = getattr(new_status, "value", new_status)
        raise InvalidStatusError(f"Invalid status: {label}")

    application = await _load_managed_application(session, application_id, principal)
    check_transition(application, status, principal)

    previous = application.status
    application.change_status(status, note, principal.id)
    await session.commit()

    logger.info(
        f"Application {application.id} status {previous.value} -> {status.value}"
    )
    await log_audit_event(
        AuditAction.CHANGE_STATUS,
        ResourceType.APPLICATION,
        resource_id=application.id,
        user_id=principal.id,
        details={"from": previous.value, "to": status.value},
    )
    return application


async def schedule_interview(
    session: AsyncSession,
    application_id: int,
    principal: Principal,
    interview_date: date,
    interview_time: str,
    location: Optional[str] = None,
    interview_type: InterviewType | str = InterviewType.VIDEO,
    notes: Optional[str] = None,
) -> Application:
    """
    Schedule (or reschedule) an interview and move the application to ``interview``.

    Raises:
        NotFoundError: Application does not exist
        ForbiddenError: Caller is neither the owning recruiter nor an admin
        ValidationError: Interview date lies in the past
        InvalidTransitionError: Application cannot move to ``interview``
    """
    application = await _load_managed_application(session, application_id, principal)

    if interview_date < today():
        raise ValidationError("Interview date cannot be in the past")
    try:
        interview_type = InterviewType(interview_type)
    except ValueError:
        raise ValidationError(f"Invalid interview type: {interview_type}")

    if application.status != ApplicationStatus.INTERVIEW:
        check_transition(application, ApplicationStatus.INTERVIEW, principal)

    application.interview = {
        "scheduled": True,
        "date": interview_date.isoformat(),
        "time": interview_time,
        "location": location,
        "type": interview_type.value,
        "notes": notes,
    }
    application.change_status(
        ApplicationStatus.INTERVIEW,
        f"Interview scheduled for {format_date(interview_date)} at {interview_time}",
        principal.id,
    )
    await session.commit()

    await log_audit_event(
        AuditAction.SCHEDULE_INTERVIEW,
        ResourceType.APPLICATION,
        resource_id=application.id,
        user_id=principal.id,
        details={"date": interview_date.isoformat(), "type": interview_type.value},
    )
    return application


async def withdraw_application(
    session: AsyncSession, application_id: int, principal: Principal
) -> Application:
    """
    Withdraw an application on behalf of the student who submitted it.

    Raises:
        NotFoundError: Application does not exist
        ForbiddenError: Caller is not the owning student
        InvalidStateError: A decision (approved/rejected) was already made
    """
    application = await _load_application(session, application_id)
    if not (principal.is_student and application.student_id == principal.id):
        raise ForbiddenError("Access denied")
    if application.status in NON_WITHDRAWABLE_STATUSES:
        raise InvalidStateError("Cannot withdraw application at this stage")

    previous = application.status
    application.change_status(ApplicationStatus.WITHDRAWN, WITHDRAWN_NOTE, principal.id)
    await session.commit()

    await log_audit_event(
        AuditAction.WITHDRAW,
        ResourceType.APPLICATION,
        resource_id=application.id,
        user_id=principal.id,
        details={"from": previous.value},
    )
    return application


async def update_notes(
    session: AsyncSession,
    application_id: int,
    principal: Principal,
    note: Optional[str],
) -> Application:
    """Write the caller's own note slot (student, recruiter or admin)."""
    application = await get_application(session, application_id, principal)

    # JSON columns are not mutation-tracked; assign a new dict
    application.notes = {**(application.notes or {}), principal.role.value: note}
    await session.commit()
    return application


async def record_feedback(
    session: AsyncSession,
    application_id: int,
    principal: Principal,
    rating: int,
    comments: Optional[str] = None,
    strengths: Optional[List[str]] = None,
    improvements: Optional[List[str]] = None,
) -> Application:
    """Attach reviewer feedback to an application."""
    if not 1 <= rating <= 5:
        raise ValidationError("Rating must be between 1 and 5")

    application = await _load_managed_application(session, application_id, principal)
    application.feedback = {
        "rating": rating,
        "comments": comments,
        "strengths": list(strengths or []),
        "improvements": list(improvements or []),
    }
    await session.commit()

    await log_audit_event(
        AuditAction.ADD_FEEDBACK,
        ResourceType.APPLICATION,
        resource_id=application.id,
        user_id=principal.id,
        details={"rating": rating},
    )
    return application
