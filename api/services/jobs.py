"""
Job service functions.

Job postings, bookmarks and the cached counters on a job. ``application_count``
and ``bookmark_count`` are caches over the applications and bookmark tables and
can be rebuilt with ``recompute_job_counters``; ``view_count`` has no source
table and is best effort.
"""

from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.pagination import Page, paginate
from core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from core.middleware.authorization import (
    Permission,
    Principal,
    can_manage_job,
    has_permission,
)
from core.security import AuditAction, ResourceType, log_audit_event
from database.models.applications import Application
from database.models.jobs import Job, JobBookmark, JobStatus, JobType
from database.models.users import User

logger = logging.getLogger(__name__)

# Statuses a recruiter may pick when creating a posting
INITIAL_JOB_STATUSES = frozenset({JobStatus.DRAFT, JobStatus.ACTIVE, JobStatus.PENDING})
# Statuses only administrators may set
MODERATION_STATUSES = frozenset({JobStatus.APPROVED, JobStatus.REJECTED})

COUNTER_FIELDS = ("application_count", "bookmark_count")

# Content a recruiter may edit after posting
EDITABLE_JOB_FIELDS = frozenset({
    "title", "description", "company", "location", "job_type", "department",
    "salary", "requirements", "benefits", "tags", "is_remote", "is_urgent",
    "application_deadline", "start_date",
})
REQUIRED_JOB_FIELDS = frozenset({
    "title", "description", "company", "location", "job_type",
    "benefits", "tags", "is_remote", "is_urgent",
})


async def _load_job(session: AsyncSession, job_id: int) -> Job:
    job = await session.get(Job, job_id)
    if job is None:
        raise NotFoundError("Job not found")
    return job


async def create_job(
    session: AsyncSession, principal: Principal, data: Dict[str, Any]
) -> Job:
    """
    Create a job posting owned by the calling recruiter.

    Args:
        session: Database session
        principal: Calling recruiter
        data: Posting fields (see ``JobCreate``)

    Returns:
        The new job
    """
    if not has_permission(principal, Permission.JOB_CREATE):
        raise ForbiddenError("Only recruiters can post jobs")

    data = dict(data)
    status = JobStatus(data.pop("status", JobStatus.ACTIVE))
    if status not in INITIAL_JOB_STATUSES:
        raise ValidationError(f"A new job cannot start in status {status.value}")

    if not data.get("company"):
        recruiter = await session.get(User, principal.id)
        data["company"] = recruiter.company if recruiter else None
    if not data.get("company"):
        raise ValidationError("Company is required")

    job = Job(recruiter_id=principal.id, status=status, **data)
    session.add(job)
    await session.commit()

    logger.info(f"Job {job.id} created by recruiter {principal.id}")
    await log_audit_event(
        AuditAction.CREATE, ResourceType.JOB, resource_id=job.id, user_id=principal.id
    )
    return job


async def get_job(
    session: AsyncSession, job_id: int, count_view: bool = True
) -> Job:
    """Fetch a job, counting the view unless told otherwise."""
    job = await _load_job(session, job_id)
    if count_view:
        await session.execute(
            update(Job)
            .where(Job.id == job_id)
            .values(view_count=Job.view_count + 1)
        )
        await session.commit()
    return job


async def list_jobs(
    session: AsyncSession,
    *,
    status: Optional[JobStatus] = JobStatus.ACTIVE,
    job_type: Optional[JobType] = None,
    location: Optional[str] = None,
    search: Optional[str] = None,
    recruiter_id: Optional[int] = None,
    is_remote: Optional[bool] = None,
    page: int = 1,
    limit: int = 10,
) -> Page[Job]:
    """
    List jobs newest first.

    Args:
        session: Database session
        status: Only jobs in this status (None = any)
        job_type: Only this employment type
        location: Case-insensitive substring match on location
        search: Case-insensitive substring match on title or company
        recruiter_id: Only jobs owned by this recruiter
        is_remote: Only remote / on-site jobs
        page: Page number (1-indexed)
        limit: Page size (1-100)
    """
    query = select(Job)
    if status is not None:
        query = query.where(Job.status == status)
    if job_type is not None:
        query = query.where(Job.job_type == job_type)
    if location:
        query = query.where(Job.location.ilike(f"%{location}%"))
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(Job.title.ilike(pattern), Job.company.ilike(pattern)))
    if recruiter_id is not None:
        query = query.where(Job.recruiter_id == recruiter_id)
    if is_remote is not None:
        query = query.where(Job.is_remote == is_remote)
    query = query.order_by(Job.created_at.desc(), Job.id.desc())

    return await paginate(session, query, page, limit)


async def update_job(
    session: AsyncSession,
    job_id: int,
    principal: Principal,
    data: Dict[str, Any],
) -> Job:
    """
    Edit a posting's content (owning recruiter or admin).

    Args:
        session: Database session
        job_id: Job to edit
        principal: Calling recruiter or admin
        data: Fields to change (see ``JobUpdate``); absent fields are kept

    Raises:
        NotFoundError: Job does not exist
        ForbiddenError: Caller neither owns the job nor is an admin
        ValidationError: Protected or unknown field, or a required field set to None
    """
    job = await _load_job(session, job_id)
    if not can_manage_job(principal, job):
        raise ForbiddenError("Access denied")

    rejected = sorted(set(data) - EDITABLE_JOB_FIELDS)
    if rejected:
        raise ValidationError(
            f"Fields cannot be edited: {', '.join(rejected)}",
            details={"fields": rejected},
        )
    cleared = sorted(
        name for name, value in data.items()
        if value is None and name in REQUIRED_JOB_FIELDS
    )
    if cleared:
        raise ValidationError(
            f"Fields cannot be empty: {', '.join(cleared)}",
            details={"fields": cleared},
        )

    for name, value in data.items():
        setattr(job, name, value)
    await session.commit()

    logger.info(f"Job {job.id} edited by user {principal.id}")
    await log_audit_event(
        AuditAction.UPDATE,
        ResourceType.JOB,
        resource_id=job.id,
        user_id=principal.id,
        details={"fields": sorted(data)},
    )
    return job


async def update_job_status(
    session: AsyncSession,
    job_id: int,
    principal: Principal,
    status: JobStatus,
    admin_notes: Optional[str] = None,
) -> Job:
    """Change a posting's status. Moderation statuses are admin-only."""
    job = await _load_job(session, job_id)
    if not can_manage_job(principal, job):
        raise ForbiddenError("Access denied")
    if status in MODERATION_STATUSES and not principal.is_admin:
        raise ForbiddenError("Only administrators can moderate jobs")

    previous = job.status
    job.status = status
    if principal.is_admin and admin_notes is not None:
        job.admin_notes = admin_notes
    await session.commit()

    await log_audit_event(
        AuditAction.UPDATE,
        ResourceType.JOB,
        resource_id=job.id,
        user_id=principal.id,
        details={"from": previous.value, "to": status.value},
    )
    return job


async def flag_job(
    session: AsyncSession,
    job_id: int,
    principal: Principal,
    flagged: bool = True,
    reason: Optional[str] = None,
) -> Job:
    """Flag or unflag a posting for review (administrators only)."""
    if not has_permission(principal, Permission.JOB_MODERATE):
        raise ForbiddenError("Admin access required")

    job = await _load_job(session, job_id)
    job.flagged = flagged
    job.flag_reason = reason if flagged else None
    await session.commit()

    await log_audit_event(
        AuditAction.MODERATE,
        ResourceType.JOB,
        resource_id=job.id,
        user_id=principal.id,
        details={"flagged": flagged, "reason": reason},
    )
    return job


async def toggle_bookmark(
    session: AsyncSession, job_id: int, principal: Principal
) -> Dict[str, Any]:
    """
    Bookmark a job for the calling student, or remove the bookmark.

    Returns:
        ``{"job_id", "bookmarked", "bookmark_count"}`` after the toggle
    """
    if not has_permission(principal, Permission.JOB_BOOKMARK):
        raise ForbiddenError("Only students can bookmark jobs")

    job = await _load_job(session, job_id)
    existing = (
        await session.execute(
            select(JobBookmark).where(
                JobBookmark.job_id == job_id,
                JobBookmark.student_id == principal.id,
            )
        )
    ).scalar_one_or_none()

    if existing is not None:
        await session.execute(
            delete(JobBookmark).where(JobBookmark.id == existing.id)
        )
        await session.execute(
            update(Job)
            .where(Job.id == job_id, Job.bookmark_count > 0)
            .values(bookmark_count=Job.bookmark_count - 1)
        )
        bookmarked = False
    else:
        session.add(JobBookmark(job_id=job_id, student_id=principal.id))
        try:
            await session.flush()
        except IntegrityError:
            await session.rollback()
            raise ConflictError("Job is already bookmarked")
        await session.execute(
            update(Job)
            .where(Job.id == job_id)
            .values(bookmark_count=Job.bookmark_count + 1)
        )
        bookmarked = True

    await session.commit()
    await session.refresh(job)
    return {"job_id": job_id, "bookmarked": bookmarked, "bookmark_count": job.bookmark_count}


async def _count_sources(session: AsyncSession, job_id: int) -> Dict[str, int]:
    applications = await session.execute(
        select(func.count(Application.id)).where(Application.job_id == job_id)
    )
    bookmarks = await session.execute(
        select(func.count(JobBookmark.id)).where(JobBookmark.job_id == job_id)
    )
    return {
        "application_count": applications.scalar() or 0,
        "bookmark_count": bookmarks.scalar() or 0,
    }


async def recompute_job_counters(
    session: AsyncSession, job_id: int, principal: Optional[Principal] = None
) -> Dict[str, Any]:
    """
    Rebuild a job's cached counters from the applications and bookmarks tables.

    Returns:
        ``{"job_id", "before", "after"}`` with the counter values
    """
    job = await _load_job(session, job_id)
    before = {name: getattr(job, name) for name in COUNTER_FIELDS}
    after = await _count_sources(session, job_id)

    if before != after:
        for name, value in after.items():
            setattr(job, name, value)
        await session.commit()
        logger.warning(f"Job {job_id} counters drifted: {before} -> {after}")
        await log_audit_event(
            AuditAction.RECOUNT,
            ResourceType.JOB,
            resource_id=job_id,
            user_id=principal.id if principal else None,
            details={"before": before, "after": after},
        )

    return {"job_id": job_id, "before": before, "after": after}


async def reconcile_job_counters(
    session: AsyncSession, principal: Optional[Principal] = None
) -> List[Dict[str, Any]]:
    """Recompute every job's counters; returns reports for jobs that changed."""
    job_ids = (await session.execute(select(Job.id).order_by(Job.id))).scalars().all()
    reports = []
    for job_id in job_ids:
        report = await recompute_job_counters(session, job_id, principal)
        if report["before"] != report["after"]:
            reports.append(report)
    return reports
