"""
Job posting endpoints.

Listing and reading jobs is public; recruiters post and manage their own
jobs; students bookmark; administrators moderate.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    get_pagination_params,
    get_principal,
    require_admin,
    require_permission,
)
from api.schemas.common import ERROR_RESPONSES, PaginatedResponse, PaginationParams
from api.schemas.jobs import (
    BookmarkResponse,
    CounterReport,
    JobCreate,
    JobFlag,
    JobResponse,
    JobStatusUpdate,
    JobUpdate,
)
from api.services import jobs as job_service
from core.middleware.authorization import Permission, Principal
from database.engine import get_db
from database.models.jobs import JobStatus, JobType

router = APIRouter(prefix="/jobs", tags=["jobs"], responses=ERROR_RESPONSES)


@router.get(
    "",
    response_model=PaginatedResponse[JobResponse],
    summary="List Jobs",
    description="Public job board. Defaults to active postings, newest first.",
)
async def list_jobs(
    status_filter: Optional[JobStatus] = Query(JobStatus.ACTIVE, alias="status"),
    job_type: Optional[JobType] = Query(None, alias="jobType"),
    location: Optional[str] = Query(None, max_length=200),
    search: Optional[str] = Query(None, max_length=200),
    recruiter_id: Optional[int] = Query(None, alias="recruiterId"),
    is_remote: Optional[bool] = Query(None, alias="isRemote"),
    pagination: PaginationParams = Depends(get_pagination_params),
    db: AsyncSession = Depends(get_db),
):
    page = await job_service.list_jobs(
        db,
        status=status_filter,
        job_type=job_type,
        location=location,
        search=search,
        recruiter_id=recruiter_id,
        is_remote=is_remote,
        page=pagination.page,
        limit=pagination.limit,
    )
    return PaginatedResponse[JobResponse].model_validate(page)


@router.get(
    "/{job_id}",
    response_model=JobResponse,
    summary="Get Job",
    description="Public job details. Each read counts as a view.",
)
async def get_job(
    job_id: int = Path(..., description="Job ID"),
    db: AsyncSession = Depends(get_db),
):
    return await job_service.get_job(db, job_id)


@router.post(
    "",
    response_model=JobResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Job",
    description="Post a job. Requires job:create permission.",
)
async def create_job(
    payload: JobCreate,
    principal: Principal = Depends(require_permission(Permission.JOB_CREATE)),
    db: AsyncSession = Depends(get_db),
):
    return await job_service.create_job(db, principal, payload.model_dump())


@router.put(
    "/{job_id}",
    response_model=JobResponse,
    summary="Update Job",
    description="Edit a posting's content. Owning recruiter or admin.",
)
async def update_job(
    payload: JobUpdate,
    job_id: int = Path(..., description="Job ID"),
    principal: Principal = Depends(require_permission(Permission.JOB_UPDATE)),
    db: AsyncSession = Depends(get_db),
):
    return await job_service.update_job(
        db, job_id, principal, payload.model_dump(exclude_unset=True)
    )


@router.put(
    "/{job_id}/status",
    response_model=JobResponse,
    summary="Update Job Status",
    description="Owning recruiter or admin. Approve/reject are admin-only.",
)
async def update_job_status(
    payload: JobStatusUpdate,
    job_id: int = Path(..., description="Job ID"),
    principal: Principal = Depends(require_permission(Permission.JOB_UPDATE)),
    db: AsyncSession = Depends(get_db),
):
    return await job_service.update_job_status(
        db, job_id, principal, payload.status, payload.admin_notes
    )


@router.put(
    "/{job_id}/flag",
    response_model=JobResponse,
    summary="Flag Job",
    description="Flag or unflag a posting for moderation. Admin only.",
)
async def flag_job(
    payload: JobFlag,
    job_id: int = Path(..., description="Job ID"),
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await job_service.flag_job(
        db, job_id, principal, payload.flagged, payload.reason
    )


@router.post(
    "/{job_id}/bookmark",
    response_model=BookmarkResponse,
    summary="Toggle Bookmark",
    description="Bookmark a job, or remove an existing bookmark. Students only.",
)
async def toggle_bookmark(
    job_id: int = Path(..., description="Job ID"),
    principal: Principal = Depends(require_permission(Permission.JOB_BOOKMARK)),
    db: AsyncSession = Depends(get_db),
):
    return await job_service.toggle_bookmark(db, job_id, principal)


@router.post(
    "/{job_id}/recount",
    response_model=CounterReport,
    summary="Recount Job Counters",
    description="Rebuild cached application and bookmark counts. Admin only.",
)
async def recount_job(
    job_id: int = Path(..., description="Job ID"),
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await job_service.recompute_job_counters(db, job_id, principal)


@router.post(
    "/recount",
    response_model=list[CounterReport],
    summary="Recount All Jobs",
    description="Rebuild cached counters for every job; returns the jobs that drifted.",
)
async def recount_all_jobs(
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await job_service.reconcile_job_counters(db, principal)
