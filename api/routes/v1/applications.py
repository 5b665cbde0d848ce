"""
Application workflow endpoints.

Students submit, track and withdraw applications; recruiters and admins review
them, schedule interviews and leave feedback.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    get_pagination_params,
    get_principal,
    require_permission,
    require_student,
)
from api.schemas.applications import (
    ApplicationCreate,
    ApplicationResponse,
    ApplicationStats,
    FeedbackCreate,
    InterviewSchedule,
    NotesUpdate,
    StatusUpdate,
)
from api.schemas.common import ERROR_RESPONSES, PaginatedResponse, PaginationParams
from api.services import applications as application_service
from core.middleware.authorization import Permission, Principal, recruiter_scope
from database.engine import get_db

router = APIRouter(prefix="/applications", tags=["applications"], responses=ERROR_RESPONSES)


@router.post(
    "",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Application",
    description="Apply to an active job. Requires application:submit permission.",
)
async def submit_application(
    payload: ApplicationCreate,
    principal: Principal = Depends(require_permission(Permission.APPLICATION_SUBMIT)),
    db: AsyncSession = Depends(get_db),
):
    """Create a pending application for the calling student."""
    return await application_service.submit_application(
        db,
        job_id=payload.job_id,
        principal=principal,
        cover_letter=payload.cover_letter,
        answers=[answer.model_dump() for answer in payload.answers],
        resume=payload.resume.model_dump() if payload.resume else None,
    )


@router.get(
    "/my",
    response_model=PaginatedResponse[ApplicationResponse],
    summary="List My Applications",
    description="Applications submitted by the calling student, newest first.",
)
async def list_my_applications(
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by status"),
    pagination: PaginationParams = Depends(get_pagination_params),
    principal: Principal = Depends(require_student),
    db: AsyncSession = Depends(get_db),
):
    page = await application_service.list_applications(
        db,
        student_id=principal.id,
        status=status_filter,
        page=pagination.page,
        limit=pagination.limit,
    )
    return PaginatedResponse[ApplicationResponse].model_validate(page)


@router.get(
    "/received",
    response_model=PaginatedResponse[ApplicationResponse],
    summary="List Received Applications",
    description="Applications to the calling recruiter's jobs (all applications for admins).",
)
async def list_received_applications(
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by status"),
    job_id: Optional[int] = Query(None, alias="jobId", description="Filter by job"),
    pagination: PaginationParams = Depends(get_pagination_params),
    principal: Principal = Depends(require_permission(Permission.APPLICATION_REVIEW)),
    db: AsyncSession = Depends(get_db),
):
    page = await application_service.list_applications(
        db,
        recruiter_id=recruiter_scope(principal),
        job_id=job_id,
        status=status_filter,
        page=pagination.page,
        limit=pagination.limit,
    )
    return PaginatedResponse[ApplicationResponse].model_validate(page)


@router.get(
    "/stats/overview",
    response_model=ApplicationStats,
    summary="Application Statistics",
    description="Counts by status. Recruiters see their own jobs, admins see everything.",
)
async def application_stats(
    principal: Principal = Depends(require_permission(Permission.APPLICATION_STATS)),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.get_application_stats(
        db, recruiter_id=recruiter_scope(principal)
    )


@router.get(
    "/{application_id}",
    response_model=ApplicationResponse,
    summary="Get Application",
    description="Visible to the applying student, the owning recruiter and admins.",
)
async def get_application(
    application_id: int = Path(..., description="Application ID"),
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.get_application(db, application_id, principal)


@router.put(
    "/{application_id}/status",
    response_model=ApplicationResponse,
    summary="Update Application Status",
    description="Move an application through review. Requires application:review permission.",
)
async def update_application_status(
    payload: StatusUpdate,
    application_id: int = Path(..., description="Application ID"),
    principal: Principal = Depends(require_permission(Permission.APPLICATION_REVIEW)),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.update_status(
        db, application_id, principal, payload.status, payload.note
    )


@router.put(
    "/{application_id}/interview",
    response_model=ApplicationResponse,
    summary="Schedule Interview",
    description="Schedule an interview and move the application to interview status.",
)
async def schedule_interview(
    payload: InterviewSchedule,
    application_id: int = Path(..., description="Application ID"),
    principal: Principal = Depends(require_permission(Permission.APPLICATION_REVIEW)),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.schedule_interview(
        db,
        application_id,
        principal,
        interview_date=payload.date,
        interview_time=payload.time,
        location=payload.location,
        interview_type=payload.type,
        notes=payload.notes,
    )


@router.put(
    "/{application_id}/withdraw",
    response_model=ApplicationResponse,
    summary="Withdraw Application",
    description="Withdraw an application that has not been decided yet.",
)
async def withdraw_application(
    application_id: int = Path(..., description="Application ID"),
    principal: Principal = Depends(require_permission(Permission.APPLICATION_WITHDRAW)),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.withdraw_application(db, application_id, principal)


@router.put(
    "/{application_id}/notes",
    response_model=ApplicationResponse,
    summary="Update Notes",
    description="Write the caller's own note on the application.",
)
async def update_notes(
    payload: NotesUpdate,
    application_id: int = Path(..., description="Application ID"),
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.update_notes(
        db, application_id, principal, payload.note
    )


@router.put(
    "/{application_id}/feedback",
    response_model=ApplicationResponse,
    summary="Record Feedback",
    description="Attach a rating and comments. Requires application:review permission.",
)
async def record_feedback(
    payload: FeedbackCreate,
    application_id: int = Path(..., description="Application ID"),
    principal: Principal = Depends(require_permission(Permission.APPLICATION_REVIEW)),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.record_feedback(
        db,
        application_id,
        principal,
        rating=payload.rating,
        comments=payload.comments,
        strengths=payload.strengths,
        improvements=payload.improvements,
    )
