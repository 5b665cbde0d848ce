"""User account endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    get_pagination_params,
    get_principal,
    require_active_user,
    require_admin,
)
from api.schemas.common import ERROR_RESPONSES, PaginatedResponse, PaginationParams
from api.schemas.users import (
    UserCreate,
    UserProfileUpdate,
    UserResponse,
    UserStatusUpdate,
)
from api.services import users as user_service
from core.middleware.authorization import Principal
from database.engine import get_db
from database.models.users import User, UserRole, UserStatus

router = APIRouter(prefix="/users", tags=["users"], responses=ERROR_RESPONSES)


@router.get("/me", response_model=UserResponse, summary="Current User")
async def get_me(current_user: User = Depends(require_active_user)):
    return current_user


@router.get(
    "",
    response_model=PaginatedResponse[UserResponse],
    summary="List Users",
    description="Admin only.",
)
async def list_users(
    role: Optional[UserRole] = Query(None),
    status_filter: Optional[UserStatus] = Query(None, alias="status"),
    pagination: PaginationParams = Depends(get_pagination_params),
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    page = await user_service.list_users(
        db, role=role, status=status_filter, page=pagination.page, limit=pagination.limit
    )
    return PaginatedResponse[UserResponse].model_validate(page)


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create User",
    description="Admin only.",
)
async def create_user(
    payload: UserCreate,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.create_user(db, principal, payload.model_dump())


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    summary="Get User",
    description="Any active user may look up an account.",
)
async def get_user(
    user_id: int = Path(..., description="User ID"),
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.get_user(db, user_id)


@router.put(
    "/{user_id}",
    response_model=UserResponse,
    summary="Update Profile",
    description="Edit name, phone and role profiles. Own account, or any account for admins.",
)
async def update_profile(
    payload: UserProfileUpdate,
    user_id: int = Path(..., description="User ID"),
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.update_profile(
        db, user_id, principal, payload.model_dump(exclude_unset=True)
    )


@router.put(
    "/{user_id}/status",
    response_model=UserResponse,
    summary="Update User Status",
    description="Activate or suspend an account. Admin only.",
)
async def update_user_status(
    payload: UserStatusUpdate,
    user_id: int = Path(..., description="User ID"),
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.update_user_status(
        db, user_id, principal, payload.status, payload.reason
    )
