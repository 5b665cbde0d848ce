"""FastAPI dependencies for dependency injection."""

from typing import Callable, Optional
from fastapi import Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.common import PaginationParams
from core.config import settings
from core.middleware.authentication import get_jwt_payload
from core.middleware.authorization import Permission, Principal, missing_permissions
from database.engine import get_db
from database.models.users import User, UserRole, UserStatus


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """
    Load the account behind the request's access token.
    Returns None when no token was presented.
    """
    payload = get_jwt_payload(request)
    if not payload:
        return None
    return await db.get(User, int(payload["sub"]))


async def require_authenticated_user(
    current_user: Optional[User] = Depends(get_current_user),
) -> User:
    """Require user to be authenticated."""
    if not current_user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return current_user


async def require_active_user(
    current_user: User = Depends(require_authenticated_user),
) -> User:
    """Require user to not be suspended."""
    if current_user.status == UserStatus.SUSPENDED:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account suspended",
        )
    return current_user


async def get_principal(
    current_user: User = Depends(require_active_user),
) -> Principal:
    """Identity handed to the service layer."""
    return Principal(id=current_user.id, role=current_user.role)


def require_roles(*roles: UserRole) -> Callable:
    """Dependency factory restricting an endpoint to some roles."""
    allowed = set(roles)

    async def dependency(principal: Principal = Depends(get_principal)) -> Principal:
        if principal.role not in allowed:
            names = " or ".join(role.value for role in roles)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{names.capitalize()} access required",
            )
        return principal

    return dependency


def require_permission(*permissions: Permission) -> Callable:
    """Dependency factory requiring role permissions."""

    async def dependency(principal: Principal = Depends(get_principal)) -> Principal:
        missing = missing_permissions(principal, *permissions)
        if missing:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission: {', '.join(p.value for p in missing)}",
            )
        return principal

    return dependency


require_student = require_roles(UserRole.STUDENT)
require_admin = require_roles(UserRole.ADMIN)


def get_pagination_params(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    limit: int = Query(
        settings.default_page_size,
        ge=1,
        le=settings.max_page_size,
        description="Items per page",
    ),
) -> PaginationParams:
    return PaginationParams(page=page, limit=limit)
