"""
User service functions for API endpoints.

Account creation, profiles and moderation. Sign-up and credentials live in the identity
service; this module only manages the platform-side account record.
"""

from typing import Any, Dict, Optional
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.pagination import Page, paginate
from core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from core.middleware.authorization import Permission, Principal, has_permission
from core.security import AuditAction, ResourceType, log_audit_event
from database.models.users import User, UserRole, UserStatus

logger = logging.getLogger(__name__)

PROFILE_FIELDS = frozenset({"name", "phone", "student_profile", "recruiter_profile"})


async def get_user(session: AsyncSession, user_id: int) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def create_user(
    session: AsyncSession, principal: Principal, data: Dict[str, Any]
) -> User:
    """
    Create an account (administrators only).

    Raises:
        ForbiddenError: Caller is not an admin
        ConflictError: Email already registered
    """
    if not has_permission(principal, Permission.USER_CREATE):
        raise ForbiddenError("Admin access required")

    user = User(**data)
    user.email = user.email.lower()
    session.add(user)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("A user with this email already exists")

    await log_audit_event(
        AuditAction.CREATE,
        ResourceType.USER,
        resource_id=user.id,
        user_id=principal.id,
        details={"email": user.email, "role": user.role.value},
        contains_pii=True,
    )
    return user


async def list_users(
    session: AsyncSession,
    *,
    role: Optional[UserRole] = None,
    status: Optional[UserStatus] = None,
    page: int = 1,
    limit: int = 10,
) -> Page[User]:
    query = select(User)
    if role is not None:
        query = query.where(User.role == role)
    if status is not None:
        query = query.where(User.status == status)
    query = query.order_by(User.created_at.desc(), User.id.desc())
    return await paginate(session, query, page, limit)


async def update_profile(
    session: AsyncSession,
    user_id: int,
    principal: Principal,
    data: Dict[str, Any],
) -> User:
    """
    Edit an account's profile (the account holder or an admin).

    Only ``PROFILE_FIELDS`` are accepted; role, status and email are managed
    elsewhere.

    Raises:
        ForbiddenError: Caller is neither the account holder nor an admin
        NotFoundError: User does not exist
        ValidationError: Field outside the profile, or an empty name
    """
    if user_id != principal.id and not principal.is_admin:
        raise ForbiddenError("Access denied")

    rejected = sorted(set(data) - PROFILE_FIELDS)
    if rejected:
        raise ValidationError(
            f"Fields cannot be edited: {', '.join(rejected)}",
            details={"fields": rejected},
        )
    if "name" in data and not data["name"]:
        raise ValidationError("Name cannot be empty")

    user = await get_user(session, user_id)
    for name, value in data.items():
        setattr(user, name, value)
    await session.commit()

    await log_audit_event(
        AuditAction.UPDATE,
        ResourceType.USER,
        resource_id=user_id,
        user_id=principal.id,
        details={"fields": sorted(data)},
    )
    return user


async def update_user_status(
    session: AsyncSession,
    user_id: int,
    principal: Principal,
    status: UserStatus,
    reason: Optional[str] = None,
) -> User:
    """Activate, hold or suspend an account."""
    if not has_permission(principal, Permission.USER_MODERATE):
        raise ForbiddenError("Admin access required")
    if user_id == principal.id:
        raise InvalidStateError("Administrators cannot change their own status")

    user = await get_user(session, user_id)
    previous = user.status
    user.status = status
    await session.commit()

    logger.info(f"User {user_id} status {previous.value} -> {status.value}")
    await log_audit_event(
        AuditAction.MODERATE,
        ResourceType.USER,
        resource_id=user_id,
        user_id=principal.id,
        details={"from": previous.value, "to": status.value, "reason": reason},
    )
    return user
