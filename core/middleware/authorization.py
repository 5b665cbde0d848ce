"""
Authorization rules for the placement portal.

Two layers:
1. Role permissions (what a student, recruiter or admin may do at all)
2. Ownership predicates on applications (which records a caller may touch)

Every service entry point goes through the same predicates below so the
access rules cannot drift between endpoints.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from database.models.users import UserRole

logger = logging.getLogger(__name__)


class Permission(str, Enum):
    # Job permissions
    JOB_CREATE = "job:create"
    JOB_READ = "job:read"
    JOB_UPDATE = "job:update"
    JOB_MODERATE = "job:moderate"
    JOB_BOOKMARK = "job:bookmark"

    # Application permissions
    APPLICATION_SUBMIT = "application:submit"
    APPLICATION_READ = "application:read"
    APPLICATION_REVIEW = "application:review"
    APPLICATION_WITHDRAW = "application:withdraw"
    APPLICATION_STATS = "application:stats"

    # User permissions
    USER_CREATE = "user:create"
    USER_MODERATE = "user:moderate"


ROLE_PERMISSIONS: dict[UserRole, set[Permission]] = {
    UserRole.STUDENT: {
        Permission.JOB_READ,
        Permission.JOB_BOOKMARK,
        Permission.APPLICATION_SUBMIT,
        Permission.APPLICATION_READ,
        Permission.APPLICATION_WITHDRAW,
    },
    UserRole.RECRUITER: {
        Permission.JOB_CREATE,
        Permission.JOB_READ,
        Permission.JOB_UPDATE,
        Permission.APPLICATION_READ,
        Permission.APPLICATION_REVIEW,
        Permission.APPLICATION_STATS,
    },
    UserRole.ADMIN: {
        Permission.JOB_READ,
        Permission.JOB_UPDATE,
        Permission.JOB_MODERATE,
        Permission.APPLICATION_READ,
        Permission.APPLICATION_REVIEW,
        Permission.APPLICATION_STATS,
        Permission.USER_CREATE,
        Permission.USER_MODERATE,
    },
}


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, passed explicitly into services."""
    id: int
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT

    @property
    def is_recruiter(self) -> bool:
        return self.role == UserRole.RECRUITER


def has_permission(principal: Principal, permission: Permission) -> bool:
    return permission in ROLE_PERMISSIONS.get(principal.role, set())


def missing_permissions(
    principal: Principal, *permissions: Permission
) -> list[Permission]:
    granted = ROLE_PERMISSIONS.get(principal.role, set())
    return [p for p in permissions if p not in granted]


def can_view_application(principal: Principal, application) -> bool:
    """Owning student, owning recruiter or any admin."""
    if principal.is_admin:
        return True
    if principal.is_student:
        return application.student_id == principal.id
    if principal.is_recruiter:
        return application.recruiter_id == principal.id
    return False


def can_manage_application(principal: Principal, application) -> bool:
    """Owning recruiter or any admin."""
    if principal.is_admin:
        return True
    return principal.is_recruiter and application.recruiter_id == principal.id


def can_manage_job(principal: Principal, job) -> bool:
    if principal.is_admin:
        return True
    return principal.is_recruiter and job.recruiter_id == principal.id


def recruiter_scope(principal: Principal) -> Optional[int]:
    """Recruiter id a listing should be restricted to, None for admins."""
    return None if principal.is_admin else principal.id
