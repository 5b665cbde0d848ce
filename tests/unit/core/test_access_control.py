"""
Tests for role permissions and ownership rules.

Tests:
- Permission sets per role
- Who may view and who may manage an application
- Job ownership and listing scope
"""

from types import SimpleNamespace

import pytest

from core.middleware.authorization import (
    Permission,
    Principal,
    can_manage_application,
    can_manage_job,
    can_view_application,
    has_permission,
    missing_permissions,
    recruiter_scope,
)
from database.models.users import UserRole

STUDENT = Principal(id=1, role=UserRole.STUDENT)
OTHER_STUDENT = Principal(id=2, role=UserRole.STUDENT)
RECRUITER = Principal(id=10, role=UserRole.RECRUITER)
OTHER_RECRUITER = Principal(id=11, role=UserRole.RECRUITER)
ADMIN = Principal(id=99, role=UserRole.ADMIN)

APPLICATION = SimpleNamespace(student_id=1, recruiter_id=10)
JOB = SimpleNamespace(recruiter_id=10)


class TestPermissions:

    @pytest.mark.parametrize("principal,permission,expected", [
        (STUDENT, Permission.APPLICATION_SUBMIT, True),
        (STUDENT, Permission.APPLICATION_REVIEW, False),
        (STUDENT, Permission.JOB_BOOKMARK, True),
        (RECRUITER, Permission.APPLICATION_SUBMIT, False),
        (RECRUITER, Permission.APPLICATION_REVIEW, True),
        (RECRUITER, Permission.JOB_CREATE, True),
        (RECRUITER, Permission.JOB_MODERATE, False),
        (ADMIN, Permission.APPLICATION_SUBMIT, False),
        (ADMIN, Permission.JOB_MODERATE, True),
        (ADMIN, Permission.USER_MODERATE, True),
    ])
    def test_has_permission(self, principal, permission, expected):
        assert has_permission(principal, permission) is expected

    def test_missing_permissions(self):
        missing = missing_permissions(
            RECRUITER, Permission.APPLICATION_REVIEW, Permission.USER_CREATE
        )
        assert missing == [Permission.USER_CREATE]


class TestApplicationAccess:
    """An application is visible to its student, its recruiter and admins."""

    @pytest.mark.parametrize("principal,expected", [
        (STUDENT, True),
        (OTHER_STUDENT, False),
        (RECRUITER, True),
        (OTHER_RECRUITER, False),
        (ADMIN, True),
    ])
    def test_can_view(self, principal, expected):
        assert can_view_application(principal, APPLICATION) is expected

    @pytest.mark.parametrize("principal,expected", [
        (STUDENT, False),
        (OTHER_STUDENT, False),
        (RECRUITER, True),
        (OTHER_RECRUITER, False),
        (ADMIN, True),
    ])
    def test_can_manage(self, principal, expected):
        assert can_manage_application(principal, APPLICATION) is expected

    def test_student_id_matching_recruiter_id_grants_nothing(self):
        """Ids are compared against the field that matches the caller's role."""
        recruiter_with_student_id = Principal(id=1, role=UserRole.RECRUITER)
        assert can_view_application(recruiter_with_student_id, APPLICATION) is False


class TestJobAccess:

    def test_owner_and_admin_manage_job(self):
        assert can_manage_job(RECRUITER, JOB)
        assert can_manage_job(ADMIN, JOB)
        assert not can_manage_job(OTHER_RECRUITER, JOB)
        assert not can_manage_job(Principal(id=10, role=UserRole.STUDENT), JOB)

    def test_recruiter_scope(self):
        assert recruiter_scope(RECRUITER) == 10
        assert recruiter_scope(ADMIN) is None
