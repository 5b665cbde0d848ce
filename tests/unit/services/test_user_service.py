"""Tests for account creation and moderation."""

import pytest

from api.services import users as service
from core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    ValidationError,
)
from database.models.users import UserRole, UserStatus


class TestCreateUser:

    @pytest.mark.asyncio
    async def test_admin_creates_user_with_lowercase_email(self, session, principals):
        user = await service.create_user(
            session,
            principals["admin"],
            {"email": "New.Student@University.EDU", "name": "New", "role": UserRole.STUDENT},
        )
        assert user.id is not None
        assert user.email == "new.student@university.edu"
        assert user.status == UserStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, session, principals, users):
        with pytest.raises(ConflictError):
            await service.create_user(
                session,
                principals["admin"],
                {"email": "SAM@university.edu", "name": "Dup", "role": UserRole.STUDENT},
            )

    @pytest.mark.asyncio
    async def test_non_admin_forbidden(self, session, principals):
        with pytest.raises(ForbiddenError):
            await service.create_user(
                session,
                principals["recruiter"],
                {"email": "x@acme-corp.com", "name": "X", "role": UserRole.RECRUITER},
            )


class TestUserModeration:

    @pytest.mark.asyncio
    async def test_suspend_user(self, session, principals, users):
        user = await service.update_user_status(
            session, users["student"].id, principals["admin"], UserStatus.SUSPENDED, "Spam"
        )
        assert user.status == UserStatus.SUSPENDED
        assert not user.is_active

    @pytest.mark.asyncio
    async def test_admin_cannot_change_own_status(self, session, principals, users):
        with pytest.raises(InvalidStateError):
            await service.update_user_status(
                session, users["admin"].id, principals["admin"], UserStatus.SUSPENDED
            )

    @pytest.mark.asyncio
    async def test_list_users_by_role(self, session, users):
        page = await service.list_users(session, role=UserRole.STUDENT)
        assert page.total == 3
        assert all(u.role == UserRole.STUDENT for u in page.items)


class TestUpdateProfile:

    @pytest.mark.asyncio
    async def test_user_edits_own_profile(self, session, principals, users):
        user = await service.update_profile(
            session,
            users["student"].id,
            principals["student"],
            {"name": "Samantha Student", "student_profile": {"major": "Maths"}},
        )

        assert user.name == "Samantha Student"
        assert user.student_profile == {"major": "Maths"}
        assert user.email == "sam@university.edu"

    @pytest.mark.asyncio
    async def test_admin_edits_any_profile(self, session, principals, users):
        user = await service.update_profile(
            session, users["recruiter"].id, principals["admin"], {"phone": "+49 30 1234567"}
        )
        assert user.phone == "+49 30 1234567"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("caller", ["other_student", "recruiter"])
    async def test_other_users_forbidden(self, session, principals, users, caller):
        with pytest.raises(ForbiddenError):
            await service.update_profile(
                session, users["student"].id, principals[caller], {"name": "Mallory"}
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field,value", [
        ("role", UserRole.ADMIN),
        ("status", UserStatus.ACTIVE),
        ("email", "new@university.edu"),
    ])
    async def test_account_fields_rejected(self, session, principals, users, field, value):
        with pytest.raises(ValidationError):
            await service.update_profile(
                session, users["student"].id, principals["student"], {field: value}
            )

        assert users["student"].role == UserRole.STUDENT

    @pytest.mark.asyncio
    async def test_empty_name_rejected(self, session, principals, users):
        with pytest.raises(ValidationError):
            await service.update_profile(
                session, users["student"].id, principals["student"], {"name": ""}
            )

    @pytest.mark.asyncio
    async def test_get_user(self, session, users):
        user = await service.get_user(session, users["recruiter"].id)
        assert user.company == "Acme Corp"
