"""
Tests for job postings, bookmarks and cached counters.

Tests:
- Posting creation and company defaulting
- View counting
- Listing filters
- Content edits by owners and admins
- Status moderation and flagging
- Bookmark toggling
- Counter recompute and reconciliation
"""

import pytest

from api.services import applications as application_service
from api.services import jobs as service
from core.exceptions import ForbiddenError, NotFoundError, ValidationError
from database.models.jobs import JobStatus, JobType


class TestCreateJob:
    """Recruiters posting jobs."""

    @pytest.mark.asyncio
    async def test_company_defaults_from_recruiter_profile(self, session, principals, users):
        job = await service.create_job(
            session,
            principals["recruiter"],
            {"title": "Data Intern", "description": "Pipelines", "location": "Remote",
             "job_type": JobType.INTERNSHIP},
        )

        assert job.company == "Acme Corp"
        assert job.recruiter_id == users["recruiter"].id
        assert job.status == JobStatus.ACTIVE
        assert job.application_count == 0

    @pytest.mark.asyncio
    async def test_students_cannot_post(self, session, principals):
        with pytest.raises(ForbiddenError):
            await service.create_job(
                session,
                principals["student"],
                {"title": "x", "description": "y", "location": "z",
                 "job_type": JobType.FULL_TIME},
            )

    @pytest.mark.asyncio
    async def test_cannot_start_approved(self, session, principals):
        with pytest.raises(ValidationError):
            await service.create_job(
                session,
                principals["recruiter"],
                {"title": "x", "description": "y", "location": "z",
                 "job_type": JobType.FULL_TIME, "status": JobStatus.APPROVED},
            )


class TestGetAndListJobs:
    """Reading job postings."""

    @pytest.mark.asyncio
    async def test_each_read_counts_a_view(self, session, job):
        await service.get_job(session, job.id)
        fetched = await service.get_job(session, job.id)

        await session.refresh(fetched)
        assert fetched.view_count == 2

    @pytest.mark.asyncio
    async def test_view_counting_can_be_skipped(self, session, job):
        fetched = await service.get_job(session, job.id, count_view=False)
        assert fetched.view_count == 0

    @pytest.mark.asyncio
    async def test_missing_job(self, session, users):
        with pytest.raises(NotFoundError):
            await service.get_job(session, 404)

    @pytest.mark.asyncio
    async def test_listing_defaults_to_active_jobs(self, session, make_job):
        active = await make_job(title="Active role")
        await make_job(title="Draft role", status=JobStatus.DRAFT)

        page = await service.list_jobs(session)

        assert [j.id for j in page.items] == [active.id]

    @pytest.mark.asyncio
    async def test_listing_filters(self, session, make_job, users):
        remote = await make_job(title="Remote Python Dev", location="Anywhere", is_remote=True)
        await make_job(title="Office Java Dev", location="Munich")
        await make_job(
            title="Globex Analyst",
            company="Globex",
            recruiter_id=users["other_recruiter"].id,
            job_type=JobType.FULL_TIME,
        )

        assert [j.id for j in (await service.list_jobs(session, search="python")).items] == [remote.id]
        assert (await service.list_jobs(session, location="munich")).total == 1
        assert (await service.list_jobs(session, is_remote=True)).total == 1
        assert (await service.list_jobs(session, job_type=JobType.FULL_TIME)).total == 1
        assert (await service.list_jobs(session, search="globex")).total == 1
        assert (
            await service.list_jobs(session, recruiter_id=users["recruiter"].id)
        ).total == 2


class TestUpdateJob:
    """Editing a posting's content."""

    @pytest.mark.asyncio
    async def test_owner_edits_content(self, session, job, principals):
        updated = await service.update_job(
            session,
            job.id,
            principals["recruiter"],
            {"title": "Senior Backend Intern", "tags": ["python", "sql"],
             "salary": {"min": 1000, "max": 1500, "currency": "EUR", "period": "month"}},
        )

        assert updated.title == "Senior Backend Intern"
        assert updated.tags == ["python", "sql"]
        assert updated.salary["currency"] == "EUR"
        assert updated.location == "Berlin"
        assert updated.status == JobStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_admin_edits_any_job(self, session, job, principals):
        updated = await service.update_job(
            session, job.id, principals["admin"], {"location": "Hamburg"}
        )
        assert updated.location == "Hamburg"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", ["other_recruiter", "student"])
    async def test_non_owner_forbidden(self, session, job, principals, role):
        with pytest.raises(ForbiddenError):
            await service.update_job(session, job.id, principals[role], {"title": "Hijacked"})

        assert job.title == "Backend Engineering Intern"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field,value", [
        ("status", JobStatus.CLOSED),
        ("recruiter_id", 999),
        ("application_count", 50),
        ("view_count", 1000),
        ("bookmark_count", 7),
        ("flagged", False),
    ])
    async def test_protected_fields_rejected(self, session, job, principals, field, value):
        with pytest.raises(ValidationError) as exc_info:
            await service.update_job(
                session, job.id, principals["recruiter"], {"title": "New", field: value}
            )

        assert exc_info.value.details == {"fields": [field]}
        assert job.title == "Backend Engineering Intern"

    @pytest.mark.asyncio
    async def test_required_field_cannot_be_cleared(self, session, job, principals):
        with pytest.raises(ValidationError):
            await service.update_job(session, job.id, principals["recruiter"], {"company": None})

    @pytest.mark.asyncio
    async def test_optional_field_can_be_cleared(self, session, make_job, principals, past_deadline):
        job = await make_job(application_deadline=past_deadline)

        updated = await service.update_job(
            session, job.id, principals["recruiter"], {"application_deadline": None}
        )

        assert updated.application_deadline is None
        assert not updated.deadline_passed()

    @pytest.mark.asyncio
    async def test_missing_job(self, session, principals):
        with pytest.raises(NotFoundError):
            await service.update_job(session, 404, principals["admin"], {"title": "x"})


class TestJobModeration:
    """Status changes and flags."""

    @pytest.mark.asyncio
    async def test_owner_can_pause(self, session, job, principals):
        updated = await service.update_job_status(
            session, job.id, principals["recruiter"], JobStatus.PAUSED
        )
        assert updated.status == JobStatus.PAUSED

    @pytest.mark.asyncio
    async def test_other_recruiter_forbidden(self, session, job, principals):
        with pytest.raises(ForbiddenError):
            await service.update_job_status(
                session, job.id, principals["other_recruiter"], JobStatus.CLOSED
            )

    @pytest.mark.asyncio
    async def test_recruiter_cannot_approve(self, session, job, principals):
        with pytest.raises(ForbiddenError):
            await service.update_job_status(
                session, job.id, principals["recruiter"], JobStatus.APPROVED
            )

    @pytest.mark.asyncio
    async def test_admin_moderates_with_notes(self, session, job, principals):
        updated = await service.update_job_status(
            session, job.id, principals["admin"], JobStatus.REJECTED, "Misleading salary"
        )
        assert updated.status == JobStatus.REJECTED
        assert updated.admin_notes == "Misleading salary"

    @pytest.mark.asyncio
    async def test_flag_and_unflag(self, session, job, principals):
        flagged = await service.flag_job(session, job.id, principals["admin"], True, "Spam")
        assert flagged.flagged is True
        assert flagged.flag_reason == "Spam"

        cleared = await service.flag_job(session, job.id, principals["admin"], False, "Spam")
        assert cleared.flagged is False
        assert cleared.flag_reason is None

    @pytest.mark.asyncio
    async def test_only_admin_flags(self, session, job, principals):
        with pytest.raises(ForbiddenError):
            await service.flag_job(session, job.id, principals["recruiter"])


class TestBookmarks:
    """Student bookmarks."""

    @pytest.mark.asyncio
    async def test_toggle_on_and_off(self, session, job, principals):
        added = await service.toggle_bookmark(session, job.id, principals["student"])
        assert added == {"job_id": job.id, "bookmarked": True, "bookmark_count": 1}

        removed = await service.toggle_bookmark(session, job.id, principals["student"])
        assert removed == {"job_id": job.id, "bookmarked": False, "bookmark_count": 0}

    @pytest.mark.asyncio
    async def test_bookmarks_are_per_student(self, session, job, principals):
        await service.toggle_bookmark(session, job.id, principals["student"])
        result = await service.toggle_bookmark(session, job.id, principals["other_student"])

        assert result["bookmark_count"] == 2

    @pytest.mark.asyncio
    async def test_recruiters_cannot_bookmark(self, session, job, principals):
        with pytest.raises(ForbiddenError):
            await service.toggle_bookmark(session, job.id, principals["recruiter"])


class TestCounterRecompute:
    """Advisory counters rebuilt from their source tables."""

    @pytest.mark.asyncio
    async def test_recompute_repairs_drift(self, session, job, principals):
        await application_service.submit_application(session, job.id, principals["student"])
        await service.toggle_bookmark(session, job.id, principals["other_student"])

        job.application_count = 7
        job.bookmark_count = 0
        await session.commit()

        report = await service.recompute_job_counters(session, job.id, principals["admin"])

        assert report["before"] == {"application_count": 7, "bookmark_count": 0}
        assert report["after"] == {"application_count": 1, "bookmark_count": 1}
        await session.refresh(job)
        assert job.application_count == 1
        assert job.bookmark_count == 1

    @pytest.mark.asyncio
    async def test_recompute_without_drift_is_a_no_op(self, session, job, principals):
        await application_service.submit_application(session, job.id, principals["student"])

        report = await service.recompute_job_counters(session, job.id)

        assert report["before"] == report["after"]

    @pytest.mark.asyncio
    async def test_reconcile_reports_only_changed_jobs(self, session, make_job):
        clean = await make_job(title="Clean")
        drifted = await make_job(title="Drifted")
        drifted.bookmark_count = 3
        await session.commit()

        reports = await service.reconcile_job_counters(session)

        assert [r["job_id"] for r in reports] == [drifted.id]
        await session.refresh(clean)
        assert clean.bookmark_count == 0
