"""
API Services Layer.

Database operations behind the API endpoints. Services take the session and
the calling principal explicitly and raise ``core.exceptions`` errors.
"""

from api.services.applications import (
    submit_application,
    get_application,
    list_applications,
    update_status,
    schedule_interview,
    withdraw_application,
    update_notes,
    record_feedback,
    get_application_stats,
)

from api.services.jobs import (
    create_job,
    get_job,
    list_jobs,
    update_job,
    update_job_status,
    flag_job,
    toggle_bookmark,
    recompute_job_counters,
    reconcile_job_counters,
)

from api.services.users import (
    create_user,
    get_user,
    list_users,
    update_profile,
    update_user_status,
)

from api.services.pagination import Page

__all__ = [
    # Applications
    "submit_application",
    "get_application",
    "list_applications",
    "update_status",
    "schedule_interview",
    "withdraw_application",
    "update_notes",
    "record_feedback",
    "get_application_stats",
    # Jobs
    "create_job",
    "get_job",
    "list_jobs",
    "update_job",
    "update_job_status",
    "flag_job",
    "toggle_bookmark",
    "recompute_job_counters",
    "reconcile_job_counters",
    # Users
    "create_user",
    "get_user",
    "list_users",
    "update_profile",
    "update_user_status",
    # Pagination
    "Page",
]
