"""Initial schema: users, jobs, bookmarks, applications and timeline

Revision ID: 001_initial_schema
Revises: 
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    """Create the placement schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('role', sa.String(length=50), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('student_profile', sa.JSON(), nullable=True),
        sa.Column('recruiter_profile', sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index('idx_users_role_status', 'users', ['role', 'status'])

    op.create_table(
        'jobs',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('recruiter_id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('company', sa.String(length=200), nullable=False),
        sa.Column('location', sa.String(length=200), nullable=False),
        sa.Column('job_type', sa.String(length=50), nullable=False),
        sa.Column('department', sa.String(length=100), nullable=True),
        sa.Column('salary', sa.JSON(), nullable=True),
        sa.Column('requirements', sa.JSON(), nullable=True),
        sa.Column('benefits', sa.JSON(), nullable=False),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('is_remote', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('is_urgent', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='pending'),
        sa.Column('application_deadline', sa.DateTime(timezone=True), nullable=True),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('application_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('view_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('bookmark_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('flagged', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('flag_reason', sa.Text(), nullable=True),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_jobs_recruiter_id', 'jobs', ['recruiter_id'])
    op.create_index('ix_jobs_status', 'jobs', ['status'])
    op.create_index('idx_jobs_status_created', 'jobs', ['status', 'created_at'])
    op.create_index('idx_jobs_recruiter_status', 'jobs', ['recruiter_id', 'status'])

    op.create_table(
        'job_bookmarks',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('job_id', sa.BigInteger(), sa.ForeignKey('jobs.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('job_id', 'student_id', name='uq_job_bookmark'),
    )
    op.create_index('ix_job_bookmarks_job_id', 'job_bookmarks', ['job_id'])
    op.create_index('ix_job_bookmarks_student_id', 'job_bookmarks', ['student_id'])

    op.create_table(
        'applications',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('job_id', sa.BigInteger(), sa.ForeignKey('jobs.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('recruiter_id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='pending'),
        sa.Column('cover_letter', sa.String(length=2000), nullable=True),
        sa.Column('resume', sa.JSON(), nullable=True),
        sa.Column('answers', sa.JSON(), nullable=False),
        sa.Column('notes', sa.JSON(), nullable=False),
        sa.Column('interview', sa.JSON(), nullable=True),
        sa.Column('feedback', sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('job_id', 'student_id', name='uq_application_job_student'),
    )
    op.create_index('ix_applications_job_id', 'applications', ['job_id'])
    op.create_index('ix_applications_student_id', 'applications', ['student_id'])
    op.create_index('ix_applications_recruiter_id', 'applications', ['recruiter_id'])
    op.create_index('ix_applications_status', 'applications', ['status'])
    op.create_index('idx_applications_student_created', 'applications', ['student_id', 'created_at'])
    op.create_index('idx_applications_recruiter_status', 'applications', ['recruiter_id', 'status'])

    op.create_table(
        'application_timeline',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('application_id', sa.BigInteger(), sa.ForeignKey('applications.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False),
        sa.Column('note', sa.Text(), nullable=False),
        sa.Column('actor_id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_application_timeline_application_id', 'application_timeline', ['application_id'])


def downgrade() -> None:
    """Drop the placement schema."""
    op.drop_table('application_timeline')
    op.drop_table('applications')
    op.drop_table('job_bookmarks')
    op.drop_table('jobs')
    op.drop_table('users')
