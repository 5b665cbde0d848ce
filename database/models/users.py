"""
User Models

Platform accounts. Every user has exactly one role; students and recruiters
carry a role-specific profile document.
"""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    DateTime,
    func,
    JSON,
    Enum as SQLEnum,
    Index,
)
from database.engine import Base, BigIntPK, enum_values
from core.utils.datetime import now
from datetime import datetime
from enum import Enum as PyEnum
from typing import Any


# ==================== User Enums ===================== #
class UserRole(str, PyEnum):
    STUDENT = "student"
    RECRUITER = "recruiter"
    ADMIN = "admin"


class UserStatus(str, PyEnum):
    """Account moderation state."""

    ACTIVE = "active"
    PENDING = "pending"  # awaiting admin approval (recruiters)
    SUSPENDED = "suspended"


# ==================== User Model ===================== #
class User(Base):
    """A student, recruiter or administrator account."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole, native_enum=False, length=50, values_callable=enum_values),
        nullable=False,
        default=UserRole.STUDENT,
    )
    status: Mapped[UserStatus] = mapped_column(
        SQLEnum(UserStatus, native_enum=False, length=50, values_callable=enum_values),
        nullable=False,
        default=UserStatus.ACTIVE,
    )
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Role-specific profiles
    # student: university, major, graduation_year, gpa, skills, portfolio...
    student_profile: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    # recruiter: company, position, company_website, company_size, industry...
    recruiter_profile: Mapped[dict[str, Any] | None] = mapped_column(
        JSON, nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=now,
        server_default=func.now(),
        onupdate=now,
    )

    __table_args__ = (
        Index("idx_users_role_status", "role", "status"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    @property
    def company(self) -> str | None:
        if self.recruiter_profile:
            return self.recruiter_profile.get("company")
        return None

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
