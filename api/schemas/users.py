"""User-related Pydantic schemas."""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from api.schemas.common import TimestampMixin
from database.models.users import UserRole, UserStatus


class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1, max_length=100)
    role: UserRole = UserRole.STUDENT
    status: UserStatus = UserStatus.ACTIVE
    phone: Optional[str] = Field(None, max_length=50)
    student_profile: Optional[dict[str, Any]] = None
    recruiter_profile: Optional[dict[str, Any]] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        """Strip whitespace from the display name."""
        return v.strip() if isinstance(v, str) else v


class UserProfileUpdate(BaseModel):
    """Profile fields an account holder may edit. Role and status are admin-managed."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    student_profile: Optional[dict[str, Any]] = None
    recruiter_profile: Optional[dict[str, Any]] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class UserStatusUpdate(BaseModel):
    status: UserStatus
    reason: Optional[str] = Field(None, max_length=500)


class UserResponse(TimestampMixin):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: EmailStr
    name: str
    role: UserRole
    status: UserStatus
    phone: Optional[str] = None
    student_profile: Optional[dict[str, Any]] = None
    recruiter_profile: Optional[dict[str, Any]] = None
