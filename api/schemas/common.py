"""Common Pydantic schemas shared across the API."""

from datetime import datetime
from typing import Any, Generic, TypeVar, Optional
from pydantic import BaseModel, ConfigDict, Field


T = TypeVar("T")


class PaginationParams(BaseModel):
    """Pagination query parameters."""

    page: int = Field(default=1, ge=1, description="Page number (1-indexed)")
    limit: int = Field(default=10, ge=1, le=100, description="Items per page")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated response wrapper."""

    model_config = ConfigDict(from_attributes=True)

    items: list[T] = Field(description="List of items for this page")
    page: int = Field(ge=1, description="Current page number")
    limit: int = Field(ge=1, le=100, description="Items per page")
    total: int = Field(ge=0, description="Total number of items across all pages")
    pages: int = Field(ge=0, description="Total number of pages")


class TimestampMixin(BaseModel):
    """Mixin for timestamp fields."""

    created_at: datetime = Field(description="Timestamp when the resource was created")
    updated_at: datetime = Field(description="Timestamp when the resource was last updated")


class ErrorBody(BaseModel):
    code: str = Field(description="Error code for programmatic handling")
    message: str = Field(description="Human readable error message")
    path: str
    method: str
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Error envelope returned for every failed request."""

    error: ErrorBody


# OpenAPI documentation for the error envelope
ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status_code: {"model": ErrorResponse}
    for status_code in (400, 401, 403, 404, 409, 422)
}
