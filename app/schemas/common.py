"""
Common Schemas
==============

Shared Pydantic models for API responses and common data structures.
"""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class SuccessResponse(BaseModel, Generic[T]):
    """Standard success response format"""

    ok: bool = Field(default=True, description="Request success status")
    data: T = Field(..., description="Response data")
    error: Any | None = Field(default=None, description="Error payload (null on success)")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "ok": True,
                "data": {"id": 1, "name": "Home Apiary"},
                "error": None,
            }
        }
    )


class ErrorDetail(BaseModel):
    """Error payload carried by failed responses"""

    message: str = Field(..., description="Human-readable error message")
    timestamp: str = Field(..., description="ISO-8601 UTC time of the failure")


class ErrorResponse(BaseModel):
    """Standard error response format"""

    ok: bool = Field(default=False, description="Request success status")
    data: Any | None = Field(default=None, description="Data (null on error)")
    error: ErrorDetail = Field(..., description="Error payload")
    message: str = Field(..., description="Copy of error.message")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "ok": False,
                "data": None,
                "error": {"message": "Apiary 7 not found", "timestamp": "2026-05-01T08:00:00+00:00"},
                "message": "Apiary 7 not found",
            }
        }
    )


class PageQuery(BaseModel):
    """``page`` / ``pageSize`` query parameters; clamping happens in the pagination layer"""

    page: int = Field(default=1, description="1-based page number")
    page_size: int = Field(default=10, alias="pageSize", description="Items per page (1..50)")

    model_config = ConfigDict(populate_by_name=True)


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated listing carried in ``data``"""

    data: list[T] = Field(..., description="Items on this page")
    count: int = Field(..., description="Total number of items")
    page: int = Field(..., description="Current page number")
    pageSize: int = Field(..., description="Items per page")
    totalPages: int = Field(..., description="Total number of pages")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "data": [{"id": 1}, {"id": 2}],
                "count": 12,
                "page": 1,
                "pageSize": 10,
                "totalPages": 2,
            }
        }
    )
