"""Response envelopes shared by all endpoints.

Successful responses are ``{"success": true, "data": ...}``, optionally with a
``meta`` block for paginated lists. Failures are
``{"success": false, "error": "<message>"}``.
"""

from __future__ import annotations

import math
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class PaginationMeta(BaseModel):
    """Pagination information for list responses."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    total: int = Field(..., ge=0, description="Number of items before slicing")
    page: int = Field(..., ge=1, description="Current page number (1-indexed)")
    limit: int = Field(..., ge=1, description="Number of items per page")
    total_pages: int = Field(..., ge=0, alias="totalPages", description="Number of pages")

    @classmethod
    def calculate(cls, total: int, page: int, limit: int) -> PaginationMeta:
        return cls(
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit),
        )


class DataResponse(BaseModel, Generic[T]):
    """Successful response carrying a payload."""

    model_config = ConfigDict(extra="forbid")

    success: bool = Field(default=True, description="Indicates successful response")
    data: T = Field(..., description="Response payload")


class PaginatedResponse(BaseModel, Generic[T]):
    """Successful response carrying one page of a list."""

    model_config = ConfigDict(extra="forbid")

    success: bool = Field(default=True, description="Indicates successful response")
    data: T = Field(..., description="Response payload")
    meta: PaginationMeta = Field(..., description="Pagination info")


class ErrorResponse(BaseModel):
    """Standardized error response schema."""

    model_config = ConfigDict(extra="forbid")

    success: bool = Field(default=False, description="Always false for error responses")
    error: str = Field(..., description="Human-readable error message")
    code: str | None = Field(default=None, description="Machine-readable error code")
    correlation_id: str | None = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str
    message: str


class ReadinessResponse(BaseModel):
    status: str
    database: bool
