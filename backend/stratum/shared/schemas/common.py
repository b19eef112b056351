"""
Common Schemas

Shared schemas for the response envelope and pagination. The failure
envelope is built by StratumException.to_dict() in the error handlers.

Envelope:
=========
    success → {"success": true,  "data": ..., "meta": {...}?}
    failure → {"success": false, "error": "...", "error_code": "...",
               "errors": [...]?, "field_errors": {...}?}

Usage:
======
    from stratum.shared.schemas.common import SuccessResponse, PaginationMeta

    return SuccessResponse[list[ClusterResponse]](
        data=clusters,
        meta=PaginationMeta.create(page=1, per_page=25, total=100),
    )
"""

from datetime import datetime, timezone
from typing import Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field


DataT = TypeVar("DataT")


class BaseSchema(BaseModel):
    """
    Base schema with common configuration.

    Provides:
    - from_attributes: Allow creating from ORM models
    - populate_by_name: Allow field population by name or alias
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# PAGINATION & SORTING
# ═══════════════════════════════════════════════════════════════════════════════


class PaginationParams(BaseModel):
    """Parsed page/per_page query parameters."""

    page: int = Field(default=1, ge=1, description="Page number (1-indexed)")
    per_page: int = Field(default=25, ge=1, le=100, description="Items per page")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    @property
    def limit(self) -> int:
        return self.per_page


class PaginationMeta(BaseModel):
    """Pagination metadata returned under "meta"."""

    page: int = Field(description="Current page number")
    per_page: int = Field(description="Items per page")
    total: int = Field(description="Total number of items")
    total_pages: int = Field(description="Total number of pages")

    @classmethod
    def create(cls, page: int, per_page: int, total: int) -> "PaginationMeta":
        total_pages = (total + per_page - 1) // per_page if per_page > 0 else 0
        return cls(
            page=page,
            per_page=per_page,
            total=total,
            total_pages=total_pages,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# ENVELOPE
# ═══════════════════════════════════════════════════════════════════════════════


class SuccessResponse(BaseModel, Generic[DataT]):
    """
    Success envelope.

    Example:
        SuccessResponse[ClusterResponse](data=cluster)
    """

    success: Literal[True] = True
    data: DataT
    meta: Optional[PaginationMeta] = None


# ═══════════════════════════════════════════════════════════════════════════════
# HEALTH CHECK
# ═══════════════════════════════════════════════════════════════════════════════


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str = "healthy"
    service: str = "stratum"
    version: str = "1.0.0"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# ═══════════════════════════════════════════════════════════════════════════════
# MIXINS
# ═══════════════════════════════════════════════════════════════════════════════


class TimestampMixin(BaseModel):
    """Mixin for timestamp fields in responses."""

    created_at: datetime
    updated_at: datetime
