"""
Pydantic Schemas

Request validation and response serialization for the API.

Usage:
======
    from stratum.shared.schemas import ClusterCreate, ClusterResponse, SuccessResponse
"""

from stratum.shared.schemas.common import (
    BaseSchema,
    PaginationParams,
    PaginationMeta,
    SuccessResponse,
    HealthResponse,
)
from stratum.shared.schemas.hierarchy import (
    ClusterCreate,
    ClusterUpdate,
    ClusterResponse,
    DomainCreate,
    DomainUpdate,
    DomainResponse,
    ResourceCreate,
    ResourceUpdate,
    ResourceResponse,
    LinkResponse,
)
from stratum.shared.schemas.membership import (
    MemberCreate,
    MemberUpdate,
    MemberResponse,
    MembershipSummary,
    MeResponse,
)

__all__ = [
    # Common
    "BaseSchema",
    "PaginationParams",
    "PaginationMeta",
    "SuccessResponse",
    "HealthResponse",
    # Hierarchy
    "ClusterCreate",
    "ClusterUpdate",
    "ClusterResponse",
    "DomainCreate",
    "DomainUpdate",
    "DomainResponse",
    "ResourceCreate",
    "ResourceUpdate",
    "ResourceResponse",
    "LinkResponse",
    # Membership
    "MemberCreate",
    "MemberUpdate",
    "MemberResponse",
    "MembershipSummary",
    "MeResponse",
]
