"""
API Dependencies

FastAPI dependencies for injection into route handlers.

Dependencies:
=============
- Authentication: get_current_identity(), CurrentIdentity
- Database: get_db(), DbSession (identity-bound)
- Services: get_*_service() functions, *ServiceDep aliases
- Pagination: get_pagination(), get_list_filter()

Usage:
======
    from stratum.api.dependencies import CurrentIdentity, ClusterServiceDep

    @router.get("/clusters/{cluster_id}")
    async def get_cluster(cluster_id: UUID, identity: CurrentIdentity, service: ClusterServiceDep):
        return await service.get_cluster(identity, cluster_id)
"""

from stratum.api.dependencies.auth import (
    get_current_identity,
    get_current_token_payload,
    CurrentIdentity,
)
from stratum.api.dependencies.database import (
    get_db,
    DbSession,
)
from stratum.api.dependencies.services import (
    ClusterServiceDep,
    DomainServiceDep,
    ResourceServiceDep,
    MembershipServiceDep,
    RelationshipServiceDep,
)
from stratum.api.dependencies.pagination import (
    Pagination,
    HierarchyListFilter,
    MemberListFilter,
)

__all__ = [
    # Authentication
    "get_current_identity",
    "get_current_token_payload",
    "CurrentIdentity",
    # Database
    "get_db",
    "DbSession",
    # Services
    "ClusterServiceDep",
    "DomainServiceDep",
    "ResourceServiceDep",
    "MembershipServiceDep",
    "RelationshipServiceDep",
    # Pagination
    "Pagination",
    "HierarchyListFilter",
    "MemberListFilter",
]
