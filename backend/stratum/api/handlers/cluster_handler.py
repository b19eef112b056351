"""
Cluster handler.
Handles cluster lifecycle and the domains linked into a cluster.

ARCHITECTURE NOTE:
This handler follows the layered architecture:
  Handler → Service → Repository → Model

Handlers should ONLY:
- Parse HTTP requests
- Call service methods
- Format HTTP responses

Authorization and invariants live in the SERVICE layer; errors raised there
are turned into the failure envelope by the global exception handlers.
"""

from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from stratum.api.dependencies import (
    ClusterServiceDep,
    CurrentIdentity,
    DomainServiceDep,
    HierarchyListFilter,
    Pagination,
    RelationshipServiceDep,
)
from stratum.api.handlers.envelope import ok, paginated
from stratum.shared.schemas.common import SuccessResponse
from stratum.shared.schemas.hierarchy import (
    ClusterCreate,
    ClusterResponse,
    ClusterUpdate,
    DomainCreate,
    DomainResponse,
    LinkResponse,
)

router = APIRouter()


# ═══════════════════════════════════════════════════════════════════════════════
# CLUSTERS
# ═══════════════════════════════════════════════════════════════════════════════


@router.get("", response_model=SuccessResponse[list[ClusterResponse]])
async def list_clusters(
    identity: CurrentIdentity,
    service: ClusterServiceDep,
    pagination: Pagination,
    list_filter: HierarchyListFilter,
):
    """
    List clusters the caller is a member of.

    Supports page/per_page, sort_by (name, created_at, updated_at),
    sort_order and a case-insensitive search over name and description.
    """
    clusters, total = await service.list_clusters(identity, list_filter)
    return paginated(ClusterResponse, clusters, total, pagination)


@router.post("", response_model=SuccessResponse[ClusterResponse], status_code=status.HTTP_201_CREATED)
async def create_cluster(
    data: ClusterCreate,
    identity: CurrentIdentity,
    service: ClusterServiceDep,
):
    """Create a cluster. The caller becomes its first owner."""
    cluster = await service.create_cluster(identity, data.model_dump())
    return ok(ClusterResponse, cluster)


@router.get("/{cluster_id}", response_model=SuccessResponse[ClusterResponse])
async def get_cluster(
    cluster_id: UUID,
    identity: CurrentIdentity,
    service: ClusterServiceDep,
):
    cluster = await service.get_cluster(identity, cluster_id)
    return ok(ClusterResponse, cluster)


@router.patch("/{cluster_id}", response_model=SuccessResponse[ClusterResponse])
async def update_cluster(
    cluster_id: UUID,
    data: ClusterUpdate,
    identity: CurrentIdentity,
    service: ClusterServiceDep,
):
    """Edit name and/or description. Requires admin or owner."""
    cluster = await service.update_cluster(identity, cluster_id, data.model_dump(exclude_unset=True))
    return ok(ClusterResponse, cluster)


@router.delete("/{cluster_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_cluster(
    cluster_id: UUID,
    identity: CurrentIdentity,
    service: ClusterServiceDep,
    hard: bool = Query(False, description="Remove the row instead of marking it deleted"),
):
    """
    Delete a cluster (owners only).

    Fails with 409 while a live domain is still linked.
    """
    await service.delete_cluster(identity, cluster_id, hard=hard)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ═══════════════════════════════════════════════════════════════════════════════
# DOMAINS IN A CLUSTER
# ═══════════════════════════════════════════════════════════════════════════════


@router.get("/{cluster_id}/domains", response_model=SuccessResponse[list[DomainResponse]])
async def list_cluster_domains(
    cluster_id: UUID,
    identity: CurrentIdentity,
    service: DomainServiceDep,
    pagination: Pagination,
    list_filter: HierarchyListFilter,
):
    domains, total = await service.list_for_cluster(identity, cluster_id, list_filter)
    return paginated(DomainResponse, domains, total, pagination)


@router.post(
    "/{cluster_id}/domains",
    response_model=SuccessResponse[DomainResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_cluster_domain(
    cluster_id: UUID,
    data: DomainCreate,
    identity: CurrentIdentity,
    service: DomainServiceDep,
):
    """Create a domain and link it to the cluster."""
    domain = await service.create_in_cluster(identity, cluster_id, data.model_dump())
    return ok(DomainResponse, domain)


@router.post("/{cluster_id}/domains/{domain_id}", response_model=SuccessResponse[LinkResponse])
async def link_domain(
    cluster_id: UUID,
    domain_id: UUID,
    identity: CurrentIdentity,
    service: RelationshipServiceDep,
    response: Response,
):
    """
    Link an existing domain into the cluster.

    Idempotent: 201 when the link is new, 200 when it already existed.
    """
    result = await service.link_domain(identity, cluster_id, domain_id)
    response.status_code = status.HTTP_201_CREATED if result.changed else status.HTTP_200_OK
    return SuccessResponse[LinkResponse](
        data=LinkResponse(parent_id=result.parent_id, child_id=result.child_id, linked=True, changed=result.changed)
    )


@router.delete("/{cluster_id}/domains/{domain_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unlink_domain(
    cluster_id: UUID,
    domain_id: UUID,
    identity: CurrentIdentity,
    service: RelationshipServiceDep,
):
    """Unlink a domain from the cluster. Unlinking an absent pair also answers 204."""
    await service.unlink_domain(identity, cluster_id, domain_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
