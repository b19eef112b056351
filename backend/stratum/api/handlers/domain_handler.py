"""
Domain handler.
Handles domain lifecycle and the resources linked into a domain.

Domains are reached through the clusters they are linked to; a domain in
no cluster the caller belongs to answers 404.
"""

from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from stratum.api.dependencies import (
    CurrentIdentity,
    DomainServiceDep,
    HierarchyListFilter,
    Pagination,
    RelationshipServiceDep,
    ResourceServiceDep,
)
from stratum.api.handlers.envelope import ok, paginated
from stratum.shared.schemas.common import SuccessResponse
from stratum.shared.schemas.hierarchy import (
    DomainResponse,
    DomainUpdate,
    LinkResponse,
    ResourceCreate,
    ResourceResponse,
)

router = APIRouter()


@router.get("/{domain_id}", response_model=SuccessResponse[DomainResponse])
async def get_domain(
    domain_id: UUID,
    identity: CurrentIdentity,
    service: DomainServiceDep,
):
    domain = await service.get_domain(identity, domain_id)
    return ok(DomainResponse, domain)


@router.patch("/{domain_id}", response_model=SuccessResponse[DomainResponse])
async def update_domain(
    domain_id: UUID,
    data: DomainUpdate,
    identity: CurrentIdentity,
    service: DomainServiceDep,
):
    domain = await service.update_domain(identity, domain_id, data.model_dump(exclude_unset=True))
    return ok(DomainResponse, domain)


@router.delete("/{domain_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_domain(
    domain_id: UUID,
    identity: CurrentIdentity,
    service: DomainServiceDep,
    hard: bool = Query(False, description="Remove the row instead of marking it deleted"),
):
    """Delete a domain. Fails with 409 while a live resource is still linked."""
    await service.delete_domain(identity, domain_id, hard=hard)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ═══════════════════════════════════════════════════════════════════════════════
# RESOURCES IN A DOMAIN
# ═══════════════════════════════════════════════════════════════════════════════


@router.get("/{domain_id}/resources", response_model=SuccessResponse[list[ResourceResponse]])
async def list_domain_resources(
    domain_id: UUID,
    identity: CurrentIdentity,
    service: ResourceServiceDep,
    pagination: Pagination,
    list_filter: HierarchyListFilter,
):
    resources, total = await service.list_for_domain(identity, domain_id, list_filter)
    return paginated(ResourceResponse, resources, total, pagination)


@router.post(
    "/{domain_id}/resources",
    response_model=SuccessResponse[ResourceResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_domain_resource(
    domain_id: UUID,
    data: ResourceCreate,
    identity: CurrentIdentity,
    service: ResourceServiceDep,
):
    """Create a resource and link it to the domain."""
    resource = await service.create_in_domain(identity, domain_id, data.model_dump())
    return ok(ResourceResponse, resource)


@router.post("/{domain_id}/resources/{resource_id}", response_model=SuccessResponse[LinkResponse])
async def link_resource(
    domain_id: UUID,
    resource_id: UUID,
    identity: CurrentIdentity,
    service: RelationshipServiceDep,
    response: Response,
):
    """Idempotent link: 201 when new, 200 when the pair was already linked."""
    result = await service.link_resource(identity, domain_id, resource_id)
    response.status_code = status.HTTP_201_CREATED if result.changed else status.HTTP_200_OK
    return SuccessResponse[LinkResponse](
        data=LinkResponse(parent_id=result.parent_id, child_id=result.child_id, linked=True, changed=result.changed)
    )


@router.delete("/{domain_id}/resources/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unlink_resource(
    domain_id: UUID,
    resource_id: UUID,
    identity: CurrentIdentity,
    service: RelationshipServiceDep,
):
    await service.unlink_resource(identity, domain_id, resource_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
