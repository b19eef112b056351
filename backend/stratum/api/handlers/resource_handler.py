"""
Resource handler.
Handles resource retrieval, edits and deletion.
"""

from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from stratum.api.dependencies import CurrentIdentity, ResourceServiceDep
from stratum.api.handlers.envelope import ok
from stratum.shared.schemas.common import SuccessResponse
from stratum.shared.schemas.hierarchy import ResourceResponse, ResourceUpdate

router = APIRouter()


@router.get("/{resource_id}", response_model=SuccessResponse[ResourceResponse])
async def get_resource(
    resource_id: UUID,
    identity: CurrentIdentity,
    service: ResourceServiceDep,
):
    resource = await service.get_resource(identity, resource_id)
    return ok(ResourceResponse, resource)


@router.patch("/{resource_id}", response_model=SuccessResponse[ResourceResponse])
async def update_resource(
    resource_id: UUID,
    data: ResourceUpdate,
    identity: CurrentIdentity,
    service: ResourceServiceDep,
):
    """Edit name, type or configuration. Requires admin or owner in a linked cluster."""
    resource = await service.update_resource(identity, resource_id, data.model_dump(exclude_unset=True))
    return ok(ResourceResponse, resource)


@router.delete("/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_resource(
    resource_id: UUID,
    identity: CurrentIdentity,
    service: ResourceServiceDep,
    hard: bool = Query(False, description="Remove the row instead of marking it deleted"),
):
    await service.delete_resource(identity, resource_id, hard=hard)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
