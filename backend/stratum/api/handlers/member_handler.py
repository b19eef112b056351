"""
Member handler.
Handles the membership registry of one cluster.

    GET    /clusters/{cluster_id}/members
    POST   /clusters/{cluster_id}/members                 201, 409 if already a member
    PATCH  /clusters/{cluster_id}/members/{identity_id}
    DELETE /clusters/{cluster_id}/members/{identity_id}   204
"""

from uuid import UUID

from fastapi import APIRouter, Response, status

from stratum.api.dependencies import CurrentIdentity, MemberListFilter, MembershipServiceDep, Pagination
from stratum.api.handlers.envelope import ok, paginated
from stratum.shared.schemas.common import SuccessResponse
from stratum.shared.schemas.membership import MemberCreate, MemberResponse, MemberUpdate

router = APIRouter()


@router.get("", response_model=SuccessResponse[list[MemberResponse]])
async def list_members(
    cluster_id: UUID,
    identity: CurrentIdentity,
    service: MembershipServiceDep,
    pagination: Pagination,
    list_filter: MemberListFilter,
):
    """
    List the members of a cluster.

    sort_by accepts identity_id, role or created_at; search matches the
    identity id or the comment.
    """
    members, total = await service.list_members(identity, cluster_id, list_filter)
    return paginated(MemberResponse, members, total, pagination)


@router.post("", response_model=SuccessResponse[MemberResponse], status_code=status.HTTP_201_CREATED)
async def add_member(
    cluster_id: UUID,
    data: MemberCreate,
    identity: CurrentIdentity,
    service: MembershipServiceDep,
):
    membership = await service.add_member(
        identity,
        cluster_id,
        identity_id=data.identity_id,
        role=data.role,
        comment=data.comment,
    )
    return ok(MemberResponse, membership)


@router.patch("/{identity_id}", response_model=SuccessResponse[MemberResponse])
async def update_member(
    cluster_id: UUID,
    identity_id: str,
    data: MemberUpdate,
    identity: CurrentIdentity,
    service: MembershipServiceDep,
):
    """
    Change a member's role and/or comment.

    Granting or taking away the owner role needs the owner role; the last
    owner cannot be demoted.
    """
    changes = data.model_dump(exclude_unset=True)
    membership = await service.update_member(identity, cluster_id, identity_id, **changes)
    return ok(MemberResponse, membership)


@router.delete("/{identity_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    cluster_id: UUID,
    identity_id: str,
    identity: CurrentIdentity,
    service: MembershipServiceDep,
):
    await service.remove_member(identity, cluster_id, identity_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
