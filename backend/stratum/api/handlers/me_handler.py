"""
Me handler.
Returns the caller's identity and the clusters it belongs to.
"""

from fastapi import APIRouter

from stratum.api.dependencies import CurrentIdentity, MembershipServiceDep
from stratum.shared.schemas.common import SuccessResponse
from stratum.shared.schemas.membership import MeResponse, MembershipSummary

router = APIRouter()


@router.get("", response_model=SuccessResponse[MeResponse])
async def get_me(
    identity: CurrentIdentity,
    service: MembershipServiceDep,
):
    memberships = await service.memberships_of(identity)
    return SuccessResponse[MeResponse](
        data=MeResponse(
            identity_id=identity.identity_id,
            email=identity.email,
            memberships=[MembershipSummary.model_validate(m) for m in memberships],
        )
    )
