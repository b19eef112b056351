"""
Service Dependencies

FastAPI dependencies for service injection. Services are created per
request around the request's identity-bound session.

Usage:
======
    from stratum.api.dependencies.services import ClusterServiceDep

    @router.post("")
    async def create_cluster(data: ClusterCreate, identity: CurrentIdentity, service: ClusterServiceDep):
        return await service.create_cluster(identity, data.model_dump())
"""

from typing import Annotated

from fastapi import Depends

from stratum.api.dependencies.database import DbSession
from stratum.shared.services import (
    ClusterService,
    DomainService,
    MembershipService,
    RelationshipService,
    ResourceService,
)


async def get_cluster_service(db: DbSession) -> ClusterService:
    return ClusterService(db)


async def get_domain_service(db: DbSession) -> DomainService:
    return DomainService(db)


async def get_resource_service(db: DbSession) -> ResourceService:
    return ResourceService(db)


async def get_membership_service(db: DbSession) -> MembershipService:
    return MembershipService(db)


async def get_relationship_service(db: DbSession) -> RelationshipService:
    return RelationshipService(db)


ClusterServiceDep = Annotated[ClusterService, Depends(get_cluster_service)]
DomainServiceDep = Annotated[DomainService, Depends(get_domain_service)]
ResourceServiceDep = Annotated[ResourceService, Depends(get_resource_service)]
MembershipServiceDep = Annotated[MembershipService, Depends(get_membership_service)]
RelationshipServiceDep = Annotated[RelationshipService, Depends(get_relationship_service)]
