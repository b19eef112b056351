"""
Domain Repository

Database operations for domains, the middle level of the hierarchy.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stratum.shared.models import ClusterDomainLink, Domain, DomainResourceLink, Resource
from stratum.shared.repositories.hierarchy_repository import HierarchyRepository, ListFilter


class DomainRepository(HierarchyRepository[Domain]):
    """
    Repository for Domain database operations.
    """

    ENTITY_LABEL = "Domain"
    CHILD_LABEL = "resources"
    SEARCH_FIELDS = ("name", "description")

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Domain, session)

    async def list_for_cluster(
        self,
        cluster_id: UUID,
        list_filter: Optional[ListFilter] = None,
    ) -> tuple[list[Domain], int]:
        """List domains linked to a cluster."""
        linked = select(ClusterDomainLink.domain_id).where(ClusterDomainLink.cluster_id == cluster_id)
        return await self.list(list_filter, where=[Domain.id.in_(linked)])

    async def has_live_children(self, record_id: UUID) -> bool:
        query = (
            select(Resource.id)
            .join(DomainResourceLink, DomainResourceLink.resource_id == Resource.id)
            .where(
                DomainResourceLink.domain_id == record_id,
                Resource.deleted_at.is_(None),
            )
        )
        return await self.count_query(query) > 0
