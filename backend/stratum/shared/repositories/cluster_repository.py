"""
Cluster Repository

Database operations for clusters, the top level of the hierarchy.

Common Operations:
==================
- list()                 → Clusters visible to the bound identity
- find_live_by_name()    → Name uniqueness check per creator
- has_live_children()    → Any non-deleted domain still linked?
- lock()                 → SELECT ... FOR UPDATE, serializes role changes
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stratum.shared.models import Cluster, ClusterDomainLink, Domain
from stratum.shared.repositories.hierarchy_repository import HierarchyRepository


class ClusterRepository(HierarchyRepository[Cluster]):
    """
    Repository for Cluster database operations.
    """

    ENTITY_LABEL = "Cluster"
    CHILD_LABEL = "domains"
    SEARCH_FIELDS = ("name", "description")

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Cluster, session)

    async def find_live_by_name(
        self,
        created_by: str,
        name: str,
        exclude_id: Optional[UUID] = None,
    ) -> Optional[Cluster]:
        """
        Find a non-deleted cluster with this name created by this identity.

        Args:
            created_by: Creator identity id
            name: Trimmed cluster name
            exclude_id: Ignore this cluster (the one being renamed)
        """
        query = select(Cluster).where(
            Cluster.created_by == created_by,
            Cluster.name == name,
            Cluster.deleted_at.is_(None),
        )
        if exclude_id is not None:
            query = query.where(Cluster.id != exclude_id)
        result = await self.session.execute(query.limit(1))
        return result.scalar_one_or_none()

    async def has_live_children(self, record_id: UUID) -> bool:
        query = (
            select(Domain.id)
            .join(ClusterDomainLink, ClusterDomainLink.domain_id == Domain.id)
            .where(
                ClusterDomainLink.cluster_id == record_id,
                Domain.deleted_at.is_(None),
            )
        )
        return await self.count_query(query) > 0

    async def lock(self, cluster_id: UUID) -> Optional[Cluster]:
        """
        Lock the cluster row for the rest of the transaction.

        Concurrent role mutations on the same cluster queue here, so the
        owner count each one computes is never stale. SQLite ignores
        FOR UPDATE and serializes writers on its own.
        """
        result = await self.session.execute(
            select(Cluster).where(Cluster.id == cluster_id).with_for_update()
        )
        return result.scalar_one_or_none()
