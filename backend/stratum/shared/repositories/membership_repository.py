"""
Membership Repository

Database operations for ClusterMembership rows (identity + role per cluster).

Common Operations:
==================
- get()             → Membership of one identity in one cluster
- role_of()         → Just the role, or None
- count_owners()    → Owners currently in the cluster
- list_for_cluster()→ Paged, sorted, searchable member list
- list_for_identity()→ Every membership of the bound identity (for /me)
- roles_in()        → Role of one identity in each of several clusters
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from stratum.shared.core.permissions import Role
from stratum.shared.models import ClusterMembership
from stratum.shared.repositories.base import BaseRepository
from stratum.shared.repositories.hierarchy_repository import ListFilter, escape_like, order_clause


MEMBER_SORTABLE_FIELDS = ("identity_id", "role", "created_at")


class MembershipRepository(BaseRepository[ClusterMembership]):
    """
    Repository for ClusterMembership database operations.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(ClusterMembership, session)

    # ═══════════════════════════════════════════════════════════════════════════
    # READ OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════════

    async def get_membership(self, cluster_id: UUID, identity_id: str) -> Optional[ClusterMembership]:
        result = await self.session.execute(
            select(ClusterMembership).where(
                ClusterMembership.cluster_id == cluster_id,
                ClusterMembership.identity_id == identity_id,
            )
        )
        return result.scalar_one_or_none()

    async def role_of(self, cluster_id: UUID, identity_id: str) -> Optional[Role]:
        """
        Get an identity's role in a cluster.

        Returns:
            The role, or None when there is no (visible) membership
        """
        result = await self.session.execute(
            select(ClusterMembership.role).where(
                ClusterMembership.cluster_id == cluster_id,
                ClusterMembership.identity_id == identity_id,
            )
        )
        return result.scalar_one_or_none()

    async def roles_in(self, cluster_ids: list[UUID], identity_id: str) -> dict[UUID, Role]:
        """Map cluster id → role for the clusters the identity belongs to."""
        if not cluster_ids:
            return {}
        result = await self.session.execute(
            select(ClusterMembership.cluster_id, ClusterMembership.role).where(
                ClusterMembership.cluster_id.in_(cluster_ids),
                ClusterMembership.identity_id == identity_id,
            )
        )
        return {row.cluster_id: row.role for row in result.all()}

    async def count_owners(self, cluster_id: UUID) -> int:
        query = select(ClusterMembership.id).where(
            ClusterMembership.cluster_id == cluster_id,
            ClusterMembership.role == Role.OWNER,
        )
        return await self.count_query(query)

    async def list_for_cluster(
        self,
        cluster_id: UUID,
        list_filter: Optional[ListFilter] = None,
    ) -> tuple[list[ClusterMembership], int]:
        """
        List a cluster's members.

        Search matches identity id or comment, case-insensitively.

        Returns:
            (page of memberships, total matching count)

        Raises:
            BadRequestError: Unknown sort field or order
        """
        list_filter = list_filter or ListFilter(sort_by="created_at", sort_order="asc")
        ordering = order_clause(
            ClusterMembership, list_filter.sort_by, list_filter.sort_order, MEMBER_SORTABLE_FIELDS
        )

        query = select(ClusterMembership).where(ClusterMembership.cluster_id == cluster_id)
        if list_filter.search:
            pattern = f"%{escape_like(list_filter.search.strip())}%"
            query = query.where(
                or_(
                    ClusterMembership.identity_id.ilike(pattern, escape="\\"),
                    ClusterMembership.comment.ilike(pattern, escape="\\"),
                )
            )

        total = await self.count_query(query)
        result = await self.session.execute(
            query.order_by(*ordering).offset(list_filter.offset).limit(list_filter.limit)
        )
        return list(result.scalars().all()), total

    async def list_for_identity(self, identity_id: str) -> list[ClusterMembership]:
        result = await self.session.execute(
            select(ClusterMembership)
            .where(ClusterMembership.identity_id == identity_id)
            .order_by(ClusterMembership.created_at.asc(), ClusterMembership.id.asc())
        )
        return list(result.scalars().all())
