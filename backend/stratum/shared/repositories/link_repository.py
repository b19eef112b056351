"""
Link Repository

Junction-table operations for Cluster↔Domain and Domain↔Resource.

Idempotence:
============
    link()    INSERT ... ON CONFLICT DO NOTHING   → True if a row was created
    unlink()  DELETE ... WHERE parent AND child   → True if a row was removed

Two concurrent link() calls for the same pair both succeed; the composite
primary key lets exactly one insert through and the other becomes a no-op.

The junction tables carry no row policy of their own. Callers reach them
only after loading both endpoints through the filtered session.
"""

from uuid import UUID

from sqlalchemy import Table, delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from stratum.shared.models import ClusterDomainLink, DomainResourceLink


cluster_domain_links = ClusterDomainLink.__table__
domain_resource_links = DomainResourceLink.__table__


def _matches(table: Table, values: dict[str, UUID]) -> list:
    return [table.c[column] == value for column, value in values.items()]


class LinkRepository:
    """
    Repository for junction rows.

    Attributes:
        session: The async database session
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _insert_ignore(self, table: Table, values: dict[str, UUID]) -> bool:
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = pg_insert(table).values(**values).on_conflict_do_nothing()
        elif dialect == "sqlite":
            stmt = sqlite_insert(table).values(**values).on_conflict_do_nothing()
        else:
            exists = await self.session.execute(
                select(*table.primary_key.columns).where(*_matches(table, values))
            )
            if exists.first() is not None:
                return False
            stmt = table.insert().values(**values)

        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def _delete(self, table: Table, values: dict[str, UUID]) -> bool:
        result = await self.session.execute(delete(table).where(*_matches(table, values)))
        return result.rowcount > 0

    # ═══════════════════════════════════════════════════════════════════════════
    # CLUSTER ↔ DOMAIN
    # ═══════════════════════════════════════════════════════════════════════════

    async def link_cluster_domain(self, cluster_id: UUID, domain_id: UUID) -> bool:
        return await self._insert_ignore(
            cluster_domain_links, {"cluster_id": cluster_id, "domain_id": domain_id}
        )

    async def unlink_cluster_domain(self, cluster_id: UUID, domain_id: UUID) -> bool:
        return await self._delete(cluster_domain_links, {"cluster_id": cluster_id, "domain_id": domain_id})

    async def clusters_for_domain(self, domain_id: UUID) -> list[UUID]:
        result = await self.session.execute(
            select(cluster_domain_links.c.cluster_id).where(cluster_domain_links.c.domain_id == domain_id)
        )
        return list(result.scalars().all())

    # ═══════════════════════════════════════════════════════════════════════════
    # DOMAIN ↔ RESOURCE
    # ═══════════════════════════════════════════════════════════════════════════

    async def link_domain_resource(self, domain_id: UUID, resource_id: UUID) -> bool:
        return await self._insert_ignore(
            domain_resource_links, {"domain_id": domain_id, "resource_id": resource_id}
        )

    async def unlink_domain_resource(self, domain_id: UUID, resource_id: UUID) -> bool:
        return await self._delete(
            domain_resource_links, {"domain_id": domain_id, "resource_id": resource_id}
        )

    async def domains_for_resource(self, resource_id: UUID) -> list[UUID]:
        result = await self.session.execute(
            select(domain_resource_links.c.domain_id).where(
                domain_resource_links.c.resource_id == resource_id
            )
        )
        return list(result.scalars().all())
