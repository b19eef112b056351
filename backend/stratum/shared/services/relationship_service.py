"""
Relationship Service

Idempotent link/unlink between hierarchy levels.

    link_domain(identity, cluster_id, domain_id)        Cluster ↔ Domain
    link_resource(identity, domain_id, resource_id)     Domain ↔ Resource

Linking an already-linked pair and unlinking an absent pair both succeed.
The returned LinkResult says whether anything changed, so the HTTP layer
can answer 201 for a new link and 200 for an existing one.

Cross-cluster sharing is not supported: linking a child that already
belongs somewhere requires EDIT on the target parent AND on every parent
the child is already linked to. A child cannot be pulled into a cluster
the caller administers from one it does not.
"""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from stratum.shared.core.exceptions import AuthorizationError, DomainNotFoundError
from stratum.shared.core.identity import IdentityContext
from stratum.shared.core.logging import get_logger
from stratum.shared.core.permissions import Action, is_allowed
from stratum.shared.models import Domain, Resource
from stratum.shared.repositories.link_repository import LinkRepository
from stratum.shared.repositories.membership_repository import MembershipRepository
from stratum.shared.services.authorization_service import AuthorizationService
from stratum.shared.services.hierarchy_service import ClusterService, DomainService, ResourceService


logger = get_logger("stratum.relationships")

SHARED_CHILD_DENIED = "{child} is linked to a {parent} you cannot edit"


@dataclass(frozen=True)
class LinkResult:
    """Outcome of a link or unlink call."""

    parent_id: UUID
    child_id: UUID
    changed: bool


class RelationshipService:
    """
    Service for junction rows between clusters, domains and resources.

    Attributes:
        session: Database session (identity-bound)
        links: LinkRepository instance
        guard: AuthorizationService instance
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.links = LinkRepository(session)
        self.memberships = MembershipRepository(session)
        self.guard = AuthorizationService(session)
        self.clusters = ClusterService(session)
        self.domains = DomainService(session)
        self.resources = ResourceService(session)

    # ═══════════════════════════════════════════════════════════════════════════
    # CLUSTER ↔ DOMAIN
    # ═══════════════════════════════════════════════════════════════════════════

    async def link_domain(self, identity: IdentityContext, cluster_id: UUID, domain_id: UUID) -> LinkResult:
        """
        Link a domain into a cluster (idempotent).

        Raises:
            ClusterNotFoundError / DomainNotFoundError: Absent or not visible
            AuthorizationError: Missing EDIT on the cluster or on a cluster
                the domain already belongs to
        """
        cluster = await self.clusters.load(cluster_id)
        await self.guard.require(identity, cluster.id, Action.EDIT)
        domain = await self.domains.load(domain_id)

        current = await self.links.clusters_for_domain(domain.id)
        if cluster.id in current:
            return LinkResult(parent_id=cluster.id, child_id=domain.id, changed=False)
        await self._ensure_domain_movable(identity, domain, current)

        created = await self.links.link_cluster_domain(cluster.id, domain.id)
        if created:
            logger.info("Domain linked", cluster_id=str(cluster.id), domain_id=str(domain.id))
        return LinkResult(parent_id=cluster.id, child_id=domain.id, changed=created)

    async def unlink_domain(self, identity: IdentityContext, cluster_id: UUID, domain_id: UUID) -> LinkResult:
        """Remove a domain from a cluster; an absent link is already the desired state."""
        cluster = await self.clusters.load(cluster_id)
        await self.guard.require(identity, cluster.id, Action.EDIT)

        removed = await self.links.unlink_cluster_domain(cluster.id, domain_id)
        if removed:
            logger.info("Domain unlinked", cluster_id=str(cluster.id), domain_id=str(domain_id))
        return LinkResult(parent_id=cluster.id, child_id=domain_id, changed=removed)

    async def _ensure_domain_movable(
        self,
        identity: IdentityContext,
        domain: Domain,
        current_cluster_ids: list[UUID],
    ) -> None:
        if not current_cluster_ids:
            await self.guard.require_domain(identity, domain, Action.EDIT)
            return

        roles = await self.memberships.roles_in(current_cluster_ids, identity.identity_id)
        for cluster_id in current_cluster_ids:
            if not is_allowed(roles.get(cluster_id), Action.EDIT):
                logger.warning(
                    "Cross-cluster link denied",
                    domain_id=str(domain.id),
                    linked_cluster_id=str(cluster_id),
                )
                raise AuthorizationError(SHARED_CHILD_DENIED.format(child="Domain", parent="cluster"))

    # ═══════════════════════════════════════════════════════════════════════════
    # DOMAIN ↔ RESOURCE
    # ═══════════════════════════════════════════════════════════════════════════

    async def link_resource(self, identity: IdentityContext, domain_id: UUID, resource_id: UUID) -> LinkResult:
        """
        Link a resource into a domain (idempotent).

        Raises:
            DomainNotFoundError / ResourceNotFoundError: Absent or not visible
            AuthorizationError: Missing EDIT on the domain or on a domain
                the resource already belongs to
        """
        domain = await self.domains.load(domain_id)
        await self.guard.require_domain(identity, domain, Action.EDIT)
        resource = await self.resources.load(resource_id)

        current = await self.links.domains_for_resource(resource.id)
        if domain.id in current:
            return LinkResult(parent_id=domain.id, child_id=resource.id, changed=False)
        await self._ensure_resource_movable(identity, resource, current)

        created = await self.links.link_domain_resource(domain.id, resource.id)
        if created:
            logger.info("Resource linked", domain_id=str(domain.id), resource_id=str(resource.id))
        return LinkResult(parent_id=domain.id, child_id=resource.id, changed=created)

    async def unlink_resource(self, identity: IdentityContext, domain_id: UUID, resource_id: UUID) -> LinkResult:
        domain = await self.domains.load(domain_id)
        await self.guard.require_domain(identity, domain, Action.EDIT)

        removed = await self.links.unlink_domain_resource(domain.id, resource_id)
        if removed:
            logger.info("Resource unlinked", domain_id=str(domain.id), resource_id=str(resource_id))
        return LinkResult(parent_id=domain.id, child_id=resource_id, changed=removed)

    async def _ensure_resource_movable(
        self,
        identity: IdentityContext,
        resource: Resource,
        current_domain_ids: list[UUID],
    ) -> None:
        if not current_domain_ids:
            await self.guard.require_resource(identity, resource, Action.EDIT)
            return

        visible = {d.id: d for d in await self.domains.repo.get_by_ids(current_domain_ids, include_deleted=True)}
        for domain_id in current_domain_ids:
            domain = visible.get(domain_id)
            decision = None
            if domain is not None:
                try:
                    decision = await self.guard.authorize_domain(identity, domain, Action.EDIT)
                except DomainNotFoundError:
                    decision = None
            if decision is None or not decision.allowed:
                logger.warning(
                    "Cross-domain link denied",
                    resource_id=str(resource.id),
                    linked_domain_id=str(domain_id),
                )
                raise AuthorizationError(SHARED_CHILD_DENIED.format(child="Resource", parent="domain"))
