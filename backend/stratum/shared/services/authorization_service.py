"""
Authorization Service

The application-level permission guard. Every mutating service call asks it
before touching the store; reads ask it too so callers get a clean 403/404.

Decision Flow:
==============
    authorize(identity, cluster_id, action)
        │
        ├── no membership        → ClusterNotFoundError (404, existence not leaked)
        ├── role lacks action    → Decision(allowed=False, role, reason)
        └── role grants action   → Decision(allowed=True, role, "granted")

    require(...) raises AuthorizationError (403) on a denied decision.

Domains and resources are authorized through the clusters they are linked
to: the action is allowed if ANY linked cluster grants it. An entity that is
not linked anywhere yet grants everything to its creator and nothing to
anyone else.

The row filter only asks "any membership?". This service owns the role
matrix, so the two layers never disagree on visibility.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from stratum.shared.core.exceptions import (
    AuthorizationError,
    ClusterNotFoundError,
    DomainNotFoundError,
    ResourceNotFoundError,
)
from stratum.shared.core.identity import IdentityContext
from stratum.shared.core.logging import get_logger
from stratum.shared.core.permissions import Action, Role, is_allowed, strongest_role
from stratum.shared.models import Domain, Resource
from stratum.shared.repositories.domain_repository import DomainRepository
from stratum.shared.repositories.link_repository import LinkRepository
from stratum.shared.repositories.membership_repository import MembershipRepository


logger = get_logger("stratum.authorization")


@dataclass(frozen=True)
class Decision:
    """Outcome of an authorization check."""

    allowed: bool
    role: Optional[Role]
    reason: str


def _denied_reason(role: Optional[Role], action: Action, subject: str) -> str:
    verb = action.value.replace("_", " ")
    if role is None:
        return f"Only the creator may {verb} this {subject}"
    return f"Role '{role.value}' is not allowed to {verb} this {subject}"


class AuthorizationService:
    """
    Permission guard backed by the membership registry.

    Attributes:
        session: Database session (identity-bound)
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.memberships = MembershipRepository(session)
        self.links = LinkRepository(session)
        self.domains = DomainRepository(session)

    # ═══════════════════════════════════════════════════════════════════════════
    # CLUSTERS
    # ═══════════════════════════════════════════════════════════════════════════

    async def authorize(self, identity: IdentityContext, cluster_id: UUID, action: Action) -> Decision:
        """
        Decide whether identity may perform action in a cluster.

        Raises:
            ClusterNotFoundError: The identity holds no membership in the cluster
        """
        role = await self.memberships.role_of(cluster_id, identity.identity_id)
        if role is None:
            raise ClusterNotFoundError(cluster_id)
        if is_allowed(role, action):
            return Decision(allowed=True, role=role, reason="granted")
        return Decision(allowed=False, role=role, reason=_denied_reason(role, action, "cluster"))

    async def require(self, identity: IdentityContext, cluster_id: UUID, action: Action) -> Role:
        """
        Like authorize(), but raise on denial.

        Returns:
            The caller's role in the cluster

        Raises:
            ClusterNotFoundError: No membership
            AuthorizationError: Membership without the permission
        """
        decision = await self.authorize(identity, cluster_id, action)
        self._enforce(decision, identity, action, cluster_id=str(cluster_id))
        return decision.role

    # ═══════════════════════════════════════════════════════════════════════════
    # DOMAINS & RESOURCES
    # ═══════════════════════════════════════════════════════════════════════════

    async def authorize_domain(self, identity: IdentityContext, domain: Domain, action: Action) -> Decision:
        """
        Decide through every cluster the domain is linked to.

        Raises:
            DomainNotFoundError: Linked only to clusters the caller cannot see
        """
        cluster_ids = await self.links.clusters_for_domain(domain.id)
        if not cluster_ids:
            return self._orphan_decision(identity, domain.created_by, action, "domain")

        roles = await self.memberships.roles_in(cluster_ids, identity.identity_id)
        if not roles:
            raise DomainNotFoundError(domain.id)

        granting = [role for role in roles.values() if is_allowed(role, action)]
        if granting:
            return Decision(allowed=True, role=strongest_role(granting), reason="granted")
        role = strongest_role(roles.values())
        return Decision(allowed=False, role=role, reason=_denied_reason(role, action, "domain"))

    async def require_domain(self, identity: IdentityContext, domain: Domain, action: Action) -> Optional[Role]:
        decision = await self.authorize_domain(identity, domain, action)
        self._enforce(decision, identity, action, domain_id=str(domain.id))
        return decision.role

    async def authorize_resource(
        self,
        identity: IdentityContext,
        resource: Resource,
        action: Action,
    ) -> Decision:
        """
        Decide through every domain the resource is linked to.

        Raises:
            ResourceNotFoundError: Linked only to domains the caller cannot see
        """
        domain_ids = await self.links.domains_for_resource(resource.id)
        if not domain_ids:
            return self._orphan_decision(identity, resource.created_by, action, "resource")

        domains = await self.domains.get_by_ids(domain_ids, include_deleted=True)
        if not domains:
            raise ResourceNotFoundError(resource.id)

        decisions = []
        for domain in domains:
            try:
                decisions.append(await self.authorize_domain(identity, domain, action))
            except DomainNotFoundError:
                continue
        if not decisions:
            raise ResourceNotFoundError(resource.id)

        allowed = [d for d in decisions if d.allowed]
        if allowed:
            return Decision(allowed=True, role=strongest_role(d.role for d in allowed), reason="granted")
        role = strongest_role(d.role for d in decisions)
        return Decision(allowed=False, role=role, reason=_denied_reason(role, action, "resource"))

    async def require_resource(
        self,
        identity: IdentityContext,
        resource: Resource,
        action: Action,
    ) -> Optional[Role]:
        decision = await self.authorize_resource(identity, resource, action)
        self._enforce(decision, identity, action, resource_id=str(resource.id))
        return decision.role

    # ═══════════════════════════════════════════════════════════════════════════
    # HELPERS
    # ═══════════════════════════════════════════════════════════════════════════

    def _orphan_decision(
        self,
        identity: IdentityContext,
        created_by: str,
        action: Action,
        subject: str,
    ) -> Decision:
        if created_by == identity.identity_id:
            return Decision(allowed=True, role=None, reason="creator of unlinked " + subject)
        return Decision(allowed=False, role=None, reason=_denied_reason(None, action, subject))

    def _enforce(self, decision: Decision, identity: IdentityContext, action: Action, **target: str) -> None:
        if decision.allowed:
            return
        logger.warning(
            "Authorization denied",
            action=action.value,
            role=decision.role.value if decision.role else None,
            reason=decision.reason,
            **target,
        )
        raise AuthorizationError(decision.reason)
