"""
Business Logic Services

Services encapsulate business logic and coordinate between repositories
and the authorization guard.

Service Pattern:
================
    Handler → Service → AuthorizationService (role check)
                    ↘ Repository → identity-bound session → Database

Services should:
- Take the caller's IdentityContext explicitly on every call
- Check permissions before touching the store
- Raise typed exceptions, never format responses

Available Services:
===================
- AuthorizationService: Role matrix checks for clusters, domains, resources
- ClusterService / DomainService / ResourceService: Hierarchy lifecycle
- MembershipService: Membership registry and owner invariants
- RelationshipService: Idempotent link/unlink

Usage:
======
    from stratum.shared.services import ClusterService

    service = ClusterService(session)
    cluster = await service.create_cluster(identity, {"name": "Alpha"})
"""

from stratum.shared.services.authorization_service import AuthorizationService, Decision
from stratum.shared.services.hierarchy_service import ClusterService, DomainService, ResourceService
from stratum.shared.services.membership_service import MembershipService
from stratum.shared.services.relationship_service import LinkResult, RelationshipService

__all__ = [
    "AuthorizationService",
    "Decision",
    "ClusterService",
    "DomainService",
    "ResourceService",
    "MembershipService",
    "LinkResult",
    "RelationshipService",
]
