"""
Repositories Module

Data access layer. Every repository works on an identity-bound session, so
the row filter has already narrowed what each query can see.

Usage:
======
    from stratum.shared.repositories import ClusterRepository

    repo = ClusterRepository(session)
    clusters, total = await repo.list(ListFilter(limit=10))
"""

from stratum.shared.repositories.base import BaseRepository
from stratum.shared.repositories.hierarchy_repository import HierarchyRepository, ListFilter
from stratum.shared.repositories.cluster_repository import ClusterRepository
from stratum.shared.repositories.domain_repository import DomainRepository
from stratum.shared.repositories.resource_repository import ResourceRepository
from stratum.shared.repositories.membership_repository import MembershipRepository
from stratum.shared.repositories.link_repository import LinkRepository

__all__ = [
    "BaseRepository",
    "HierarchyRepository",
    "ListFilter",
    "ClusterRepository",
    "DomainRepository",
    "ResourceRepository",
    "MembershipRepository",
    "LinkRepository",
]
