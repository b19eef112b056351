"""
Stratum SQLAlchemy Models

Model Hierarchy:
================
    Cluster
       ├── memberships (ClusterMembership[])     ← identity + role
       └── domain_links (ClusterDomainLink[])
              └── Domain
                     └── resource_links (DomainResourceLink[])
                            └── Resource

Models Overview:
================
- Base: Base class and mixins (ids, timestamps, creator, soft delete)
- Cluster / Domain / Resource: the three hierarchy levels
- ClusterMembership: per-cluster role assignment
- ClusterDomainLink / DomainResourceLink: junction tables

Usage:
======
    from stratum.shared.models import Cluster, Domain, Resource, ClusterMembership
"""

from stratum.shared.models.base import (
    Base,
    UUIDPrimaryKeyMixin,
    TimestampMixin,
    CreatedByMixin,
    SoftDeleteMixin,
)
from stratum.shared.models.cluster import Cluster
from stratum.shared.models.domain import Domain
from stratum.shared.models.resource import Resource
from stratum.shared.models.cluster_membership import ClusterMembership
from stratum.shared.models.links import ClusterDomainLink, DomainResourceLink

__all__ = [
    # Base classes and mixins
    "Base",
    "UUIDPrimaryKeyMixin",
    "TimestampMixin",
    "CreatedByMixin",
    "SoftDeleteMixin",
    # Hierarchy
    "Cluster",
    "Domain",
    "Resource",
    # Memberships and links
    "ClusterMembership",
    "ClusterDomainLink",
    "DomainResourceLink",
]
