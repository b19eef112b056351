"""
Cluster Entity Model

Top-level container of the hierarchy. Access is granted through
ClusterMembership rows; the creator becomes its first owner.

SAMPLE CLUSTER RECORD:
┌──────────────────────────────────────────────────────────────────────────────┐
│ id           │ 550e8400-e29b-41d4-a716-446655440000                          │
│ name         │ "Alpha"                                                       │
│ description  │ "Production workloads"                                        │
│ created_by   │ "user-a"                                                      │
│ deleted_at   │ NULL                                                          │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stratum.shared.models.base import (
    Base,
    CreatedByMixin,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)


if TYPE_CHECKING:
    from stratum.shared.models.cluster_membership import ClusterMembership
    from stratum.shared.models.links import ClusterDomainLink


class Cluster(Base, UUIDPrimaryKeyMixin, TimestampMixin, CreatedByMixin, SoftDeleteMixin):
    """
    Cluster model.

    Attributes:
        id: Unique identifier (UUID v4)
        name: Display name, unique among the creator's live clusters
        description: Optional free text

    Relationships:
        memberships: Role assignments for this cluster
        domain_links: Junction rows to linked domains
    """

    __tablename__ = "clusters"
    __table_args__ = (
        # Live names are unique per creator; soft-deleted rows free the name
        Index(
            "uq_clusters_creator_name_live",
            "created_by",
            "name",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # RELATIONSHIPS
    # ═══════════════════════════════════════════════════════════════════════════

    memberships: Mapped[list["ClusterMembership"]] = relationship(
        "ClusterMembership",
        back_populates="cluster",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
    )

    domain_links: Mapped[list["ClusterDomainLink"]] = relationship(
        "ClusterDomainLink",
        back_populates="cluster",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<Cluster(id={self.id}, name={self.name})>"
