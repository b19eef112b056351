"""
ClusterMembership Entity Model

Junction table with metadata granting an identity a role in a cluster.

SAMPLE CLUSTER_MEMBERSHIP RECORD:
┌──────────────────────────────────────────────────────────────────────────────┐
│ cluster_id       │ 550e8400-e29b-41d4-a716-446655440000                      │
│ identity_id      │ "user-b"                                                  │
│ role             │ member                                                    │
│ comment          │ "On-call rotation"                                        │
└──────────────────────────────────────────────────────────────────────────────┘

Invariants:
===========
- (cluster_id, identity_id) is unique
- every cluster keeps at least one owner (enforced by MembershipService)
"""

from typing import TYPE_CHECKING, Optional
import uuid

from sqlalchemy import Enum as SQLEnum, ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stratum.shared.core.permissions import Role
from stratum.shared.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


if TYPE_CHECKING:
    from stratum.shared.models.cluster import Cluster


class ClusterMembership(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """
    ClusterMembership model - an identity's role in a cluster.

    Attributes:
        cluster_id: The cluster the role applies to
        identity_id: Subject identifier from the identity provider
        role: owner, admin or member
        comment: Optional free text
    """

    __tablename__ = "cluster_memberships"
    __table_args__ = (
        UniqueConstraint("cluster_id", "identity_id", name="uq_cluster_memberships_cluster_identity"),
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # FOREIGN KEYS
    # ═══════════════════════════════════════════════════════════════════════════

    cluster_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("clusters.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Indexed on its own for the row policy's "clusters of this identity" lookup
    identity_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # MEMBERSHIP METADATA
    # ═══════════════════════════════════════════════════════════════════════════

    role: Mapped[Role] = mapped_column(
        SQLEnum(
            Role,
            name="membership_role",
            values_callable=lambda roles: [r.value for r in roles],
        ),
        nullable=False,
        default=Role.MEMBER,
    )

    comment: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # RELATIONSHIPS
    # ═══════════════════════════════════════════════════════════════════════════

    cluster: Mapped["Cluster"] = relationship(
        "Cluster",
        back_populates="memberships",
        lazy="raise",
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<ClusterMembership(cluster_id={self.cluster_id}, "
            f"identity_id={self.identity_id}, role={self.role})>"
        )
