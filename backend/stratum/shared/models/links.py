"""
Link (Junction) Models

Pure many-to-many junction tables between hierarchy levels.

    clusters ──< cluster_domain_links >── domains ──< domain_resource_links >── resources

The composite primary key doubles as the unique (parent, child) constraint
that makes concurrent idempotent links race-safe. Both foreign keys cascade,
so a hard-deleted entity takes its junction rows with it.
"""

from datetime import datetime
from typing import TYPE_CHECKING
import uuid

from sqlalchemy import DateTime, ForeignKey, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stratum.shared.models.base import Base, utcnow


if TYPE_CHECKING:
    from stratum.shared.models.cluster import Cluster
    from stratum.shared.models.domain import Domain
    from stratum.shared.models.resource import Resource


class ClusterDomainLink(Base):
    """Links a domain into a cluster."""

    __tablename__ = "cluster_domain_links"

    cluster_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("clusters.id", ondelete="CASCADE"),
        primary_key=True,
    )

    # Second column of the PK is not usable for child-side lookups
    domain_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("domains.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )

    cluster: Mapped["Cluster"] = relationship("Cluster", back_populates="domain_links", lazy="raise")
    domain: Mapped["Domain"] = relationship("Domain", back_populates="cluster_links", lazy="raise")

    def __repr__(self) -> str:
        return f"<ClusterDomainLink(cluster_id={self.cluster_id}, domain_id={self.domain_id})>"


class DomainResourceLink(Base):
    """Links a resource into a domain."""

    __tablename__ = "domain_resource_links"

    domain_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("domains.id", ondelete="CASCADE"),
        primary_key=True,
    )

    resource_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("resources.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )

    domain: Mapped["Domain"] = relationship("Domain", back_populates="resource_links", lazy="raise")
    resource: Mapped["Resource"] = relationship("Resource", back_populates="domain_links", lazy="raise")

    def __repr__(self) -> str:
        return f"<DomainResourceLink(domain_id={self.domain_id}, resource_id={self.resource_id})>"
