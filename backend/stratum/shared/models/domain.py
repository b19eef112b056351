"""
Domain Entity Model

Mid-level container. Linked to clusters and to resources through
many-to-many junction tables.
"""

from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stratum.shared.models.base import (
    Base,
    CreatedByMixin,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)


if TYPE_CHECKING:
    from stratum.shared.models.links import ClusterDomainLink, DomainResourceLink


class Domain(Base, UUIDPrimaryKeyMixin, TimestampMixin, CreatedByMixin, SoftDeleteMixin):
    """Domain model."""

    __tablename__ = "domains"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    cluster_links: Mapped[list["ClusterDomainLink"]] = relationship(
        "ClusterDomainLink",
        back_populates="domain",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
    )

    resource_links: Mapped[list["DomainResourceLink"]] = relationship(
        "DomainResourceLink",
        back_populates="domain",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<Domain(id={self.id}, name={self.name})>"
