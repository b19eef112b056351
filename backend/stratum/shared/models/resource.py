"""
Resource Entity Model

Leaf of the hierarchy. Carries an optional type tag and a free-form
configuration document (JSONB on PostgreSQL).

SAMPLE RESOURCE RECORD:
┌──────────────────────────────────────────────────────────────────────────────┐
│ id             │ 770e8400-e29b-41d4-a716-446655440000                        │
│ name           │ "orders-db"                                                 │
│ resource_type  │ "postgres"                                                  │
│ configuration  │ {"version": "16", "replicas": 2}                            │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stratum.shared.models.base import (
    Base,
    CreatedByMixin,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)


if TYPE_CHECKING:
    from stratum.shared.models.links import DomainResourceLink


class Resource(Base, UUIDPrimaryKeyMixin, TimestampMixin, CreatedByMixin, SoftDeleteMixin):
    """Resource model."""

    __tablename__ = "resources"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Optional classification, e.g. "postgres", "bucket"
    resource_type: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        index=True,
    )

    configuration: Mapped[dict[str, Any]] = mapped_column(
        nullable=False,
        default=dict,
    )

    domain_links: Mapped[list["DomainResourceLink"]] = relationship(
        "DomainResourceLink",
        back_populates="resource",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<Resource(id={self.id}, name={self.name}, type={self.resource_type})>"
