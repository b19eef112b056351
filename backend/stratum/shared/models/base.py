"""
Base Model Classes

This module provides the foundational classes for all SQLAlchemy models in Stratum.
It includes the declarative base and common mixins for identifiers, timestamps,
creator tracking and soft deletion.

Model Hierarchy:
================
    Base                    ← SQLAlchemy declarative base
       │
       ├── UUIDPrimaryKeyMixin ← id column (UUID v4)
       ├── TimestampMixin      ← Automatic created_at/updated_at
       ├── CreatedByMixin      ← Identity that created the row
       └── SoftDeleteMixin     ← Soft delete with deleted_at

Usage:
======
    from stratum.shared.models.base import Base, TimestampMixin, SoftDeleteMixin

    class Cluster(Base, UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin):
        __tablename__ = "clusters"
        name: Mapped[str] = mapped_column(String(255))
"""

from datetime import datetime, timezone
from typing import Any, Optional
import uuid

from sqlalchemy import JSON, DateTime, String, Uuid, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Maps Python dicts to JSONB on PostgreSQL and plain JSON elsewhere.
    """

    type_annotation_map = {
        dict[str, Any]: JSON().with_variant(JSONB(), "postgresql"),
    }


class UUIDPrimaryKeyMixin:
    """Adds a client-generated UUID primary key."""

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )


class TimestampMixin:
    """
    Mixin that adds automatic timestamp tracking to models.

    - created_at: Set when the record is first inserted
    - updated_at: Updated whenever the record is modified

    Database Behavior:
    ==================
    - created_at: Set on INSERT (Python default, database default as fallback)
    - updated_at: Set on INSERT, refreshed by SQLAlchemy on every UPDATE via onupdate
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utcnow,
        nullable=False,
    )


class CreatedByMixin:
    """
    Records which identity created the row.

    Used for cluster name uniqueness and for the visibility of rows that
    are not yet attached to the hierarchy.
    """

    created_by: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )


class SoftDeleteMixin:
    """
    Mixin that adds soft delete capability to models.

    Instead of permanently deleting records, soft delete marks them
    as deleted by setting a timestamp.

    Example values:
        deleted_at: None                  (record is active)
        deleted_at: 2024-01-20T09:00:00Z  (record was soft-deleted)

    Querying:
    =========
    Repositories filter soft-deleted rows unless the caller passes
    include_deleted=True explicitly:
        query.where(MyModel.deleted_at.is_(None))
    """

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    @property
    def is_deleted(self) -> bool:
        """True if deleted_at is set."""
        return self.deleted_at is not None
