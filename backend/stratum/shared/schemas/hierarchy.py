"""
Hierarchy Schemas

Request and response models for clusters, domains and resources.

Name rules (non-blank after trimming, at most 255 characters) are checked
by the repositories so every caller gets the same field_errors; these
schemas only fix the shape of the payload.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import Field

from stratum.shared.schemas.common import BaseSchema, TimestampMixin


class HierarchyEntityResponse(BaseSchema, TimestampMixin):
    """Fields shared by every hierarchy level."""

    id: UUID
    name: str
    created_by: str
    deleted_at: Optional[datetime] = None


# ═══════════════════════════════════════════════════════════════════════════════
# CLUSTERS
# ═══════════════════════════════════════════════════════════════════════════════


class ClusterCreate(BaseSchema):
    name: str = Field(description="Display name, unique among your live clusters")
    description: Optional[str] = None


class ClusterUpdate(BaseSchema):
    name: Optional[str] = None
    description: Optional[str] = None


class ClusterResponse(HierarchyEntityResponse):
    description: Optional[str] = None


# ═══════════════════════════════════════════════════════════════════════════════
# DOMAINS
# ═══════════════════════════════════════════════════════════════════════════════


class DomainCreate(BaseSchema):
    name: str
    description: Optional[str] = None


class DomainUpdate(BaseSchema):
    name: Optional[str] = None
    description: Optional[str] = None


class DomainResponse(HierarchyEntityResponse):
    description: Optional[str] = None


# ═══════════════════════════════════════════════════════════════════════════════
# RESOURCES
# ═══════════════════════════════════════════════════════════════════════════════


class ResourceCreate(BaseSchema):
    name: str
    resource_type: Optional[str] = Field(default=None, description='Type tag, e.g. "postgres"')
    configuration: dict[str, Any] = Field(default_factory=dict)


class ResourceUpdate(BaseSchema):
    name: Optional[str] = None
    resource_type: Optional[str] = None
    configuration: Optional[dict[str, Any]] = None


class ResourceResponse(HierarchyEntityResponse):
    resource_type: Optional[str] = None
    configuration: dict[str, Any] = Field(default_factory=dict)


# ═══════════════════════════════════════════════════════════════════════════════
# LINKS
# ═══════════════════════════════════════════════════════════════════════════════


class LinkResponse(BaseSchema):
    """Result of an idempotent link or unlink."""

    parent_id: UUID
    child_id: UUID
    linked: bool
    changed: bool = Field(description="False when the pair was already in the requested state")
