"""
Membership Schemas

Request and response models for cluster members and for /me.
"""

from typing import Optional
from uuid import UUID

from pydantic import Field

from stratum.shared.core.permissions import Role
from stratum.shared.schemas.common import BaseSchema, TimestampMixin


class MemberCreate(BaseSchema):
    identity_id: str = Field(description="Subject identifier from the identity provider")
    role: Role = Role.MEMBER
    comment: Optional[str] = None


class MemberUpdate(BaseSchema):
    role: Optional[Role] = None
    comment: Optional[str] = None


class MemberResponse(BaseSchema, TimestampMixin):
    id: UUID
    cluster_id: UUID
    identity_id: str
    role: Role
    comment: Optional[str] = None


class MembershipSummary(BaseSchema):
    cluster_id: UUID
    role: Role


class MeResponse(BaseSchema):
    """The caller as the service sees it."""

    identity_id: str
    email: Optional[str] = None
    memberships: list[MembershipSummary] = Field(default_factory=list)
