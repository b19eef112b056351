"""
Membership Service

Business logic for the membership registry: who holds which role in a
cluster, and who may change that.

Rules:
======
- add / update / remove need MANAGE_MEMBERS (owners and admins)
- granting OWNER, or changing or removing an existing owner, also needs
  CHANGE_OWNER (owners only), so an admin cannot promote anyone to owner
  and a member cannot elevate itself at all
- a cluster always keeps at least one owner; a change that would leave
  zero owners fails with LastOwnerError and writes nothing
- adding an identity that is already a member is a conflict, not a no-op

Serialization:
==============
Every mutation locks the cluster row before reading memberships, so two
concurrent demotions of the last two owners cannot both pass the owner
count check.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stratum.shared.core.exceptions import (
    AuthenticationError,
    DuplicateResourceError,
    LastOwnerError,
    MembershipNotFoundError,
    ValidationError,
)
from stratum.shared.core.identity import IdentityContext, validate_identity_id
from stratum.shared.core.logging import get_logger
from stratum.shared.core.permissions import Action, Role
from stratum.shared.models import Cluster, ClusterMembership
from stratum.shared.repositories.hierarchy_repository import ListFilter
from stratum.shared.repositories.membership_repository import MembershipRepository
from stratum.shared.services.authorization_service import AuthorizationService
from stratum.shared.services.hierarchy_service import ClusterService


logger = get_logger("stratum.membership")

COMMENT_MAX_LENGTH = 1000
_UNSET = object()


def _validate_member_fields(identity_id: Optional[str] = None, comment: Optional[str] = None) -> None:
    field_errors: dict[str, list[str]] = {}
    if identity_id is not None:
        try:
            validate_identity_id(identity_id)
        except AuthenticationError:
            field_errors["identity_id"] = ["is invalid"]
    if comment is not None and len(comment) > COMMENT_MAX_LENGTH:
        field_errors["comment"] = [f"is too long (maximum is {COMMENT_MAX_LENGTH} characters)"]
    if field_errors:
        raise ValidationError(field_errors=field_errors)


class MembershipService:
    """
    Service for cluster membership management.

    Attributes:
        session: Database session (identity-bound)
        repo: MembershipRepository instance
        guard: AuthorizationService instance
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repo = MembershipRepository(session)
        self.clusters = ClusterService(session)
        self.guard = AuthorizationService(session)

    # ═══════════════════════════════════════════════════════════════════════════
    # READ OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════════

    async def role_of(self, identity: IdentityContext, cluster_id: UUID, identity_id: str) -> Optional[Role]:
        """Role of identity_id in the cluster, as seen by the caller."""
        await self.clusters.get_cluster(identity, cluster_id)
        return await self.repo.role_of(cluster_id, identity_id)

    async def list_members(
        self,
        identity: IdentityContext,
        cluster_id: UUID,
        list_filter: Optional[ListFilter] = None,
    ) -> tuple[list[ClusterMembership], int]:
        cluster = await self.clusters.get_cluster(identity, cluster_id)
        return await self.repo.list_for_cluster(cluster.id, list_filter)

    async def memberships_of(self, identity: IdentityContext) -> list[ClusterMembership]:
        """Every membership the caller holds."""
        return await self.repo.list_for_identity(identity.identity_id)

    # ═══════════════════════════════════════════════════════════════════════════
    # WRITE OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════════

    async def add_member(
        self,
        identity: IdentityContext,
        cluster_id: UUID,
        identity_id: str,
        role: Role = Role.MEMBER,
        comment: Optional[str] = None,
    ) -> ClusterMembership:
        """
        Grant identity_id a role in the cluster.

        Raises:
            ValidationError: Malformed identity id or comment
            AuthorizationError: Caller cannot manage members, or grants owner without CHANGE_OWNER
            DuplicateResourceError: identity_id is already a member
        """
        _validate_member_fields(identity_id=identity_id, comment=comment)
        cluster = await self._lock_for_management(identity, cluster_id)
        if role == Role.OWNER:
            await self.guard.require(identity, cluster.id, Action.CHANGE_OWNER)

        if await self.repo.get_membership(cluster.id, identity_id) is not None:
            raise DuplicateResourceError("Identity is already a member of this cluster")

        try:
            membership = await self.repo.create(
                cluster_id=cluster.id,
                identity_id=identity_id,
                role=role,
                comment=comment,
            )
        except IntegrityError as e:
            raise DuplicateResourceError("Identity is already a member of this cluster") from e

        logger.info("Member added", cluster_id=str(cluster.id), member=identity_id, role=role.value)
        return membership

    async def update_member(
        self,
        identity: IdentityContext,
        cluster_id: UUID,
        identity_id: str,
        role: Optional[Role] = None,
        comment: object = _UNSET,
    ) -> ClusterMembership:
        """
        Change a member's role and/or comment.

        Raises:
            MembershipNotFoundError: identity_id is not a member
            AuthorizationError: Missing MANAGE_MEMBERS, or CHANGE_OWNER for owner changes
            LastOwnerError: Demoting the only owner
        """
        if comment is not _UNSET:
            _validate_member_fields(comment=comment)
        cluster = await self._lock_for_management(identity, cluster_id)
        membership = await self._load_membership(cluster.id, identity_id)

        changes: dict[str, object] = {}
        if comment is not _UNSET:
            changes["comment"] = comment

        if role is not None and role != membership.role:
            if Role.OWNER in (role, membership.role):
                await self.guard.require(identity, cluster.id, Action.CHANGE_OWNER)
            if membership.role == Role.OWNER:
                await self._ensure_owner_remains(cluster.id)
            changes["role"] = role

        previous_role = membership.role
        membership = await self.repo.update(membership, changes)
        if "role" in changes:
            logger.info(
                "Member role changed",
                cluster_id=str(cluster.id),
                member=identity_id,
                old_role=previous_role.value,
                new_role=membership.role.value,
            )
        return membership

    async def update_role(
        self,
        identity: IdentityContext,
        cluster_id: UUID,
        identity_id: str,
        new_role: Role,
    ) -> ClusterMembership:
        return await self.update_member(identity, cluster_id, identity_id, role=new_role)

    async def remove_member(self, identity: IdentityContext, cluster_id: UUID, identity_id: str) -> None:
        """
        Revoke identity_id's membership.

        Raises:
            MembershipNotFoundError: identity_id is not a member
            AuthorizationError: Missing MANAGE_MEMBERS, or CHANGE_OWNER to remove an owner
            LastOwnerError: Removing the only owner
        """
        cluster = await self._lock_for_management(identity, cluster_id)
        membership = await self._load_membership(cluster.id, identity_id)

        if membership.role == Role.OWNER:
            await self.guard.require(identity, cluster.id, Action.CHANGE_OWNER)
            await self._ensure_owner_remains(cluster.id)

        await self.repo.delete(membership)
        logger.info("Member removed", cluster_id=str(cluster.id), member=identity_id)

    # ═══════════════════════════════════════════════════════════════════════════
    # HELPERS
    # ═══════════════════════════════════════════════════════════════════════════

    async def _lock_for_management(self, identity: IdentityContext, cluster_id: UUID) -> Cluster:
        cluster = await self.clusters.load(cluster_id)
        await self.guard.require(identity, cluster.id, Action.MANAGE_MEMBERS)
        await self.clusters.repo.lock(cluster.id)
        return cluster

    async def _load_membership(self, cluster_id: UUID, identity_id: str) -> ClusterMembership:
        membership = await self.repo.get_membership(cluster_id, identity_id)
        if membership is None:
            raise MembershipNotFoundError(identity_id)
        return membership

    async def _ensure_owner_remains(self, cluster_id: UUID) -> None:
        # Called only when one owner is about to go away
        if await self.repo.count_owners(cluster_id) - 1 < 1:
            raise LastOwnerError()
