"""
Hierarchy Service

Business logic for clusters, domains and resources: create, read, list,
update, soft delete and hard delete, each gated by the authorization guard.

Operation Gates:
================
    get / list          VIEW
    create child        EDIT on the parent
    update              EDIT
    delete (soft/hard)  DELETE (owners only)

Loading goes through the filtered session first, so an entity the caller
cannot see is reported as not found before any role check runs.

Usage:
======
    service = ClusterService(session)
    cluster = await service.create_cluster(identity, {"name": "Alpha"})
"""

from typing import Any, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stratum.shared.core.exceptions import (
    ClusterNotFoundError,
    DomainNotFoundError,
    ResourceNotFoundError,
    ValidationError,
)
from stratum.shared.core.identity import IdentityContext
from stratum.shared.core.logging import get_logger
from stratum.shared.core.permissions import Action, Role
from stratum.shared.models import Cluster, Domain, Resource
from stratum.shared.repositories.cluster_repository import ClusterRepository
from stratum.shared.repositories.domain_repository import DomainRepository
from stratum.shared.repositories.hierarchy_repository import ListFilter
from stratum.shared.repositories.link_repository import LinkRepository
from stratum.shared.repositories.membership_repository import MembershipRepository
from stratum.shared.repositories.resource_repository import ResourceRepository
from stratum.shared.services.authorization_service import AuthorizationService


logger = get_logger("stratum.hierarchy")

NAME_TAKEN = "has already been taken"


class ClusterService:
    """
    Service for cluster lifecycle.

    Attributes:
        session: Database session (identity-bound)
        repo: ClusterRepository instance
        guard: AuthorizationService instance
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repo = ClusterRepository(session)
        self.memberships = MembershipRepository(session)
        self.guard = AuthorizationService(session)

    async def load(self, cluster_id: UUID, include_deleted: bool = False) -> Cluster:
        cluster = await self.repo.get(cluster_id, include_deleted=include_deleted)
        if cluster is None:
            raise ClusterNotFoundError(cluster_id)
        return cluster

    async def list_clusters(
        self,
        identity: IdentityContext,
        list_filter: Optional[ListFilter] = None,
    ) -> tuple[list[Cluster], int]:
        """List every cluster the caller holds a membership in."""
        return await self.repo.list(list_filter)

    async def get_cluster(
        self,
        identity: IdentityContext,
        cluster_id: UUID,
        include_deleted: bool = False,
    ) -> Cluster:
        cluster = await self.load(cluster_id, include_deleted=include_deleted)
        await self.guard.require(identity, cluster.id, Action.VIEW)
        return cluster

    async def create_cluster(self, identity: IdentityContext, attrs: dict[str, Any]) -> Cluster:
        """
        Create a cluster and make the caller its first owner.

        Both rows are written in the request transaction, so a cluster
        never exists without an owner.

        Raises:
            ValidationError: Blank/long name, or name already used by the caller
        """
        attrs = self.repo.validate(attrs)
        await self._ensure_name_free(identity.identity_id, attrs["name"])

        try:
            cluster = await self.repo.create(created_by=identity.identity_id, **attrs)
        except IntegrityError as e:
            raise ValidationError(field_errors={"name": [NAME_TAKEN]}) from e

        await self.memberships.create(
            cluster_id=cluster.id,
            identity_id=identity.identity_id,
            role=Role.OWNER,
        )
        logger.info("Cluster created", cluster_id=str(cluster.id), name=cluster.name)
        return cluster

    async def update_cluster(
        self,
        identity: IdentityContext,
        cluster_id: UUID,
        changes: dict[str, Any],
    ) -> Cluster:
        cluster = await self.load(cluster_id)
        await self.guard.require(identity, cluster.id, Action.EDIT)

        changes = self.repo.validate(changes, partial=True)
        if "name" in changes and changes["name"] != cluster.name:
            await self._ensure_name_free(cluster.created_by, changes["name"], exclude_id=cluster.id)

        try:
            cluster = await self.repo.update(cluster, changes)
        except IntegrityError as e:
            raise ValidationError(field_errors={"name": [NAME_TAKEN]}) from e

        logger.info("Cluster updated", cluster_id=str(cluster.id), fields=sorted(changes))
        return cluster

    async def delete_cluster(self, identity: IdentityContext, cluster_id: UUID, hard: bool = False) -> None:
        """
        Soft delete a cluster, or hard delete it with hard=True.

        Raises:
            HasChildrenError: A live domain is still linked
        """
        cluster = await self.load(cluster_id, include_deleted=hard)
        await self.guard.require(identity, cluster.id, Action.DELETE)

        if hard:
            await self.repo.hard_delete(cluster)
        else:
            await self.repo.soft_delete(cluster)
        logger.info("Cluster deleted", cluster_id=str(cluster_id), hard=hard)

    async def _ensure_name_free(self, created_by: str, name: str, exclude_id: Optional[UUID] = None) -> None:
        if await self.repo.find_live_by_name(created_by, name, exclude_id=exclude_id):
            raise ValidationError(field_errors={"name": [NAME_TAKEN]})


class DomainService:
    """
    Service for domain lifecycle.

    Attributes:
        session: Database session (identity-bound)
        repo: DomainRepository instance
        guard: AuthorizationService instance
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repo = DomainRepository(session)
        self.clusters = ClusterService(session)
        self.links = LinkRepository(session)
        self.guard = AuthorizationService(session)

    async def load(self, domain_id: UUID, include_deleted: bool = False) -> Domain:
        domain = await self.repo.get(domain_id, include_deleted=include_deleted)
        if domain is None:
            raise DomainNotFoundError(domain_id)
        return domain

    async def list_for_cluster(
        self,
        identity: IdentityContext,
        cluster_id: UUID,
        list_filter: Optional[ListFilter] = None,
    ) -> tuple[list[Domain], int]:
        cluster = await self.clusters.get_cluster(identity, cluster_id)
        return await self.repo.list_for_cluster(cluster.id, list_filter)

    async def get_domain(
        self,
        identity: IdentityContext,
        domain_id: UUID,
        include_deleted: bool = False,
    ) -> Domain:
        domain = await self.load(domain_id, include_deleted=include_deleted)
        await self.guard.require_domain(identity, domain, Action.VIEW)
        return domain

    async def create_in_cluster(
        self,
        identity: IdentityContext,
        cluster_id: UUID,
        attrs: dict[str, Any],
    ) -> Domain:
        """Create a domain and link it to the cluster in one step."""
        cluster = await self.clusters.load(cluster_id)
        await self.guard.require(identity, cluster.id, Action.EDIT)

        attrs = self.repo.validate(attrs)
        domain = await self.repo.create(created_by=identity.identity_id, **attrs)
        await self.links.link_cluster_domain(cluster.id, domain.id)

        logger.info("Domain created", domain_id=str(domain.id), cluster_id=str(cluster.id))
        return domain

    async def update_domain(
        self,
        identity: IdentityContext,
        domain_id: UUID,
        changes: dict[str, Any],
    ) -> Domain:
        domain = await self.load(domain_id)
        await self.guard.require_domain(identity, domain, Action.EDIT)

        changes = self.repo.validate(changes, partial=True)
        domain = await self.repo.update(domain, changes)
        logger.info("Domain updated", domain_id=str(domain.id), fields=sorted(changes))
        return domain

    async def delete_domain(self, identity: IdentityContext, domain_id: UUID, hard: bool = False) -> None:
        """
        Soft delete a domain, or hard delete it with hard=True.

        Raises:
            HasChildrenError: A live resource is still linked
        """
        domain = await self.load(domain_id, include_deleted=hard)
        await self.guard.require_domain(identity, domain, Action.DELETE)

        if hard:
            await self.repo.hard_delete(domain)
        else:
            await self.repo.soft_delete(domain)
        logger.info("Domain deleted", domain_id=str(domain_id), hard=hard)


class ResourceService:
    """
    Service for resource lifecycle.

    Attributes:
        session: Database session (identity-bound)
        repo: ResourceRepository instance
        guard: AuthorizationService instance
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repo = ResourceRepository(session)
        self.domains = DomainService(session)
        self.links = LinkRepository(session)
        self.guard = AuthorizationService(session)

    async def load(self, resource_id: UUID, include_deleted: bool = False) -> Resource:
        resource = await self.repo.get(resource_id, include_deleted=include_deleted)
        if resource is None:
            raise ResourceNotFoundError(resource_id)
        return resource

    async def list_for_domain(
        self,
        identity: IdentityContext,
        domain_id: UUID,
        list_filter: Optional[ListFilter] = None,
    ) -> tuple[list[Resource], int]:
        domain = await self.domains.get_domain(identity, domain_id)
        return await self.repo.list_for_domain(domain.id, list_filter)

    async def get_resource(
        self,
        identity: IdentityContext,
        resource_id: UUID,
        include_deleted: bool = False,
    ) -> Resource:
        resource = await self.load(resource_id, include_deleted=include_deleted)
        await self.guard.require_resource(identity, resource, Action.VIEW)
        return resource

    async def create_in_domain(
        self,
        identity: IdentityContext,
        domain_id: UUID,
        attrs: dict[str, Any],
    ) -> Resource:
        """Create a resource and link it to the domain in one step."""
        domain = await self.domains.load(domain_id)
        await self.guard.require_domain(identity, domain, Action.EDIT)

        attrs = self.repo.validate(attrs)
        resource = await self.repo.create(created_by=identity.identity_id, **attrs)
        await self.links.link_domain_resource(domain.id, resource.id)

        logger.info("Resource created", resource_id=str(resource.id), domain_id=str(domain.id))
        return resource

    async def update_resource(
        self,
        identity: IdentityContext,
        resource_id: UUID,
        changes: dict[str, Any],
    ) -> Resource:
        resource = await self.load(resource_id)
        await self.guard.require_resource(identity, resource, Action.EDIT)

        changes = self.repo.validate(changes, partial=True)
        resource = await self.repo.update(resource, changes)
        logger.info("Resource updated", resource_id=str(resource.id), fields=sorted(changes))
        return resource

    async def delete_resource(self, identity: IdentityContext, resource_id: UUID, hard: bool = False) -> None:
        resource = await self.load(resource_id, include_deleted=hard)
        await self.guard.require_resource(identity, resource, Action.DELETE)

        if hard:
            await self.repo.hard_delete(resource)
        else:
            await self.repo.soft_delete(resource)
        logger.info("Resource deleted", resource_id=str(resource_id), hard=hard)
