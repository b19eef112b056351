"""
Resource Repository

Database operations for resources, the leaf level of the hierarchy.
Resources have no children, so both delete modes are always allowed.
"""

from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stratum.shared.core.exceptions import ValidationError
from stratum.shared.models import DomainResourceLink, Resource
from stratum.shared.repositories.hierarchy_repository import (
    NAME_MAX_LENGTH,
    HierarchyRepository,
    ListFilter,
)


class ResourceRepository(HierarchyRepository[Resource]):
    """
    Repository for Resource database operations.
    """

    ENTITY_LABEL = "Resource"
    SEARCH_FIELDS = ("name", "resource_type")
    MAX_LENGTHS = {"name": NAME_MAX_LENGTH, "resource_type": 100}

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(Resource, session)

    def validate(self, attrs: dict[str, Any], partial: bool = False) -> dict[str, Any]:
        field_errors: dict[str, list[str]] = {}
        try:
            cleaned = super().validate(attrs, partial=partial)
        except ValidationError as e:
            field_errors = dict(e.field_errors)
            cleaned = dict(attrs)

        if "configuration" in cleaned:
            if cleaned["configuration"] is None:
                cleaned["configuration"] = {}
            elif not isinstance(cleaned["configuration"], dict):
                field_errors.setdefault("configuration", []).append("must be an object")

        if field_errors:
            raise ValidationError(field_errors=field_errors)
        return cleaned

    async def list_for_domain(
        self,
        domain_id: UUID,
        list_filter: Optional[ListFilter] = None,
    ) -> tuple[list[Resource], int]:
        """List resources linked to a domain."""
        linked = select(DomainResourceLink.resource_id).where(DomainResourceLink.domain_id == domain_id)
        return await self.list(list_filter, where=[Resource.id.in_(linked)])
