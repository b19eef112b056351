"""
Hierarchy Repository

Shared store behaviour for the three hierarchy levels (Cluster, Domain,
Resource): attribute validation, filtered listing, soft/hard delete with
the live-children guard.

List Filtering:
===============
    ListFilter(
        offset=0, limit=25,
        sort_by="name", sort_order="asc",    ← sort_by whitelisted
        search="prod",                        ← ILIKE over SEARCH_FIELDS
        include_deleted=False,                ← must be passed explicitly
    )

Subclasses define:
    SEARCH_FIELDS    columns matched by search
    MAX_LENGTHS      string limits checked before persistence
    CHILD_LABEL      noun used in HasChildrenError
    has_live_children(id)
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Optional
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.sql import ColumnElement, Select

from stratum.shared.core.exceptions import BadRequestError, HasChildrenError, ValidationError
from stratum.shared.repositories.base import BaseRepository, ModelType


SORTABLE_FIELDS = ("name", "created_at", "updated_at")
SORT_ORDERS = ("asc", "desc")
NAME_MAX_LENGTH = 255


@dataclass
class ListFilter:
    """Pagination, sorting and search options for list queries."""

    offset: int = 0
    limit: int = 25
    sort_by: str = "created_at"
    sort_order: str = "desc"
    search: Optional[str] = None
    include_deleted: bool = False


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so search terms match literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def order_clause(model: Any, sort_by: str, sort_order: str, allowed: tuple[str, ...]) -> list[Any]:
    """
    Build ORDER BY for a whitelisted field, with id as tiebreaker.

    Raises:
        BadRequestError: Unknown sort field or order
    """
    if sort_by not in allowed:
        raise BadRequestError(f"Unknown sort field '{sort_by}'. Allowed: {', '.join(allowed)}")
    if sort_order not in SORT_ORDERS:
        raise BadRequestError(f"Unknown sort order '{sort_order}'. Allowed: asc, desc")

    column = getattr(model, sort_by)
    if sort_order == "desc":
        return [column.desc(), model.id.desc()]
    return [column.asc(), model.id.asc()]


class HierarchyRepository(BaseRepository[ModelType]):
    """Base for Cluster, Domain and Resource repositories."""

    ENTITY_LABEL: ClassVar[str] = "Record"
    CHILD_LABEL: ClassVar[str] = "children"
    SEARCH_FIELDS: ClassVar[tuple[str, ...]] = ("name",)
    MAX_LENGTHS: ClassVar[dict[str, int]] = {"name": NAME_MAX_LENGTH}

    # ═══════════════════════════════════════════════════════════════════════════
    # VALIDATION
    # ═══════════════════════════════════════════════════════════════════════════

    def validate(self, attrs: dict[str, Any], partial: bool = False) -> dict[str, Any]:
        """
        Check attribute constraints before anything reaches the database.

        Args:
            attrs: Attribute values to write
            partial: True for updates, where name may be omitted

        Returns:
            attrs with name trimmed

        Raises:
            ValidationError: With field_errors for every failing attribute
        """
        field_errors: dict[str, list[str]] = {}
        cleaned = dict(attrs)

        if "name" in cleaned or not partial:
            name = cleaned.get("name")
            if not isinstance(name, str) or not name.strip():
                field_errors.setdefault("name", []).append("can't be blank")
            else:
                cleaned["name"] = name.strip()

        for field, max_length in self.MAX_LENGTHS.items():
            value = cleaned.get(field)
            if isinstance(value, str) and len(value) > max_length:
                field_errors.setdefault(field, []).append(
                    f"is too long (maximum is {max_length} characters)"
                )

        if field_errors:
            raise ValidationError(field_errors=field_errors)
        return cleaned

    # ═══════════════════════════════════════════════════════════════════════════
    # QUERIES
    # ═══════════════════════════════════════════════════════════════════════════

    def filtered_query(
        self,
        list_filter: ListFilter,
        where: Optional[list[ColumnElement[bool]]] = None,
    ) -> Select:
        query = select(self.model)
        for clause in where or []:
            query = query.where(clause)
        query = self._live(query, list_filter.include_deleted)

        if list_filter.search:
            pattern = f"%{escape_like(list_filter.search.strip())}%"
            query = query.where(
                or_(*(getattr(self.model, f).ilike(pattern, escape="\\") for f in self.SEARCH_FIELDS))
            )
        return query

    async def list(
        self,
        list_filter: Optional[ListFilter] = None,
        where: Optional[list[ColumnElement[bool]]] = None,
    ) -> tuple[list[ModelType], int]:
        """
        List visible records with filtering, sorting and pagination.

        Args:
            list_filter: Paging/sort/search options (defaults apply if None)
            where: Extra restrictions, e.g. "children of this parent"

        Returns:
            (page of records, total matching count)

        Raises:
            BadRequestError: Unknown sort field or order
        """
        list_filter = list_filter or ListFilter()
        ordering = order_clause(self.model, list_filter.sort_by, list_filter.sort_order, SORTABLE_FIELDS)
        query = self.filtered_query(list_filter, where)

        total = await self.count_query(query)
        result = await self.session.execute(
            query.order_by(*ordering).offset(list_filter.offset).limit(list_filter.limit)
        )
        return list(result.scalars().all()), total

    # ═══════════════════════════════════════════════════════════════════════════
    # DELETE WITH CHILD GUARD
    # ═══════════════════════════════════════════════════════════════════════════

    async def has_live_children(self, record_id: UUID) -> bool:
        return False

    async def ensure_no_live_children(self, record_id: UUID) -> None:
        if await self.has_live_children(record_id):
            raise HasChildrenError(self.ENTITY_LABEL, self.CHILD_LABEL)

    async def soft_delete(self, instance: ModelType) -> ModelType:
        """
        Soft delete, refusing while live children are linked.

        Raises:
            HasChildrenError: A non-deleted child is still linked
        """
        await self.ensure_no_live_children(instance.id)
        return await super().soft_delete(instance)

    async def hard_delete(self, instance: ModelType) -> None:
        """
        Permanently delete, refusing while live children are linked.

        Links to soft-deleted children cascade away with the row.

        Raises:
            HasChildrenError: A non-deleted child is still linked
        """
        await self.ensure_no_live_children(instance.id)
        await self.delete(instance)
