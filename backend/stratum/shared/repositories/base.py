"""
Base Repository

Generic base repository with the CRUD operations every Stratum repository
shares. Entity repositories inherit from it and add their own queries.

What This Provides:
===================
- get(id)        → Fetch single record by UUID (soft-deleted hidden by default)
- get_by_ids()   → Fetch multiple records by UUIDs
- count_query()  → Count the rows of any ORM select
- exists()       → Check if record exists
- create()       → Create new record
- update()       → Apply attribute changes to a loaded record
- delete()       → Hard delete record
- soft_delete()  → Soft delete (set deleted_at)

Every SELECT issued here goes through a StratumSession, so the row filter
has already narrowed the result to rows the bound identity may see. A record
that exists but is filtered out is indistinguishable from one that does not
exist.

flush() vs commit():
====================
- flush(): Sends SQL to database but doesn't commit transaction
- commit(): Called once per request by the session dependency
Repository methods only flush, so a request is one transaction.
"""

from typing import Any, Generic, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select
from sqlalchemy.sql.functions import count as sql_count

from stratum.shared.models.base import Base, utcnow


# TypeVar bound to Base ensures we only work with SQLAlchemy models
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Generic base repository providing common CRUD operations.

    Type Parameter:
        ModelType: The SQLAlchemy model class this repository manages

    Attributes:
        model: The SQLAlchemy model class
        session: The async database session
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession) -> None:
        self.model = model
        self.session = session

    @property
    def soft_deletable(self) -> bool:
        return hasattr(self.model, "deleted_at")

    def _live(self, query: Select, include_deleted: bool) -> Select:
        if self.soft_deletable and not include_deleted:
            query = query.where(self.model.deleted_at.is_(None))
        return query

    # ═══════════════════════════════════════════════════════════════════════════
    # READ OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════════

    async def get(self, record_id: UUID, include_deleted: bool = False) -> Optional[ModelType]:
        """
        Get a single record by its UUID.

        Args:
            record_id: The UUID of the record to fetch
            include_deleted: Also return a soft-deleted record

        Returns:
            The model instance if found and visible, None otherwise
        """
        query = self._live(select(self.model).where(self.model.id == record_id), include_deleted)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_by_ids(self, ids: list[UUID], include_deleted: bool = False) -> list[ModelType]:
        """
        Get multiple records by their UUIDs.

        Returns:
            List of model instances (fewer than requested if some are absent or hidden)
        """
        if not ids:
            return []

        query = self._live(select(self.model).where(self.model.id.in_(ids)), include_deleted)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_query(self, query: Select) -> int:
        """
        Count the rows an ORM select would return.

        Counting over a subquery of the entity select keeps the row filter
        in play; a bare COUNT over the table would bypass it.
        """
        result = await self.session.execute(
            select(sql_count()).select_from(query.order_by(None).subquery())
        )
        return result.scalar() or 0

    async def exists(self, record_id: UUID, include_deleted: bool = False) -> bool:
        query = self._live(select(self.model.id).where(self.model.id == record_id), include_deleted)
        return await self.count_query(query) > 0

    # ═══════════════════════════════════════════════════════════════════════════
    # WRITE OPERATIONS
    # ═══════════════════════════════════════════════════════════════════════════

    async def create(self, **kwargs: Any) -> ModelType:
        """
        Create a new record.

        Adds the instance, flushes to send the INSERT, and refreshes to pick
        up database-side defaults.

        Args:
            **kwargs: Field values for the new record

        Returns:
            The created model instance
        """
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def update(self, instance: ModelType, changes: dict[str, Any]) -> ModelType:
        """
        Apply changes to a loaded record.

        Unlike create(), explicit None values are written, so optional
        fields can be cleared. Unknown keys are ignored. updated_at is
        always touched, even when nothing else changed.

        Args:
            instance: Record previously loaded through this repository
            changes: Field values to set

        Returns:
            The updated instance
        """
        for field, value in changes.items():
            if hasattr(instance, field) and field not in ("id", "created_by", "created_at"):
                setattr(instance, field, value)

        if hasattr(instance, "updated_at"):
            instance.updated_at = utcnow()

        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def delete(self, instance: ModelType) -> None:
        """
        Hard delete a record.

        Junction rows and memberships are removed by ON DELETE CASCADE.
        """
        await self.session.delete(instance)
        await self.session.flush()

    async def soft_delete(self, instance: ModelType) -> ModelType:
        """
        Soft delete a record by setting deleted_at.

        The row stays in the database and can still be fetched with
        include_deleted=True.
        """
        now = utcnow()
        instance.deleted_at = now
        instance.updated_at = now
        await self.session.flush()
        await self.session.refresh(instance)
        return instance
