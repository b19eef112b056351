"""
Success envelope helpers shared by the handlers.
"""

from typing import Any, Iterable, Type, TypeVar

from pydantic import BaseModel

from stratum.shared.schemas.common import PaginationMeta, PaginationParams, SuccessResponse


SchemaT = TypeVar("SchemaT", bound=BaseModel)


def ok(schema: Type[SchemaT], obj: Any) -> SuccessResponse[SchemaT]:
    return SuccessResponse[schema](data=schema.model_validate(obj))


def paginated(
    schema: Type[SchemaT],
    items: Iterable[Any],
    total: int,
    pagination: PaginationParams,
) -> SuccessResponse[list[SchemaT]]:
    return SuccessResponse[list[schema]](
        data=[schema.model_validate(item) for item in items],
        meta=PaginationMeta.create(page=pagination.page, per_page=pagination.per_page, total=total),
    )
