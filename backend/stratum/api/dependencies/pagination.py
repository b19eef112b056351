"""
Pagination dependencies.

Parse page/per_page/sort/search query parameters into a ListFilter.
Out-of-range page or per_page values are rejected with 400; an unknown
sort_by is rejected by the repository whitelist, also with 400.
"""

from typing import Annotated, Optional

from fastapi import Depends, Query

from stratum.config.settings import settings
from stratum.shared.repositories.hierarchy_repository import ListFilter
from stratum.shared.schemas.common import PaginationParams


async def get_pagination(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    per_page: int = Query(
        settings.DEFAULT_PAGE_SIZE,
        ge=1,
        le=settings.MAX_PAGE_SIZE,
        description="Items per page",
    ),
) -> PaginationParams:
    return PaginationParams(page=page, per_page=per_page)


async def get_list_filter(
    pagination: Annotated[PaginationParams, Depends(get_pagination)],
    sort_by: str = Query("created_at", description="name, created_at or updated_at"),
    sort_order: str = Query("desc", description="asc or desc"),
    search: Optional[str] = Query(None, max_length=255, description="Case-insensitive match"),
) -> ListFilter:
    return ListFilter(
        offset=pagination.offset,
        limit=pagination.limit,
        sort_by=sort_by,
        sort_order=sort_order,
        search=search or None,
    )


async def get_member_list_filter(
    pagination: Annotated[PaginationParams, Depends(get_pagination)],
    sort_by: str = Query("created_at", description="identity_id, role or created_at"),
    sort_order: str = Query("asc", description="asc or desc"),
    search: Optional[str] = Query(None, max_length=255, description="Matches identity id or comment"),
) -> ListFilter:
    return ListFilter(
        offset=pagination.offset,
        limit=pagination.limit,
        sort_by=sort_by,
        sort_order=sort_order,
        search=search or None,
    )


Pagination = Annotated[PaginationParams, Depends(get_pagination)]
HierarchyListFilter = Annotated[ListFilter, Depends(get_list_filter)]
MemberListFilter = Annotated[ListFilter, Depends(get_member_list_filter)]
