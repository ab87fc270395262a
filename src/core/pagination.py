"""
Fixed-size page slicing for list endpoints.
"""
from typing import TypeVar, Generic, List, Optional, Type
from pydantic import BaseModel
from fastapi import Query
from sqlalchemy.orm import Query as SQLAlchemyQuery
import math

from ..config import settings

T = TypeVar("T")

class PageParams:
    """
    Requested page. Out-of-range numbers (0, negatives) are clamped to the
    first page instead of being rejected; the size comes from
    ``settings.referrals_page_size`` and is not client controlled.
    """
    def __init__(self, page: int = Query(1, description="Page number, 1-indexed")):
        self.page = max(1, page)
        self.size = settings.referrals_page_size

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


class PageResponse(BaseModel, Generic[T]):
    """
    One page of results

    Fields:
    - items: Rows on this page
    - total: Rows matching the query across all pages
    - page / size: Echo of the page parameters
    - pages: Number of pages, 0 when nothing matched
    - has_next / has_prev: Navigation flags
    """
    items: List[T]
    total: int
    page: int
    size: int
    pages: int
    has_next: bool
    has_prev: bool


def paginate(
    query: SQLAlchemyQuery,
    page_params: PageParams,
    schema_class: Optional[Type[BaseModel]] = None
) -> PageResponse:
    """
    Slice an already ordered query into one page.

    The total is counted without the ORDER BY, which only matters for the slice.
    """
    total = query.order_by(None).count()
    rows = query.offset(page_params.offset).limit(page_params.size).all()
    if schema_class is not None:
        rows = [schema_class.model_validate(row) for row in rows]

    pages = math.ceil(total / page_params.size)
    return PageResponse(
        items=rows,
        total=total,
        page=page_params.page,
        size=page_params.size,
        pages=pages,
        has_next=page_params.page < pages,
        has_prev=page_params.page > 1
    )
