"""
pageSize / pageNumber query parameters shared by every list endpoint
"""
import math

from fastapi import Query
from pydantic import BaseModel


class PageParams(BaseModel):
    page_size: int
    page_number: int

    @property
    def offset(self) -> int:
        return self.page_size * (self.page_number - 1)

    def pages(self, total: int) -> int:
        return page_count(total, self.page_size)


def page_count(total: int, page_size: int) -> int:
    """ceil(total / page_size); an empty result has zero pages"""
    if page_size <= 0:
        return 0
    return math.ceil(total / page_size)


def pagination(default_page_size: int = 10, max_page_size: int = 100):
    """
    Dependency factory. Oversized pageSize values are clamped, not rejected.

    Usage:
        @router.get("/")
        async def list_things(page: PageParams = Depends(pagination(9, 500))):
            ...
    """
    def page_params(
        page_size: int = Query(default_page_size, alias="pageSize", ge=1),
        page_number: int = Query(1, alias="pageNumber", ge=1)
    ) -> PageParams:
        return PageParams(page_size=min(page_size, max_page_size), page_number=page_number)

    return page_params
