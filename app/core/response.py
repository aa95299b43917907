"""Response envelopes shared by every v1 endpoint: ``{data}`` and ``{data, meta}``."""


import math
from typing import Generic, TypeVar

from pydantic import BaseModel

from app.core.pagination import PageMeta, PaginationParams

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """`{ data: ... }` — the payload model supplies its own aliases."""

    data: T


class ListResponse(BaseModel, Generic[T]):
    """`{ data: [...], meta: { total, page, limit, pages } }`"""

    data: list[T]
    meta: PageMeta


def paginated(items: list, total: int, pagination: PaginationParams) -> dict:
    """Wrap one page of already-serializable items with its page metadata."""
    pages = math.ceil(total / pagination.limit) if total else 0
    return {
        "data": items,
        "meta": {
            "total": total,
            "page": pagination.page,
            "limit": pagination.limit,
            "pages": pages,
        },
    }
