# utils/pagination.py
from typing import TypeVar, Generic, List
import math

from pydantic import BaseModel

T = TypeVar('T')


class PaginatedResponse(BaseModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    limit: int
    total_pages: int


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def paginate(items: List[T], total: int, page: int, limit: int) -> dict:
    return {
        "items": items,
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }
