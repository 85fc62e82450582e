import math
from typing import Any, List, Optional, Tuple

from sqlalchemy.orm import Query

from storefront.utils.parsing import parse_positive_int

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def resolve_page_params(page: Any, limit: Any) -> Tuple[int, int]:
    """Lenient page/limit parsing: garbage falls back to the defaults, limit is capped."""
    page_number = parse_positive_int(page) or DEFAULT_PAGE
    page_size = parse_positive_int(limit) or DEFAULT_LIMIT
    return page_number, min(page_size, MAX_LIMIT)


def build_pagination(page: int, limit: int, total_items: int) -> dict:
    total_pages = max(1, math.ceil(total_items / limit))
    return {
        "page": page,
        "limit": limit,
        "totalItems": total_items,
        "totalPages": total_pages,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
    }


def paginate(query: Query, order_by: list, page: Optional[str], limit: Optional[str]) -> Tuple[List, dict]:
    """
    Apply offset pagination to a query.

    Args:
        query: Filtered SQLAlchemy query
        order_by: Columns to sort by, newest first
        page: Raw ``page`` query parameter
        limit: Raw ``limit`` query parameter

    Returns:
        Tuple of the page rows and the pagination block
    """
    page_number, page_size = resolve_page_params(page, limit)
    total_items = query.order_by(None).count()
    rows = (
        query.order_by(*order_by)
        .offset((page_number - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return rows, build_pagination(page_number, page_size, total_items)
