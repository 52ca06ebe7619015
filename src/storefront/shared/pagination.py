"""Page slicing for admin listings.

Filters and paging go to the repository query so totals always cover every
stored record. Free-text search cannot be expressed as a repository filter;
those listings walk the query in batches and page the matches in memory.
"""

import math
from collections.abc import Iterator

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200

# Records fetched per round trip when a listing has to be matched in memory
SCAN_BATCH_SIZE = 500


def clamp_page(page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> tuple[int, int]:
    return max(page, 1), min(max(limit, 1), MAX_PAGE_SIZE)


def page_info(total: int, page: int, limit: int) -> dict:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if total else 0,
    }


def query_page(query, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> dict:
    """Run one page of ``query``; ``total`` counts every matching record."""
    page, limit = clamp_page(page, limit)
    result = query.offset((page - 1) * limit).limit(limit).all()
    return {"items": result.items, **page_info(result.total, page, limit)}


def iter_query(query) -> Iterator:
    """Yield every record of ``query``, fetched ``SCAN_BATCH_SIZE`` at a time."""
    offset = 0
    while True:
        result = query.offset(offset).limit(SCAN_BATCH_SIZE).all()
        yield from result.items
        offset += len(result.items)
        if not result.items or offset >= result.total:
            return


def paginate(items: list, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> dict:
    page, limit = clamp_page(page, limit)
    start = (page - 1) * limit
    return {"items": items[start : start + limit], **page_info(len(items), page, limit)}


def matches_search(search: str | None, *values) -> bool:
    """Case-insensitive substring match against any of ``values``."""
    if not search:
        return True
    needle = search.lower()
    return any(needle in str(value).lower() for value in values if value)
