# Overview: Page envelope for paginated list endpoints.

from __future__ import annotations

from typing import Callable


def page_envelope(query, page: int, size: int, serialize: Callable) -> dict:
    """
    Run an ordered query for one 0-indexed page.

    Returns {content, page, size, total_elements, total_pages, first, last}.
    """
    total = query.order_by(None).count()
    total_pages = (total + size - 1) // size if total > 0 else 0
    rows = query.offset(page * size).limit(size).all()
    return {
        "content": [serialize(row) for row in rows],
        "page": page,
        "size": size,
        "total_elements": total,
        "total_pages": total_pages,
        "first": page == 0,
        "last": page + 1 >= total_pages,
    }
