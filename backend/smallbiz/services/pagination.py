from __future__ import annotations

from typing import Callable

from flask import current_app


def paginate(query, *, page: int | None, per_page: int | None, serialize: Callable) -> dict:
    """
    Page through a query and return the standard list envelope.

    page is 1-indexed; per_page defaults to DEFAULT_PER_PAGE and is capped at
    MAX_PER_PAGE.
    """
    default_per_page = current_app.config.get("DEFAULT_PER_PAGE", 15)
    max_per_page = current_app.config.get("MAX_PER_PAGE", 100)

    per_page = min(max(per_page or default_per_page, 1), max_per_page)
    page = max(page or 1, 1)

    total = query.order_by(None).count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    rows = query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [serialize(row) for row in rows],
        "count": len(rows),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }
