from __future__ import annotations

import math
from typing import Any, Dict, Tuple


# PUBLIC_INTERFACE
def page_window(page: int, limit: int) -> Tuple[int, int]:
    """
    Convert a 1-indexed (page, limit) pair into an (offset, limit) slice.
    """
    return (page - 1) * limit, limit


# PUBLIC_INTERFACE
def pagination_envelope(page: int, limit: int, total: int) -> Dict[str, Any]:
    """
    Build the pagination block returned alongside a page of tasks.

    Args:
        page: The 1-indexed page that was requested.
        limit: The page size that was requested.
        total: Total number of items that match the query (ignoring pagination).

    Returns:
        Dict with keys: page, limit, total, total_pages. total_pages is 0 when
        nothing matches.
    """
    return {
        "page": int(page),
        "limit": int(limit),
        "total": int(total),
        "total_pages": math.ceil(total / limit) if total > 0 else 0,
    }
