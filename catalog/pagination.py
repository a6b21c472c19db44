"""Pagination arithmetic shared by the store, the table and the CLI."""
from __future__ import annotations

import math
from typing import List, Tuple

DEFAULT_WINDOW = 5


def total_pages(total: int, page_size: int) -> int:
    if page_size <= 0:
        return 0
    return math.ceil(total / page_size)


def window_bounds(page: int, page_size: int, total: int) -> Tuple[int, int]:
    """Return the 1-based ``(from, to)`` item range shown on ``page``."""
    start = (page - 1) * page_size + 1
    end = min(page * page_size, total)
    return start, end


def page_window(page: int, pages: int, width: int = DEFAULT_WINDOW) -> List[int]:
    """Page numbers to offer around ``page``, clamped to ``[1, pages]``.

    >>> page_window(1, 5)
    [1, 2, 3, 4, 5]
    >>> page_window(7, 10)
    [5, 6, 7, 8, 9]
    """
    start = max(1, page - width // 2)
    end = min(pages, start + width - 1)
    start = max(1, end - width + 1)
    return list(range(start, end + 1))
