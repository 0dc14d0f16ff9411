"""
Pagination slicer: turns a filtered, sorted sequence into one bounded page.
"""

import math
from collections.abc import Sequence

from models.inventory import InventoryRecord
from models.query import Page


def total_pages(total: int, page_size: int) -> int:
    """ceil(total / page_size); 0 for an empty result."""
    if total <= 0:
        return 0
    return math.ceil(total / max(1, page_size))


def clamp_page(page: int, total: int, page_size: int) -> int:
    """Clamp a requested page into [1, max(1, total_pages)]."""
    last = max(1, total_pages(total, page_size))
    return min(max(1, page), last)


def paginate(items: Sequence[InventoryRecord], page: int, page_size: int) -> Page:
    """
    Slice `items` to the requested page. Out-of-range requests never fail;
    they clamp to the first or last page.
    """
    page_size = max(1, page_size)
    total = len(items)
    page = clamp_page(page, total, page_size)
    start = (page - 1) * page_size
    return Page(
        items=tuple(items[start : start + page_size]),
        page=page,
        page_size=page_size,
        total_pages=total_pages(total, page_size),
        total=total,
    )
