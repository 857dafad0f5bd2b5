"""
Aggregation of paginated API results.

Notion hands out opaque cursors, so its pages must be fetched one after the
other. Spotify's library endpoints are offset based: once the total is known
every page can be requested at the same time.
"""

from typing import Callable, List, Optional, Tuple

from shared.errors import PaginationError
from shared.fanout import DEFAULT_WORKERS, fan_out_all
from shared.logging_config import get_logger

logger = get_logger(__name__)

NOTION_MAX_PAGE_SIZE = 100

CursorFetch = Callable[[Optional[str]], Tuple[List, bool, Optional[str]]]
OffsetFetch = Callable[[int, int], Tuple[List, int]]


def collect_cursor_pages(fetch_page: CursorFetch) -> List:
    """Follow ``next_cursor`` until ``has_more`` is false.

    ``fetch_page(cursor)`` returns ``(items, has_more, next_cursor)``; the first
    call receives ``None``.
    """
    items: List = []
    cursor: Optional[str] = None

    while True:
        results, has_more, next_cursor = fetch_page(cursor)
        items.extend(results)
        if not has_more:
            return items
        if not next_cursor:
            raise PaginationError("Response reported more results but no next cursor")
        cursor = next_cursor


def collect_offset_pages(
    fetch_page: OffsetFetch,
    page_size: int,
    total: Optional[int] = None,
    max_workers: int = DEFAULT_WORKERS,
) -> List:
    """Fetch every ``page_size`` slice concurrently and concatenate in offset order.

    ``fetch_page(limit, offset)`` returns ``(items, total)``. When ``total`` is not
    known up front a zero-item probe request is made to learn it.
    """
    if total is None:
        _, total = fetch_page(0, 0)
        logger.debug("Count probe reported %d items", total)

    offsets = list(range(0, total, page_size))

    def fetch(offset: int) -> List:
        page_items, _ = fetch_page(page_size, offset)
        logger.debug("Got items %d - %d", offset + 1, min(offset + page_size, total))
        return page_items

    pages = fan_out_all(fetch, offsets, max_workers=max_workers)
    return [item for page_items in pages for item in page_items]
