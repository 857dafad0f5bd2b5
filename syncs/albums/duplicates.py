"""
Removal of duplicate album pages.

Pages sharing an album key are duplicates. Within a group, rated pages win
over unrated ones (when a rating column is configured), then the most recently
edited page is kept. Losing pages are archived, never deleted.
"""

from datetime import datetime
from typing import Dict, List, Optional, Sequence

from shared.fanout import DEFAULT_WORKERS, BatchResult, fan_out
from shared.logging_config import get_logger
from shared.page_fields import get_select, get_title
from syncs.albums.models import page_album_key
from syncs.albums.property_config import AlbumColumns

logger = get_logger(__name__)


def group_pages_by_key(pages: Sequence[Dict], columns: AlbumColumns) -> Dict[str, List[Dict]]:
    grouped: Dict[str, List[Dict]] = {}
    for page in pages:
        grouped.setdefault(page_album_key(page, columns), []).append(page)
    return grouped


def last_edited(page: Dict) -> datetime:
    return datetime.fromisoformat(page["last_edited_time"].replace("Z", "+00:00"))


def select_pages_to_archive(
    pages: Sequence[Dict], columns: AlbumColumns, rating_column: Optional[str] = None
) -> List[Dict]:
    duplicate_groups = [group for group in group_pages_by_key(pages, columns).values() if len(group) > 1]
    to_archive: List[Dict] = []

    for group in duplicate_groups:
        logger.info(
            'Found %d pages for album "%s"', len(group), get_title(group[0], columns.album_name)
        )
        candidates = group
        if rating_column:
            rated = [page for page in group if get_select(page, rating_column) is not None]
            if rated:
                to_archive.extend(page for page in group if get_select(page, rating_column) is None)
                candidates = rated

        # later pages in query order win equal timestamps
        keeper = max(reversed(candidates), key=last_edited)
        to_archive.extend(page for page in candidates if page["id"] != keeper["id"])

    return to_archive


class DuplicateAlbumRemover:
    def __init__(self, notion, columns: AlbumColumns, max_workers: int = DEFAULT_WORKERS):
        self.notion = notion
        self.columns = columns
        self.max_workers = max_workers

    def remove_duplicates(self, pages: Sequence[Dict], use_rating: bool = True) -> BatchResult:
        """Archive duplicate pages; the batch results are the archived page IDs."""
        rating_column = self.columns.rating if use_rating else None
        to_archive = select_pages_to_archive(pages, self.columns, rating_column)
        logger.info("Removing %d duplicate pages", len(to_archive))

        def archive(page: Dict) -> str:
            self.notion.archive_page(page["id"])
            logger.info(
                'Removed page for "%s" last edited at %s (%s)',
                get_title(page, self.columns.album_name),
                page.get("last_edited_time"),
                page.get("url", page["id"]),
            )
            return page["id"]

        return fan_out(
            archive,
            to_archive,
            max_workers=self.max_workers,
            describe=lambda page: f"duplicate page {page['id']}",
        )
