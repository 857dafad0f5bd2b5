"""
Refresh of stale album pages.

A page is stale when it has the same album key as one or more saved Spotify
albums but is missing one of their IDs, or its URL belongs to none of them.
Without ``overwrite`` the stored IDs only ever grow; with ``overwrite`` a page
converges on exactly the IDs of its saved albums.
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence

from shared.fanout import DEFAULT_WORKERS, BatchResult, fan_out
from shared.logging_config import get_logger
from shared.page_fields import get_rich_text, get_title, get_url, text_payload, url_payload
from syncs.albums.models import (
    SavedAlbum,
    format_album_ids,
    merge_album_ids,
    page_album_ids,
    page_album_key,
)
from syncs.albums.property_config import AlbumColumns

logger = get_logger(__name__)


@dataclass(frozen=True)
class RefreshPlan:
    page_id: str
    album_name: str
    old_ids_text: str
    new_ids: List[str]
    old_url: str
    new_url: str

    @property
    def new_ids_text(self) -> str:
        return format_album_ids(self.new_ids)

    def describe(self) -> str:
        lines = [f'Updated "{self.album_name}" with the following properties:']
        if self.old_ids_text != self.new_ids_text:
            lines.append(f'Album IDs: "{self.old_ids_text}" --> "{self.new_ids_text}"')
        if self.old_url != self.new_url:
            lines.append(f'Album URL: "{self.old_url}" --> "{self.new_url}"')
        return "\n".join(lines)


def group_by_album_key(
    saved_albums: Sequence[SavedAlbum], overwrite: bool = False
) -> Dict[str, List[SavedAlbum]]:
    """Group ground truth albums by key, warning when a key repeats."""
    grouped: Dict[str, List[SavedAlbum]] = {}
    for saved in saved_albums:
        key = saved.album.key
        if key in grouped:
            logger.warning(
                'Duplicate albums found in saved Spotify albums for key "%s".%s '
                "Album ID of the first album is %s, album ID of the second album is %s.",
                key,
                " The first available album will be used for the URL and only these IDs kept."
                if overwrite else "",
                grouped[key][0].album.id,
                saved.album.id,
            )
            grouped[key].append(saved)
        else:
            grouped[key] = [saved]
    return grouped


def is_stale(
    page_ids: Sequence[str],
    page_url: str,
    ground_truth: Sequence[SavedAlbum],
    overwrite: bool = False,
) -> bool:
    truth_ids = [saved.album.id for saved in ground_truth]
    truth_urls = [saved.album.url for saved in ground_truth]

    stale = any(album_id not in page_ids for album_id in truth_ids) or page_url not in truth_urls
    if overwrite:
        stale = stale or set(page_ids) != set(truth_ids)
    return stale


def choose_album_url(ground_truth: Sequence[SavedAlbum]) -> str:
    """Prefer an album available in at least one market."""
    # TODO: prefer albums available in the user's own market once the session knows it
    for saved in ground_truth:
        if saved.album.is_available:
            return saved.album.url
    return ground_truth[0].album.url


def plan_refresh(
    pages: Sequence[Dict],
    saved_albums: Sequence[SavedAlbum],
    columns: AlbumColumns,
    overwrite: bool = False,
) -> List[RefreshPlan]:
    grouped = group_by_album_key(saved_albums, overwrite)
    plans: List[RefreshPlan] = []

    for page in pages:
        ground_truth = grouped.get(page_album_key(page, columns))
        if not ground_truth:
            continue

        old_ids = page_album_ids(page, columns)
        old_url = get_url(page, columns.album_url)
        if not is_stale(old_ids, old_url, ground_truth, overwrite):
            continue

        truth_ids = [saved.album.id for saved in ground_truth]
        plans.append(
            RefreshPlan(
                page_id=page["id"],
                album_name=get_title(page, columns.album_name),
                old_ids_text=get_rich_text(page, columns.album_id),
                new_ids=merge_album_ids([], truth_ids) if overwrite else merge_album_ids(old_ids, truth_ids),
                old_url=old_url,
                new_url=choose_album_url(ground_truth),
            )
        )
    return plans


class StaleAlbumRefresher:
    """Writes fresh album IDs and URLs to pages that disagree with Spotify."""

    def __init__(self, notion, columns: AlbumColumns, max_workers: int = DEFAULT_WORKERS):
        self.notion = notion
        self.columns = columns
        self.max_workers = max_workers

    def refresh(
        self,
        saved_albums: Sequence[SavedAlbum],
        pages: Sequence[Dict],
        overwrite: bool = False,
    ) -> BatchResult:
        logger.info(
            "Running stale album freshening job using %d saved Spotify albums", len(saved_albums)
        )
        plans = plan_refresh(pages, saved_albums, self.columns, overwrite)
        logger.info("Found %d stale albums", len(plans))

        def apply(plan: RefreshPlan) -> RefreshPlan:
            self.notion.update_page(
                plan.page_id,
                {
                    self.columns.album_id: text_payload(plan.new_ids_text),
                    self.columns.album_url: url_payload(plan.new_url),
                },
            )
            logger.info(plan.describe())
            return plan

        batch = fan_out(
            apply,
            plans,
            max_workers=self.max_workers,
            describe=lambda plan: f'stale album "{plan.album_name}"',
        )
        logger.info("Finished updating stale albums")
        return batch
