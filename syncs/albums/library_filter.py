"""
Pruning of the Spotify library from Notion.

A classifier decides for every page whether its albums belong in the user's
Spotify library. The resulting add and remove lists must not overlap; when the
current library is known they are narrowed to the albums that actually change.
Album IDs on the pages should be fresh, so refreshing stale albums first is
recommended.
"""

import threading
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from shared.errors import MutualExclusionError
from shared.fanout import DEFAULT_WORKERS, fan_out_all
from shared.logging_config import get_logger
from shared.page_fields import get_formula_boolean
from shared.spotify_api import LIBRARY_CHUNK_SIZE
from shared.utils import chunked
from syncs.albums.models import AlbumRecord, SavedAlbum, page_album_ids
from syncs.albums.property_config import AlbumColumns

logger = get_logger(__name__)

PageClassifier = Callable[[Dict], bool]


@dataclass(frozen=True)
class LibraryChanges:
    add: List[str]
    remove: List[str]

    @property
    def empty(self) -> bool:
        return not self.add and not self.remove


def include_column_classifier(include_column: str) -> PageClassifier:
    """Classify pages by a boolean formula column (True keeps the album)."""
    def classify(page: Dict) -> bool:
        return get_formula_boolean(page, include_column)
    return classify


def split_pages(
    pages: Iterable[Dict], classify: PageClassifier, columns: AlbumColumns
) -> LibraryChanges:
    add: List[str] = []
    remove: List[str] = []
    for page in pages:
        target = add if classify(page) else remove
        target.extend(page_album_ids(page, columns))
    return LibraryChanges(add=list(dict.fromkeys(add)), remove=list(dict.fromkeys(remove)))


def ensure_disjoint(changes: LibraryChanges) -> None:
    remove_ids = set(changes.remove)
    overlapping = [album_id for album_id in changes.add if album_id in remove_ids]
    if overlapping:
        raise MutualExclusionError(dict.fromkeys(overlapping))


def narrow_changes(changes: LibraryChanges, saved_ids: Iterable[str]) -> LibraryChanges:
    """Keep only additions not yet saved and removals that are currently saved."""
    saved = set(saved_ids)
    return LibraryChanges(
        add=[album_id for album_id in changes.add if album_id not in saved],
        remove=[album_id for album_id in changes.remove if album_id in saved],
    )


def describe_changes(
    added: Sequence[AlbumRecord], removed: Sequence[AlbumRecord]
) -> Tuple[str, str]:
    if added:
        add_text = f"{len(added)} albums were added:\n" + "\n".join(
            f'Added "{album.key}".' for album in added
        )
    else:
        add_text = "No albums were added."
    if removed:
        remove_text = f"{len(removed)} albums were removed:\n" + "\n".join(
            f'Removed "{album.key}".' for album in removed
        )
    else:
        remove_text = "No albums were removed."
    return add_text, remove_text


class _Progress:
    """Thread-safe counter for one direction of a library edit."""

    def __init__(self, name: str, total: int):
        self.name = name
        self.total = total
        self.value = 0
        self._lock = threading.Lock()

    def increment(self, amount: int) -> None:
        with self._lock:
            self.value += amount
            logger.info("%s | %d/%d", self.name, self.value, self.total)


class LibraryFilter:
    """Adds and removes saved Spotify albums according to a page classifier."""

    def __init__(self, spotify, columns: AlbumColumns, max_workers: int = DEFAULT_WORKERS):
        self.spotify = spotify
        self.columns = columns
        self.max_workers = max_workers

    def plan(
        self,
        pages: Sequence[Dict],
        classify: PageClassifier,
        saved_albums: Optional[Sequence[SavedAlbum]] = None,
    ) -> LibraryChanges:
        changes = split_pages(pages, classify, self.columns)
        ensure_disjoint(changes)

        if saved_albums is None:
            logger.info(
                "Putting %d albums in Spotify library, and excluding %d albums",
                len(changes.add), len(changes.remove),
            )
            return changes

        saved_by_id = {saved.album.id: saved.album for saved in saved_albums}
        narrowed = narrow_changes(changes, saved_by_id)

        added = self.spotify_albums(narrowed.add)
        removed = [saved_by_id[album_id] for album_id in narrowed.remove]
        for text in describe_changes(added, removed):
            logger.info(text)
        return narrowed

    def spotify_albums(self, album_ids: List[str]) -> List[AlbumRecord]:
        if not album_ids:
            return []
        return [AlbumRecord.from_spotify(album) for album in self.spotify.get_albums(album_ids)]

    def apply(self, changes: LibraryChanges) -> None:
        """Send every add and remove chunk concurrently; the first failure propagates."""
        add_progress = _Progress("adding albums", len(changes.add))
        remove_progress = _Progress("removing albums", len(changes.remove))

        calls = [
            (self.spotify.save_albums, chunk, add_progress)
            for chunk in chunked(changes.add, LIBRARY_CHUNK_SIZE)
        ] + [
            (self.spotify.remove_saved_albums, chunk, remove_progress)
            for chunk in chunked(changes.remove, LIBRARY_CHUNK_SIZE)
        ]

        def send(call) -> None:
            method, chunk, progress = call
            method(chunk)
            progress.increment(len(chunk))

        fan_out_all(send, calls, max_workers=self.max_workers)
        logger.info("Finished filtering saved Spotify albums")

    def filter_library(
        self,
        pages: Sequence[Dict],
        classify: PageClassifier,
        saved_albums: Optional[Sequence[SavedAlbum]] = None,
    ) -> LibraryChanges:
        logger.info("Filtering saved Spotify albums...")
        changes = self.plan(pages, classify, saved_albums)
        self.apply(changes)
        return changes

    def filter_library_using_include_column(
        self,
        pages: Sequence[Dict],
        include_column: str,
        saved_albums: Optional[Sequence[SavedAlbum]] = None,
    ) -> LibraryChanges:
        logger.info('Reading column "%s" to filter Spotify library...', include_column)
        return self.filter_library(pages, include_column_classifier(include_column), saved_albums)
