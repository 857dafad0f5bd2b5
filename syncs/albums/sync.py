#!/usr/bin/env python3
"""
Notion Spotify Album Sync
Keeps a Notion album database in step with a user's saved Spotify albums:
imports new albums, refreshes stale IDs and URLs, removes duplicate pages and
prunes the Spotify library from a Notion "include" column.
"""

import os
import time
from typing import Callable, Dict, List, Optional

from shared.errors import ConfigurationError
from shared.fanout import DEFAULT_WORKERS, BatchResult
from shared.logging_config import get_logger
from shared.notion_api import NotionAPI
from shared.spotify_api import SpotifyAPI
from shared.spotify_session import SpotifySession
from shared.utils import get_database_id, get_notion_token
from syncs.albums.duplicates import DuplicateAlbumRemover
from syncs.albums.importer import AlbumImporter
from syncs.albums.inference import PageInference
from syncs.albums.library_filter import LibraryFilter
from syncs.albums.models import SavedAlbum
from syncs.albums.property_config import AlbumColumns
from syncs.albums.refresher import StaleAlbumRefresher

logger = get_logger(__name__)

JOB_IMPORT = "import"
JOB_REFRESH_STALE = "refresh-stale"
JOB_FILTER_LIBRARY = "filter-library"
JOB_REMOVE_DUPLICATES = "remove-duplicates"
JOB_INFER_ARTISTS = "infer-artists"
JOB_INFER_ALBUM_IDS = "infer-album-ids"
JOB_UPDATE_ARTWORK = "update-artwork"

JOBS = (
    JOB_IMPORT,
    JOB_REFRESH_STALE,
    JOB_FILTER_LIBRARY,
    JOB_REMOVE_DUPLICATES,
    JOB_INFER_ARTISTS,
    JOB_INFER_ALBUM_IDS,
    JOB_UPDATE_ARTWORK,
)


def check_columns(database: Dict, columns: AlbumColumns) -> List[str]:
    """Compare the database schema with the column mapping and list mismatches."""
    schema = database.get("properties", {})
    problems = []
    for name, expected in columns.expected_types().items():
        prop = schema.get(name)
        if prop is None:
            problems.append(f"Column '{name}' is missing (expected {expected})")
        elif prop.get("type") != expected:
            problems.append(f"Column '{name}' is {prop.get('type')}, expected {expected}")
    return problems


class NotionSpotifyAlbumSync:
    """Runs album sync jobs against one Notion database and one Spotify session."""

    def __init__(
        self,
        notion: NotionAPI,
        spotify: SpotifyAPI,
        database_id: str,
        columns: Optional[AlbumColumns] = None,
        max_workers: int = DEFAULT_WORKERS,
    ):
        self.notion = notion
        self.spotify = spotify
        self.database_id = database_id
        self.columns = columns or AlbumColumns()
        self.max_workers = max_workers
        self._pages_cache: Optional[List[Dict]] = None

    @property
    def session(self) -> SpotifySession:
        return self.spotify.session

    def set_columns(self, columns: AlbumColumns) -> None:
        self.columns = columns

    def check_schema(self) -> List[str]:
        return check_columns(self.notion.get_database(self.database_id), self.columns)

    def get_database_pages(self, refresh: bool = False) -> List[Dict]:
        """Return the album pages, querying Notion once until refreshed."""
        if self._pages_cache is None or refresh:
            self._pages_cache = self.notion.query_database(self.database_id)
            logger.info("Loaded %d pages from album database", len(self._pages_cache))
        return self._pages_cache

    def load_saved_albums(self, refresh: bool = False) -> List[SavedAlbum]:
        """Return the user's saved albums, cached on the session until refreshed."""
        if self.session.saved_albums is None or refresh:
            items = self.spotify.get_saved_albums()
            self.session.saved_albums = [SavedAlbum.from_spotify(item) for item in items]
            logger.info("Got %d saved albums from Spotify", len(self.session.saved_albums))
        return self.session.saved_albums

    def _invalidate_pages(self) -> None:
        self._pages_cache = None

    # Jobs

    def import_albums(self) -> Dict:
        saved_albums = self.load_saved_albums()
        importer = AlbumImporter(
            self.notion, self.spotify, self.database_id, self.columns, max_workers=self.max_workers
        )
        result = importer.import_albums(saved_albums, self.get_database_pages(refresh=True))
        self._invalidate_pages()
        return self._batch_summary(result.batch, len(saved_albums), skipped=result.skipped)

    def update_stale_albums(self, overwrite_ids: bool = False) -> Dict:
        saved_albums = self.load_saved_albums()
        pages = self.get_database_pages(refresh=True)
        refresher = StaleAlbumRefresher(self.notion, self.columns, self.max_workers)
        batch = refresher.refresh(saved_albums, pages, overwrite=overwrite_ids)
        self._invalidate_pages()
        return self._batch_summary(batch, len(pages), skipped=len(pages) - batch.total)

    def filter_library(self, use_snapshot: bool = True) -> Dict:
        if not self.columns.include:
            raise ConfigurationError("An include column must be configured to filter the library")
        self.session.require_user()
        saved_albums = self.load_saved_albums() if use_snapshot else None
        pages = self.get_database_pages(refresh=True)
        library_filter = LibraryFilter(self.spotify, self.columns, self.max_workers)
        changes = library_filter.filter_library_using_include_column(
            pages, self.columns.include, saved_albums
        )
        # The cached library no longer matches Spotify
        self.session.saved_albums = None
        return {
            "success": True,
            "total_pages": len(pages),
            "successful_updates": len(changes.add) + len(changes.remove),
            "failed_updates": 0,
            "skipped_updates": 0,
            "added": changes.add,
            "removed": changes.remove,
        }

    def remove_duplicates(self, use_rating: bool = True) -> Dict:
        pages = self.get_database_pages(refresh=True)
        remover = DuplicateAlbumRemover(self.notion, self.columns, self.max_workers)
        batch = remover.remove_duplicates(pages, use_rating=use_rating and bool(self.columns.rating))
        self._invalidate_pages()
        summary = self._batch_summary(batch, len(pages), skipped=len(pages) - batch.total)
        summary["archived_page_ids"] = batch.results
        return summary

    def infer_artists(self) -> Dict:
        pages = self.get_database_pages(refresh=True)
        batch = self._inference().infer_artists(pages)
        self._invalidate_pages()
        return self._batch_summary(batch, len(pages), skipped=len(pages) - batch.total)

    def infer_album_ids(self) -> Dict:
        pages = self.get_database_pages(refresh=True)
        batch = self._inference().infer_album_ids(pages)
        self._invalidate_pages()
        return self._batch_summary(batch, len(pages), skipped=len(pages) - batch.total)

    def update_artwork(self, overwrite_artwork: bool = False) -> Dict:
        pages = self.get_database_pages(refresh=True)
        batch = self._inference().update_artwork(pages, overwrite=overwrite_artwork)
        self._invalidate_pages()
        return self._batch_summary(batch, len(pages), skipped=len(pages) - batch.total)

    def _inference(self) -> PageInference:
        return PageInference(
            self.notion, self.spotify, self.database_id, self.columns, self.max_workers
        )

    @staticmethod
    def _batch_summary(batch: BatchResult, total: int, skipped: int = 0) -> Dict:
        return {
            "success": batch.ok,
            "total_pages": total,
            "successful_updates": len(batch.succeeded),
            "failed_updates": len(batch.failed),
            "skipped_updates": skipped,
        }

    def run_sync(
        self,
        job: str,
        overwrite_ids: bool = False,
        overwrite_artwork: bool = False,
        use_rating: bool = True,
        use_snapshot: bool = True,
        refresh_library: bool = False,
    ) -> Dict:
        """Run one job and return its results summary.

        With ``refresh_library`` the saved albums cached on the session are
        reloaded from Spotify before the job starts.
        """
        runners: Dict[str, Callable[[], Dict]] = {
            JOB_IMPORT: self.import_albums,
            JOB_REFRESH_STALE: lambda: self.update_stale_albums(overwrite_ids),
            JOB_FILTER_LIBRARY: lambda: self.filter_library(use_snapshot),
            JOB_REMOVE_DUPLICATES: lambda: self.remove_duplicates(use_rating),
            JOB_INFER_ARTISTS: self.infer_artists,
            JOB_INFER_ALBUM_IDS: self.infer_album_ids,
            JOB_UPDATE_ARTWORK: lambda: self.update_artwork(overwrite_artwork),
        }
        if job not in runners:
            logger.error("Invalid job: %s. Must be one of %s", job, ", ".join(JOBS))
            return {"success": False, "message": f"Invalid job: {job}"}

        logger.info("Starting %s job", job)
        start_time = time.time()
        if refresh_library:
            self.session.saved_albums = None
        results = runners[job]()
        results["duration"] = time.time() - start_time

        logger.info("Job %s completed in %.2f seconds", job, results["duration"])
        logger.info("Successful updates: %s", results["successful_updates"])
        logger.info("Failed updates: %s", results["failed_updates"])
        if results["skipped_updates"] > 0:
            logger.info("Skipped updates: %s", results["skipped_updates"])
        return results


def validate_environment() -> bool:
    """Validate environment variables and configuration."""
    errors = []

    notion_token = get_notion_token()
    database_id = get_database_id()

    if not notion_token:
        errors.append("NOTION_INTERNAL_INTEGRATION_SECRET (or legacy NOTION_TOKEN)")
    if not database_id:
        errors.append("NOTION_ALBUMS_DATABASE_ID (or legacy DATABASE_ID)")
    if not os.getenv("SPOTIFY_CLIENT_ID"):
        errors.append("SPOTIFY_CLIENT_ID")
    if not os.getenv("SPOTIFY_CLIENT_SECRET") and not os.getenv("SPOTIFY_ACCESS_TOKEN"):
        errors.append("SPOTIFY_CLIENT_SECRET (or a pre-issued SPOTIFY_ACCESS_TOKEN)")

    if errors:
        logger.error("Missing required environment variables:")
        for error in errors:
            logger.error("  - %s", error)
        logger.error("Please check your .env file or environment variables.")
        return False

    if not os.getenv("SPOTIFY_REFRESH_TOKEN") and not os.getenv("SPOTIFY_ACCESS_TOKEN"):
        logger.warning(
            "SPOTIFY_REFRESH_TOKEN not set; library jobs (import, refresh-stale, "
            "filter-library) will not be able to read saved albums"
        )
    if not notion_token.startswith(("secret_", "ntn_")):
        logger.warning("Notion token should start with 'secret_' or 'ntn_'")

    return True


def build_sync_instance(
    workers: int = DEFAULT_WORKERS, columns: Optional[AlbumColumns] = None
) -> NotionSpotifyAlbumSync:
    session = SpotifySession.from_env()
    return NotionSpotifyAlbumSync(
        NotionAPI(get_notion_token()),
        SpotifyAPI(session, max_workers=workers),
        get_database_id(),
        columns=columns or AlbumColumns.from_env(),
        max_workers=workers,
    )


def run_sync(
    *,
    job: str,
    overwrite_ids: bool = False,
    overwrite_artwork: bool = False,
    use_rating: bool = True,
    use_snapshot: bool = True,
    workers: int = DEFAULT_WORKERS,
) -> Dict:
    """Build a sync from the environment and run one job."""
    if workers < 1:
        raise ValueError("--workers must be at least 1")
    return build_sync_instance(workers).run_sync(
        job,
        overwrite_ids=overwrite_ids,
        overwrite_artwork=overwrite_artwork,
        use_rating=use_rating,
        use_snapshot=use_snapshot,
    )

