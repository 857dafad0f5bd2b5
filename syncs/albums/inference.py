"""
Page maintenance jobs that fill in missing data by searching Spotify.

Searches take the first result, so a misspelled or ambiguous album name can
pick the wrong release. Every job reports per page successes and failures.
"""

from typing import Dict, List, Sequence

from shared.fanout import DEFAULT_WORKERS, BatchResult, fan_out
from shared.logging_config import get_logger
from shared.page_fields import get_rich_text, get_title, text_payload, url_payload
from syncs.albums.models import AlbumRecord
from syncs.albums.property_config import AlbumColumns

logger = get_logger(__name__)


class PageInference:
    def __init__(
        self,
        notion,
        spotify,
        database_id: str,
        columns: AlbumColumns,
        max_workers: int = DEFAULT_WORKERS,
    ):
        self.notion = notion
        self.spotify = spotify
        self.database_id = database_id
        self.columns = columns
        self.max_workers = max_workers

    def _search_first(self, query: str) -> AlbumRecord:
        results = self.spotify.search_albums(query, limit=1)
        if not results:
            raise LookupError(f'No Spotify album found for "{query}"')
        return AlbumRecord.from_spotify(results[0])

    def _describe(self, page: Dict) -> str:
        return f'page "{get_title(page, self.columns.album_name)}"'

    def infer_artists(self, pages: Sequence[Dict]) -> BatchResult:
        """Fill empty artist fields from a search on the album name."""
        pages_to_update = [page for page in pages if get_rich_text(page, self.columns.artist) == ""]
        logger.info("Inferring artists for %d pages", len(pages_to_update))

        def infer(page: Dict) -> str:
            album_name = get_title(page, self.columns.album_name)
            album = self._search_first(album_name)
            self.notion.update_page(page["id"], {self.columns.artist: text_payload(album.artist_text)})
            logger.info('Album "%s" has inferred artist "%s"', album_name, album.artist_text)
            return album.artist_text

        return fan_out(infer, pages_to_update, self.max_workers, describe=self._describe)

    def ensure_id_columns(self) -> List[str]:
        """Add the album ID and URL columns to the database when missing."""
        schema = self.notion.get_database(self.database_id).get("properties", {})
        missing = {}
        if self.columns.album_id not in schema:
            missing[self.columns.album_id] = {"rich_text": {}}
        if self.columns.album_url not in schema:
            missing[self.columns.album_url] = {"url": {}}
        if missing:
            self.notion.add_database_properties(self.database_id, missing)
            logger.info("Added columns: %s", ", ".join(missing))
        return list(missing)

    def infer_album_ids(self, pages: Sequence[Dict]) -> BatchResult:
        """Fill empty album IDs and URLs from a "name - artist" search."""
        added_columns = self.ensure_id_columns()
        if self.columns.album_id in added_columns:
            # Pages fetched before the column existed carry no value for it
            pages_to_update = list(pages)
        else:
            pages_to_update = [
                page for page in pages if get_rich_text(page, self.columns.album_id) == ""
            ]
        logger.info("Inferring album IDs for %d pages", len(pages_to_update))

        def infer(page: Dict) -> str:
            album_name = get_title(page, self.columns.album_name)
            artist = get_rich_text(page, self.columns.artist)
            # No field filters, so misspelled names still find a match
            album = self._search_first(f"{album_name} - {artist}")
            self.notion.update_page(
                page["id"],
                {
                    self.columns.album_id: text_payload(album.id),
                    self.columns.album_url: url_payload(album.url),
                },
            )
            logger.info('Album "%s" has ID "%s" and URL %s', album_name, album.id, album.url)
            return album.id

        return fan_out(infer, pages_to_update, self.max_workers, describe=self._describe)

    def update_artwork(self, pages: Sequence[Dict], overwrite: bool = False) -> BatchResult:
        """Set cover and icon to the album artwork for pages with an artist."""
        def needs_artwork(page: Dict) -> bool:
            if get_rich_text(page, self.columns.artist) == "":
                return False
            filled = page.get("cover") is not None and page.get("icon") is not None
            return overwrite or not filled

        pages_to_update = [page for page in pages if needs_artwork(page)]
        logger.info("Updating artwork for %d pages", len(pages_to_update))

        def update(page: Dict) -> str:
            album_name = get_title(page, self.columns.album_name)
            artist = get_rich_text(page, self.columns.artist)
            album = self._search_first(f'album:"{album_name}" artist:"{artist}"')
            if not album.cover_url:
                raise LookupError(f'Spotify album "{album.key}" has no artwork')
            self.notion.update_page(page["id"], cover_url=album.cover_url, icon_url=album.cover_url)
            logger.info('Updated album "%s" made by "%s" with artwork %s', album_name, artist, album.cover_url)
            return album.cover_url

        return fan_out(update, pages_to_update, self.max_workers, describe=self._describe)
