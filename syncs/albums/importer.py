"""
Import of saved Spotify albums into the Notion album database.

An album is only imported when neither its Spotify ID nor its album key is
already present in the database. Pages are created concurrently and each
creation succeeds or fails on its own.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set

from shared.fanout import DEFAULT_WORKERS, BatchResult, fan_out
from shared.logging_config import get_logger
from shared.page_fields import (
    date_payload,
    multi_select_payload,
    number_payload,
    select_payload,
    text_payload,
    title_payload,
    url_payload,
)
from shared.utils import clean_multi_select_value
from syncs.albums import genre_config
from syncs.albums.models import (
    AlbumRecord,
    ReleaseKind,
    SavedAlbum,
    classify_release,
    page_album_ids,
    page_album_key,
)
from syncs.albums.property_config import AlbumColumns

logger = get_logger(__name__)


@dataclass
class ImportResult:
    batch: BatchResult = field(default_factory=BatchResult)
    skipped: int = 0

    @property
    def created_page_ids(self) -> List[str]:
        return self.batch.results


def existing_album_ids(pages: Iterable[Dict], columns: AlbumColumns) -> Set[str]:
    return {album_id for page in pages for album_id in page_album_ids(page, columns)}


def existing_album_keys(pages: Iterable[Dict], columns: AlbumColumns) -> Set[str]:
    return {page_album_key(page, columns) for page in pages}


def select_new_albums(
    saved_albums: Sequence[SavedAlbum], pages: Sequence[Dict], columns: AlbumColumns
) -> List[SavedAlbum]:
    """Drop albums whose ID or album key already appears in ``pages``."""
    known_ids = existing_album_ids(pages, columns)
    known_keys = existing_album_keys(pages, columns)
    return [
        saved
        for saved in saved_albums
        if saved.album.id not in known_ids and saved.album.key not in known_keys
    ]


def classify_genres(
    genres: Iterable[str],
    table: Mapping[str, Sequence[str]] = genre_config.GENRE_CLASSIFICATION,
    keep_unmatched: bool = genre_config.KEEP_UNMATCHED_GENRES,
) -> List[str]:
    """Map fine-grained Spotify genres onto the configured Genre tags."""
    tags: List[str] = []
    for genre in genres:
        lowered = genre.lower()
        matched = [tag for tag, keywords in table.items() if any(k in lowered for k in keywords)]
        if not matched and keep_unmatched:
            matched = [clean_multi_select_value(genre)]
        for tag in matched:
            if tag not in tags:
                tags.append(tag)
    return tags


def infer_genre_tags(
    album: AlbumRecord,
    artist_genres: Iterable[str],
    kind: ReleaseKind,
    table: Mapping[str, Sequence[str]] = genre_config.GENRE_CLASSIFICATION,
    keep_unmatched: bool = genre_config.KEEP_UNMATCHED_GENRES,
) -> List[str]:
    # Album genres are rarely populated by Spotify; artist genres carry most of it
    tags = classify_genres(list(album.genres) + list(artist_genres), table, keep_unmatched)
    if album.album_type == "compilation":
        tags.append(genre_config.COMPILATION_TAG)
    if kind is ReleaseKind.EP:
        tags.append(genre_config.EP_TAG)
    elif kind is ReleaseKind.SINGLE:
        tags.append(genre_config.SINGLE_TAG)
    return tags


def build_album_properties(
    saved: SavedAlbum,
    columns: AlbumColumns,
    genres: List[str],
    runtime_ms: int,
    kind: ReleaseKind,
) -> Dict:
    album = saved.album
    properties = {
        columns.album_name: title_payload(album.name),
        columns.artist: text_payload(album.artist_text),
        columns.album_id: text_payload(album.id),
        columns.album_url: url_payload(album.url),
    }
    if columns.genre:
        properties[columns.genre] = multi_select_payload(genres)
    if columns.date_discovered and saved.added_at:
        properties[columns.date_discovered] = date_payload(saved.added_at)
    if columns.duration:
        properties[columns.duration] = number_payload(round(runtime_ms / 60000, 2))
    if columns.release_type:
        properties[columns.release_type] = select_payload(kind.value)
    return properties


class AlbumImporter:
    """Creates Notion pages for saved albums the database does not know yet."""

    def __init__(
        self,
        notion,
        spotify,
        database_id: str,
        columns: AlbumColumns,
        genre_table: Optional[Mapping[str, Sequence[str]]] = None,
        keep_unmatched_genres: bool = genre_config.KEEP_UNMATCHED_GENRES,
        max_workers: int = DEFAULT_WORKERS,
    ):
        self.notion = notion
        self.spotify = spotify
        self.database_id = database_id
        self.columns = columns
        self.genre_table = genre_table if genre_table is not None else genre_config.GENRE_CLASSIFICATION
        self.keep_unmatched_genres = keep_unmatched_genres
        self.max_workers = max_workers

    def album_runtime_ms(self, album: AlbumRecord) -> int:
        """Total runtime, fetching the remaining track pages when the payload is partial."""
        if album.has_all_tracks:
            return sum(album.track_durations)
        tracks = self.spotify.get_album_tracks(album.id, total=album.total_tracks)
        return sum(track.get("duration_ms", 0) for track in tracks)

    def _artist_genres(self, albums: Sequence[SavedAlbum]) -> Dict[str, List[str]]:
        artist_ids: List[str] = []
        for saved in albums:
            for artist_id in saved.album.artist_ids:
                if artist_id not in artist_ids:
                    artist_ids.append(artist_id)
        if not artist_ids:
            return {}
        artists = self.spotify.get_artists(artist_ids)
        return {artist["id"]: artist.get("genres", []) for artist in artists}

    def import_albums(
        self, saved_albums: Sequence[SavedAlbum], pages: Optional[Sequence[Dict]] = None
    ) -> ImportResult:
        logger.info("Running importing job on %d albums", len(saved_albums))
        if pages is None:
            pages = self.notion.query_database(self.database_id)

        albums_to_import = select_new_albums(saved_albums, pages, self.columns)
        result = ImportResult(skipped=len(saved_albums) - len(albums_to_import))
        logger.info("Actually importing %d new albums", len(albums_to_import))
        if not albums_to_import:
            return result

        genres_by_artist = self._artist_genres(albums_to_import)

        def create(saved: SavedAlbum) -> str:
            album = saved.album
            runtime_ms = self.album_runtime_ms(album)
            kind = classify_release(album.album_type, album.total_tracks, runtime_ms)
            artist_genres = [
                genre for artist_id in album.artist_ids for genre in genres_by_artist.get(artist_id, [])
            ]
            genres = infer_genre_tags(
                album, artist_genres, kind, self.genre_table, self.keep_unmatched_genres
            )
            properties = build_album_properties(saved, self.columns, genres, runtime_ms, kind)
            page_id = self.notion.create_page(
                self.database_id,
                properties,
                cover_url=album.cover_url,
                icon_url=album.cover_url,
            )
            logger.info('Imported album "%s" (%s)', album.name, kind.value)
            return page_id

        result.batch = fan_out(
            create,
            albums_to_import,
            max_workers=self.max_workers,
            describe=lambda saved: f'album "{saved.album.key}"',
        )
        if result.batch.failed:
            logger.warning("%d albums could not be imported", len(result.batch.failed))
        return result
