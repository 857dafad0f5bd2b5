"""
Album identity and release classification.

An album is matched to a Notion page either by one of the Spotify IDs stored on
the page or by its album key, the normalized "name - artists" string. Two
different releases with the same name and artist text share a key, and the
same release with its artists listed in another order does not; both are
accepted limitations of key matching.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from shared.page_fields import get_rich_text, get_title
from syncs.albums.property_config import ALBUM_ID_DELIMITER, AlbumColumns

EP_MIN_TRACKS = 4
EP_MAX_TRACKS = 6
EP_MAX_RUNTIME_MS = 30 * 60 * 1000


class ReleaseKind(Enum):
    ALBUM = "Album"
    EP = "EP"
    SINGLE = "Single"


def album_key(album_name: str, album_artist: str) -> str:
    """Join the trimmed, lowercased album name and artist as "{name} - {artist}"."""
    return f"{album_name.strip().lower()} - {album_artist.strip().lower()}"


def parse_album_ids(text: str, delimiter: str = ALBUM_ID_DELIMITER) -> List[str]:
    """Split a stored ID string, keeping order and dropping blanks and repeats."""
    separator = delimiter.strip() or delimiter
    ids: List[str] = []
    for raw_id in text.split(separator):
        album_id = raw_id.strip()
        if album_id and album_id not in ids:
            ids.append(album_id)
    return ids


def format_album_ids(album_ids: Iterable[str], delimiter: str = ALBUM_ID_DELIMITER) -> str:
    return delimiter.join(album_ids)


def merge_album_ids(old_ids: Iterable[str], new_ids: Iterable[str]) -> List[str]:
    """Ordered union: every old ID first, then new IDs not seen yet."""
    merged: List[str] = []
    for album_id in list(old_ids) + list(new_ids):
        if album_id not in merged:
            merged.append(album_id)
    return merged


def classify_release(album_type: str, track_count: int, runtime_ms: int) -> ReleaseKind:
    """Albums and compilations stay albums; short 4-6 track releases are EPs."""
    if album_type in ("album", "compilation"):
        return ReleaseKind.ALBUM
    if EP_MIN_TRACKS <= track_count <= EP_MAX_TRACKS and runtime_ms <= EP_MAX_RUNTIME_MS:
        return ReleaseKind.EP
    return ReleaseKind.SINGLE


def page_album_ids(page: Dict, columns: AlbumColumns) -> List[str]:
    return parse_album_ids(get_rich_text(page, columns.album_id))


def page_album_key(page: Dict, columns: AlbumColumns) -> str:
    return album_key(get_title(page, columns.album_name), get_rich_text(page, columns.artist))


@dataclass(frozen=True)
class AlbumRecord:
    """A Spotify album as fetched for this run."""

    id: str
    name: str
    artists: Tuple[str, ...]
    url: str
    album_type: str = "album"
    total_tracks: int = 0
    markets: Tuple[str, ...] = ()
    genres: Tuple[str, ...] = ()
    artist_ids: Tuple[str, ...] = ()
    images: Tuple[str, ...] = ()
    track_durations: Tuple[int, ...] = ()
    release_date: Optional[str] = None

    @classmethod
    def from_spotify(cls, album: Dict) -> "AlbumRecord":
        artists = album.get("artists") or []
        tracks = (album.get("tracks") or {}).get("items") or []
        return cls(
            id=album["id"],
            name=album.get("name", ""),
            artists=tuple(artist.get("name", "") for artist in artists),
            url=(album.get("external_urls") or {}).get("spotify", ""),
            album_type=album.get("album_type", "album"),
            total_tracks=album.get("total_tracks", len(tracks)),
            markets=tuple(album.get("available_markets") or ()),
            genres=tuple(album.get("genres") or ()),
            artist_ids=tuple(artist["id"] for artist in artists if artist.get("id")),
            # Spotify lists the widest image first
            images=tuple(image["url"] for image in album.get("images") or [] if image.get("url")),
            track_durations=tuple(track.get("duration_ms", 0) for track in tracks),
            release_date=album.get("release_date"),
        )

    @property
    def artist_text(self) -> str:
        return ", ".join(self.artists)

    @property
    def key(self) -> str:
        return album_key(self.name, self.artist_text)

    @property
    def cover_url(self) -> Optional[str]:
        return self.images[0] if self.images else None

    @property
    def is_available(self) -> bool:
        return len(self.markets) > 0

    @property
    def has_all_tracks(self) -> bool:
        return len(self.track_durations) == self.total_tracks


@dataclass(frozen=True)
class SavedAlbum:
    """An album in the user's library and when it was saved."""

    album: AlbumRecord
    added_at: Optional[str] = None

    @classmethod
    def from_spotify(cls, item: Dict) -> "SavedAlbum":
        return cls(album=AlbumRecord.from_spotify(item["album"]), added_at=item.get("added_at"))
