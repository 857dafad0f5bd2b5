# Column Mapping Configuration
# Names of the Notion database properties each job reads and writes.
# Every name can be overridden with an ALBUM_SYNC_<ROLE>_COLUMN environment
# variable (e.g. ALBUM_SYNC_ARTIST_COLUMN="Artists") or from the interactive menu.

import os
from dataclasses import dataclass, fields, replace
from typing import Dict, Optional

# Required Properties
ALBUM_NAME_PROPERTY = "Album Name"  # title
ARTIST_PROPERTY = "Artist"  # rich text, artists joined with ", "
ALBUM_ID_PROPERTY = "Album ID"  # rich text, Spotify album IDs joined with ", "
ALBUM_URL_PROPERTY = "URL"  # url

# Import Properties
GENRE_PROPERTY = "Genre"  # multi-select
DATE_DISCOVERED_PROPERTY = "Date Discovered"  # date the album was saved on Spotify
DURATION_PROPERTY = None  # number (minutes); None to skip
TYPE_PROPERTY = None  # select (Album / EP / Single); None to skip

# Job Properties
RATING_PROPERTY = "Rating"  # select; duplicate removal keeps rated pages
INCLUDE_PROPERTY = "Include In Spotify"  # boolean formula used by the library filter

# Separator used when a page stores more than one Spotify album ID
ALBUM_ID_DELIMITER = ", "


@dataclass(frozen=True)
class AlbumColumns:
    album_name: str = ALBUM_NAME_PROPERTY
    artist: str = ARTIST_PROPERTY
    album_id: str = ALBUM_ID_PROPERTY
    album_url: str = ALBUM_URL_PROPERTY
    genre: Optional[str] = GENRE_PROPERTY
    date_discovered: Optional[str] = DATE_DISCOVERED_PROPERTY
    duration: Optional[str] = DURATION_PROPERTY
    release_type: Optional[str] = TYPE_PROPERTY
    rating: Optional[str] = RATING_PROPERTY
    include: Optional[str] = INCLUDE_PROPERTY

    @classmethod
    def from_env(cls) -> "AlbumColumns":
        overrides: Dict[str, Optional[str]] = {}
        for column in fields(cls):
            value = os.getenv(f"ALBUM_SYNC_{column.name.upper()}_COLUMN")
            if value is not None:
                overrides[column.name] = value.strip() or None
        return replace(cls(), **overrides)

    def with_column(self, role: str, name: Optional[str]) -> "AlbumColumns":
        if role not in self.roles():
            raise ValueError(f"Unknown column role '{role}'")
        return replace(self, **{role: name})

    @classmethod
    def roles(cls):
        return [column.name for column in fields(cls)]

    def expected_types(self) -> Dict[str, str]:
        """Map each configured column name to the Notion type jobs expect."""
        expected = {
            self.album_name: "title",
            self.artist: "rich_text",
            self.album_id: "rich_text",
            self.album_url: "url",
        }
        optional = {
            self.genre: "multi_select",
            self.date_discovered: "date",
            self.duration: "number",
            self.release_type: "select",
            self.rating: "select",
            self.include: "formula",
        }
        expected.update({name: kind for name, kind in optional.items() if name})
        return expected
