import os
import time
from typing import Dict, List, Optional, Tuple

import requests

from shared.errors import SpotifyAPIError
from shared.fanout import DEFAULT_WORKERS, fan_out_all
from shared.logging_config import get_logger
from shared.pagination import collect_offset_pages
from shared.spotify_session import SpotifySession
from shared.utils import chunked

logger = get_logger(__name__)

SPOTIFY_API_BASE = "https://api.spotify.com/v1"

SAVED_ALBUMS_PAGE_SIZE = 50
ALBUM_TRACKS_PAGE_SIZE = 20
ALBUMS_BATCH_SIZE = 20
ARTISTS_BATCH_SIZE = 50
LIBRARY_CHUNK_SIZE = 20


class SpotifyAPI:
    """Spotify Web API client for album library operations."""

    def __init__(
        self,
        session: SpotifySession,
        max_workers: int = DEFAULT_WORKERS,
        timeout: Optional[float] = None,
        http: Optional[requests.Session] = None,
    ):
        self.session = session
        self.max_workers = max_workers
        self.timeout = timeout if timeout is not None else _timeout_from_env()
        self.http = http or requests.Session()
        self.http.headers.update({"Accept": "application/json"})

    def _make_api_request(
        self,
        method: str,
        path: str,
        params: Optional[Dict] = None,
        max_retries: int = 3,
    ) -> Optional[Dict]:
        """Make an API request, waiting out rate limits and refreshing an expired token."""
        url = f"{SPOTIFY_API_BASE}{path}"
        refreshed = False

        for attempt in range(max_retries + 1):
            headers = {"Authorization": f"Bearer {self.session.access_token()}"}
            response = self.http.request(
                method, url, params=params, headers=headers, timeout=self.timeout
            )

            if response.status_code == 429 and attempt < max_retries:
                wait_time = float(response.headers.get("Retry-After", 2 ** attempt))
                logger.warning(
                    "Rate limited (429). Waiting %.1f seconds before retry %d/%d",
                    wait_time, attempt + 1, max_retries,
                )
                time.sleep(wait_time)
                continue

            if response.status_code == 401 and not refreshed and self.session.can_refresh:
                logger.info("Spotify access token rejected, refreshing")
                self.session.refresh()
                refreshed = True
                continue

            if response.status_code >= 400:
                raise SpotifyAPIError(
                    f"Spotify {method} {path} failed with status {response.status_code}: "
                    f"{_error_message(response)}",
                    status_code=response.status_code,
                )

            if not response.content:
                return None
            return response.json()

        raise SpotifyAPIError(
            f"Spotify {method} {path}: retries exhausted, last status {response.status_code}",
            status_code=response.status_code,
        )

    # Library

    def get_saved_albums_page(self, limit: int, offset: int) -> Tuple[List[Dict], int]:
        self.session.require_user()
        data = self._make_api_request(
            "GET", "/me/albums", params={"limit": limit, "offset": offset}
        )
        return data.get("items", []), data.get("total", 0)

    def get_saved_albums(self) -> List[Dict]:
        """Fetch the whole saved-album library with concurrent offset pages."""
        return collect_offset_pages(
            self.get_saved_albums_page,
            SAVED_ALBUMS_PAGE_SIZE,
            max_workers=self.max_workers,
        )

    def save_albums(self, album_ids: List[str]) -> None:
        self.session.require_user()
        self._make_api_request("PUT", "/me/albums", params={"ids": ",".join(album_ids)})

    def remove_saved_albums(self, album_ids: List[str]) -> None:
        self.session.require_user()
        self._make_api_request("DELETE", "/me/albums", params={"ids": ",".join(album_ids)})

    # Catalog

    def get_album(self, album_id: str) -> Dict:
        return self._make_api_request("GET", f"/albums/{album_id}")

    def get_albums(self, album_ids: List[str]) -> List[Dict]:
        """Fetch albums in batches of 20, preserving the order of ``album_ids``."""
        def fetch(chunk: List[str]) -> List[Dict]:
            data = self._make_api_request("GET", "/albums", params={"ids": ",".join(chunk)})
            return [album for album in data.get("albums", []) if album]

        batches = fan_out_all(fetch, chunked(album_ids, ALBUMS_BATCH_SIZE), self.max_workers)
        return [album for batch in batches for album in batch]

    def get_album_tracks_page(self, album_id: str, limit: int, offset: int) -> Tuple[List[Dict], int]:
        data = self._make_api_request(
            "GET", f"/albums/{album_id}/tracks", params={"limit": limit, "offset": offset}
        )
        return data.get("items", []), data.get("total", 0)

    def get_album_tracks(self, album_id: str, total: Optional[int] = None) -> List[Dict]:
        return collect_offset_pages(
            lambda limit, offset: self.get_album_tracks_page(album_id, limit, offset),
            ALBUM_TRACKS_PAGE_SIZE,
            total=total,
            max_workers=self.max_workers,
        )

    def get_artist(self, artist_id: str) -> Dict:
        return self._make_api_request("GET", f"/artists/{artist_id}")

    def get_artists(self, artist_ids: List[str]) -> List[Dict]:
        """Fetch artists in batches of 50, preserving the order of ``artist_ids``."""
        def fetch(chunk: List[str]) -> List[Dict]:
            data = self._make_api_request("GET", "/artists", params={"ids": ",".join(chunk)})
            return [artist for artist in data.get("artists", []) if artist]

        batches = fan_out_all(fetch, chunked(artist_ids, ARTISTS_BATCH_SIZE), self.max_workers)
        return [artist for batch in batches for artist in batch]

    def search_albums(self, query: str, limit: int = 1) -> List[Dict]:
        data = self._make_api_request(
            "GET", "/search", params={"q": query, "type": "album", "limit": limit}
        )
        return (data.get("albums") or {}).get("items", [])


def _timeout_from_env() -> Optional[float]:
    raw = os.getenv("SPOTIFY_REQUEST_TIMEOUT")
    if not raw:
        return None
    return float(raw)


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        return error.get("message", "")
    return str(error or payload)
