import os
import threading
import time
from typing import Dict, List, Optional

import requests

from shared.errors import SessionError, SpotifyAPIError
from shared.logging_config import get_logger

logger = get_logger(__name__)

SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"
SPOTIFY_SCOPES = ("user-library-read", "user-library-modify")

# Refresh slightly before the token actually expires
_EXPIRY_MARGIN_SECONDS = 60


class SpotifySession:
    """Credentials of the signed-in Spotify user plus their cached saved albums.

    A session is created by one of the ``sign_in_*`` constructors and cleared by
    :meth:`sign_out`. Client-credential sessions can read the catalog but not a
    user's library.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: Optional[str] = None,
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
        expires_at: Optional[float] = None,
        user_scoped: bool = True,
        http: Optional[requests.Session] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.user_scoped = user_scoped
        self.saved_albums: Optional[List] = None
        self._access_token = access_token
        self._expires_at = expires_at
        self._http = http or requests.Session()
        self._lock = threading.Lock()

    @classmethod
    def sign_in_with_refresh_token(
        cls,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        http: Optional[requests.Session] = None,
    ) -> "SpotifySession":
        session = cls(client_id, client_secret, refresh_token=refresh_token, http=http)
        session.refresh()
        logger.info("Signed in to Spotify with refresh token")
        return session

    @classmethod
    def sign_in_with_client_credentials(
        cls,
        client_id: str,
        client_secret: str,
        http: Optional[requests.Session] = None,
    ) -> "SpotifySession":
        session = cls(client_id, client_secret, user_scoped=False, http=http)
        session.refresh()
        logger.info("Signed in to Spotify with client credentials (catalog access only)")
        return session

    @classmethod
    def from_env(cls) -> "SpotifySession":
        """Sign in with whatever credentials the environment provides."""
        client_id = os.getenv("SPOTIFY_CLIENT_ID")
        client_secret = os.getenv("SPOTIFY_CLIENT_SECRET")
        refresh_token = os.getenv("SPOTIFY_REFRESH_TOKEN")
        access_token = os.getenv("SPOTIFY_ACCESS_TOKEN")

        if not client_id:
            raise SessionError("SPOTIFY_CLIENT_ID must be set")
        if refresh_token and client_secret:
            return cls.sign_in_with_refresh_token(client_id, client_secret, refresh_token)
        if access_token:
            logger.info("Using pre-issued Spotify access token")
            return cls(client_id, client_secret, access_token=access_token)
        if client_secret:
            return cls.sign_in_with_client_credentials(client_id, client_secret)
        raise SessionError(
            "Set SPOTIFY_REFRESH_TOKEN (with SPOTIFY_CLIENT_SECRET) or SPOTIFY_ACCESS_TOKEN"
        )

    @property
    def signed_in(self) -> bool:
        return self._access_token is not None

    @property
    def can_refresh(self) -> bool:
        return bool(self.client_secret and (self.refresh_token or not self.user_scoped))

    def access_token(self) -> str:
        """Return a valid access token, refreshing it when it is about to expire."""
        with self._lock:
            if self._access_token is None:
                raise SessionError("Not signed in to Spotify")
            expired = self._expires_at is not None and time.time() >= self._expires_at
            if expired and self.can_refresh:
                self._refresh_locked()
            return self._access_token

    def require_user(self) -> None:
        if not self.signed_in:
            raise SessionError("Not signed in to Spotify")
        if not self.user_scoped:
            raise SessionError(
                "This job needs access to a user's library; sign in with SPOTIFY_REFRESH_TOKEN"
            )

    def refresh(self) -> None:
        with self._lock:
            self._refresh_locked()

    def _refresh_locked(self) -> None:
        if not self.client_secret:
            raise SessionError("SPOTIFY_CLIENT_SECRET is required to obtain a token")
        if self.user_scoped:
            if not self.refresh_token:
                raise SessionError("No refresh token available for this session")
            data = {"grant_type": "refresh_token", "refresh_token": self.refresh_token}
        else:
            data = {"grant_type": "client_credentials"}

        response = self._http.post(
            SPOTIFY_TOKEN_URL,
            data=data,
            auth=(self.client_id, self.client_secret),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        if response.status_code != 200:
            raise SpotifyAPIError(
                f"Spotify token request failed with status {response.status_code}",
                status_code=response.status_code,
            )

        token_data: Dict = response.json()
        self._access_token = token_data["access_token"]
        self._expires_at = time.time() + token_data.get("expires_in", 3600) - _EXPIRY_MARGIN_SECONDS
        # Spotify may rotate the refresh token
        if token_data.get("refresh_token"):
            self.refresh_token = token_data["refresh_token"]
        logger.debug("Obtained Spotify access token")

    def sign_out(self) -> None:
        """Forget the token and the cached library."""
        with self._lock:
            self._access_token = None
            self._expires_at = None
            self.refresh_token = None
            self.saved_albums = None
        logger.info("Signed out of Spotify")
