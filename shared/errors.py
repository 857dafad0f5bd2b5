from typing import Iterable, Optional


class AlbumSyncError(Exception):
    """Base class for errors raised by the album sync."""


class ConfigurationError(AlbumSyncError, ValueError):
    """Environment or column mapping does not match what a job needs."""


class PropertyMissingError(ConfigurationError):
    def __init__(self, property_name: str, page_id: Optional[str] = None):
        self.property_name = property_name
        self.page_id = page_id
        where = f" on page {page_id}" if page_id else ""
        super().__init__(f"Property '{property_name}' not found{where}")


class PropertyTypeError(ConfigurationError):
    def __init__(
        self,
        property_name: str,
        expected: str,
        actual: str,
        page_id: Optional[str] = None,
    ):
        self.property_name = property_name
        self.expected = expected
        self.actual = actual
        self.page_id = page_id
        where = f" on page {page_id}" if page_id else ""
        super().__init__(
            f"Property '{property_name}'{where} is {actual}, expected {expected}"
        )


class MutualExclusionError(AlbumSyncError, ValueError):
    """Raised when an album ID is marked both for adding and removing."""

    def __init__(self, overlapping: Iterable[str]):
        self.overlapping = list(overlapping)
        super().__init__(
            "Filtering function should produce mutually exclusive lists. "
            f"The elements [{', '.join(self.overlapping)}] belong to both lists."
        )


class SpotifyAPIError(AlbumSyncError, RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class SessionError(AlbumSyncError, RuntimeError):
    """A user-scoped Spotify call was made without a signed-in session."""


class PaginationError(AlbumSyncError, RuntimeError):
    pass
