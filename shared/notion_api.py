from typing import Dict, List, Optional, Union

from notion_client import Client
from notion_client.errors import APIResponseError

from shared.logging_config import get_logger
from shared.page_fields import external_file
from shared.pagination import NOTION_MAX_PAGE_SIZE, collect_cursor_pages

logger = get_logger(__name__)


class NotionAPI:
    """Notion API client for album database operations.

    Errors are logged and re-raised so the calling job decides whether a failure
    aborts the batch or is recorded per page.
    """

    def __init__(self, token: str, client: Optional[Client] = None):
        self.client = client or Client(auth=token)

    def get_database(self, database_id: str) -> Dict:
        """Get database information, including its property schema."""
        try:
            return self.client.databases.retrieve(database_id=database_id)
        except APIResponseError as exc:
            logger.error("Error retrieving database %s: %s", database_id, exc)
            raise

    def add_database_properties(self, database_id: str, properties: Dict) -> Dict:
        """Add (or reconfigure) columns on a database."""
        try:
            return self.client.databases.update(database_id=database_id, properties=properties)
        except APIResponseError as exc:
            logger.error("Error updating schema of database %s: %s", database_id, exc)
            raise

    def query_database(
        self, database_id: str, filter_params: Optional[Dict] = None
    ) -> List[Dict]:
        """Query database for every page, following cursors sequentially."""

        def fetch_page(start_cursor: Optional[str]):
            params: Dict[str, Union[str, int, Dict]] = {"page_size": NOTION_MAX_PAGE_SIZE}
            if start_cursor:
                params["start_cursor"] = start_cursor
            if filter_params:
                params["filter"] = filter_params
            response = self.client.databases.query(database_id=database_id, **params)
            return response["results"], response["has_more"], response.get("next_cursor")

        try:
            pages = collect_cursor_pages(fetch_page)
        except APIResponseError as exc:
            logger.error("Error querying database %s: %s", database_id, exc)
            raise

        # Partial page objects carry no properties and cannot be reconciled
        return [page for page in pages if page.get("object") == "page" and "properties" in page]

    def create_page(
        self,
        database_id: str,
        properties: Dict,
        cover_url: Optional[str] = None,
        icon_url: Optional[str] = None,
    ) -> str:
        """Create a page inside a database and return its ID."""
        page_data: Dict[str, Dict] = {
            "parent": {"database_id": database_id},
            "properties": properties,
        }
        if cover_url:
            page_data["cover"] = external_file(cover_url)
        if icon_url:
            page_data["icon"] = external_file(icon_url)

        try:
            page = self.client.pages.create(**page_data)
        except APIResponseError as exc:
            logger.error("Error creating page in database %s: %s", database_id, exc)
            raise
        return page["id"]

    def update_page(
        self,
        page_id: str,
        properties: Optional[Dict] = None,
        cover_url: Optional[str] = None,
        icon_url: Optional[str] = None,
    ) -> None:
        """Update a page's properties and optionally its cover image and icon."""
        update_data: Dict[str, Dict] = {}
        if properties:
            update_data["properties"] = properties
        if cover_url:
            update_data["cover"] = external_file(cover_url)
        if icon_url:
            update_data["icon"] = external_file(icon_url)

        try:
            self.client.pages.update(page_id=page_id, **update_data)
        except APIResponseError as exc:
            logger.error("Error updating page %s: %s", page_id, exc)
            raise

    def archive_page(self, page_id: str) -> None:
        """Move a page to the trash; Notion keeps it restorable."""
        try:
            self.client.pages.update(page_id=page_id, archived=True)
        except APIResponseError as exc:
            logger.error("Error archiving page %s: %s", page_id, exc)
            raise
