import unittest
from unittest import mock

from shared.notion_api import NotionAPI


def page(page_id):
    return {"object": "page", "id": page_id, "properties": {}}


class NotionAPITests(unittest.TestCase):
    def setUp(self):
        self.client = mock.Mock()
        self.api = NotionAPI("secret_token", client=self.client)

    def test_query_follows_cursors(self):
        self.client.databases.query.side_effect = [
            {"results": [page("p1"), page("p2")], "has_more": True, "next_cursor": "c1"},
            {"results": [page("p3"), {"object": "page", "id": "partial"}], "has_more": False, "next_cursor": None},
        ]

        pages = self.api.query_database("db")

        self.assertEqual([p["id"] for p in pages], ["p1", "p2", "p3"])
        first, second = self.client.databases.query.call_args_list
        self.assertEqual(first.kwargs, {"database_id": "db", "page_size": 100})
        self.assertEqual(second.kwargs, {"database_id": "db", "page_size": 100, "start_cursor": "c1"})

    def test_create_page_with_artwork(self):
        self.client.pages.create.return_value = {"id": "new-page"}

        page_id = self.api.create_page("db", {"Album Name": {}}, cover_url="img", icon_url="img")

        self.assertEqual(page_id, "new-page")
        self.client.pages.create.assert_called_once_with(
            parent={"database_id": "db"},
            properties={"Album Name": {}},
            cover={"type": "external", "external": {"url": "img"}},
            icon={"type": "external", "external": {"url": "img"}},
        )

    def test_archive_page(self):
        self.api.archive_page("p1")
        self.client.pages.update.assert_called_once_with(page_id="p1", archived=True)

    def test_update_without_artwork(self):
        self.api.update_page("p1", {"URL": {"url": "u"}})
        self.client.pages.update.assert_called_once_with(page_id="p1", properties={"URL": {"url": "u"}})


if __name__ == "__main__":
    unittest.main()
