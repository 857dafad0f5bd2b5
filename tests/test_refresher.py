import unittest

from fakes import FakeNotion, make_album, make_page, saved_item
from syncs.albums.models import SavedAlbum
from syncs.albums.property_config import AlbumColumns
from syncs.albums.refresher import StaleAlbumRefresher, is_stale, plan_refresh

COLUMNS = AlbumColumns()


def saved(album_id, name="Blue", artist="Joni Mitchell", markets=("US",)):
    return SavedAlbum.from_spotify(saved_item(make_album(album_id, name, (artist,), markets=markets)))


class PlanRefreshTests(unittest.TestCase):
    def test_missing_id_is_merged(self):
        page = make_page("p1", "Blue", "Joni Mitchell", album_ids="A", album_url="https://open.spotify.com/album/A")
        plans = plan_refresh([page], [saved("B")], COLUMNS)

        self.assertEqual(len(plans), 1)
        self.assertEqual(plans[0].new_ids, ["A", "B"])
        self.assertEqual(plans[0].new_ids_text, "A, B")
        self.assertEqual(plans[0].new_url, "https://open.spotify.com/album/B")

    def test_overwrite_keeps_only_saved_ids(self):
        page = make_page("p1", "Blue", "Joni Mitchell", album_ids="A, B", album_url="https://open.spotify.com/album/B")
        plans = plan_refresh([page], [saved("B")], COLUMNS, overwrite=True)

        self.assertEqual(plans[0].new_ids, ["B"])

    def test_fresh_page_is_left_alone(self):
        page = make_page("p1", "Blue", "Joni Mitchell", album_ids="A, B", album_url="https://open.spotify.com/album/B")
        self.assertEqual(plan_refresh([page], [saved("B")], COLUMNS), [])

    def test_page_without_saved_album_is_ignored(self):
        page = make_page("p1", "Court and Spark", "Joni Mitchell", album_ids="X")
        self.assertEqual(plan_refresh([page], [saved("B")], COLUMNS), [])

    def test_url_prefers_available_album(self):
        page = make_page("p1", "Blue", "Joni Mitchell")
        truth = [saved("gone", markets=()), saved("live")]
        plans = plan_refresh([page], truth, COLUMNS)

        self.assertEqual(plans[0].new_ids, ["gone", "live"])
        self.assertEqual(plans[0].new_url, "https://open.spotify.com/album/live")

    def test_duplicate_saved_keys_are_warned(self):
        page = make_page("p1", "Blue", "Joni Mitchell")
        with self.assertLogs("album_sync", level="WARNING") as logs:
            plan_refresh([page], [saved("A"), saved("B")], COLUMNS)
        self.assertTrue(any("Duplicate albums found" in line for line in logs.output))

    def test_is_stale_on_wrong_url(self):
        self.assertTrue(is_stale(["B"], "https://example.com", [saved("B")]))


class StaleAlbumRefresherTests(unittest.TestCase):
    def test_writes_ids_and_url(self):
        page = make_page("p1", "Blue", "Joni Mitchell", album_ids="A")
        notion = FakeNotion([page])

        batch = StaleAlbumRefresher(notion, COLUMNS).refresh([saved("B")], [page])

        self.assertTrue(batch.ok)
        update = notion.updated[0]
        self.assertEqual(update["id"], "p1")
        self.assertEqual(
            update["properties"]["Album ID"],
            {"rich_text": [{"type": "text", "text": {"content": "A, B"}}]},
        )
        self.assertEqual(update["properties"]["URL"], {"url": "https://open.spotify.com/album/B"})


if __name__ == "__main__":
    unittest.main()
