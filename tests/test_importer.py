import unittest

from fakes import FakeNotion, FakeSpotify, make_album, make_page, saved_item
from syncs.albums.importer import AlbumImporter, classify_genres, select_new_albums
from syncs.albums.models import SavedAlbum
from syncs.albums.property_config import AlbumColumns

COLUMNS = AlbumColumns()


def saved(album, added_at="2024-05-01T10:00:00Z"):
    return SavedAlbum.from_spotify(saved_item(album, added_at))


class SelectNewAlbumsTests(unittest.TestCase):
    def test_album_key_match_is_not_imported(self):
        pages = [make_page("p1", "Blue", "Joni Mitchell")]
        albums = [saved(make_album("a9", "BLUE ", ("Joni Mitchell",)))]
        self.assertEqual(select_new_albums(albums, pages, COLUMNS), [])

    def test_album_id_match_is_not_imported(self):
        pages = [make_page("p1", "Renamed In Notion", "Someone", album_ids="a0, a1")]
        albums = [saved(make_album("a1", "Original Name"))]
        self.assertEqual(select_new_albums(albums, pages, COLUMNS), [])

    def test_unknown_album_is_selected(self):
        pages = [make_page("p1", "Blue", "Joni Mitchell", album_ids="a0")]
        new_album = saved(make_album("a2", "Court and Spark", ("Joni Mitchell",)))
        self.assertEqual(select_new_albums([new_album], pages, COLUMNS), [new_album])


class ClassifyGenresTests(unittest.TestCase):
    def test_keywords_map_to_tags(self):
        self.assertEqual(classify_genres(["indie rock", "bedroom pop"]), ["Rock", "Indie", "Pop"])

    def test_unmatched_genres_optional(self):
        self.assertEqual(classify_genres(["kwaito"]), [])
        self.assertEqual(classify_genres(["kwaito"], keep_unmatched=True), ["kwaito"])


class AlbumImporterTests(unittest.TestCase):
    def test_imports_only_new_albums(self):
        pages = [make_page("p1", "Blue", "Joni Mitchell")]
        known = make_album("a1", "Blue", ("Joni Mitchell",))
        new = make_album("a2", "Hejira", ("Joni Mitchell",))
        notion = FakeNotion(pages)
        spotify = FakeSpotify(
            saved=[saved_item(known), saved_item(new)],
            artists={"artist-0-joni mitchell": ["canadian singer-songwriter", "folk"]},
        )
        importer = AlbumImporter(notion, spotify, "db", COLUMNS, max_workers=2)

        result = importer.import_albums([saved(known), saved(new)], pages)

        self.assertEqual(result.skipped, 1)
        self.assertEqual(result.created_page_ids, ["created-1"])
        created = notion.created[0]
        properties = created["properties"]
        self.assertEqual(properties["Album Name"]["title"][0]["text"]["content"], "Hejira")
        self.assertEqual(properties["Album ID"]["rich_text"][0]["text"]["content"], "a2")
        self.assertEqual(properties["URL"], {"url": "https://open.spotify.com/album/a2"})
        self.assertEqual(properties["Genre"], {"multi_select": [{"name": "Folk"}]})
        self.assertEqual(properties["Date Discovered"], {"date": {"start": "2024-05-01T10:00:00Z"}})
        self.assertEqual(created["cover_url"], "https://i.scdn.co/image/a2")
        self.assertEqual(created["icon_url"], "https://i.scdn.co/image/a2")

    def test_release_kind_tags(self):
        ep = make_album("e1", "Short One", album_type="single", track_durations=(240000,) * 5)
        notion = FakeNotion()
        importer = AlbumImporter(notion, FakeSpotify(saved=[saved_item(ep)]), "db", COLUMNS)

        importer.import_albums([saved(ep)], [])

        self.assertEqual(notion.created[0]["properties"]["Genre"], {"multi_select": [{"name": "EP"}]})

    def test_one_failed_page_does_not_stop_the_rest(self):
        first = make_album("a1", "Works")
        second = make_album("a2", "Breaks")
        notion = FakeNotion(failing_titles={"Breaks"})
        importer = AlbumImporter(notion, FakeSpotify(saved=[saved_item(first), saved_item(second)]), "db", COLUMNS)

        result = importer.import_albums([saved(first), saved(second)], [])

        self.assertEqual(len(result.batch.succeeded), 1)
        self.assertEqual(len(result.batch.failed), 1)
        failed_album, error = result.batch.failed[0]
        self.assertEqual(failed_album.album.id, "a2")
        self.assertIn("Breaks", str(error))

    def test_runtime_uses_remaining_track_pages(self):
        album = make_album("a1", "Long", track_durations=(60000,) * 30, total_tracks=30)
        partial = dict(album, tracks={"items": album["tracks"]["items"][:20]})
        spotify = FakeSpotify(catalog=[album])
        importer = AlbumImporter(FakeNotion(), spotify, "db", COLUMNS)

        runtime = importer.album_runtime_ms(saved(partial).album)

        self.assertEqual(runtime, 30 * 60000)


if __name__ == "__main__":
    unittest.main()
