import io
import unittest
from contextlib import redirect_stdout

from fakes import FakeNotion, default_schema
from find_columns import find_columns
from syncs.albums.property_config import AlbumColumns


class FindColumnsTests(unittest.TestCase):
    def test_matching_mapping(self):
        output = io.StringIO()
        with redirect_stdout(output):
            self.assertTrue(find_columns(FakeNotion(), "db", AlbumColumns()))
        self.assertIn("Column: Album Name", output.getvalue())
        self.assertIn("duration: (not used)", output.getvalue())

    def test_reports_renamed_column(self):
        output = io.StringIO()
        columns = AlbumColumns().with_column("artist", "Artists")
        with redirect_stdout(output):
            self.assertFalse(find_columns(FakeNotion(schema=default_schema()), "db", columns))
        self.assertIn("Column 'Artists' is missing", output.getvalue())


if __name__ == "__main__":
    unittest.main()
