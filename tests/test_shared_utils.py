import os
import unittest
from unittest import mock

from shared.utils import (
    chunked,
    clean_multi_select_value,
    env_flag,
    get_database_id,
    get_notion_token,
)


class UtilsTestCase(unittest.TestCase):
    def test_clean_multi_select_value_truncates_and_strips(self):
        dirty_value = " Indie,  Rock;\nAlt Pop "
        self.assertEqual(clean_multi_select_value(dirty_value), "Indie Rock Alt Pop")

    def test_chunked_splits_into_fixed_sizes(self):
        self.assertEqual(chunked([1, 2, 3, 4, 5], 2), [[1, 2], [3, 4], [5]])
        self.assertEqual(chunked([], 20), [])

    def test_chunked_rejects_non_positive_size(self):
        with self.assertRaises(ValueError):
            chunked([1], 0)


class EnvironmentTestCase(unittest.TestCase):
    def test_env_flag_parses_words(self):
        with mock.patch.dict(os.environ, {"SCHEDULE_ENABLED": "Yes"}):
            self.assertTrue(env_flag("SCHEDULE_ENABLED"))
        with mock.patch.dict(os.environ, {"SCHEDULE_ENABLED": "off"}):
            self.assertFalse(env_flag("SCHEDULE_ENABLED", True))

    def test_env_flag_default_when_unset(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            self.assertTrue(env_flag("SCHEDULE_IMPORT_ALBUMS", True))

    def test_env_flag_rejects_garbage(self):
        with mock.patch.dict(os.environ, {"SCHEDULE_ENABLED": "sometimes"}):
            with self.assertRaises(ValueError):
                env_flag("SCHEDULE_ENABLED")

    def test_database_id_prefers_albums_variable(self):
        env = {"NOTION_ALBUMS_DATABASE_ID": "albums-db", "DATABASE_ID": "legacy-db"}
        with mock.patch.dict(os.environ, env, clear=True):
            self.assertEqual(get_database_id(), "albums-db")
        with mock.patch.dict(os.environ, {"DATABASE_ID": "legacy-db"}, clear=True):
            self.assertEqual(get_database_id(), "legacy-db")

    def test_notion_token_falls_back_to_legacy_name(self):
        with mock.patch.dict(os.environ, {"NOTION_TOKEN": "secret_abc"}, clear=True):
            self.assertEqual(get_notion_token(), "secret_abc")


if __name__ == "__main__":
    unittest.main()
