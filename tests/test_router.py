import os
import unittest
from unittest import mock

import main
import router
from main import _job_options, _resolve_job_name, build_parser


class RouterTests(unittest.TestCase):
    def test_jobs_present(self):
        jobs = router.available_jobs()
        for name in (
            "import",
            "refresh-stale",
            "filter-library",
            "remove-duplicates",
            "infer-artists",
            "infer-album-ids",
            "update-artwork",
        ):
            self.assertIn(name, jobs)

    def test_job_options_are_filtered(self):
        job = router.get_job("remove-duplicates")
        options = {"use_rating": False, "overwrite_ids": True, "use_snapshot": True}
        self.assertEqual(job.filter_options(options), {"use_rating": False})

    def test_run_on_passes_only_job_options(self):
        sync = mock.Mock()
        sync.run_sync.return_value = {"success": True}
        router.get_job("refresh-stale").run_on(sync, overwrite_ids=True, use_rating=False)
        sync.run_sync.assert_called_once_with("refresh-stale", overwrite_ids=True)

    def test_run_sync_forwards_workers(self):
        with mock.patch.object(router.albums_sync, "run_sync", return_value={"success": True}) as run:
            router.get_job("update-artwork").run_sync(workers=2, overwrite_artwork=True, use_rating=True)
        run.assert_called_once_with(job="update-artwork", overwrite_artwork=True, workers=2)


class MainHelpersTests(unittest.TestCase):
    def test_resolve_job_name_priority(self):
        jobs = router.available_jobs()
        with mock.patch.dict(os.environ, {}, clear=True):
            self.assertEqual(_resolve_job_name("update-artwork", jobs), "update-artwork")
            self.assertEqual(_resolve_job_name(None, jobs), "import")
        with mock.patch.dict(os.environ, {"SYNC_JOB": "remove-duplicates"}):
            self.assertEqual(_resolve_job_name(None, jobs), "remove-duplicates")

    def test_parser_flags_map_to_job_options(self):
        parser = build_parser(router.available_jobs())
        args = parser.parse_args(["--job", "filter-library", "--no-snapshot", "--no-rating"])
        self.assertEqual(
            _job_options(args),
            {
                "overwrite_ids": False,
                "overwrite_artwork": False,
                "use_rating": False,
                "use_snapshot": False,
            },
        )

    def test_schedule_requires_enabled_flag(self):
        with mock.patch.dict(os.environ, {"SCHEDULE_ENABLED": "false"}, clear=True), \
                mock.patch.object(main.albums_sync, "build_sync_instance") as build:
            with self.assertRaises(RuntimeError):
                main.run_schedule(workers=2)
        build.assert_not_called()


if __name__ == "__main__":
    unittest.main()
