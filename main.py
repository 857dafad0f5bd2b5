#!/usr/bin/env python3

import argparse
import os
import sys
from typing import Callable, Dict, List, Optional

import requests
from dotenv import load_dotenv
from notion_client.errors import APIResponseError

import router
from scheduler import ScheduleSettings, build_runner
from shared.errors import AlbumSyncError
from shared.fanout import DEFAULT_WORKERS
from shared.logging_config import get_logger, setup_logging
from syncs.albums import sync as albums_sync

logger = get_logger(__name__)

InputFn = Callable[[str], str]


def build_parser(jobs: List[str]) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Sync saved Spotify albums with a Notion album database"
    )
    parser.add_argument(
        "--job",
        choices=jobs,
        help="Job to run once (default: SYNC_JOB env or import)",
    )
    parser.add_argument(
        "--overwrite-ids",
        action="store_true",
        help="refresh-stale: replace stored album IDs instead of merging them",
    )
    parser.add_argument(
        "--overwrite-artwork",
        action="store_true",
        help="update-artwork: replace existing covers and icons",
    )
    parser.add_argument(
        "--no-rating",
        action="store_true",
        help="remove-duplicates: ignore the rating column when picking the page to keep",
    )
    parser.add_argument(
        "--no-snapshot",
        action="store_true",
        help="filter-library: send every add/remove without diffing against the saved library",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=DEFAULT_WORKERS,
        metavar="N",
        help=f"Number of parallel workers (default: {DEFAULT_WORKERS})",
    )
    parser.add_argument(
        "--interactive",
        action="store_true",
        help="Open a menu to run jobs one after another",
    )
    parser.add_argument(
        "--schedule",
        action="store_true",
        help="Run the scheduled jobs periodically (see SCHEDULE_* env vars)",
    )
    return parser


def _resolve_job_name(args_job: Optional[str], available: List[str]) -> str:
    if args_job:
        return args_job
    env_job = os.getenv("SYNC_JOB")
    if env_job:
        return env_job
    return available[0]


def _job_options(args) -> Dict:
    return {
        "overwrite_ids": args.overwrite_ids,
        "overwrite_artwork": args.overwrite_artwork,
        "use_rating": not args.no_rating,
        "use_snapshot": not args.no_snapshot,
    }


def _log_result(result: Dict) -> bool:
    if result.get("success"):
        logger.info(
            "Synchronization completed successfully | updated=%s failed=%s skipped=%s",
            result.get("successful_updates", 0),
            result.get("failed_updates", 0),
            result.get("skipped_updates", 0),
        )
        return True
    logger.error(
        "Synchronization failed | updated=%s failed=%s skipped=%s",
        result.get("successful_updates", 0),
        result.get("failed_updates", 0),
        result.get("skipped_updates", 0),
    )
    return False


def _prompt_columns(sync, input_fn: InputFn) -> None:
    roles = sync.columns.roles()
    for index, role in enumerate(roles, start=1):
        print(f"  {index}. {role} = {getattr(sync.columns, role) or '(not used)'}")
    choice = input_fn("Column to rename (number, blank to cancel): ").strip()
    if not choice:
        return
    role = roles[int(choice) - 1]
    new_name = input_fn(f"New column name for {role} (blank to disable): ").strip()
    sync.set_columns(sync.columns.with_column(role, new_name or None))
    logger.info("Column %s is now %s", role, new_name or "(not used)")


def interactive_loop(sync, options: Dict, input_fn: InputFn = input) -> None:
    """Menu loop; a failing job is logged and the menu is shown again."""
    jobs = list(router.iter_jobs())
    extra = ["Reload Notion pages", "Reload Spotify library", "Change column names", "Check columns"]

    while True:
        print()
        for index, job in enumerate(jobs, start=1):
            print(f"{index}. {job.description}")
        for offset, label in enumerate(extra, start=len(jobs) + 1):
            print(f"{offset}. {label}")
        print("0. Exit")

        try:
            choice = input_fn("Select an option: ").strip()
        except (EOFError, KeyboardInterrupt):
            return
        if choice in ("0", "q", "exit"):
            return

        try:
            number = int(choice)
        except ValueError:
            print(f"Unknown option: {choice}")
            continue

        try:
            if 1 <= number <= len(jobs):
                _log_result(jobs[number - 1].run_on(sync, **options))
            elif number == len(jobs) + 1:
                sync.get_database_pages(refresh=True)
            elif number == len(jobs) + 2:
                sync.load_saved_albums(refresh=True)
            elif number == len(jobs) + 3:
                _prompt_columns(sync, input_fn)
            elif number == len(jobs) + 4:
                problems = sync.check_schema()
                for problem in problems:
                    logger.warning(problem)
                if not problems:
                    logger.info("Column mapping matches the database")
            else:
                print(f"Unknown option: {choice}")
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Error: %s", exc)


def run_schedule(workers: int) -> None:
    settings = ScheduleSettings.from_env()
    if not settings.enabled:
        raise RuntimeError("SCHEDULE_ENABLED must be true to run the scheduler")
    runner = build_runner(albums_sync.build_sync_instance(workers), settings)
    try:
        runner.run_forever()
    except KeyboardInterrupt:
        logger.info("Stopping scheduler")
        runner.stop()
        runner.wait()


def main():
    load_dotenv()
    setup_logging(os.getenv("LOG_FILE", "album_sync.log"))

    jobs = router.available_jobs()
    parser = build_parser(jobs)
    args = parser.parse_args()

    job_name = _resolve_job_name(args.job, jobs)
    if job_name not in jobs:
        logger.error("Unknown job '%s'. Valid options: %s", job_name, ", ".join(jobs))
        sys.exit(1)

    job = router.get_job(job_name)
    if not job.validate_environment():
        sys.exit(1)

    try:
        if args.workers < 1:
            raise ValueError("--workers must be at least 1")
        if args.schedule:
            run_schedule(args.workers)
            sys.exit(0)
        if args.interactive:
            interactive_loop(albums_sync.build_sync_instance(args.workers), _job_options(args))
            sys.exit(0)
        result = job.run_sync(workers=args.workers, **_job_options(args))
    except (RuntimeError, ValueError, AlbumSyncError, APIResponseError, requests.RequestException) as exc:
        logger.error(str(exc))
        sys.exit(1)

    sys.exit(0 if _log_result(result) else 1)


if __name__ == "__main__":
    main()
