"""
Periodic album sync runner.

Each tick runs the enabled jobs one after another in a background thread. A
tick that arrives while the previous run is still going is skipped, so two
runs never touch the library or the database at the same time.
"""

import os
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from shared.logging_config import get_logger
from shared.utils import env_flag
from syncs.albums.sync import JOB_IMPORT, JOB_REFRESH_STALE

logger = get_logger(__name__)

DEFAULT_INTERVAL_MINUTES = 60.0

JobCallable = Callable[[], Dict]


@dataclass
class ScheduleSettings:
    enabled: bool = False
    import_albums: bool = True
    update_stale_albums: bool = True
    interval_minutes: float = DEFAULT_INTERVAL_MINUTES
    next_run: Optional[datetime] = None

    @classmethod
    def from_env(cls) -> "ScheduleSettings":
        raw_interval = os.getenv("SCHEDULE_INTERVAL_MINUTES")
        interval = float(raw_interval) if raw_interval else DEFAULT_INTERVAL_MINUTES
        if interval <= 0:
            raise ValueError("SCHEDULE_INTERVAL_MINUTES must be positive")
        return cls(
            enabled=env_flag("SCHEDULE_ENABLED", False),
            import_albums=env_flag("SCHEDULE_IMPORT_ALBUMS", True),
            update_stale_albums=env_flag("SCHEDULE_UPDATE_STALE_ALBUMS", True),
            interval_minutes=interval,
        )

    @property
    def interval_seconds(self) -> float:
        return self.interval_minutes * 60

    def enabled_jobs(self) -> List[str]:
        jobs = []
        if self.import_albums:
            jobs.append(JOB_IMPORT)
        if self.update_stale_albums:
            jobs.append(JOB_REFRESH_STALE)
        return jobs


class PeriodicJobRunner:
    """Runs a fixed list of jobs on every tick, skipping ticks while a run is active."""

    def __init__(self, settings: ScheduleSettings, jobs: Dict[str, JobCallable]):
        self.settings = settings
        self.jobs = jobs
        self.skipped_ticks = 0
        self.last_results: Dict[str, Dict] = {}
        self._active = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._active.locked()

    def trigger(self) -> bool:
        """Start a run in the background. Returns False when the tick was skipped."""
        if not self._active.acquire(blocking=False):
            self.skipped_ticks += 1
            logger.warning("Previous run has not finished, skipping this tick")
            return False
        self._thread = threading.Thread(target=self._run_jobs, name="album-sync-run", daemon=True)
        self._thread.start()
        return True

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until the current run (if any) finishes."""
        if self._thread is not None:
            self._thread.join(timeout)

    def _run_jobs(self) -> None:
        try:
            for name, job in self.jobs.items():
                logger.info("Scheduled job %s starting", name)
                try:
                    self.last_results[name] = job()
                except Exception as exc:  # pylint: disable=broad-except
                    logger.error("Scheduled job %s failed: %s", name, exc)
                    self.last_results[name] = {"success": False, "message": str(exc)}
        finally:
            self._active.release()

    def run_forever(self) -> None:
        """Tick immediately, then once per interval until ``stop()`` is called."""
        if not self.jobs:
            logger.warning("No scheduled jobs are enabled")
            return
        logger.info(
            "Running %s every %.1f minutes", ", ".join(self.jobs), self.settings.interval_minutes
        )
        while not self._stop.is_set():
            self.trigger()
            self.settings.next_run = datetime.now() + timedelta(seconds=self.settings.interval_seconds)
            logger.info("Next run at %s", self.settings.next_run.strftime("%Y-%m-%d %H:%M:%S"))
            self._stop.wait(self.settings.interval_seconds)

    def stop(self) -> None:
        self._stop.set()


def build_runner(sync, settings: ScheduleSettings) -> PeriodicJobRunner:
    """Create a runner that executes the enabled jobs on ``sync``.

    The first job of every run reloads the saved albums from Spotify; later
    jobs in the same run reuse that snapshot.
    """
    jobs: Dict[str, JobCallable] = {}
    for index, job in enumerate(settings.enabled_jobs()):
        refresh = index == 0
        jobs[job] = lambda job=job, refresh=refresh: sync.run_sync(job, refresh_library=refresh)
    return PeriodicJobRunner(settings, jobs)
