from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from syncs.albums import sync as albums_sync

_BUILD_OPTIONS = ("workers",)


@dataclass
class JobAdapter:
    name: str
    description: str
    option_names: Tuple[str, ...] = ()

    def filter_options(self, options: Dict) -> Dict:
        return {
            key: options[key]
            for key in self.option_names
            if key in options and options[key] is not None
        }

    def validate_environment(self) -> bool:
        return albums_sync.validate_environment()

    def run_sync(self, **options) -> Dict:
        """Build a sync from the environment and run this job."""
        filtered = self.filter_options(options)
        filtered.update({key: options[key] for key in _BUILD_OPTIONS if key in options})
        return albums_sync.run_sync(job=self.name, **filtered)

    def run_on(self, sync, **options) -> Dict:
        """Run this job on an existing sync instance."""
        return sync.run_sync(self.name, **self.filter_options(options))


_JOBS: Dict[str, JobAdapter] = {
    albums_sync.JOB_IMPORT: JobAdapter(
        name=albums_sync.JOB_IMPORT,
        description="Import saved Spotify albums into Notion",
    ),
    albums_sync.JOB_REFRESH_STALE: JobAdapter(
        name=albums_sync.JOB_REFRESH_STALE,
        description="Update stale album IDs and URLs from Spotify",
        option_names=("overwrite_ids",),
    ),
    albums_sync.JOB_FILTER_LIBRARY: JobAdapter(
        name=albums_sync.JOB_FILTER_LIBRARY,
        description="Add/remove saved Spotify albums using the include column",
        option_names=("use_snapshot",),
    ),
    albums_sync.JOB_REMOVE_DUPLICATES: JobAdapter(
        name=albums_sync.JOB_REMOVE_DUPLICATES,
        description="Remove duplicate albums by album properties",
        option_names=("use_rating",),
    ),
    albums_sync.JOB_INFER_ARTISTS: JobAdapter(
        name=albums_sync.JOB_INFER_ARTISTS,
        description="Infer artists from album names",
    ),
    albums_sync.JOB_INFER_ALBUM_IDS: JobAdapter(
        name=albums_sync.JOB_INFER_ALBUM_IDS,
        description="Infer album IDs and URLs",
    ),
    albums_sync.JOB_UPDATE_ARTWORK: JobAdapter(
        name=albums_sync.JOB_UPDATE_ARTWORK,
        description="Update pages with album art",
        option_names=("overwrite_artwork",),
    ),
}


def available_jobs() -> List[str]:
    return list(_JOBS.keys())


def get_job(name: str) -> JobAdapter:
    return _JOBS[name]


def iter_jobs() -> Iterable[JobAdapter]:
    return _JOBS.values()

