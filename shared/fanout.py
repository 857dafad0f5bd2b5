import concurrent.futures
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar

from shared.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_WORKERS = 4


@dataclass
class BatchResult:
    """Per-item outcome of a fan-out: what succeeded and what failed."""

    succeeded: List[Tuple[Any, Any]] = field(default_factory=list)
    failed: List[Tuple[Any, BaseException]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def results(self) -> List[Any]:
        return [result for _, result in self.succeeded]

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)


def fan_out(
    fn: Callable[[T], R],
    items: Iterable[T],
    max_workers: int = DEFAULT_WORKERS,
    describe: Optional[Callable[[T], str]] = None,
) -> BatchResult:
    """Run ``fn`` over every item concurrently, collecting each outcome.

    A failing item is logged and recorded; it never stops its siblings.
    """
    items = list(items)
    batch = BatchResult()
    if not items:
        return batch

    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_item = {executor.submit(fn, item): item for item in items}

        for i, future in enumerate(concurrent.futures.as_completed(future_to_item), 1):
            item = future_to_item[future]
            label = describe(item) if describe else repr(item)
            try:
                batch.succeeded.append((item, future.result()))
                logger.debug("Completed %s (%d/%d)", label, i, len(items))
            except Exception as exc:  # pylint: disable=broad-except
                logger.error("Error processing %s: %s", label, exc)
                batch.failed.append((item, exc))

    return batch


def fan_out_all(
    fn: Callable[[T], R],
    items: Sequence[T],
    max_workers: int = DEFAULT_WORKERS,
) -> List[R]:
    """Run ``fn`` over every item concurrently and return results in input order.

    The first failure is re-raised; requests that have not started are cancelled.
    """
    items = list(items)
    if not items:
        return []

    executor = concurrent.futures.ThreadPoolExecutor(max_workers=max_workers)
    try:
        futures = [executor.submit(fn, item) for item in items]
        done, _ = concurrent.futures.wait(
            futures, return_when=concurrent.futures.FIRST_EXCEPTION
        )
        for future in done:
            if future.exception() is not None:
                raise future.exception()
        return [future.result() for future in futures]
    finally:
        executor.shutdown(wait=True, cancel_futures=True)
