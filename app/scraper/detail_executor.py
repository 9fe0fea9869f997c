from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from threading import Lock
from typing import Callable, List, Optional, Sequence, TypeVar

from .logging_utils import _scraper_event

T = TypeVar("T")
R = TypeVar("R")


class DetailExecutor:
    """
    Bounded worker pool for per-case detail fetches.

    - ``max_workers`` of 1 runs everything inline on the calling thread.
    - Each job opens and closes its own browser session, so nothing
      Playwright-related crosses threads.
    - Jobs must handle their own errors; one job never cancels another.
    """

    def __init__(self, max_workers: int) -> None:
        self._max_workers = max(1, max_workers)
        self._executor: Optional[ThreadPoolExecutor] = (
            ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="detail")
            if self._max_workers > 1
            else None
        )
        self._lock = Lock()
        self._in_flight: int = 0
        self._peak_in_flight: int = 0

    @property
    def max_workers(self) -> int:
        return self._max_workers

    def _track(self, fn: Callable[[T], R], item: T) -> R:
        with self._lock:
            self._in_flight += 1
            self._peak_in_flight = max(self._peak_in_flight, self._in_flight)
        try:
            return fn(item)
        finally:
            with self._lock:
                self._in_flight -= 1

    def map(self, items: Sequence[T], fn: Callable[[T], R]) -> List[R]:
        """Run ``fn`` over ``items`` and return results in input order."""

        if self._executor is None:
            return [self._track(fn, item) for item in items]

        futures: List[Future] = [self._executor.submit(self._track, fn, item) for item in items]
        return [future.result() for future in futures]

    @property
    def peak_in_flight(self) -> int:
        with self._lock:
            return self._peak_in_flight

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
        _scraper_event(
            "state",
            phase="detail_executor",
            kind="summary",
            peak_in_flight=self.peak_in_flight,
            max_workers=self._max_workers,
        )


__all__ = ["DetailExecutor"]
