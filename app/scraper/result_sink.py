from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from threading import Lock
from typing import Callable, List, Optional

from . import db
from .error_codes import ErrorCode
from .logging_utils import _scraper_event
from .models import ScrapeResult
from .utils import dump_json, short_error_message

RecordFn = Callable[..., int]


class ResultSink:
    """Hands finished results to the archive without making callers wait.

    Writes run on a single background thread. A failed write is logged as
    ``persistence_failure`` and otherwise ignored; the caller always gets the
    result back unchanged.
    """

    def __init__(self, record_fn: Optional[RecordFn] = None) -> None:
        self._record_fn = record_fn
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="result-sink")
        self._lock = Lock()
        self._pending: List[Future] = []

    def _write(self, result: ScrapeResult) -> None:
        record = self._record_fn or db.record_query
        query = result.query
        try:
            row_id = record(
                query.case_type,
                query.case_number,
                query.filing_year,
                dump_json(result.to_dict()),
                outcome=result.outcome.value,
                error_code=result.error_code,
            )
        except Exception as exc:  # noqa: BLE001
            _scraper_event(
                "error",
                phase="persist",
                error_code=ErrorCode.PERSISTENCE_FAILURE,
                case_type=query.case_type,
                case_number=query.case_number,
                error=short_error_message(exc),
            )
            return
        _scraper_event("persist", step="saved", row_id=row_id, outcome=result.outcome.value)

    def deliver(self, result: ScrapeResult) -> ScrapeResult:
        future = self._executor.submit(self._write, result)
        with self._lock:
            self._pending = [item for item in self._pending if not item.done()]
            self._pending.append(future)
        return result

    def flush(self, timeout: Optional[float] = None) -> None:
        """Block until queued writes finish (tests and shutdown)."""

        with self._lock:
            pending = list(self._pending)
        for future in pending:
            future.result(timeout=timeout)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)


_DEFAULT_SINK: Optional[ResultSink] = None
_DEFAULT_LOCK = Lock()


def default_sink() -> ResultSink:
    global _DEFAULT_SINK
    with _DEFAULT_LOCK:
        if _DEFAULT_SINK is None:
            _DEFAULT_SINK = ResultSink()
        return _DEFAULT_SINK


__all__ = ["ResultSink", "default_sink"]
