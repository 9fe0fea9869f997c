"""Bounded readiness polling for script-populated tables.

The site fills its tables from an AJAX call and exposes no completion event,
so readiness is decided by repeatedly probing the DOM with a predicate. The
loop itself knows nothing about tables: ``Exhausted`` is returned rather than
raised because only the caller can tell "confirmed empty" from "timed out".
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .error_codes import ChallengeRejected
from .extractor import TableState, classify_table
from .logging_utils import _scraper_event

_CHALLENGE_ERROR_HINTS = ("captcha", "security code", "verification code")


class ReadyState(str, Enum):
    READY = "ready"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class PollResult:
    state: ReadyState
    attempts: int

    @property
    def ready(self) -> bool:
        return self.state is ReadyState.READY


def poll_until_ready(
    session,
    predicate: Callable[[object], bool],
    max_attempts: int,
    interval_seconds: float,
    *,
    scope=None,
    label: str = "table",
) -> PollResult:
    """Evaluate ``predicate(session)`` until it holds or the budget runs out.

    A satisfied predicate returns immediately. Otherwise the session pauses
    for ``interval_seconds`` between attempts; there is no pause after the
    final attempt, so the total wait is bounded by
    ``(max_attempts - 1) * interval_seconds`` plus probe time.
    """

    attempts = max(1, int(max_attempts))
    for attempt in range(1, attempts + 1):
        if scope is not None:
            scope.raise_if_cancelled()
        satisfied = bool(predicate(session))
        _scraper_event(
            "poll",
            table=label,
            attempt=attempt,
            max_attempts=attempts,
            satisfied=satisfied,
        )
        if satisfied:
            return PollResult(ReadyState.READY, attempt)
        if attempt < attempts:
            session.pause(interval_seconds)

    _scraper_event("poll", table=label, step="exhausted", attempts=attempts)
    return PollResult(ReadyState.EXHAUSTED, attempts)


class TableReadiness:
    """Readiness predicate for a DataTables-style table.

    Ready means at least one body row that is not the empty-marker row. The
    predicate remembers whether the empty marker was ever observed so the
    caller can tell "ran and found nothing" apart from "never loaded". When an
    ``error_selector`` is given, a visible challenge error aborts the poll
    with :class:`ChallengeRejected`.
    """

    def __init__(
        self,
        table_selector: str,
        empty_marker: str,
        *,
        error_selector: Optional[str] = None,
    ) -> None:
        self.table_selector = table_selector
        self.empty_marker = empty_marker
        self.error_selector = error_selector
        self.empty_marker_seen = False
        self.last_state: Optional[TableState] = None

    def _check_challenge_error(self, session) -> None:
        if not self.error_selector:
            return
        text = (session.text_content(self.error_selector) or "").strip()
        if text and any(hint in text.lower() for hint in _CHALLENGE_ERROR_HINTS):
            _scraper_event("error", phase="poll", step="challenge_rejected", message=text)
            raise ChallengeRejected(f"Site rejected the challenge response: {text}")

    def __call__(self, session) -> bool:
        self._check_challenge_error(session)
        state = classify_table(session.outer_html(self.table_selector), self.empty_marker)
        self.last_state = state
        if state is TableState.EMPTY_MARKER:
            self.empty_marker_seen = True
        return state is TableState.POPULATED


__all__ = ["PollResult", "ReadyState", "TableReadiness", "poll_until_ready"]
