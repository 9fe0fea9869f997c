"""Playwright-driven case-status lookups for the Delhi High Court website.

Workflow for :func:`fetch_case_data`:

- Open https://delhihighcourt.nic.in/app/get-case-type-status in a fresh
  headless browser.
- Read the plain-text challenge from ``#captcha-code``.
- Select case type and year, type the case number and the challenge, press
  ``#search``. The page does not navigate; DataTables fills ``#caseTable``
  from an AJAX call.
- Poll the table until it holds real rows, or the budget runs out. A lone
  ``td.dt-empty`` row seen while polling means the query matched nothing.
- Extract one summary per row. Rows whose case-number cell links to
  ``case-type-status-details`` get their orders page fetched in a separate
  session and attached as the case detail.
- Archive the result and return it.

Every failure is folded into a :class:`ScrapeResult` with an error code; no
exception escapes to the caller.
"""

from __future__ import annotations

import time
from typing import List, Optional

from . import config
from .challenge import read_challenge
from .details import enrich
from .error_codes import ErrorCode, FieldNotFound, ReadinessExhausted, ScrapeError
from .extractor import extract_summaries, parse_select_options
from .form import submit
from .logging_utils import _scraper_event
from .models import CaseQuery, CaseSummaryRecord, ChallengeToken, Outcome, ScrapeResult
from .poller import TableReadiness, poll_until_ready
from .result_sink import ResultSink, default_sink
from .selectors import CASE_STATUS_SELECTORS, CaseStatusSelectors
from .session import RequestScope, SessionFactory
from .utils import log_line, short_error_message

FAILURE_MESSAGES = {
    ErrorCode.NAVIGATION_TIMEOUT: "The court website did not load in time.",
    ErrorCode.NAVIGATION_ERROR: "The court website could not be reached.",
    ErrorCode.CHALLENGE_UNAVAILABLE: "The verification code did not appear on the court website.",
    ErrorCode.FIELD_NOT_FOUND: "The court website's search form has changed and could not be filled.",
    ErrorCode.CHALLENGE_REJECTED: "The court website rejected the verification code.",
    ErrorCode.READINESS_EXHAUSTED: "The court website did not return results in time.",
    ErrorCode.EXTRACTION_SCHEMA_MISMATCH: "The results table had an unexpected layout.",
    ErrorCode.REQUEST_CANCELLED: "The request was cancelled before it completed.",
    ErrorCode.INTERNAL: "Unexpected error while fetching case data.",
}


def describe_error(error_code: str) -> str:
    return FAILURE_MESSAGES.get(error_code, FAILURE_MESSAGES[ErrorCode.INTERNAL])


def _open_search_page(session, scope: RequestScope) -> None:
    scope.raise_if_cancelled()
    session.navigate(config.CASE_STATUS_URL, config.NAV_TIMEOUT_SECONDS * 1000)


def _search(
    query: CaseQuery,
    scope: RequestScope,
    selectors: CaseStatusSelectors,
    challenge: List[str],
) -> List[CaseSummaryRecord]:
    """Run navigate → challenge → submit → poll → extract on one session.

    ``challenge`` receives the token text as soon as it is read so a later
    failure can still report it.
    """

    with scope.open_session("search") as session:
        _open_search_page(session, scope)

        token = read_challenge(
            session, selectors.challenge_text, config.CHALLENGE_TIMEOUT_SECONDS * 1000
        )
        challenge.append(token.text)

        submit(session, query, token.text, selectors=selectors)
        session.pause(config.POST_SUBMIT_SETTLE_SECONDS)

        readiness = TableReadiness(
            selectors.results_table,
            selectors.empty_marker,
            error_selector=selectors.challenge_error,
        )
        poll = poll_until_ready(
            session,
            readiness,
            config.POLL_MAX_ATTEMPTS,
            config.POLL_INTERVAL_SECONDS,
            scope=scope,
            label="summary",
        )
        if poll.ready:
            return extract_summaries(session, selectors=selectors)
        if readiness.empty_marker_seen:
            _scraper_event("poll", table="summary", step="no_data", attempts=poll.attempts)
            return []
        raise ReadinessExhausted(
            f"Results table not ready after {poll.attempts} attempts "
            f"(last state: {readiness.last_state.value if readiness.last_state else 'unknown'})"
        )


def fetch_case_data(
    query: CaseQuery,
    *,
    session_factory: Optional[SessionFactory] = None,
    sink: Optional[ResultSink] = None,
    persist: bool = True,
    enrich_details: Optional[bool] = None,
    timeout_seconds: Optional[float] = None,
    selectors: Optional[CaseStatusSelectors] = None,
    scope: Optional[RequestScope] = None,
) -> ScrapeResult:
    """Look up one case and return a structured :class:`ScrapeResult`.

    Passing ``scope`` lets the caller cancel the request from another thread;
    otherwise a scope with the configured deadline is created here. All
    sessions are closed before this returns.
    """

    selectors = selectors or CASE_STATUS_SELECTORS
    do_enrich = config.ENRICH_DETAILS if enrich_details is None else enrich_details
    started = time.monotonic()
    challenge: List[str] = []
    _scraper_event("run", step="start", **query.to_dict())

    own_scope = scope is None
    if scope is None:
        scope = RequestScope(session_factory=session_factory, timeout_seconds=timeout_seconds)
    try:
        summaries = _search(query, scope, selectors, challenge)
        if summaries and do_enrich:
            enrich(summaries, scope=scope)
        result = ScrapeResult(
            query=query,
            outcome=Outcome.SUCCESS if summaries else Outcome.NO_DATA,
            challenge_used=challenge[0] if challenge else "",
            summaries=summaries,
        )
    except ScrapeError as exc:
        _scraper_event(
            "error",
            phase="run",
            error_code=exc.error_code,
            error=short_error_message(exc),
        )
        result = ScrapeResult.failure(
            query,
            exc.error_code,
            describe_error(exc.error_code),
            challenge_used=challenge[0] if challenge else "",
        )
    except Exception as exc:  # noqa: BLE001
        log_line(f"[RUN] Unexpected error for {query.to_dict()}: {exc!r}")
        result = ScrapeResult.failure(
            query,
            ErrorCode.INTERNAL,
            describe_error(ErrorCode.INTERNAL),
            challenge_used=challenge[0] if challenge else "",
        )
    finally:
        if own_scope:
            scope.close()

    _scraper_event(
        "run",
        step="end",
        outcome=result.outcome.value,
        error_code=result.error_code,
        summaries=len(result.summaries),
        elapsed_s=round(time.monotonic() - started, 2),
    )
    if persist:
        (sink or default_sink()).deliver(result)
    return result


def _internal_error(exc: Exception, context: str) -> ScrapeError:
    log_line(f"[RUN] Unexpected error in {context}: {exc!r}")
    return ScrapeError(short_error_message(exc), error_code=ErrorCode.INTERNAL)


def list_case_types(
    *,
    session_factory: Optional[SessionFactory] = None,
    selectors: Optional[CaseStatusSelectors] = None,
) -> List[str]:
    """Return the case-type labels offered by the search form, in site order."""

    selectors = selectors or CASE_STATUS_SELECTORS
    try:
        with RequestScope(session_factory=session_factory) as scope:
            with scope.open_session("case_types") as session:
                _open_search_page(session, scope)
                if not session.wait_for_selector(
                    selectors.case_type, config.NAV_TIMEOUT_SECONDS * 1000
                ):
                    raise FieldNotFound(selectors.case_type)
                html = session.outer_html(selectors.case_type)
    except ScrapeError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise _internal_error(exc, "list_case_types") from exc

    labels: List[str] = []
    for label in parse_select_options(html, selectors.placeholder_options):
        if label not in labels:
            labels.append(label)
    _scraper_event("case_types", count=len(labels))
    return labels


def read_current_challenge(
    *,
    session_factory: Optional[SessionFactory] = None,
    selectors: Optional[CaseStatusSelectors] = None,
) -> ChallengeToken:
    """Load the search page once and return the challenge it shows.

    Only useful for debugging: the token dies with the session, so it cannot
    be submitted later.
    """

    selectors = selectors or CASE_STATUS_SELECTORS
    try:
        with RequestScope(session_factory=session_factory) as scope:
            with scope.open_session("challenge") as session:
                _open_search_page(session, scope)
                return read_challenge(
                    session, selectors.challenge_text, config.CHALLENGE_TIMEOUT_SECONDS * 1000
                )
    except ScrapeError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise _internal_error(exc, "read_current_challenge") from exc


__all__ = [
    "FAILURE_MESSAGES",
    "describe_error",
    "fetch_case_data",
    "list_case_types",
    "read_current_challenge",
]
