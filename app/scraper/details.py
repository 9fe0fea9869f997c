"""Per-case orders pages: the standalone fetch and the fan-out over results."""
from __future__ import annotations

from typing import List, Optional, Tuple

from . import config
from .detail_executor import DetailExecutor
from .error_codes import ErrorCode, ReadinessExhausted, ScrapeError
from .extractor import extract_orders
from .logging_utils import _scraper_event
from .models import CaseDetail, CaseSummaryRecord
from .poller import TableReadiness, poll_until_ready
from .selectors import CASE_DETAIL_SELECTORS, CaseDetailSelectors
from .session import RequestScope, SessionFactory
from .utils import log_line, short_error_message


def _read_scalar(session, selector: str) -> str:
    # Present once the page has loaded; no polling.
    return (session.text_content(selector) or "").strip()


def _fetch_with_scope(
    detail_reference: str, scope: RequestScope, selectors: CaseDetailSelectors
) -> CaseDetail:
    with scope.open_session("detail") as session:
        session.navigate(detail_reference, config.NAV_TIMEOUT_SECONDS * 1000)

        readiness = TableReadiness(selectors.orders_table, selectors.empty_marker)
        poll = poll_until_ready(
            session,
            readiness,
            config.DETAIL_POLL_MAX_ATTEMPTS,
            config.DETAIL_POLL_INTERVAL_SECONDS,
            scope=scope,
            label="orders",
        )
        if poll.ready:
            orders = extract_orders(session, selectors=selectors)
        elif readiness.empty_marker_seen:
            orders = []
        else:
            raise ReadinessExhausted(
                f"Orders table at {detail_reference} not ready after {poll.attempts} attempts"
            )

        return CaseDetail(
            filing_date=_read_scalar(session, selectors.filing_date),
            next_hearing_date=_read_scalar(session, selectors.next_hearing_date),
            orders=orders,
        )


def fetch_case_orders(
    detail_reference: str,
    *,
    scope: Optional[RequestScope] = None,
    session_factory: Optional[SessionFactory] = None,
    selectors: Optional[CaseDetailSelectors] = None,
) -> CaseDetail:
    """Open the orders page for one case and return its orders and dates.

    Usable on its own (revisiting a known case) or from :func:`enrich`, which
    passes the request's scope so the session belongs to that request.
    Every failure surfaces as a :class:`ScrapeError`; engine errors that were
    not translated at the session boundary carry ``internal_error``.
    """

    selectors = selectors or CASE_DETAIL_SELECTORS
    _scraper_event("detail", step="start", url=detail_reference)
    try:
        if scope is not None:
            detail = _fetch_with_scope(detail_reference, scope, selectors)
        else:
            with RequestScope(session_factory=session_factory) as own_scope:
                detail = _fetch_with_scope(detail_reference, own_scope, selectors)
    except ScrapeError:
        raise
    except Exception as exc:  # noqa: BLE001
        log_line(f"[DETAIL] Unexpected error for {detail_reference}: {exc!r}")
        raise ScrapeError(short_error_message(exc), error_code=ErrorCode.INTERNAL) from exc
    _scraper_event("detail", step="done", url=detail_reference, orders=len(detail.orders))
    return detail


def enrich(
    summaries: List[CaseSummaryRecord],
    *,
    scope: RequestScope,
    max_workers: Optional[int] = None,
    selectors: Optional[CaseDetailSelectors] = None,
) -> List[CaseSummaryRecord]:
    """Attach a :class:`CaseDetail` to every summary carrying a detail link.

    A failure on one summary leaves its ``detail`` empty and records the error
    code in ``detail_error``; siblings are unaffected and nothing is raised.
    """

    targets = [summary for summary in summaries if summary.detail_reference]
    if not targets:
        return summaries

    workers = config.MAX_DETAIL_WORKERS if max_workers is None else max_workers

    def _one(
        summary: CaseSummaryRecord,
    ) -> Tuple[CaseSummaryRecord, Optional[CaseDetail], Optional[str]]:
        try:
            detail = fetch_case_orders(
                summary.detail_reference, scope=scope, selectors=selectors
            )
            return summary, detail, None
        except ScrapeError as exc:
            code, message = exc.error_code, short_error_message(exc)
        except Exception as exc:  # noqa: BLE001
            log_line(f"[DETAIL] Unexpected error for {summary.detail_reference}: {exc!r}")
            code, message = ErrorCode.INTERNAL, short_error_message(exc)
        _scraper_event(
            "error",
            phase="detail",
            step="enrich_failed",
            serial_no=summary.serial_no,
            url=summary.detail_reference,
            error_code=code,
            error=message,
        )
        return summary, None, code

    executor = DetailExecutor(workers)
    try:
        outcomes = executor.map(targets, _one)
    finally:
        executor.shutdown()

    for summary, detail, error_code in outcomes:
        summary.detail = detail
        summary.detail_error = error_code

    _scraper_event(
        "detail",
        step="enrich_summary",
        targets=len(targets),
        failed=sum(1 for _, detail, _ in outcomes if detail is None),
    )
    return summaries


__all__ = ["enrich", "fetch_case_orders"]
