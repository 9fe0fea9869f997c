"""Selectors for the case-status search page and the per-case orders page."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class CaseStatusSelectors:
    """Selector hints for the case-status search page.

    Results are rendered by DataTables after an AJAX call. Until data arrives
    the table holds a single ``td.dt-empty`` row, which is also what a query
    with zero matches leaves behind.
    """

    case_type: str = "#case_type"
    case_number: str = "#case_number"
    case_year: str = "#case_year"
    challenge_text: str = "#captcha-code"
    challenge_input: str = "#captchaInput"
    submit: str = "#search"
    results_table: str = "#caseTable"
    empty_marker: str = "td.dt-empty"
    challenge_error: str = "#captcha-error, .captcha-error, .alert-danger"
    # Placeholder option labels that are not real case types.
    placeholder_options: Tuple[str, ...] = ("select", "select case type", "--select--")

    @property
    def form_controls(self) -> Tuple[str, ...]:
        return (
            self.case_type,
            self.case_number,
            self.case_year,
            self.challenge_input,
            self.submit,
        )


@dataclass(frozen=True)
class CaseDetailSelectors:
    """Selector hints for the orders page reached from a case-number link.

    The orders table is populated the same way as the search results, so the
    same empty-marker rule applies.
    """

    orders_table: str = "#caseTable"
    empty_marker: str = "td.dt-empty"
    filing_date: str = "#filing_date, .filing-date"
    next_hearing_date: str = "#next_hearing_date, .next-hearing-date"


CASE_STATUS_SELECTORS = CaseStatusSelectors()
CASE_DETAIL_SELECTORS = CaseDetailSelectors()

# Column counts for each table schema.
SUMMARY_COLUMNS = 4
ORDER_COLUMNS = 5

__all__ = [
    "CASE_DETAIL_SELECTORS",
    "CASE_STATUS_SELECTORS",
    "CaseDetailSelectors",
    "CaseStatusSelectors",
    "ORDER_COLUMNS",
    "SUMMARY_COLUMNS",
]
