"""HTML interpretation for the results and orders tables.

The browser session only hands back a table's outer HTML; everything here is a
pure function over that markup so it can be exercised against saved pages.
Values are trimmed the way the browser renders them (``<br>`` becomes a line
break, runs of whitespace collapse) and are otherwise left as the site wrote
them.
"""
from __future__ import annotations

from enum import Enum
from typing import Callable, List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag

from . import config
from .error_codes import ExtractionSchemaMismatch
from .logging_utils import _scraper_event
from .models import CaseSummaryRecord, OrderRecord
from .selectors import (
    CASE_DETAIL_SELECTORS,
    CASE_STATUS_SELECTORS,
    ORDER_COLUMNS,
    SUMMARY_COLUMNS,
    CaseDetailSelectors,
    CaseStatusSelectors,
)


class TableState(str, Enum):
    MISSING = "missing"  # no table, or a table without body rows yet
    EMPTY_MARKER = "empty_marker"  # single "no data" row
    POPULATED = "populated"


def _parse_table(html: Optional[str]) -> Optional[Tag]:
    if not html:
        return None
    soup = BeautifulSoup(html, "html5lib")
    return soup.find("table")


def _body_rows(table: Tag) -> List[Tag]:
    # html5lib always inserts <tbody>, so header rows never leak in here.
    return table.select("tbody > tr")


def _cells(row: Tag) -> List[Tag]:
    return row.find_all(["td", "th"], recursive=False)


def cell_text(cell: Tag) -> str:
    """Return the rendered text of ``cell``, trimmed."""

    for br in cell.find_all("br"):
        br.replace_with("\n")
    lines = (" ".join(line.split()) for line in cell.get_text().splitlines())
    return "\n".join(line for line in lines if line)


def classify_table(html: Optional[str], empty_marker: str) -> TableState:
    """Classify a results table snapshot.

    One body row carrying the empty marker means the query ran and matched
    nothing. The marker check runs even for a lone row so "no results" is
    never read as one result.
    """

    table = _parse_table(html)
    if table is None:
        return TableState.MISSING
    rows = _body_rows(table)
    if not rows:
        return TableState.MISSING
    if len(rows) == 1 and rows[0].select_one(empty_marker) is not None:
        return TableState.EMPTY_MARKER
    return TableState.POPULATED


def _find_anchor(cell: Tag, predicate: Callable[[str], bool]) -> Optional[str]:
    for anchor in cell.find_all("a", href=True):
        href = (anchor.get("href") or "").strip()
        if href and predicate(href):
            return href
    return None


def _check_columns(row_index: int, cells: List[Tag], expected: int, table: str) -> None:
    if len(cells) < expected:
        _scraper_event(
            "error",
            phase="extract",
            step="schema_mismatch",
            table=table,
            row_index=row_index,
            cells=len(cells),
            expected=expected,
        )
        raise ExtractionSchemaMismatch(
            f"{table} row {row_index} has {len(cells)} cells, expected {expected}"
        )


def parse_summary_rows(
    html: Optional[str],
    *,
    base_url: str,
    empty_marker: str = CASE_STATUS_SELECTORS.empty_marker,
    detail_pattern: Optional[str] = None,
) -> List[CaseSummaryRecord]:
    """Map results-table rows to :class:`CaseSummaryRecord` in document order."""

    pattern = detail_pattern if detail_pattern is not None else config.DETAIL_LINK_PATTERN
    if classify_table(html, empty_marker) is not TableState.POPULATED:
        return []

    table = _parse_table(html)
    records: List[CaseSummaryRecord] = []
    for index, row in enumerate(_body_rows(table)):
        cells = _cells(row)
        _check_columns(index, cells, SUMMARY_COLUMNS, "summary")
        href = _find_anchor(cells[1], lambda value: pattern in value)
        records.append(
            CaseSummaryRecord(
                serial_no=cell_text(cells[0]),
                diary_or_case_no=cell_text(cells[1]),
                petitioner_vs_respondent=cell_text(cells[2]),
                listing_date_or_court_no=cell_text(cells[3]),
                detail_reference=urljoin(base_url, href) if href else None,
            )
        )
    return records


def parse_order_rows(
    html: Optional[str],
    *,
    base_url: str,
    empty_marker: str = CASE_DETAIL_SELECTORS.empty_marker,
) -> List[OrderRecord]:
    """Map orders-table rows to :class:`OrderRecord` in document order.

    The PDF link is the anchor in the case-no/order-link column, falling back
    to any ``.pdf`` anchor elsewhere in the row.
    """

    state = classify_table(html, empty_marker)
    if state is TableState.EMPTY_MARKER:
        return []
    if state is TableState.MISSING:
        raise ExtractionSchemaMismatch("Orders table has no rows")

    table = _parse_table(html)
    orders: List[OrderRecord] = []
    for index, row in enumerate(_body_rows(table)):
        cells = _cells(row)
        _check_columns(index, cells, ORDER_COLUMNS, "orders")
        href = _find_anchor(cells[1], lambda value: True)
        if href is None:
            for cell in cells:
                href = _find_anchor(cell, lambda value: ".pdf" in value.lower())
                if href:
                    break
        orders.append(
            OrderRecord(
                serial_no=cell_text(cells[0]),
                case_no_or_order_link=cell_text(cells[1]),
                date_of_order=cell_text(cells[2]),
                corrigendum=cell_text(cells[3]),
                hindi_order=cell_text(cells[4]),
                pdf_link=urljoin(base_url, href) if href else None,
            )
        )
    return orders


def parse_select_options(html: Optional[str], placeholders=()) -> List[str]:
    """Return option labels from a ``<select>`` snippet, placeholders dropped."""

    if not html:
        return []
    soup = BeautifulSoup(html, "html5lib")
    skip = {value.lower() for value in placeholders}
    labels: List[str] = []
    for option in soup.find_all("option"):
        text = option.get_text(strip=True)
        if not text or text.lower() in skip:
            continue
        labels.append(text)
    return labels


def extract_summaries(
    session, *, selectors: Optional[CaseStatusSelectors] = None
) -> List[CaseSummaryRecord]:
    """Read the ready results table from ``session``."""

    selectors = selectors or CASE_STATUS_SELECTORS
    html = session.outer_html(selectors.results_table)
    records = parse_summary_rows(
        html, base_url=session.url, empty_marker=selectors.empty_marker
    )
    _scraper_event(
        "extract",
        table="summary",
        rows=len(records),
        with_detail=sum(1 for record in records if record.detail_reference),
    )
    return records


def extract_orders(
    session, *, selectors: Optional[CaseDetailSelectors] = None
) -> List[OrderRecord]:
    """Read the ready orders table from ``session``."""

    selectors = selectors or CASE_DETAIL_SELECTORS
    html = session.outer_html(selectors.orders_table)
    orders = parse_order_rows(html, base_url=session.url, empty_marker=selectors.empty_marker)
    _scraper_event("extract", table="orders", rows=len(orders))
    return orders


__all__ = [
    "TableState",
    "cell_text",
    "classify_table",
    "extract_orders",
    "extract_summaries",
    "parse_order_rows",
    "parse_select_options",
    "parse_summary_rows",
]
