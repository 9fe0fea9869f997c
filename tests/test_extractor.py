from __future__ import annotations

from typing import Iterable, Tuple

import pytest

from app.scraper.error_codes import ExtractionSchemaMismatch
from app.scraper.extractor import (
    TableState,
    classify_table,
    parse_order_rows,
    parse_select_options,
    parse_summary_rows,
)

BASE_URL = "https://delhihighcourt.nic.in/app/get-case-type-status"
DETAIL_URL = "https://delhihighcourt.nic.in/app/case-type-status-details/FAO/123/2023"

_SUMMARY_HEAD = (
    "<thead><tr><th>S.No.</th><th>Diary No. / Case No.[STATUS]</th>"
    "<th>Petitioner Vs. Respondent</th><th>Listing Date / Court No.</th></tr></thead>"
)
_ORDERS_HEAD = (
    "<thead><tr><th>S.No.</th><th>Case No/Order Link</th><th>Date of Order</th>"
    "<th>Corrigendum</th><th>Hindi Order</th></tr></thead>"
)

EMPTY_SUMMARY_TABLE = (
    f'<table id="caseTable">{_SUMMARY_HEAD}<tbody><tr>'
    '<td colspan="4" class="dt-empty">No data available in table</td>'
    "</tr></tbody></table>"
)
EMPTY_ORDERS_TABLE = (
    f'<table id="caseTable">{_ORDERS_HEAD}<tbody><tr>'
    '<td colspan="5" class="dt-empty">No data available in table</td>'
    "</tr></tbody></table>"
)


def summary_table(rows: Iterable[Tuple[str, str, str, str]]) -> str:
    body = "".join(
        f"<tr><td>{a}</td><td>{b}</td><td>{c}</td><td>{d}</td></tr>" for a, b, c, d in rows
    )
    return f'<table id="caseTable">{_SUMMARY_HEAD}<tbody>{body}</tbody></table>'


def orders_table(rows: Iterable[Tuple[str, str, str, str, str]]) -> str:
    body = "".join(
        "<tr>" + "".join(f"<td>{cell}</td>" for cell in row) + "</tr>" for row in rows
    )
    return f'<table id="caseTable">{_ORDERS_HEAD}<tbody>{body}</tbody></table>'


def case_link(text: str, href: str = DETAIL_URL) -> str:
    return f'<a href="{href}">{text}</a>'


TWO_ROW_SUMMARY = summary_table(
    [
        (
            "1",
            case_link("FAO 123/2023") + "<br>[PENDING]",
            "ACME LTD.<br>VS.<br>STATE",
            "NEXT DATE: 05/03/2024<br>COURT NO: 12",
        ),
        ("2", "FAO 124/2023 [DISPOSED]", "X VS. Y", "DISPOSED"),
    ]
)

ONE_ORDER = orders_table(
    [
        (
            "1",
            '<a href="/app/showlogo/abc123/2024">FAO 123/2023</a>',
            "05/03/2024",
            "",
            "",
        )
    ]
)


def test_classify_table_states() -> None:
    marker = "td.dt-empty"
    assert classify_table(None, marker) is TableState.MISSING
    assert classify_table("", marker) is TableState.MISSING
    assert classify_table('<table id="caseTable"><tbody></tbody></table>', marker) is TableState.MISSING
    assert classify_table(EMPTY_SUMMARY_TABLE, marker) is TableState.EMPTY_MARKER
    assert classify_table(TWO_ROW_SUMMARY, marker) is TableState.POPULATED


def test_single_real_row_is_populated() -> None:
    html = summary_table([("1", "FAO 1/2023", "A VS. B", "")])

    assert classify_table(html, "td.dt-empty") is TableState.POPULATED


def test_header_rows_do_not_count_as_data() -> None:
    html = f'<table id="caseTable">{_SUMMARY_HEAD}</table>'

    assert classify_table(html, "td.dt-empty") is TableState.MISSING


def test_parse_summary_rows_document_order_and_fields() -> None:
    records = parse_summary_rows(TWO_ROW_SUMMARY, base_url=BASE_URL)

    assert [record.serial_no for record in records] == ["1", "2"]
    first, second = records
    assert first.diary_or_case_no == "FAO 123/2023\n[PENDING]"
    assert first.petitioner_vs_respondent == "ACME LTD.\nVS.\nSTATE"
    assert first.listing_date_or_court_no == "NEXT DATE: 05/03/2024\nCOURT NO: 12"
    assert first.detail_reference == DETAIL_URL
    assert first.detail is None
    assert second.detail_reference is None


def test_relative_detail_link_is_resolved_against_page() -> None:
    html = summary_table(
        [("1", case_link("FAO 9/2023", "/app/case-type-status-details/FAO/9/2023"), "A", "B")]
    )

    records = parse_summary_rows(html, base_url=BASE_URL)

    assert records[0].detail_reference == (
        "https://delhihighcourt.nic.in/app/case-type-status-details/FAO/9/2023"
    )


def test_anchor_not_matching_detail_pattern_is_ignored() -> None:
    html = summary_table(
        [("1", case_link("FAO 9/2023", "https://example.com/elsewhere"), "A", "B")]
    )

    records = parse_summary_rows(html, base_url=BASE_URL)

    assert records[0].detail_reference is None


def test_parse_summary_rows_empty_marker_returns_nothing() -> None:
    assert parse_summary_rows(EMPTY_SUMMARY_TABLE, base_url=BASE_URL) == []


def test_parse_summary_rows_short_row_is_schema_mismatch() -> None:
    html = (
        '<table id="caseTable"><tbody>'
        "<tr><td>1</td><td>FAO</td><td>A</td><td>B</td></tr>"
        "<tr><td>2</td><td>FAO</td></tr>"
        "</tbody></table>"
    )

    with pytest.raises(ExtractionSchemaMismatch):
        parse_summary_rows(html, base_url=BASE_URL)


def test_whitespace_is_trimmed_but_text_kept() -> None:
    html = summary_table([("\n  1 \n", "  FAO   77/2023  ", "  A  VS.  B ", "   ")])

    record = parse_summary_rows(html, base_url=BASE_URL)[0]

    assert record.serial_no == "1"
    assert record.diary_or_case_no == "FAO 77/2023"
    assert record.petitioner_vs_respondent == "A VS. B"
    assert record.listing_date_or_court_no == ""


def test_parse_order_rows_with_pdf_link() -> None:
    orders = parse_order_rows(ONE_ORDER, base_url=DETAIL_URL)

    assert len(orders) == 1
    order = orders[0]
    assert order.serial_no == "1"
    assert order.case_no_or_order_link == "FAO 123/2023"
    assert order.date_of_order == "05/03/2024"
    assert order.corrigendum == ""
    assert order.hindi_order == ""
    assert order.pdf_link == "https://delhihighcourt.nic.in/app/showlogo/abc123/2024"


def test_parse_order_rows_falls_back_to_pdf_anchor() -> None:
    html = orders_table(
        [("1", "FAO 123/2023", "05/03/2024", "", '<a href="/files/hindi.PDF">View</a>')]
    )

    orders = parse_order_rows(html, base_url=DETAIL_URL)

    assert orders[0].pdf_link == "https://delhihighcourt.nic.in/files/hindi.PDF"


def test_parse_order_rows_without_any_link() -> None:
    html = orders_table([("1", "FAO 123/2023", "05/03/2024", "", "")])

    assert parse_order_rows(html, base_url=DETAIL_URL)[0].pdf_link is None


def test_parse_order_rows_empty_and_missing() -> None:
    assert parse_order_rows(EMPTY_ORDERS_TABLE, base_url=DETAIL_URL) == []
    with pytest.raises(ExtractionSchemaMismatch):
        parse_order_rows(None, base_url=DETAIL_URL)


def test_parse_order_rows_four_columns_is_schema_mismatch() -> None:
    html = summary_table([("1", "FAO", "05/03/2024", "")])

    with pytest.raises(ExtractionSchemaMismatch):
        parse_order_rows(html, base_url=DETAIL_URL)


def test_parse_select_options_drops_placeholders() -> None:
    html = (
        '<select id="case_type"><option value="">Select</option>'
        '<option value="FAO">FAO</option><option>  W.P.(C) </option>'
        "<option></option></select>"
    )

    assert parse_select_options(html, ("select",)) == ["FAO", "W.P.(C)"]
    assert parse_select_options(None) == []
