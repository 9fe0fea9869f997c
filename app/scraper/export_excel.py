"""Excel export of the archived query history."""

from __future__ import annotations

import json
import os
import time
from typing import Any, Dict, List, Optional

import pandas as pd

from . import config, db

MAX_EXPORTS = int(os.environ.get("EXPORTS_KEEP_MAX", "5"))


def _flatten_summaries(row: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Expand one archived query into one line per case summary."""

    try:
        payload = json.loads(row.get("raw_response") or "{}")
    except json.JSONDecodeError:
        payload = {}

    out: List[Dict[str, Any]] = []
    for summary in payload.get("summaries") or []:
        detail = summary.get("detail") or {}
        out.append(
            {
                "query_id": row["id"],
                "case_type": row["case_type"],
                "case_number": row["case_number"],
                "filing_year": row["filing_year"],
                "serial_no": summary.get("serial_no"),
                "diary_or_case_no": summary.get("diary_or_case_no"),
                "petitioner_vs_respondent": summary.get("petitioner_vs_respondent"),
                "listing_date_or_court_no": summary.get("listing_date_or_court_no"),
                "filing_date": detail.get("filing_date"),
                "next_hearing_date": detail.get("next_hearing_date"),
                "orders": len(detail.get("orders") or []),
                "detail_error": summary.get("detail_error"),
            }
        )
    return out


def prune_old_exports() -> None:
    files = sorted(
        os.path.join(config.EXPORTS_DIR, p)
        for p in os.listdir(config.EXPORTS_DIR)
        if p.endswith(".xlsx")
    )
    while len(files) > MAX_EXPORTS:
        old = files.pop(0)
        try:
            os.remove(old)
        except OSError:
            continue


def export_query_history_to_excel(
    dest_path: Optional[str] = None, *, limit: Optional[int] = None
) -> str:
    """Write recent queries (and their case rows) to an ``.xlsx`` workbook."""

    rows = db.list_recent_queries(limit or config.QUERY_HISTORY_LIMIT)
    queries = pd.DataFrame(
        [{key: value for key, value in row.items() if key != "raw_response"} for row in rows]
    )
    if queries.empty:
        queries = pd.DataFrame([{"info": "No archived queries"}])

    cases = pd.DataFrame([item for row in rows for item in _flatten_summaries(row)])
    outcomes = (
        queries.groupby("outcome").size().reset_index(name="count")
        if "outcome" in queries.columns
        else pd.DataFrame()
    )

    config.EXPORTS_DIR.mkdir(parents=True, exist_ok=True)
    if not dest_path:
        basename = f"query_history_{time.strftime('%Y%m%d_%H%M%S')}.xlsx"
        dest_path = os.path.join(config.EXPORTS_DIR, basename)

    with pd.ExcelWriter(dest_path, engine="openpyxl") as writer:
        queries.to_excel(writer, index=False, sheet_name="Queries")
        cases.to_excel(writer, index=False, sheet_name="Cases")
        if not outcomes.empty:
            outcomes.to_excel(writer, index=False, sheet_name="Summary_Outcome")

    prune_old_exports()
    return dest_path


__all__ = ["export_query_history_to_excel", "prune_old_exports"]
