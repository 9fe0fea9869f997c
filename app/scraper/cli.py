"""Command-line access to the case-status scraper.

    python -m app.scraper.cli fetch --case-type FAO --case-number 123 --year 2023
    python -m app.scraper.cli orders --link <orders page url>
    python -m app.scraper.cli case-types
"""

from __future__ import annotations

import argparse
import json
from typing import Any, Sequence

from . import config, db
from .config_validation import validate_runtime_config
from .details import fetch_case_orders
from .error_codes import ScrapeError
from .models import CaseQuery
from .result_sink import default_sink
from .run import describe_error, fetch_case_data, list_case_types, read_current_challenge
from .utils import ensure_dirs, setup_session_logger


def _build_parser() -> argparse.ArgumentParser:
    """Return an argument parser for the scraper CLI."""

    parser = argparse.ArgumentParser(description="Query the court case-status website.")
    sub = parser.add_subparsers(dest="command", required=True)

    fetch = sub.add_parser("fetch", help="Look up a case and its orders.")
    fetch.add_argument("--case-type", required=True)
    fetch.add_argument("--case-number", required=True)
    fetch.add_argument("--year", dest="filing_year", required=True)
    fetch.add_argument(
        "--no-details",
        action="store_true",
        help="Skip fetching the orders page for each result.",
    )
    fetch.add_argument("--no-persist", action="store_true", help="Do not archive the result.")

    orders = sub.add_parser("orders", help="Fetch the orders page for one case.")
    orders.add_argument("--link", required=True, help="Orders page URL from a search result.")

    sub.add_parser("case-types", help="List case types offered by the search form.")
    sub.add_parser("captcha", help="Print the challenge currently shown (debugging).")

    history = sub.add_parser("history", help="Show recently archived queries.")
    history.add_argument("--limit", type=int, default=config.QUERY_HISTORY_LIMIT)
    return parser


def _print(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the scraper CLI."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    ensure_dirs()
    setup_session_logger()
    try:
        validate_runtime_config("cli")
    except ValueError as exc:
        parser.error(str(exc))
    db.initialize_schema()

    if args.command == "fetch":
        try:
            query = CaseQuery(args.case_type, args.case_number, args.filing_year)
        except ValueError as exc:
            parser.error(str(exc))
        result = fetch_case_data(
            query,
            enrich_details=not args.no_details,
            persist=not args.no_persist,
        )
        default_sink().flush()
        _print(result.to_dict())
        return 0 if result.ok else 1

    if args.command == "history":
        rows = db.list_recent_queries(args.limit)
        for row in rows:
            row.pop("raw_response", None)
        _print(rows)
        return 0

    try:
        if args.command == "orders":
            _print(fetch_case_orders(args.link).to_dict())
        elif args.command == "case-types":
            _print(list_case_types())
        elif args.command == "captcha":
            _print({"captcha": read_current_challenge().text})
    except ScrapeError as exc:
        _print({"ok": False, "error": exc.error_code, "message": describe_error(exc.error_code)})
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(main())
