from __future__ import annotations

import json
import os
from typing import Any

from flask import Flask, Response, jsonify, request, send_file

from app.scraper import config, db
from app.scraper.config_validation import validate_runtime_config
from app.scraper.details import fetch_case_orders
from app.scraper.error_codes import ScrapeError
from app.scraper.export_excel import export_query_history_to_excel
from app.scraper.healthcheck import run_health_checks
from app.scraper.logging_utils import _scraper_event
from app.scraper.models import CaseQuery, Outcome
from app.scraper.run import (
    describe_error,
    fetch_case_data,
    list_case_types,
    read_current_challenge,
)
from app.scraper.utils import ensure_dirs, log_line

app = Flask(__name__)
app.secret_key = os.environ.get("SECRET_KEY", "dev-secret-change-me")

CORS_ORIGIN = os.environ.get("DHC_CORS_ORIGIN", "*")

# Initialise storage paths and SQLite schema on import so WSGI entrypoints
# also have the expected environment ready. Idempotent.
ensure_dirs()
db.initialize_schema()

_QUERY_FIELDS = (
    ("case_type", "caseType"),
    ("case_number", "caseNumber"),
    ("filing_year", "filingYear"),
)

_OUTCOME_MESSAGES = {
    Outcome.SUCCESS: "Case data found successfully",
    Outcome.NO_DATA: "No case data found for the given parameters",
}


@app.after_request
def add_cors_headers(response: Response) -> Response:
    response.headers.setdefault("Access-Control-Allow-Origin", CORS_ORIGIN)
    response.headers.setdefault("Access-Control-Allow-Headers", "Content-Type")
    response.headers.setdefault("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
    return response


def _scrape_error_response(exc: ScrapeError, *, context: str):
    _scraper_event("error", phase="api", context=context, error_code=exc.error_code, error=str(exc))
    return (
        jsonify(
            {"ok": False, "error": exc.error_code, "message": describe_error(exc.error_code)}
        ),
        502,
    )


def _parse_query_payload(payload: dict[str, Any]) -> tuple[CaseQuery | None, list[str]]:
    values: dict[str, str] = {}
    errors: list[str] = []
    for field, alias in _QUERY_FIELDS:
        raw = payload.get(field, payload.get(alias))
        value = str(raw).strip() if raw is not None else ""
        if not value:
            errors.append(f"{alias} is required")
        values[field] = value
    if errors:
        return None, errors
    return CaseQuery(**values), []


@app.get("/api/health")
def api_health() -> Response:
    """Return a JSON health summary for configuration, filesystem, and DB."""

    check_remote = request.args.get("remote", "0").strip().lower() in {"1", "true"}
    result = run_health_checks(entrypoint="api", check_remote=check_remote)
    status = 200 if result.ok else 503
    return jsonify({"ok": result.ok, "checks": result.checks}), status


@app.get("/api/captcha")
def api_captcha() -> Response:
    """Return the challenge text currently shown by the site (debugging aid)."""

    try:
        token = read_current_challenge()
    except ScrapeError as exc:
        return _scrape_error_response(exc, context="captcha")
    return jsonify({"ok": True, "captcha": token.text})


@app.get("/api/case-types")
def api_case_types() -> Response:
    try:
        case_types = list_case_types()
    except ScrapeError as exc:
        return _scrape_error_response(exc, context="case_types")
    return jsonify({"ok": True, "case_types": case_types})


@app.post("/api/fetch-case-data")
def api_fetch_case_data() -> Response:
    """Run the full lookup for one case and return the structured result."""

    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        payload = {}
    query, errors = _parse_query_payload(payload)
    if query is None:
        return jsonify({"ok": False, "error": "invalid_params", "details": errors}), 400

    try:
        validate_runtime_config("api")
    except ValueError as exc:
        return jsonify({"ok": False, "error": "config_invalid", "details": str(exc)}), 500

    result = fetch_case_data(query)
    body = {"ok": result.ok, **result.to_dict()}
    if result.ok:
        body["message"] = _OUTCOME_MESSAGES[result.outcome]
        return jsonify(body)
    body["message"] = result.error_message
    return jsonify(body), 502


@app.get("/api/case-orders")
def api_case_orders() -> Response:
    link = (request.args.get("link") or "").strip()
    if not link.lower().startswith(("http://", "https://")):
        return jsonify({"ok": False, "error": "invalid_params", "details": ["link is required"]}), 400
    # Only orders pages linked from search results are fetched.
    if config.DETAIL_LINK_PATTERN not in link:
        return (
            jsonify(
                {
                    "ok": False,
                    "error": "invalid_params",
                    "details": ["link is not a case orders page"],
                }
            ),
            400,
        )

    try:
        detail = fetch_case_orders(link)
    except ScrapeError as exc:
        return _scrape_error_response(exc, context="case_orders")
    return jsonify({"ok": True, "link": link, **detail.to_dict()})


@app.get("/api/query-history")
def api_query_history() -> Response:
    try:
        limit = int(request.args.get("limit", config.QUERY_HISTORY_LIMIT))
    except ValueError:
        return jsonify({"ok": False, "error": "invalid limit"}), 400

    rows = db.list_recent_queries(limit)
    for row in rows:
        raw = row.pop("raw_response", None)
        try:
            row["response"] = json.loads(raw) if raw else None
        except json.JSONDecodeError:
            log_line(f"[API] Archived query {row.get('id')} has unreadable raw_response")
            row["response"] = None
    return jsonify({"ok": True, "count": len(rows), "queries": rows})


@app.get("/api/exports/history.xlsx")
def api_export_history_xlsx() -> Response:
    path = export_query_history_to_excel()
    return send_file(path, as_attachment=True, download_name=os.path.basename(path))


__all__ = ["app"]
