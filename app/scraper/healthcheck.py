from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import requests

from . import config, db
from .config_validation import validate_runtime_config
from .logging_utils import _scraper_event
from .utils import ensure_dirs, log_line


@dataclass
class HealthResult:
    ok: bool
    checks: dict[str, dict[str, Any]]


def _probe_remote(url: str, timeout: float = 10.0) -> dict[str, Any]:
    try:
        response = requests.get(url, headers=config.COMMON_HEADERS, timeout=timeout)
    except requests.RequestException as exc:
        return {"ok": False, "url": url, "error": str(exc)}
    return {"ok": response.status_code < 500, "url": url, "status": response.status_code}


def run_health_checks(entrypoint: str = "cli", *, check_remote: bool = False) -> HealthResult:
    checks: dict[str, dict[str, Any]] = {}

    try:
        validate_runtime_config(entrypoint or "cli")
        checks["config"] = {"ok": True}
    except ValueError as exc:
        checks["config"] = {"ok": False, "error": str(exc)}

    try:
        ensure_dirs()
        checks["filesystem"] = {"ok": True, "data_dir": str(config.DATA_DIR)}
    except OSError as exc:
        checks["filesystem"] = {"ok": False, "data_dir": str(config.DATA_DIR), "error": str(exc)}

    try:
        db.initialize_schema()
        conn = db.get_connection()
        try:
            conn.execute("SELECT COUNT(*) FROM queries")
        finally:
            conn.close()
        checks["database"] = {"ok": True}
    except Exception as exc:  # noqa: BLE001
        checks["database"] = {"ok": False, "error": str(exc)}

    # The court site is flaky; only a CLI run counts it against overall health.
    if check_remote:
        checks["remote"] = _probe_remote(config.CASE_STATUS_URL)

    strict_remote = entrypoint == "cli"
    overall_ok = all(
        check.get("ok", False)
        for name, check in checks.items()
        if strict_remote or name != "remote"
    )

    _scraper_event(
        "state" if overall_ok else "error",
        phase="health",
        context="healthcheck",
        ok=overall_ok,
        checks=checks,
    )

    return HealthResult(ok=overall_ok, checks=checks)


if __name__ == "__main__":  # pragma: no cover
    result = run_health_checks(entrypoint="cli", check_remote=True)
    for name, info in result.checks.items():
        status = "OK" if info.get("ok") else "FAIL"
        log_line(f"[HEALTH] {name}: {status} {info}")
    raise SystemExit(0 if result.ok else 1)
