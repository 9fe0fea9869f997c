"""Configuration constants for the case-status scraper application."""
from __future__ import annotations

import os
from pathlib import Path

DATA_DIR: Path = Path(os.getenv("DHC_DATA_DIR", "/app/data"))
LOG_DIR: Path = DATA_DIR / "logs"
LOG_FILE: Path = LOG_DIR / "latest.log"
EXPORTS_DIR: Path = DATA_DIR / "exports"
DB_PATH: Path = DATA_DIR / "casestatus.db"

CASE_STATUS_URL: str = os.getenv(
    "DHC_CASE_STATUS_URL", "https://delhihighcourt.nic.in/app/get-case-type-status"
)
# Anchors in the diary/case-number cell pointing at this path carry the orders page.
DETAIL_LINK_PATTERN: str = os.getenv("DHC_DETAIL_LINK_PATTERN", "case-type-status-details")


def _parse_timeout_seconds(env_var: str, default: int, *, minimum: int = 1) -> int:
    """Parse a timeout value in seconds from the environment with bounds."""

    try:
        value = int(os.getenv(env_var, str(default)))
    except ValueError:
        return default
    return max(minimum, value)


def _parse_float(env_var: str, default: float) -> float:
    try:
        return float(os.getenv(env_var, str(default)))
    except ValueError:
        return default


def _parse_flag(env_var: str, default: str) -> bool:
    return os.getenv(env_var, default).strip().lower() not in {"0", "false", "no"}


# Navigation timeout for page.goto calls.
NAV_TIMEOUT_SECONDS: int = _parse_timeout_seconds("DHC_NAV_TIMEOUT_SECONDS", 60)
# Single bounded wait for the challenge element after navigation.
CHALLENGE_TIMEOUT_SECONDS: int = _parse_timeout_seconds("DHC_CHALLENGE_TIMEOUT_SECONDS", 30)
# The search button fires an AJAX call; give it a moment before the first probe.
POST_SUBMIT_SETTLE_SECONDS: float = _parse_float("DHC_POST_SUBMIT_SETTLE_SECONDS", 2.0)

# Readiness polling for the results table.
POLL_MAX_ATTEMPTS: int = int(os.getenv("DHC_POLL_MAX_ATTEMPTS", "10"))
POLL_INTERVAL_SECONDS: float = _parse_float("DHC_POLL_INTERVAL_SECONDS", 3.0)
# Readiness polling for the per-case orders table.
DETAIL_POLL_MAX_ATTEMPTS: int = int(os.getenv("DHC_DETAIL_POLL_MAX_ATTEMPTS", "10"))
DETAIL_POLL_INTERVAL_SECONDS: float = _parse_float("DHC_DETAIL_POLL_INTERVAL_SECONDS", 3.0)

# Concurrency controls
# Max number of detail sessions open at once per request; 1 keeps fan-out sequential.
MAX_DETAIL_WORKERS: int = int(os.getenv("DHC_MAX_DETAIL_WORKERS", "1"))
ENRICH_DETAILS: bool = _parse_flag("DHC_ENRICH_DETAILS", "1")

# Hard ceiling for one request, polling and fan-out included.
REQUEST_TIMEOUT_SECONDS: int = _parse_timeout_seconds("DHC_REQUEST_TIMEOUT_SECONDS", 300)

HEADLESS: bool = _parse_flag("DHC_HEADLESS", "1")
QUERY_HISTORY_LIMIT: int = int(os.getenv("DHC_QUERY_HISTORY_LIMIT", "50"))

USER_AGENT: str = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

BROWSER_LAUNCH_ARGS: tuple[str, ...] = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-blink-features=AutomationControlled",
)

COMMON_HEADERS: dict[str, str] = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}
