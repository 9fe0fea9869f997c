from __future__ import annotations

from typing import Literal

from . import config
from .logging_utils import _scraper_event
from .utils import log_line

Entrypoint = Literal["ui", "cli", "api", "tests"]


def _raise_config_error(message: str, *, entrypoint: Entrypoint, error: str) -> None:
    _scraper_event(
        "error",
        phase="config",
        context="runtime_validation",
        error=error,
        entrypoint=entrypoint,
    )
    log_line(f"[CONFIG] {message} (entrypoint={entrypoint})")
    raise ValueError(message)


def validate_runtime_config(entrypoint: Entrypoint) -> None:
    """Validate runtime configuration for the given entrypoint.

    Raises ``ValueError`` when a blocking misconfiguration is detected.
    Non-fatal adjustments (clamping the detail worker count) are logged but
    do not raise.
    """

    if not (config.CASE_STATUS_URL or "").strip().lower().startswith("http"):
        _raise_config_error(
            "CASE_STATUS_URL must be an http(s) URL.",
            entrypoint=entrypoint,
            error="case_status_url_invalid",
        )

    if config.MAX_DETAIL_WORKERS < 1:
        adjusted = 1
        _scraper_event(
            "state",
            phase="config",
            context="runtime_validation",
            kind="config_adjustment",
            field="MAX_DETAIL_WORKERS",
            value=config.MAX_DETAIL_WORKERS,
            adjusted=adjusted,
            entrypoint=entrypoint,
        )
        log_line("[CONFIG] MAX_DETAIL_WORKERS < 1; clamping to 1 (sequential fan-out).")
        config.MAX_DETAIL_WORKERS = adjusted

    positive_fields = [
        ("NAV_TIMEOUT_SECONDS", config.NAV_TIMEOUT_SECONDS),
        ("CHALLENGE_TIMEOUT_SECONDS", config.CHALLENGE_TIMEOUT_SECONDS),
        ("REQUEST_TIMEOUT_SECONDS", config.REQUEST_TIMEOUT_SECONDS),
        ("POLL_MAX_ATTEMPTS", config.POLL_MAX_ATTEMPTS),
        ("DETAIL_POLL_MAX_ATTEMPTS", config.DETAIL_POLL_MAX_ATTEMPTS),
    ]
    for field_name, value in positive_fields:
        if value <= 0:
            _raise_config_error(
                f"{field_name} must be greater than zero.",
                entrypoint=entrypoint,
                error="invalid_budget",
            )

    non_negative_fields = [
        ("POLL_INTERVAL_SECONDS", config.POLL_INTERVAL_SECONDS),
        ("DETAIL_POLL_INTERVAL_SECONDS", config.DETAIL_POLL_INTERVAL_SECONDS),
        ("POST_SUBMIT_SETTLE_SECONDS", config.POST_SUBMIT_SETTLE_SECONDS),
    ]
    for field_name, value in non_negative_fields:
        if value < 0:
            _raise_config_error(
                f"{field_name} must be non-negative.",
                entrypoint=entrypoint,
                error="invalid_interval",
            )


__all__ = ["validate_runtime_config", "Entrypoint"]
