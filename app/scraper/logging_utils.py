"""Structured one-line events for the scrape pipeline.

Events look like ``[SCRAPER][POLL] attempt=1, max_attempts=10, table='summary'``
so a run can be followed with ``grep`` over the log file.
"""
from __future__ import annotations

from typing import Any

from .utils import log_line

_MAX_VALUE_CHARS = 300


def _format_value(value: Any) -> str:
    text = repr(value)
    if len(text) > _MAX_VALUE_CHARS:
        return text[: _MAX_VALUE_CHARS - 3] + "..."
    return text


def _scraper_event(tag: str = "", /, *, phase: str | None = None, **fields: Any) -> None:
    """Emit a structured scraper log line.

    ``tag`` is positional-only so any keyword, ``label`` included, lands in
    the payload. Without a tag the ``phase`` names the event; with both, the
    phase is kept as a payload field. Emission never raises.
    """

    try:
        name = tag or phase or "event"
        if phase and tag:
            fields.setdefault("phase", phase)
        payload = ", ".join(
            f"{key}={_format_value(value)}" for key, value in sorted(fields.items())
        )
        log_line(f"[SCRAPER][{name.upper()}] {payload}")
    except Exception:
        return


__all__ = ["_scraper_event"]
