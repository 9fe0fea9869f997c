"""Error code taxonomy and exception types for scrape failures.

Codes are persisted with each archived query and returned to API callers in
the ``error_code`` field, so they should stay stable.
"""

from __future__ import annotations


class ErrorCode:
    NAVIGATION_TIMEOUT = "navigation_timeout"
    NAVIGATION_ERROR = "navigation_error"
    CHALLENGE_UNAVAILABLE = "challenge_unavailable"
    FIELD_NOT_FOUND = "field_not_found"
    CHALLENGE_REJECTED = "challenge_rejected"
    READINESS_EXHAUSTED = "readiness_exhausted"
    EXTRACTION_SCHEMA_MISMATCH = "extraction_schema_mismatch"
    PERSISTENCE_FAILURE = "persistence_failure"
    REQUEST_CANCELLED = "request_cancelled"
    INTERNAL = "internal_error"


class ScrapeError(Exception):
    """Base class for failures raised by the scrape pipeline."""

    error_code: str = ErrorCode.INTERNAL

    def __init__(self, message: str, *, error_code: str | None = None) -> None:
        super().__init__(message)
        if error_code is not None:
            self.error_code = error_code

    def __str__(self) -> str:  # pragma: no cover - inherited behaviour
        return str(self.args[0]) if self.args else ""


class NavigationTimeout(ScrapeError):
    error_code = ErrorCode.NAVIGATION_TIMEOUT


class NavigationFailed(ScrapeError):
    error_code = ErrorCode.NAVIGATION_ERROR


class ChallengeUnavailable(ScrapeError):
    error_code = ErrorCode.CHALLENGE_UNAVAILABLE


class FieldNotFound(ScrapeError):
    error_code = ErrorCode.FIELD_NOT_FOUND

    def __init__(self, selector: str, *, value: str | None = None) -> None:
        if value is None:
            message = f"Form control {selector!r} not found; site markup may have changed"
        else:
            message = f"Form control {selector!r} has no option matching {value!r}"
        super().__init__(message)
        self.selector = selector
        self.value = value


class ChallengeRejected(ScrapeError):
    error_code = ErrorCode.CHALLENGE_REJECTED


class ReadinessExhausted(ScrapeError):
    error_code = ErrorCode.READINESS_EXHAUSTED


class ExtractionSchemaMismatch(ScrapeError):
    error_code = ErrorCode.EXTRACTION_SCHEMA_MISMATCH


class PersistenceFailure(ScrapeError):
    error_code = ErrorCode.PERSISTENCE_FAILURE


class RequestCancelled(ScrapeError):
    error_code = ErrorCode.REQUEST_CANCELLED


__all__ = [
    "ChallengeRejected",
    "ChallengeUnavailable",
    "ErrorCode",
    "ExtractionSchemaMismatch",
    "FieldNotFound",
    "NavigationFailed",
    "NavigationTimeout",
    "PersistenceFailure",
    "ReadinessExhausted",
    "RequestCancelled",
    "ScrapeError",
]
