"""Data types passed between the pipeline stages and handed to callers."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class Outcome(str, Enum):
    SUCCESS = "success"
    NO_DATA = "no_data"
    FAILURE = "failure"


@dataclass(frozen=True)
class CaseQuery:
    """One case-status lookup. All three fields are required."""

    case_type: str
    case_number: str
    filing_year: str

    def __post_init__(self) -> None:
        for name in ("case_type", "case_number", "filing_year"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{name} is required and must be a non-empty string")
            object.__setattr__(self, name, value.strip())

    def to_dict(self) -> Dict[str, str]:
        return {
            "case_type": self.case_type,
            "case_number": self.case_number,
            "filing_year": self.filing_year,
        }


@dataclass(frozen=True)
class ChallengeToken:
    """Challenge text read from a loaded page.

    Only valid for the session that produced it; it is consumed by a single
    submission and never stored on its own.
    """

    text: str
    captured_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class OrderRecord:
    serial_no: str
    case_no_or_order_link: str
    date_of_order: str
    corrigendum: str
    hindi_order: str
    pdf_link: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "serial_no": self.serial_no,
            "case_no_or_order_link": self.case_no_or_order_link,
            "date_of_order": self.date_of_order,
            "corrigendum": self.corrigendum,
            "hindi_order": self.hindi_order,
            "pdf_link": self.pdf_link,
        }


@dataclass
class CaseDetail:
    filing_date: str
    next_hearing_date: str
    orders: List[OrderRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filing_date": self.filing_date,
            "next_hearing_date": self.next_hearing_date,
            "orders": [order.to_dict() for order in self.orders],
        }


@dataclass
class CaseSummaryRecord:
    """One row of the search results table.

    ``detail`` is only ever set when ``detail_reference`` is present. When
    enrichment fails the record keeps ``detail=None`` and ``detail_error``
    carries the error code.
    """

    serial_no: str
    diary_or_case_no: str
    petitioner_vs_respondent: str
    listing_date_or_court_no: str
    detail_reference: Optional[str] = None
    detail: Optional[CaseDetail] = None
    detail_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "serial_no": self.serial_no,
            "diary_or_case_no": self.diary_or_case_no,
            "petitioner_vs_respondent": self.petitioner_vs_respondent,
            "listing_date_or_court_no": self.listing_date_or_court_no,
            "detail_reference": self.detail_reference,
            "detail": self.detail.to_dict() if self.detail is not None else None,
            "detail_error": self.detail_error,
        }


@dataclass
class ScrapeResult:
    query: CaseQuery
    outcome: Outcome
    challenge_used: str = ""
    summaries: List[CaseSummaryRecord] = field(default_factory=list)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    @classmethod
    def failure(
        cls, query: CaseQuery, error_code: str, message: str, *, challenge_used: str = ""
    ) -> "ScrapeResult":
        return cls(
            query=query,
            outcome=Outcome.FAILURE,
            challenge_used=challenge_used,
            error_code=error_code,
            error_message=message,
        )

    @property
    def ok(self) -> bool:
        return self.outcome is not Outcome.FAILURE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query.to_dict(),
            "outcome": self.outcome.value,
            "challenge_used": self.challenge_used,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "summaries": [summary.to_dict() for summary in self.summaries],
        }


__all__ = [
    "CaseDetail",
    "CaseQuery",
    "CaseSummaryRecord",
    "ChallengeToken",
    "OrderRecord",
    "Outcome",
    "ScrapeResult",
]
