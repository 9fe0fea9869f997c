from __future__ import annotations

from typing import Optional

from .error_codes import FieldNotFound
from .logging_utils import _scraper_event
from .models import CaseQuery
from .selectors import CASE_STATUS_SELECTORS, CaseStatusSelectors


def submit(
    session,
    query: CaseQuery,
    challenge_text: str,
    *,
    selectors: Optional[CaseStatusSelectors] = None,
) -> None:
    """Fill the search form and press the search control.

    Every control is checked before anything is typed so a markup change
    fails fast with :class:`FieldNotFound`. This only dispatches the request;
    waiting for results is the poller's job.
    """

    selectors = selectors or CASE_STATUS_SELECTORS
    for selector in selectors.form_controls:
        if not session.has_element(selector):
            _scraper_event("error", phase="form", step="missing_control", selector=selector)
            raise FieldNotFound(selector)

    _scraper_event(
        "form",
        step="fill",
        case_type=query.case_type,
        case_number=query.case_number,
        filing_year=query.filing_year,
    )
    session.select_option(selectors.case_type, query.case_type)
    session.fill(selectors.case_number, query.case_number)
    session.select_option(selectors.case_year, query.filing_year)
    session.fill(selectors.challenge_input, challenge_text)

    session.click(selectors.submit)
    _scraper_event("form", step="submitted")


__all__ = ["submit"]
