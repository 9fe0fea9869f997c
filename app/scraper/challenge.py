from __future__ import annotations

from .error_codes import ChallengeUnavailable
from .logging_utils import _scraper_event
from .models import ChallengeToken


def read_challenge(session, selector: str, timeout_ms: int) -> ChallengeToken:
    """Wait once for the challenge element and return its trimmed text.

    Reading again without navigating returns the same text. The token must be
    submitted from the same session before any further navigation.
    """

    _scraper_event("challenge", step="wait", selector=selector, timeout_ms=timeout_ms)
    if not session.wait_for_selector(selector, timeout_ms):
        _scraper_event("error", phase="challenge", step="wait_timeout", selector=selector)
        raise ChallengeUnavailable(
            f"Challenge element {selector!r} did not appear within {timeout_ms} ms"
        )

    text = (session.text_content(selector) or "").strip()
    if not text:
        _scraper_event("error", phase="challenge", step="empty_text", selector=selector)
        raise ChallengeUnavailable(f"Challenge element {selector!r} has no text")

    _scraper_event("challenge", step="read", length=len(text))
    return ChallengeToken(text=text)


__all__ = ["read_challenge"]
