"""Browser session ownership for one scrape request.

Each :class:`BrowserSession` owns its own Playwright driver, browser, context
and page. Nothing is shared across sessions, so a session can be opened and
closed on whichever thread needs it (the sync API binds a driver to the thread
that started it). :class:`RequestScope` is the per-request arena: it hands out
sessions, remembers them, enforces the request deadline and closes whatever is
left open when the request ends.
"""
from __future__ import annotations

import threading
import time
from typing import Callable, List, Optional

from playwright.sync_api import (
    Error as PWError,
    TimeoutError as PWTimeout,
    sync_playwright,
)

from . import config
from .error_codes import FieldNotFound, NavigationFailed, NavigationTimeout, RequestCancelled
from .logging_utils import _scraper_event
from .utils import log_line


def _is_target_closed_error(exc: Exception) -> bool:
    message = str(exc).lower()
    return "target closed" in message or "has been closed" in message


class BrowserSession:
    """One headless Chromium page plus the engine objects behind it."""

    def __init__(self, label: str = "session", *, headless: Optional[bool] = None) -> None:
        self.label = label
        self._headless = config.HEADLESS if headless is None else headless
        self._pw = None
        self._browser = None
        self._context = None
        self._page = None
        self._closed = False

    def open(self) -> "BrowserSession":
        self._pw = sync_playwright().start()
        try:
            self._browser = self._pw.chromium.launch(
                headless=self._headless,
                args=list(config.BROWSER_LAUNCH_ARGS),
            )
            self._context = self._browser.new_context(
                user_agent=config.USER_AGENT,
                locale="en-US",
                viewport={"width": 1368, "height": 900},
            )
            self._context.add_init_script(
                "Object.defineProperty(navigator, 'webdriver', {get: () => undefined});"
            )
            self._page = self._context.new_page()
            _scraper_event("session", step="open", session=self.label)
        except Exception:
            self.close()
            raise
        return self

    @property
    def page(self):
        if self._page is None or self._closed:
            raise RuntimeError(f"Session {self.label!r} is not open")
        return self._page

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def url(self) -> str:
        return self.page.url

    def navigate(self, url: str, timeout_ms: int) -> None:
        """Load ``url`` and wait for the document to be parsed."""

        _scraper_event("nav", step="goto", session=self.label, url=url)
        try:
            self.page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
        except PWTimeout as exc:
            _scraper_event("error", phase="nav", step="goto_timeout", session=self.label, url=url)
            raise NavigationTimeout(
                f"Page {url} did not finish loading within {timeout_ms} ms"
            ) from exc
        except PWError as exc:
            step = "goto_target_closed" if _is_target_closed_error(exc) else "goto_error"
            _scraper_event(
                "error", phase="nav", step=step, session=self.label, url=url, error=str(exc)
            )
            raise NavigationFailed(f"Navigation to {url} failed: {exc}") from exc

    def wait_for_selector(self, selector: str, timeout_ms: int) -> bool:
        """Wait once for ``selector`` to be attached; ``False`` on timeout."""

        try:
            self.page.wait_for_selector(selector, state="attached", timeout=timeout_ms)
            return True
        except PWTimeout:
            return False

    def has_element(self, selector: str) -> bool:
        return self.page.query_selector(selector) is not None

    def text_content(self, selector: str) -> Optional[str]:
        element = self.page.query_selector(selector)
        if element is None:
            return None
        return element.text_content()

    def outer_html(self, selector: str) -> Optional[str]:
        element = self.page.query_selector(selector)
        if element is None:
            return None
        return element.evaluate("el => el.outerHTML")

    def select_option(self, selector: str, value: str) -> None:
        # The site's <option> values and labels differ between selects; match either.
        try:
            self.page.select_option(selector, value=value, timeout=5000)
            return
        except PWError:
            pass
        try:
            self.page.select_option(selector, label=value, timeout=5000)
        except PWError as exc:
            _scraper_event(
                "error", phase="form", step="option_rejected", selector=selector, value=value
            )
            raise FieldNotFound(selector, value=value) from exc

    def fill(self, selector: str, value: str) -> None:
        self.page.fill(selector, value)

    def click(self, selector: str) -> None:
        self.page.click(selector)

    def pause(self, seconds: float) -> None:
        """Yield to the browser for ``seconds`` without blocking its event loop."""

        if seconds is None or seconds <= 0:
            return
        if self._page is not None and not self._page.is_closed():
            self._page.wait_for_timeout(int(seconds * 1000))
        else:
            time.sleep(seconds)

    def close(self) -> None:
        """Tear down page, context, browser and driver. Safe to call twice."""

        if self._closed:
            return
        self._closed = True
        for resource in (self._context, self._browser):
            if resource is None:
                continue
            try:
                resource.close()
            except Exception as exc:  # noqa: BLE001
                log_line(f"[SESSION] close of {self.label} raised: {exc}")
        if self._pw is not None:
            try:
                self._pw.stop()
            except Exception as exc:  # noqa: BLE001
                log_line(f"[SESSION] playwright stop for {self.label} raised: {exc}")
        self._page = self._context = self._browser = self._pw = None
        _scraper_event("session", step="close", session=self.label)

    def __enter__(self) -> "BrowserSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


SessionFactory = Callable[[str], "BrowserSession"]


def open_browser_session(label: str = "session") -> BrowserSession:
    """Default session factory: launch a fresh headless browser."""

    return BrowserSession(label).open()


class RequestScope:
    """Arena owning every session opened on behalf of one request."""

    def __init__(
        self,
        *,
        session_factory: Optional[SessionFactory] = None,
        timeout_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._factory = session_factory or open_browser_session
        self._clock = clock
        limit = config.REQUEST_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        self._deadline = clock() + limit if limit and limit > 0 else None
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._sessions: List[BrowserSession] = []
        self._closed = False

    def open_session(self, label: str) -> BrowserSession:
        self.raise_if_cancelled()
        session = self._factory(label)
        with self._lock:
            self._sessions.append(session)
            closed = self._closed
        if closed:
            session.close()
            raise RequestCancelled("Request scope already closed")
        return session

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self._deadline is not None and self._clock() >= self._deadline

    def raise_if_cancelled(self) -> None:
        if self._cancelled.is_set():
            raise RequestCancelled("Request was cancelled")
        if self._deadline is not None and self._clock() >= self._deadline:
            self._cancelled.set()
            raise RequestCancelled("Request exceeded its deadline")

    @property
    def open_sessions(self) -> List[BrowserSession]:
        with self._lock:
            return [session for session in self._sessions if not session.closed]

    def close(self) -> None:
        """Close any session still open. Idempotent."""

        with self._lock:
            self._closed = True
            pending = [session for session in self._sessions if not session.closed]
        for session in pending:
            try:
                session.close()
            except Exception as exc:  # noqa: BLE001
                log_line(f"[SESSION] scope close of {session.label} raised: {exc}")
        if pending:
            _scraper_event("session", step="scope_close", closed=len(pending))

    def __enter__(self) -> "RequestScope":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


__all__ = [
    "BrowserSession",
    "RequestScope",
    "SessionFactory",
    "open_browser_session",
]
