"""Scoped headless-browser session for hunters that need rendered pages."""

from __future__ import annotations

from typing import Any

import structlog

from ..errors import SourceUnavailable

_LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]


class BrowserSession:
    """One Chromium browser per hunter task, closed on every exit path.

    Use as a context manager::

        with BrowserSession("directory", user_agent=ua) as browser:
            html = browser.goto(url, wait_selector=".business-listing")
    """

    def __init__(
        self,
        source: str,
        *,
        user_agent: str | None = None,
        headless: bool = True,
        timeout: float = 30.0,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.source = source
        self._user_agent = user_agent
        self._headless = headless
        self._timeout_ms = int(timeout * 1000)
        self.logger = logger or structlog.get_logger("hunter_swarm.browser")
        self._playwright: Any = None
        self._browser: Any = None
        self._page: Any = None

    def __enter__(self) -> "BrowserSession":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def open(self) -> None:
        if self._playwright is not None:
            return
        from playwright.sync_api import Error as PlaywrightError
        from playwright.sync_api import sync_playwright

        try:
            self._playwright = sync_playwright().start()
            self._browser = self._playwright.chromium.launch(
                headless=self._headless, args=_LAUNCH_ARGS
            )
            context = self._browser.new_context(user_agent=self._user_agent)
            self._page = context.new_page()
        except PlaywrightError as exc:
            self.close()
            raise SourceUnavailable(self.source, f"browser launch failed: {exc}") from exc

    @property
    def url(self) -> str:
        return self._page.url if self._page is not None else ""

    def goto(self, url: str, wait_selector: str | None = None) -> str:
        from playwright.sync_api import Error as PlaywrightError
        from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

        try:
            self._page.goto(url, wait_until="networkidle", timeout=self._timeout_ms)
        except PlaywrightError as exc:
            raise SourceUnavailable(self.source, f"navigation failed: {exc}") from exc
        if wait_selector:
            try:
                self._page.wait_for_selector(wait_selector, timeout=min(self._timeout_ms, 10000))
            except PlaywrightTimeoutError:
                # Listing markup varies; parse whatever rendered.
                self.logger.info("wait_selector_missing", selector=wait_selector, url=url)
            except PlaywrightError as exc:
                raise SourceUnavailable(self.source, f"page not ready: {exc}") from exc
        return self.content()

    def click_next(self, selector: str, pause_ms: int = 2000) -> bool:
        """Click the first "next page" control; False when there is none."""

        from playwright.sync_api import Error as PlaywrightError

        try:
            locator = self._page.locator(selector)
            if locator.count() == 0:
                return False
            locator.first.click(timeout=min(self._timeout_ms, 5000))
            self._page.wait_for_timeout(pause_ms)
        except PlaywrightError as exc:
            self.logger.info("next_page_failed", selector=selector, error=str(exc))
            return False
        return True

    def content(self) -> str:
        from playwright.sync_api import Error as PlaywrightError

        try:
            return self._page.content()
        except PlaywrightError as exc:
            raise SourceUnavailable(self.source, f"page read failed: {exc}") from exc

    def close(self) -> None:
        browser, playwright = self._browser, self._playwright
        self._browser = self._page = self._playwright = None
        try:
            if browser is not None:
                browser.close()
        finally:
            if playwright is not None:
                playwright.stop()


__all__ = ["BrowserSession"]
