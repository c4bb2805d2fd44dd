"""
Playwright-backed browser session.

Chromium is driven through Playwright; download handling goes through a
browser-level CDP session because Playwright does not expose the
GUID-named download behavior nor the progress events.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

from playwright.async_api import Browser, BrowserContext, CDPSession, Page, Playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from mft_fetch.browser.events import DownloadEvent, DownloadState
from mft_fetch.browser.session import DownloadListener
from mft_fetch.core.exceptions import AutomationException
from mft_fetch.core.logging import get_logger

logger = get_logger(__name__)


class PlaywrightBrowserSession:
    """
    Chromium session controlled by Playwright.

    Use as an async context manager; the browser process is closed when
    the block exits, whatever the outcome.
    """

    def __init__(
        self,
        headless: bool = True,
        user_agent: str | None = None,
    ) -> None:
        """
        Initialize Playwright session.

        Args:
            headless: Run browser in headless mode
            user_agent: User agent override for the browser context
        """
        self.headless = headless
        self.user_agent = user_agent
        self.playwright: Playwright | None = None
        self.browser: Browser | None = None
        self.context: BrowserContext | None = None
        self.page: Page | None = None
        self.cdp: CDPSession | None = None
        self._listeners: list[DownloadListener] = []

    async def __aenter__(self) -> PlaywrightBrowserSession:
        """Context manager entry."""
        try:
            await self.start()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        await self.close()

    async def start(self) -> None:
        """Start browser instance."""
        logger.info("starting_playwright_browser", headless=self.headless)

        self.playwright = await async_playwright().start()

        try:
            self.browser = await self.playwright.chromium.launch(headless=self.headless)
            self.context = await self.browser.new_context(
                user_agent=self.user_agent,
                accept_downloads=True,
            )
            self.page = await self.context.new_page()

            self.cdp = await self.browser.new_browser_cdp_session()
            self.cdp.on("Browser.downloadWillBegin", self._on_download_will_begin)
            self.cdp.on("Browser.downloadProgress", self._on_download_progress)
        except PlaywrightError as e:
            raise AutomationException(f"Failed to start browser: {e.message}") from e

        logger.info("playwright_browser_started")

    async def close(self) -> None:
        """Close browser and cleanup.

        Every resource is released even when an earlier step fails; a
        failure is logged so it never hides the error that ended the run.
        """
        steps = [
            ("cdp", self.cdp, "detach"),
            ("page", self.page, "close"),
            ("context", self.context, "close"),
            ("browser", self.browser, "close"),
            ("playwright", self.playwright, "stop"),
        ]
        for name, resource, method in steps:
            if resource is None:
                continue
            try:
                await getattr(resource, method)()
            except Exception as e:
                logger.warning("playwright_release_failed", resource=name, error=str(e))

        self.cdp = None
        self.page = None
        self.context = None
        self.browser = None
        self.playwright = None

        logger.info("playwright_browser_closed")

    def on_download_event(self, listener: DownloadListener) -> None:
        """Register a callback for download lifecycle events."""
        self._listeners.append(listener)

    async def set_download_behavior(self, download_dir: Path) -> None:
        """Route downloads of this session's context into download_dir, named by GUID."""
        cdp = self._require(self.cdp)
        params: dict[str, Any] = {
            "behavior": "allowAndName",
            "downloadPath": str(Path(download_dir).resolve()),
            "eventsEnabled": True,
        }

        async with self._translate_errors("set_download_behavior"):
            context_id = await self._browser_context_id()
            if context_id:
                params["browserContextId"] = context_id
            await cdp.send("Browser.setDownloadBehavior", params)

        logger.debug("download_behavior_set", **params)

    async def navigate(self, url: str) -> None:
        page = self._require(self.page)
        async with self._translate_errors("navigate", url=url):
            await page.goto(url)

    async def wait_visible(self, selector: str) -> None:
        page = self._require(self.page)
        async with self._translate_errors("wait_visible", selector=selector):
            # no per-call timeout, the caller bounds the whole session
            await page.wait_for_selector(selector, state="visible", timeout=0)

    async def click(self, selector: str) -> None:
        page = self._require(self.page)
        async with self._translate_errors("click", selector=selector):
            await page.click(selector, timeout=0)

    async def _browser_context_id(self) -> str | None:
        """Find the CDP browser context that owns our page target."""
        result = await self._require(self.cdp).send("Target.getTargets")
        for info in result.get("targetInfos", []):
            if info.get("type") == "page" and info.get("browserContextId"):
                return info["browserContextId"]
        return None

    def _on_download_will_begin(self, params: dict[str, Any]) -> None:
        self._dispatch(DownloadEvent.model_validate({**params, "state": DownloadState.STARTED}))

    def _on_download_progress(self, params: dict[str, Any]) -> None:
        self._dispatch(DownloadEvent.model_validate(params))

    def _dispatch(self, event: DownloadEvent) -> None:
        for listener in self._listeners:
            listener(event)

    @staticmethod
    def _require(value):
        if value is None:
            msg = "Browser not started. Call start() first or use context manager."
            raise RuntimeError(msg)
        return value

    @staticmethod
    @asynccontextmanager
    async def _translate_errors(action: str, **details: Any) -> AsyncIterator[None]:
        try:
            yield
        except PlaywrightError as e:
            raise AutomationException(e.message, details={"action": action, **details}) from e
