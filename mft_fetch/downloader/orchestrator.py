"""
Browser-driven download of the MFT document bundle.

The portal has no export API: the orchestrator opens the documents page,
selects every document, clicks the bulk download button and waits for the
browser to report the resulting archive as completed.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from mft_fetch.browser.events import DownloadEvent, DownloadState, format_progress
from mft_fetch.browser.session import BrowserSession, SessionFactory
from mft_fetch.core.config import Settings
from mft_fetch.core.exceptions import AutomationException, DownloadTimeoutException
from mft_fetch.core.logging import get_logger

logger = get_logger(__name__)

# Chromium reports a navigation that turned into a download as aborted.
ABORTED_NAVIGATION_MARKER = "net::ERR_ABORTED"


class CompletionListener:
    """
    Consumes download events and resolves a future with the first completed GUID.

    Later completions are logged and ignored; a completion that arrives
    before anyone awaits the future stays buffered in it.
    """

    def __init__(self, done: asyncio.Future[str]) -> None:
        self.done = done

    def __call__(self, event: DownloadEvent) -> None:
        log = logger.bind(guid=event.guid, state=event.state.value)

        if event.state is DownloadState.STARTED:
            log.info(
                "download_started",
                url=event.url,
                suggested_filename=event.suggested_filename,
            )
            return

        log.info(
            "download_in_progress",
            completed=format_progress(event.received_bytes, event.total_bytes),
        )

        if event.state is DownloadState.CANCELED:
            log.warning("download_canceled")
        elif event.state is DownloadState.COMPLETED:
            if self.done.done():
                log.warning("ignoring_additional_download")
                return
            self.done.set_result(event.guid)


class DownloadOrchestrator:
    """Drives one browser session to download one archive."""

    def __init__(self, session_factory: SessionFactory, settings: Settings) -> None:
        """
        Initialize orchestrator.

        Args:
            session_factory: Callable returning a fresh, not yet started BrowserSession
            settings: Portal selectors, delays and the run deadline
        """
        self.session_factory = session_factory
        self.settings = settings

    async def fetch(self, download_dir: Path) -> Path:
        """
        Download the document archive into download_dir.

        Args:
            download_dir: Existing writable directory for the archive

        Returns:
            Path of the downloaded archive (download_dir / GUID)

        Raises:
            AutomationException: Navigation or element interaction failed
            DownloadTimeoutException: No completed download before the deadline
        """
        deadline = self.settings.deadline_seconds
        done: asyncio.Future[str] = asyncio.get_running_loop().create_future()

        logger.info("download_run_started", url=self.settings.target_url, deadline_seconds=deadline)

        # teardown runs outside the deadline so it always completes
        async with self.session_factory() as session:
            try:
                async with asyncio.timeout(deadline):
                    session.on_download_event(CompletionListener(done))
                    await session.set_download_behavior(download_dir)
                    await self._select_and_download(session)
                    guid = await done
            except TimeoutError as e:
                raise DownloadTimeoutException(
                    f"No completed download after {deadline:g}s",
                    details={"deadline_seconds": deadline},
                ) from e

        archive = Path(download_dir) / guid
        logger.info("download_complete", guid=guid, path=str(archive))
        return archive

    async def _select_and_download(self, session: BrowserSession) -> None:
        settings = self.settings
        try:
            await session.navigate(settings.target_url)
            # let the documents grid render
            await asyncio.sleep(settings.render_delay_seconds)
            await session.wait_visible(settings.select_all_selector)
            await session.click(settings.select_all_selector)
            await session.wait_visible(settings.download_button_xpath)
            await session.click(settings.download_button_xpath)
        except AutomationException as e:
            if ABORTED_NAVIGATION_MARKER not in e.message:
                raise
            logger.debug("download_navigation_aborted", error=e.message)
