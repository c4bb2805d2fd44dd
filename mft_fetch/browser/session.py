"""Capabilities the download orchestrator needs from a browser backend."""

from __future__ import annotations

from pathlib import Path
from types import TracebackType
from typing import Callable, Protocol, runtime_checkable

from mft_fetch.browser.events import DownloadEvent

DownloadListener = Callable[[DownloadEvent], None]


@runtime_checkable
class BrowserSession(Protocol):
    """
    One browser automation session.

    Entering the session launches the browser process; leaving it must
    terminate the process on every exit path. Backends raise
    ``AutomationException`` for navigation and element failures, keeping
    the backend's original message.
    """

    async def __aenter__(self) -> BrowserSession: ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None: ...

    async def set_download_behavior(self, download_dir: Path) -> None:
        """Accept downloads, name them by GUID, write them to download_dir, emit events."""
        ...

    def on_download_event(self, listener: DownloadListener) -> None:
        """Register a callback invoked for every download event."""
        ...

    async def navigate(self, url: str) -> None: ...

    async def wait_visible(self, selector: str) -> None: ...

    async def click(self, selector: str) -> None: ...


SessionFactory = Callable[[], BrowserSession]
