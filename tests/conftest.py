"""Shared fixtures: a scripted browser session standing in for Playwright."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from mft_fetch.browser.events import DownloadEvent
from mft_fetch.core.config import Settings
from mft_fetch.core.exceptions import AutomationException


class FakeBrowserSession:
    """
    Browser session that replays download events after the download click.

    Args:
        events: Events delivered to listeners
        fail_on: Map of action name to error message raised by that action;
            "download_click" fails only the download button click, after emitting
        emit_delay: Deliver events this many seconds after the click instead of inline
        archive_bytes: Written to download_dir / guid when a completed event is delivered
        close_delay: Seconds the teardown takes
    """

    DOWNLOAD_BUTTON_MARKER = "//button"

    def __init__(
        self,
        events: list[DownloadEvent] | None = None,
        fail_on: dict[str, str] | None = None,
        emit_delay: float | None = None,
        archive_bytes: bytes | None = None,
        close_delay: float = 0,
    ) -> None:
        self.events = list(events or [])
        self.fail_on = fail_on or {}
        self.emit_delay = emit_delay
        self.archive_bytes = archive_bytes
        self.close_delay = close_delay
        self.listeners = []
        self.calls: list[tuple[str, object]] = []
        self.download_dir: Path | None = None
        self.entered = False
        self.closed = False

    async def __aenter__(self) -> FakeBrowserSession:
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await asyncio.sleep(self.close_delay)
        self.closed = True

    async def set_download_behavior(self, download_dir: Path) -> None:
        self.calls.append(("set_download_behavior", download_dir))
        self.download_dir = Path(download_dir)

    def on_download_event(self, listener) -> None:
        self.listeners.append(listener)

    async def navigate(self, url: str) -> None:
        self._record("navigate", url)

    async def wait_visible(self, selector: str) -> None:
        self._record("wait_visible", selector)

    async def click(self, selector: str) -> None:
        if selector.startswith(self.DOWNLOAD_BUTTON_MARKER):
            if self.emit_delay is None:
                self.emit_all()
            else:
                asyncio.get_running_loop().call_later(self.emit_delay, self.emit_all)
        self._record("click", selector)
        if selector.startswith(self.DOWNLOAD_BUTTON_MARKER) and "download_click" in self.fail_on:
            raise AutomationException(self.fail_on["download_click"], details={"action": "click"})

    def emit_all(self) -> None:
        for event in self.events:
            if event.state == "completed" and self.archive_bytes is not None and self.download_dir:
                (self.download_dir / event.guid).write_bytes(self.archive_bytes)
            for listener in self.listeners:
                listener(event)

    def _record(self, action: str, arg: object) -> None:
        self.calls.append((action, arg))
        if action in self.fail_on:
            raise AutomationException(self.fail_on[action], details={"action": action})


def progress(guid: str, state: str, received: float = 0, total: float = 0) -> DownloadEvent:
    """Build a CDP-shaped progress event."""
    return DownloadEvent.model_validate(
        {"guid": guid, "state": state, "receivedBytes": received, "totalBytes": total}
    )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with no render delay and a short deadline."""
    return Settings(
        _env_file=None,  # type: ignore
        output_dir=tmp_path / "out",
        render_delay_seconds=0,
        deadline_seconds=2,
    )


@pytest.fixture
def make_session():
    """Return a builder of FakeBrowserSession; the last built session is kept on it."""
    built: list[FakeBrowserSession] = []

    def build(**kwargs) -> FakeBrowserSession:
        session = FakeBrowserSession(**kwargs)
        built.append(session)
        return session

    build.sessions = built  # type: ignore[attr-defined]
    return build


@pytest.fixture
def event():
    """Return the CDP-shaped event builder."""
    return progress
