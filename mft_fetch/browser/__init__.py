"""
Browser automation backends.

The orchestrator only depends on the ``BrowserSession`` capabilities;
``PlaywrightBrowserSession`` is the production backend.
"""

from .events import DownloadEvent, DownloadState, format_progress
from .playwright_session import PlaywrightBrowserSession
from .session import BrowserSession, DownloadListener, SessionFactory

__all__ = [
    "BrowserSession",
    "DownloadEvent",
    "DownloadListener",
    "DownloadState",
    "PlaywrightBrowserSession",
    "SessionFactory",
    "format_progress",
]
