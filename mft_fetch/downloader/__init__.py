"""
Document downloader module for the MFT portal.

Drives a browser to download the bundle of all published documents.
"""

from .orchestrator import (
    ABORTED_NAVIGATION_MARKER,
    CompletionListener,
    DownloadOrchestrator,
)

__all__ = [
    "ABORTED_NAVIGATION_MARKER",
    "CompletionListener",
    "DownloadOrchestrator",
]
