"""Download lifecycle events reported by the browser."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class DownloadState(str, Enum):
    """Lifecycle state of a browser download."""

    STARTED = "started"
    IN_PROGRESS = "inProgress"
    COMPLETED = "completed"
    CANCELED = "canceled"


class DownloadEvent(BaseModel):
    """Immutable notification about one download.

    Field aliases match the CDP ``Browser.downloadWillBegin`` and
    ``Browser.downloadProgress`` payloads so events can be validated
    straight from the protocol params.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    guid: str = Field(..., description="Unique download identifier")
    state: DownloadState = Field(..., description="Lifecycle state")
    received_bytes: float = Field(default=0, alias="receivedBytes")
    total_bytes: float = Field(default=0, alias="totalBytes", description="0 when unknown")
    url: str | None = Field(default=None, description="Source URL, set on started events")
    suggested_filename: str | None = Field(default=None, alias="suggestedFilename")


def format_progress(received_bytes: float, total_bytes: float | None) -> str:
    """Render completion as a percentage, or ``(unknown)`` without a total."""
    if not total_bytes:
        return "(unknown)"
    return f"{received_bytes / total_bytes * 100.0:.2f}%"
