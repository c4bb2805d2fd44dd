"""Tests for the download, extract, cleanup pipeline."""

import io
import zipfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from mft_fetch.archive import ArchiveExtractor
from mft_fetch.core.exceptions import (
    ArchiveOpenException,
    AutomationException,
    CleanupException,
    DownloadTimeoutException,
)
from mft_fetch.pipeline import DocumentPipeline, PipelineState


def zip_bytes(entries: dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, data in entries.items():
            archive.writestr(name, data)
    return buffer.getvalue()


@pytest.mark.asyncio
async def test_run_success(settings, make_session, event) -> None:
    """Test a full run leaves only the extracted tree."""
    bundle = zip_bytes({"docs/report.pdf": b"%PDF" * 100, "readme.txt": b"hello"})
    pipeline = DocumentPipeline(
        settings,
        session_factory=lambda: make_session(events=[event("abc", "completed", 1, 1)], archive_bytes=bundle),
    )

    result = await pipeline.run()

    out = Path(settings.output_dir)
    assert pipeline.state is PipelineState.DONE
    assert result.archive == out / "abc"
    assert len(result.files) == 2
    assert not (out / "abc").exists()
    assert sorted(p.relative_to(out) for p in out.rglob("*") if p.is_file()) == [
        Path("docs/report.pdf"),
        Path("readme.txt"),
    ]


@pytest.mark.asyncio
async def test_run_creates_output_dir(settings, make_session, event) -> None:
    """Test the output directory is created before downloading."""
    assert not Path(settings.output_dir).exists()
    pipeline = DocumentPipeline(
        settings,
        session_factory=lambda: make_session(events=[event("g", "completed")], archive_bytes=zip_bytes({})),
    )

    await pipeline.run()

    assert Path(settings.output_dir).is_dir()
    assert make_session.sessions[0].download_dir == Path(settings.output_dir)


@pytest.mark.asyncio
async def test_download_failure_skips_later_stages(settings, make_session) -> None:
    """Test an automation error stops the run before extraction."""
    extractor = MagicMock(spec=ArchiveExtractor)
    cleanup = MagicMock()
    pipeline = DocumentPipeline(
        settings,
        session_factory=lambda: make_session(fail_on={"wait_visible": "Element not found"}),
        extractor=extractor,
        cleanup=cleanup,
    )

    with pytest.raises(AutomationException) as exc_info:
        await pipeline.run()

    assert pipeline.state is PipelineState.FAILED
    assert exc_info.value.details["stage"] == "downloading"
    assert "stage: downloading" in exc_info.value.__notes__
    extractor.extract.assert_not_called()
    cleanup.assert_not_called()


@pytest.mark.asyncio
async def test_timeout_is_surfaced_unchanged(settings, make_session) -> None:
    """Test the timeout error reaches the caller with its own type."""
    settings.deadline_seconds = 0.1
    pipeline = DocumentPipeline(settings, session_factory=lambda: make_session())

    with pytest.raises(DownloadTimeoutException):
        await pipeline.run()

    assert pipeline.state is PipelineState.FAILED
    assert make_session.sessions[0].closed


@pytest.mark.asyncio
async def test_extraction_failure_keeps_archive(settings, make_session, event) -> None:
    """Test a corrupt archive fails extraction and cleanup never runs."""
    cleanup = MagicMock()
    pipeline = DocumentPipeline(
        settings,
        session_factory=lambda: make_session(events=[event("bad", "completed")], archive_bytes=b"garbage"),
        cleanup=cleanup,
    )

    with pytest.raises(ArchiveOpenException) as exc_info:
        await pipeline.run()

    assert exc_info.value.details["stage"] == "extracting"
    assert pipeline.state is PipelineState.FAILED
    assert (Path(settings.output_dir) / "bad").exists()
    cleanup.assert_not_called()


@pytest.mark.asyncio
async def test_cleanup_failure(settings, make_session, event) -> None:
    """Test a cleanup error is annotated with its stage."""
    cleanup = MagicMock(side_effect=CleanupException("Failed to remove"))
    pipeline = DocumentPipeline(
        settings,
        session_factory=lambda: make_session(events=[event("g", "completed")], archive_bytes=zip_bytes({"a": b"a"})),
        cleanup=cleanup,
    )

    with pytest.raises(CleanupException) as exc_info:
        await pipeline.run()

    assert exc_info.value.details["stage"] == "cleaning_up"
    assert pipeline.state is PipelineState.FAILED
    cleanup.assert_called_once_with(Path(settings.output_dir) / "g")
