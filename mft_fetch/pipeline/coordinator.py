"""
Download, extract, clean up.

Runs the three stages in order and stops at the first failure. The
failing exception is re-raised as is, annotated with the stage name.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator

from mft_fetch.archive.cleanup import remove_downloaded_files
from mft_fetch.archive.extractor import ArchiveExtractor
from mft_fetch.browser.session import SessionFactory
from mft_fetch.core.config import Settings
from mft_fetch.core.exceptions import DirectoryCreateException, MftFetchException
from mft_fetch.core.logging import get_logger
from mft_fetch.downloader.orchestrator import DownloadOrchestrator

logger = get_logger(__name__)


class PipelineState(str, Enum):
    """Pipeline run state."""

    PENDING = "pending"
    DOWNLOADING = "downloading"
    EXTRACTING = "extracting"
    CLEANING_UP = "cleaning_up"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineResult:
    """Outcome of a successful run."""

    output_dir: Path
    archive: Path
    files: list[Path] = field(default_factory=list)


class DocumentPipeline:
    """Sequences download, extraction and cleanup for one run."""

    def __init__(
        self,
        settings: Settings,
        session_factory: SessionFactory,
        extractor: ArchiveExtractor | None = None,
        cleanup: Callable[[Path], None] = remove_downloaded_files,
    ) -> None:
        """
        Initialize pipeline.

        Args:
            settings: Run configuration
            session_factory: Callable returning a fresh BrowserSession
            extractor: Archive extractor (default: ArchiveExtractor())
            cleanup: Callable removing the downloaded archive
        """
        self.settings = settings
        self.orchestrator = DownloadOrchestrator(session_factory, settings)
        self.extractor = extractor or ArchiveExtractor()
        self.cleanup = cleanup
        self.state = PipelineState.PENDING

    async def run(self) -> PipelineResult:
        """
        Run all stages.

        Returns:
            PipelineResult with the archive path and extracted files

        Raises:
            MftFetchException: First stage failure, with ``details["stage"]`` set
        """
        output_dir = Path(self.settings.output_dir)

        self._transition(PipelineState.DOWNLOADING)
        with self._stage():
            try:
                output_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                msg = f"Failed to create output directory {output_dir}: {e}"
                raise DirectoryCreateException(msg, details={"path": str(output_dir)}) from e
            archive = await self.orchestrator.fetch(output_dir)

        self._transition(PipelineState.EXTRACTING)
        with self._stage():
            files = self.extractor.extract(archive, output_dir)

        self._transition(PipelineState.CLEANING_UP)
        with self._stage():
            self.cleanup(archive)

        self._transition(PipelineState.DONE)
        logger.info("pipeline_done", output_dir=str(output_dir), files=len(files))
        return PipelineResult(output_dir=output_dir, archive=archive, files=files)

    def _transition(self, state: PipelineState) -> None:
        logger.debug("pipeline_state", previous=self.state.value, state=state.value)
        self.state = state

    @contextmanager
    def _stage(self) -> Iterator[None]:
        """Mark the run failed and annotate the error with the running stage."""
        try:
            yield
        except Exception as e:
            stage = self.state.value
            if isinstance(e, MftFetchException):
                e.details.setdefault("stage", stage)
            e.add_note(f"stage: {stage}")

            logger.error("pipeline_stage_failed", stage=stage, error=str(e))
            self.state = PipelineState.FAILED
            raise
