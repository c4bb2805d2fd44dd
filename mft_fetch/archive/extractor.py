"""Extraction of the downloaded document archive."""

from __future__ import annotations

import os
import re
import shutil
import zipfile
import zlib
from pathlib import Path

from mft_fetch.core.exceptions import (
    ArchiveOpenException,
    CopyException,
    DirectoryCreateException,
    FileOpenException,
    UnsafeEntryException,
)
from mft_fetch.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_FILE_MODE = 0o644

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def sanitize_entry_name(name: str) -> str:
    """
    Drop characters that cannot be part of a file name.

    Removes anything not encodable as UTF-8 (lone surrogates left by a
    lossy decode) and control characters, and turns Windows separators
    into forward slashes.

    Args:
        name: Raw entry name as stored in the archive

    Returns:
        Sanitized relative name (may still contain ``..`` segments)
    """
    name = name.encode("utf-8", errors="ignore").decode("utf-8")
    name = _CONTROL_CHARS.sub("", name)
    return name.replace("\\", "/")


def resolve_entry_path(root: Path, name: str) -> Path:
    """
    Resolve an entry name below root.

    Args:
        root: Destination root directory
        name: Sanitized entry name

    Returns:
        Absolute destination path inside root

    Raises:
        UnsafeEntryException: Name is empty or resolves outside root
    """
    root = Path(root).resolve()
    target = (root / name).resolve()

    if target == root or not target.is_relative_to(root):
        msg = f"Entry {name!r} resolves outside {root}"
        raise UnsafeEntryException(msg, details={"entry": name, "root": str(root)})

    return target


def entry_mode(info: zipfile.ZipInfo) -> int:
    """Permission bits stored for an entry, or 0o644 when the archive has none."""
    return (info.external_attr >> 16) & 0o777 or DEFAULT_FILE_MODE


class ArchiveExtractor:
    """
    Writes every entry of a zip archive below a destination root.

    Extraction is sequential and stops at the first failing entry; files
    written before the failure are left in place.
    """

    def extract(self, source: Path, destination: Path) -> list[Path]:
        """
        Extract source into destination.

        Args:
            source: Path of the zip archive
            destination: Root directory for the extracted tree

        Returns:
            Paths of the written files, in archive order

        Raises:
            ArchiveOpenException: Archive missing or corrupt
            UnsafeEntryException: Entry name escapes the destination root
            DirectoryCreateException: Parent directory could not be created
            FileOpenException: Destination or entry could not be opened
            CopyException: Entry bytes could not be copied
        """
        log = logger.bind(source=str(source), destination=str(destination))
        log.info("opening_zip_file")

        try:
            archive = zipfile.ZipFile(source)
        except (OSError, zipfile.BadZipFile) as e:
            msg = f"Failed to open zip file {source}: {e}"
            raise ArchiveOpenException(msg, details={"source": str(source)}) from e

        written: list[Path] = []
        with archive:
            for info in archive.infolist():
                path = self._extract_entry(archive, info, Path(destination), log)
                if path is not None:
                    written.append(path)

        log.info("zip_file_extracted", files=len(written))
        return written

    def _extract_entry(self, archive: zipfile.ZipFile, info: zipfile.ZipInfo, root: Path, log) -> Path | None:
        name = sanitize_entry_name(info.filename)
        log = log.bind(file=name)
        log.info("extracting_file")

        target = resolve_entry_path(root, name)
        directory = target if info.is_dir() else target.parent

        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            msg = f"Failed to create directory {directory}: {e}"
            raise DirectoryCreateException(msg, details={"path": str(directory)}) from e

        if info.is_dir():
            return None

        mode = entry_mode(info)
        try:
            fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
        except OSError as e:
            msg = f"Failed to open file {target}: {e}"
            raise FileOpenException(msg, details={"path": str(target)}) from e

        with os.fdopen(fd, "wb") as out_file:
            try:
                # honour the stored mode whatever the umask
                os.fchmod(out_file.fileno(), mode)
                in_file = archive.open(info)
            except (OSError, zipfile.BadZipFile, NotImplementedError) as e:
                msg = f"Failed to open entry {name}: {e}"
                raise FileOpenException(msg, details={"entry": name}) from e

            with in_file:
                try:
                    shutil.copyfileobj(in_file, out_file)
                except (OSError, EOFError, zipfile.BadZipFile, zlib.error) as e:
                    msg = f"Failed to copy {name}: {e}"
                    raise CopyException(msg, details={"entry": name, "path": str(target)}) from e

        return target
