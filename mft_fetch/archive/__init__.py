"""Archive extraction and cleanup stages."""

from .cleanup import remove_downloaded_files
from .extractor import (
    ArchiveExtractor,
    entry_mode,
    resolve_entry_path,
    sanitize_entry_name,
)

__all__ = [
    "ArchiveExtractor",
    "entry_mode",
    "remove_downloaded_files",
    "resolve_entry_path",
    "sanitize_entry_name",
]
