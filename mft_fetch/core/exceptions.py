"""Custom exceptions for the MFT document fetcher."""


class MftFetchException(Exception):
    """Base exception for all fetcher errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        """Initialize exception with message and optional details.

        Args:
            message: Error message
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationException(MftFetchException):
    """Configuration error."""

    pass


class AcquisitionException(MftFetchException):
    """Exceptions raised while driving the browser to obtain the archive."""

    pass


class AutomationException(AcquisitionException):
    """Navigation or element interaction failed."""

    pass


class DownloadTimeoutException(AcquisitionException, TimeoutError):
    """No completed download before the run deadline."""

    pass


class ExtractionException(MftFetchException):
    """Exceptions related to archive extraction."""

    pass


class ArchiveOpenException(ExtractionException):
    """Archive is missing or corrupt."""

    pass


class UnsafeEntryException(ExtractionException):
    """Entry name resolves outside the destination root."""

    pass


class DirectoryCreateException(ExtractionException):
    """Parent directory for an entry could not be created."""

    pass


class FileOpenException(ExtractionException):
    """Destination file could not be opened for writing."""

    pass


class CopyException(ExtractionException):
    """Entry bytes could not be copied to the destination file."""

    pass


class CleanupException(MftFetchException):
    """Downloaded archive could not be removed."""

    pass
