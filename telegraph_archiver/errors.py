"""Exception hierarchy for the archiving pipeline."""

from __future__ import annotations

from typing import Dict, Optional


class ArchiveError(Exception):
    """Base class; ``str()`` is the short message reported to users."""

    default_message = "archive failed"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)


class InvalidURL(ArchiveError):
    default_message = "invalid url"


class DownloadFailed(ArchiveError):
    default_message = "download failed"


class FileNotFound(ArchiveError):
    default_message = "file not found"


class UploadFailed(ArchiveError):
    default_message = "upload failed"


class TitleRequired(ArchiveError):
    default_message = "title is required"


class PageCreateFailed(ArchiveError):
    default_message = "create page failed"


class PageEditFailed(ArchiveError):
    default_message = "edit page failed"


class CaptureFailed(ArchiveError):
    default_message = "capture failed"


class EmptyCapturedData(ArchiveError):
    default_message = "data empty"


class TelegraphAPIError(ArchiveError):
    """The publishing backend answered with ``ok: false``."""

    default_message = "telegraph api error"


class BatchError(ArchiveError):
    """Aborts a whole batch; keeps whatever results were recorded so far."""

    def __init__(
        self,
        message: Optional[str] = None,
        results: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(message)
        self.results: Dict[str, str] = dict(results or {})


class NoValidURLs(BatchError):
    default_message = "url not found"


class CaptureDeadlineExceeded(BatchError):
    default_message = "capture deadline exceeded"
