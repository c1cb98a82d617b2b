"""Download remote media and re-upload it through the backend chain."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import List, Optional, Sequence

import requests

from .errors import ArchiveError, DownloadFailed, InvalidURL, UploadFailed
from .images import WEBP, detect_content_type, download, remove_quietly, transcode_to_png
from .models import MediaReference, UploadOutcome
from .retry import RetryPolicy
from .uploaders import UploadBackend
from .utils import is_url

logger = logging.getLogger("telegraph_archiver")

PROVENANCE_PARAM = "orig"


class MediaRehoster:
    """Rehost one resource per call; every temporary file is gone on return.

    Blocking work runs in worker threads so that many resources of one
    document can be rehosted at the same time.
    """

    def __init__(
        self,
        backends: Sequence[UploadBackend],
        session: Optional[requests.Session] = None,
        retry: Optional[RetryPolicy] = None,
        download_timeout: float = 30.0,
    ) -> None:
        self.backends = list(backends)
        self._shared_session = session
        self._local = threading.local()
        self.retry = retry or RetryPolicy()
        self.download_timeout = download_timeout

    @property
    def session(self) -> requests.Session:
        """The injected session, otherwise one session per worker thread."""
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._local.session = requests.Session()
        return session

    async def rehost(self, url: str) -> str:
        return await asyncio.to_thread(self.rehost_url, url)

    async def rehost_file(self, path: str) -> UploadOutcome:
        return await asyncio.to_thread(self.upload_file, path)

    def rehost_url(self, url: str) -> str:
        """Return the rehosted URL for ``url`` with the provenance parameter."""
        if not is_url(url):
            raise InvalidURL(f"invalid url: {url}")
        ref = MediaReference(original_url=url)
        try:
            ref.local_path = self.retry.call(download, url, self.session, self.download_timeout)
        except (requests.RequestException, OSError) as exc:
            raise DownloadFailed(f"download {url}: {exc}") from exc
        logger.debug("Downloaded %s to %s", url, ref.local_path)
        try:
            paths = self.upload_file(ref.local_path, ref)
        finally:
            remove_quietly(ref.local_path)
        ref.rehosted_url = f"{paths[0]}?{PROVENANCE_PARAM}={url}"
        logger.debug("Rehosted %s as %s", url, ref.rehosted_url)
        return ref.rehosted_url

    def upload_file(self, path: str, ref: Optional[MediaReference] = None) -> UploadOutcome:
        """Upload a local file, transcoding WebP to PNG first."""
        content_type = detect_content_type(path)
        if ref is not None:
            ref.content_type = content_type
        converted = ""
        upload_path = path
        if content_type == WEBP:
            try:
                converted = transcode_to_png(path)
                upload_path = converted
            except Exception as exc:  # pylint: disable=broad-except
                # Pillow also raises DecompressionBombError, which is not an OSError.
                logger.error("Failed to convert webp %s, uploading original: %s", path, exc)
        try:
            return self.upload(upload_path)
        finally:
            remove_quietly(converted)

    def upload(self, path: str) -> UploadOutcome:
        """Try each backend in order; the first non-empty answer wins."""
        for backend in self.backends:
            try:
                paths: List[str] = self.retry.call(backend.upload, [path])
            except (ArchiveError, requests.RequestException, OSError) as exc:
                logger.error("Upload %s to %s failed: %s", path, backend.name, exc)
                continue
            if paths:
                return list(paths)
            logger.error("Upload %s to %s returned no paths", path, backend.name)
        raise UploadFailed(f"upload failed on all backends: {path}")
