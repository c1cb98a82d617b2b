"""High-level orchestration: capture pages, then publish each one."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

import requests

from .capture import CaptureOutcome, capture
from .config import DEFAULT_TITLE, ArchiveConfig
from .content import extract_article, extract_title
from .errors import (
    ArchiveError,
    CaptureDeadlineExceeded,
    EmptyCapturedData,
    InvalidURL,
    NoValidURLs,
)
from .images import remove_quietly, temp_path
from .models import CaptureResult, Subject
from .publisher import PagePublisher
from .rehost import MediaRehoster
from .retry import RetryPolicy
from .telegraph import TelegraphClient, new_client
from .uploaders import build_backends
from .utils import file_name, is_url

logger = logging.getLogger("telegraph_archiver")

INVALID_URL = "invalid url"
NOT_CAPTURED = "not captured"
PUBLISH_DEADLINE = "publish deadline exceeded"

CaptureFunc = Callable[[Sequence[str], ArchiveConfig], Awaitable[List[CaptureOutcome]]]
ClientFactory = Callable[[requests.Session], TelegraphClient]


class Archiver:
    """Archive web pages to Telegraph.

    ``articles`` maps URLs to article HTML that was extracted elsewhere;
    those pages skip extraction. ``capture_func`` and ``client_factory``
    replace the Playwright renderer and the Telegraph account setup.
    """

    def __init__(
        self,
        config: Optional[ArchiveConfig] = None,
        articles: Optional[Mapping[str, str]] = None,
        capture_func: Optional[CaptureFunc] = None,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self.config = config or ArchiveConfig()
        self.articles: Dict[str, str] = dict(articles or {})
        self._capture = capture_func or capture
        self._client_factory = client_factory or self._new_client

    def _new_client(self, session: requests.Session) -> TelegraphClient:
        return new_client(
            self.config.account_short_name,
            self.config.account_author_name,
            self.config.account_author_url,
            session=session,
        )

    def build_publisher(self) -> PagePublisher:
        """Create the client, rehoster and publisher for one top-level call."""
        session = requests.Session()
        try:
            client = self._client_factory(session)
        except requests.RequestException as exc:
            logger.error("Dial Telegraph client failed: %s", exc)
            raise ArchiveError(f"create account failed: {exc}") from exc
        rehoster = MediaRehoster(
            build_backends(client, self.config),
            retry=RetryPolicy.from_config(self.config),
            download_timeout=self.config.download_timeout,
        )
        return PagePublisher(client, rehoster, self.config)

    async def archive_batch(self, urls: Sequence[str]) -> Dict[str, str]:
        """Archive every URL and map each input to a page URL or a failure message."""
        results: Dict[str, str] = {}
        valid: List[str] = []
        for url in urls:
            if url in results:
                continue
            if not is_url(url):
                logger.warning("%s is invalid url", url)
                results[url] = INVALID_URL
                continue
            results[url] = NOT_CAPTURED
            valid.append(url)
        if not valid:
            raise NoValidURLs(results=results)

        try:
            publisher = await asyncio.to_thread(self.build_publisher)
        except ArchiveError as exc:
            for url in valid:
                results[url] = str(exc)
            return results

        try:
            captures = await asyncio.wait_for(
                self._capture(valid, self.config), timeout=self.config.capture_timeout
            )
        except asyncio.TimeoutError as exc:
            logger.error("Capture deadline exceeded after %.0fs", self.config.capture_timeout)
            raise CaptureDeadlineExceeded(results=results) from exc

        jobs = []
        for url, outcome in zip(valid, captures):
            if isinstance(outcome, Exception):
                results[url] = str(outcome)
                continue
            jobs.append(self._record(results, url, self._bounded(self.publish_capture(publisher, url, outcome))))
        await asyncio.gather(*jobs)
        return results

    async def archive(
        self,
        url: str,
        captured: Optional[CaptureResult] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """Archive a single URL and return the published page URL."""
        if not is_url(url):
            raise InvalidURL(f"invalid url: {url}")
        publisher = await asyncio.to_thread(self.build_publisher)
        if captured is None:
            deadline = timeout or self.config.single_capture_timeout
            try:
                outcomes = await asyncio.wait_for(self._capture([url], self.config), timeout=deadline)
            except asyncio.TimeoutError as exc:
                logger.debug("Screenshot deadline for %s", url)
                raise CaptureDeadlineExceeded() from exc
            if not outcomes:
                raise EmptyCapturedData()
            if isinstance(outcomes[0], Exception):
                raise outcomes[0]
            captured = outcomes[0]
        return await self._bounded(self.publish_capture(publisher, url, captured))

    async def publish_capture(self, publisher: PagePublisher, url: str, captured: CaptureResult) -> str:
        if not captured.image:
            logger.debug("Data empty for %s", url)
            raise EmptyCapturedData()
        if captured.html is None and self.config.raw_html and url not in self.articles:
            logger.info("Missing raw html for %s, skipped", url)
            raise EmptyCapturedData("missing raw html")

        image_path = temp_path(file_name(url, "png"))
        try:
            await asyncio.to_thread(_write_bytes, image_path, captured.image)
            content = await self._article_for(url, captured)
            title = await self._title_for(captured)
            return await publisher.publish(Subject(title=title, source_url=url), content, image_path)
        finally:
            remove_quietly(image_path)

    async def _article_for(self, url: str, captured: CaptureResult) -> Optional[str]:
        content = self.articles.get(url)
        if content:
            logger.debug("Found content for %s in preloaded articles", url)
            return content
        if not captured.html:
            return None
        return await asyncio.to_thread(extract_article, captured.html, captured.final_url or url)

    async def _title_for(self, captured: CaptureResult) -> str:
        title = captured.title.strip()
        if not title and captured.html:
            title = await asyncio.to_thread(extract_title, captured.html)
        return title or DEFAULT_TITLE

    async def _bounded(self, job: Awaitable[str]) -> str:
        if self.config.publish_timeout is None:
            return await job
        return await asyncio.wait_for(job, timeout=self.config.publish_timeout)

    async def _record(self, results: Dict[str, str], url: str, job: Awaitable[str]) -> None:
        try:
            results[url] = await job
        except asyncio.TimeoutError:
            logger.error("Publishing %s exceeded %.0fs", url, self.config.publish_timeout)
            results[url] = PUBLISH_DEADLINE
        except (ArchiveError, OSError) as exc:
            logger.error("Archive %s failed: %s", url, exc)
            results[url] = str(exc)
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Unexpected error archiving %s", url)
            results[url] = f"archive failed: {exc}"


def _write_bytes(path: str, data: bytes) -> None:
    with open(path, "wb") as handle:
        handle.write(data)
