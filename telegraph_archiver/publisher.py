"""Assemble the article node tree and publish it on Telegraph."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence
from urllib.parse import quote

import requests

from .config import ArchiveConfig
from .converter import DocumentConverter
from .errors import ArchiveError, PageCreateFailed, PageEditFailed, TitleRequired
from .images import remove_quietly, split_image
from .models import DocumentNode, Element, Page, Subject, Text
from .rehost import MediaRehoster
from .telegraph import TelegraphClient
from .utils import random_slug

logger = logging.getLogger("telegraph_archiver")

_API_ERRORS = (ArchiveError, requests.RequestException)


def gallery_nodes(paths: Sequence[str]) -> List[DocumentNode]:
    """A single paragraph holding every screenshot image."""
    images: List[DocumentNode] = [
        Element(tag="img", attrs={"src": path, "alt": ""}) for path in paths
    ]
    return [Element(tag="p", children=images)]


def screenshot_links(paths: Sequence[str]) -> List[DocumentNode]:
    """Numbered links to the screenshots, placed above the article body."""
    children: List[DocumentNode] = [Text("screenshots: ")]
    for index, path in enumerate(paths, start=1):
        children.append(
            Element(
                tag="a",
                attrs={"href": path, "target": "_blank"},
                children=[Text(str(index))],
            )
        )
    return [Element(tag="em", children=children), Element(tag="br")]


class PagePublisher:
    """Publish one subject per call through a request-scoped client."""

    def __init__(
        self,
        client: TelegraphClient,
        rehoster: MediaRehoster,
        config: Optional[ArchiveConfig] = None,
        converter: Optional[DocumentConverter] = None,
    ) -> None:
        self.client = client
        self.rehoster = rehoster
        self.config = config or ArchiveConfig()
        self.converter = converter

    async def publish(self, subject: Subject, article_body: Optional[str], image_path: str) -> str:
        """Publish the page and return its URL."""
        if not subject.title:
            raise TitleRequired()
        title = subject.truncated_title(self.config.title_limit)

        paths = await self.rehost_screenshot(image_path)
        if not article_body:
            nodes = gallery_nodes(paths)
        else:
            converter = self.converter or DocumentConverter(self.rehoster, base_url=subject.source_url)
            body = await converter.convert(article_body)
            nodes = screenshot_links(paths)
            nodes.append(Element(tag="p", children=body))

        return await asyncio.to_thread(self._create_and_edit, title, subject.source_url, nodes)

    async def rehost_screenshot(self, image_path: str) -> List[str]:
        """Upload the screenshot; failures leave the page without it."""
        if not image_path:
            return []
        crops = [image_path]
        if self.config.split_height:
            try:
                crops = await asyncio.to_thread(split_image, image_path, self.config.split_height)
            except Exception as exc:  # pylint: disable=broad-except
                logger.warning("Failed to split screenshot %s: %s", image_path, exc)

        paths: List[str] = []
        try:
            for crop in crops:
                try:
                    paths.extend(await self.rehoster.rehost_file(crop))
                except Exception as exc:  # pylint: disable=broad-except
                    logger.error("Failed to rehost screenshot %s: %s", crop, exc)
        finally:
            for crop in crops:
                if crop != image_path:
                    remove_quietly(crop)
        return paths

    def _create_and_edit(self, title: str, source_url: str, nodes: List[DocumentNode]) -> str:
        page_title = title
        used_slug = False
        try:
            page = self.client.create_page(title, nodes)
        except _API_ERRORS as exc:
            # Titles with characters the backend rejects get a random path.
            page_title = random_slug(self.config.slug_length)
            logger.warning("Create page failed (%s); retrying as %s", exc, page_title)
            page = self._create_with_slug(page_title, nodes)
            used_slug = True

        try:
            page = self.client.edit_page(
                page.path,
                page_title,
                nodes,
                author_name=self.config.author_name,
                author_url=source_url,
            )
        except _API_ERRORS as exc:
            logger.error("Edit page %s failed: %s", page.path, exc)
            raise PageEditFailed(f"edit page failed: {exc}") from exc

        url = page.url
        if used_slug:
            url += "?title=" + quote(title, safe=":@&=+$!'()*,;")
        logger.info("Published %s", url)
        return url

    def _create_with_slug(self, slug: str, nodes: List[DocumentNode]) -> Page:
        try:
            return self.client.create_page(slug, nodes)
        except _API_ERRORS as exc:
            logger.error("Create page failed: %s", exc)
            raise PageCreateFailed(f"create page failed: {exc}") from exc
