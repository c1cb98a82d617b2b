"""Convert parsed HTML into Telegraph nodes while rehosting media."""

from __future__ import annotations

import asyncio
import html
import logging
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PageElement, PreformattedString, Tag

from .models import DocumentNode, Element, Text

logger = logging.getLogger("telegraph_archiver")

MEDIA_ATTRIBUTES = ("src", "data-src")
FOREIGN_NAMESPACES = ("svg", "math")
# HTML content inside foreign elements leaves the foreign namespace.
_INTEGRATION_POINTS = {"foreignobject", "desc", "title", "annotation-xml"}


def parse_fragment(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, "html.parser", multi_valued_attributes=None)


class DocumentConverter:
    """Recursive HTML to node tree conversion.

    Media attributes of one element, and of sibling elements, are resolved
    concurrently. Each element waits for its own resolutions and children
    before it is returned, so the output keeps the source order.
    """

    def __init__(self, rehoster, base_url: Optional[str] = None) -> None:
        self.rehoster = rehoster
        self.base_url = base_url

    async def convert(self, markup: str) -> List[DocumentNode]:
        return await self.convert_nodes(parse_fragment(markup).contents)

    async def convert_nodes(
        self,
        contents: List[PageElement],
        namespace: str = "",
    ) -> List[DocumentNode]:
        converted = await asyncio.gather(
            *(self._convert_node(node, namespace) for node in contents)
        )
        return [node for node in converted if node is not None]

    async def _convert_node(self, node: PageElement, namespace: str) -> Optional[DocumentNode]:
        if isinstance(node, PreformattedString):
            # comments, doctypes, CDATA and processing instructions
            return None
        if isinstance(node, NavigableString):
            text = str(node)
            if not text.strip():
                return None
            return Text(html.escape(text))
        if isinstance(node, Tag):
            return await self._convert_element(node, namespace)
        return None

    async def _convert_element(self, tag: Tag, namespace: str) -> Element:
        name = tag.name.lower()
        if not namespace and name in FOREIGN_NAMESPACES:
            namespace = name
        qualified = f"{namespace}.{tag.name}" if namespace else tag.name
        child_namespace = "" if name in _INTEGRATION_POINTS else namespace

        attrs = {key: _attr_value(value) for key, value in tag.attrs.items()}
        media_keys = [key for key in attrs if key in MEDIA_ATTRIBUTES and attrs[key]]

        resolved, children = await asyncio.gather(
            asyncio.gather(*(self.resolve(attrs[key]) for key in media_keys)),
            self.convert_nodes(tag.contents, child_namespace),
        )
        for key, value in zip(media_keys, resolved):
            attrs[key] = value
        return Element(tag=qualified, attrs=attrs, children=children)

    async def resolve(self, value: str) -> str:
        """Return the rehosted URL, or ``value`` unchanged when rehosting fails."""
        if value.startswith("data:"):
            return value
        target = urljoin(self.base_url, value) if self.base_url else value
        try:
            rehosted = await self.rehoster.rehost(target)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Keeping original media link %s: %s", value, exc)
            return value
        return rehosted or value


def _attr_value(value) -> str:
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    return "" if value is None else str(value)
