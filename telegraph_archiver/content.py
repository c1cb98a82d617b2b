"""Main-content extraction for captured pages."""

from __future__ import annotations

import logging
from typing import Optional, Union

from bs4 import BeautifulSoup
from readability import Document

logger = logging.getLogger("telegraph_archiver")


def _clean_content(soup: BeautifulSoup) -> BeautifulSoup:
    """Remove tags that never belong in a published article."""
    for tag in soup(["script", "style", "noscript", "form"]):
        tag.decompose()
    return soup


def _decode(html: Union[bytes, str]) -> str:
    if isinstance(html, bytes):
        return html.decode("utf-8", errors="replace")
    return html


def extract_article(html: Union[bytes, str], url: str) -> Optional[str]:
    """Return the readable article HTML, or None when there is nothing to keep.

    Extraction problems are not errors for the caller: a page without
    article text is published as a screenshot gallery instead.
    """
    text = _decode(html)
    if not text.strip():
        return None
    try:
        summary_html = Document(text, url=url).summary(html_partial=True)
    except Exception as exc:  # noqa: BLE001 - readability raises assorted parser errors
        logger.error("Failed to extract content from %s: %s", url, exc)
        return None

    summary = _clean_content(BeautifulSoup(summary_html, "html.parser"))
    if not summary.get_text(strip=True) and not summary.find("img"):
        logger.info("Text content empty for %s", url)
        return None
    return summary.decode()


def extract_title(html: Union[bytes, str]) -> str:
    """Best-effort page title from the raw HTML."""
    text = _decode(html)
    try:
        title = Document(text).short_title()
    except Exception:  # noqa: BLE001
        title = ""
    if not title:
        soup = BeautifulSoup(text, "html.parser")
        if soup.title and soup.title.string:
            title = soup.title.string
    return (title or "").strip()
