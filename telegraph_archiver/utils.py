"""Utility helpers for URL checks, slugs and file naming."""

from __future__ import annotations

import random
import re
import string
from urllib.parse import urlparse

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
_SLUG_ALPHABET = string.ascii_letters + string.digits


def slugify(value: str, fallback: str = "page") -> str:
    """Generate a filesystem-friendly slug using ASCII characters only."""
    normalized = value.encode("ascii", "ignore").decode("ascii")
    normalized = normalized.lower()
    normalized = SLUG_PATTERN.sub("-", normalized).strip("-")
    return normalized or fallback


def is_url(value: str) -> bool:
    """Return True for well-formed absolute http(s) URLs."""
    try:
        parsed = urlparse(value.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def random_slug(length: int) -> str:
    return "".join(random.choice(_SLUG_ALPHABET) for _ in range(length))


def file_name(url: str, extension: str = "") -> str:
    """Derive a short file name from the last path segment of a URL."""
    parsed = urlparse(url)
    segment = parsed.path.rstrip("/").rsplit("/", 1)[-1]
    stem, dot, ext = segment.rpartition(".")
    if not dot:
        stem, ext = segment, ""
    name = slugify(stem or parsed.netloc, fallback="file")[:64]
    ext = extension or slugify(ext, fallback="")[:8]
    return f"{name}.{ext}" if ext else name
