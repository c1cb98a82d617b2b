"""Configuration objects and constants for the archiver."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_AUTHOR_NAME = "Source"
DEFAULT_TITLE = "Missing Title"
TITLE_LIMIT = 256
SLUG_LENGTH = 6
SECONDARY_BACKENDS = ("catbox", "imgbb", "imgur")

_TRUTHY = {"true", "1", "on"}


def debug_from_env() -> bool:
    """Return True when the DEBUG environment toggle asks for verbose logs."""
    return os.getenv("DEBUG", "").strip().lower() in _TRUTHY


@dataclass
class ArchiveConfig:
    """Top-level settings that control capture, rehosting and publishing."""

    capture_timeout: float = 120.0
    single_capture_timeout: float = 60.0
    publish_timeout: Optional[float] = None
    scale_factor: float = 1.0
    quality: int = 100
    raw_html: bool = True
    wait_after_load: float = 1.0
    navigation_timeout: float = 30.0
    browser_remote: Optional[str] = None
    author_name: str = DEFAULT_AUTHOR_NAME
    account_short_name: str = "telegraph-go"
    account_author_name: str = "Anonymous"
    account_author_url: str = "https://example.org"
    title_limit: int = TITLE_LIMIT
    slug_length: int = SLUG_LENGTH
    split_height: Optional[int] = None
    secondary_backend: Optional[str] = "catbox"
    imgbb_api_key: Optional[str] = None
    imgur_client_id: Optional[str] = None
    max_retries: int = 10
    max_retry_elapsed: float = 300.0
    download_timeout: float = 30.0

    @classmethod
    def from_env(cls, **overrides) -> "ArchiveConfig":
        """Build a config from environment variables, then apply overrides."""
        values = {
            "imgbb_api_key": os.getenv("IMGBB_API_KEY") or None,
            "imgur_client_id": os.getenv("IMGUR_CLIENT_ID") or None,
            "browser_remote": os.getenv("BROWSER_REMOTE") or None,
        }
        secondary = os.getenv("TELEGRAPH_SECONDARY_BACKEND")
        if secondary is not None:
            secondary = secondary.strip().lower()
            values["secondary_backend"] = secondary if secondary in SECONDARY_BACKENDS else None
        values.update(overrides)
        return cls(**values)
