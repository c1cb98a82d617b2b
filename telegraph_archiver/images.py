"""Media download, type detection and image conversion utilities."""

from __future__ import annotations

import logging
import os
import tempfile
from typing import List

import requests
from filetype import guess
from PIL import Image

from .errors import FileNotFound
from .utils import file_name

logger = logging.getLogger("telegraph_archiver")

TEMP_PREFIX = "telegraph-"
DEFAULT_CONTENT_TYPE = "application/octet-stream"
WEBP = "image/webp"
DOWNLOAD_CHUNK_SIZE = 64 * 1024


def temp_path(name: str = "", suffix: str = "") -> str:
    """Create an empty, uniquely named temporary file and return its path."""
    fd, path = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=f"-{name}{suffix}" if name else suffix)
    os.close(fd)
    return path


def remove_quietly(path: str) -> None:
    if not path:
        return
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Failed to remove temporary file %s: %s", path, exc)


def detect_content_type(path: str) -> str:
    """Sniff the MIME type from the file signature."""
    if not os.path.isfile(path):
        raise FileNotFound(f"file not found: {path}")
    kind = guess(path)
    if kind is None:
        return DEFAULT_CONTENT_TYPE
    return kind.mime


def download(url: str, session: requests.Session, timeout: float = 30.0) -> str:
    """Stream ``url`` into a new temporary file and return its path.

    The file is removed again when the download fails.
    """
    path = temp_path(file_name(url))
    try:
        with session.get(url, timeout=timeout, stream=True) as resp:
            resp.raise_for_status()
            with open(path, "wb") as handle:
                for chunk in resp.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    if chunk:
                        handle.write(chunk)
    except BaseException:
        remove_quietly(path)
        raise
    return path


def transcode_to_png(path: str) -> str:
    """Convert an image to PNG in a new temporary file."""
    target = temp_path(suffix=".png")
    try:
        with Image.open(path) as image:
            if image.mode not in ("RGB", "RGBA", "L", "LA", "P"):
                image = image.convert("RGBA")
            image.save(target, format="PNG")
    except BaseException:
        remove_quietly(target)
        raise
    return target


def split_image(path: str, height: int) -> List[str]:
    """Crop a tall image into horizontal slices of at most ``height`` pixels.

    Returns ``[path]`` when the image already fits. Slices are new temporary
    files owned by the caller.
    """
    with Image.open(path) as image:
        width, total = image.size
        if total <= height:
            return [path]
        slices: List[str] = []
        try:
            for top in range(0, total, height):
                box = (0, top, width, min(top + height, total))
                target = temp_path(suffix=".png")
                slices.append(target)
                image.crop(box).save(target, format="PNG")
        except BaseException:
            for target in slices:
                remove_quietly(target)
            raise
    logger.debug("Split %s into %d slices", path, len(slices))
    return slices
