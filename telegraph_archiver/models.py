"""Data models used throughout the archiving pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from .config import TITLE_LIMIT


@dataclass
class Text:
    """Escaped text content of a document node."""

    value: str


@dataclass
class Element:
    """Tag with ordered attributes and ordered children."""

    tag: str
    attrs: Dict[str, str] = field(default_factory=dict)
    children: List["DocumentNode"] = field(default_factory=list)


DocumentNode = Union[Text, Element]

UploadOutcome = List[str]


@dataclass
class MediaReference:
    """A remote resource being rehosted; lives only for one rehost call."""

    original_url: str
    local_path: str = ""
    content_type: str = ""
    rehosted_url: str = ""


@dataclass
class Subject:
    """Title and source of the page being published."""

    title: str
    source_url: str

    def truncated_title(self, limit: int = TITLE_LIMIT) -> str:
        # Python strings index by code point, which matches rune semantics.
        return self.title[:limit]


@dataclass
class CaptureResult:
    """Rendered page returned by the capture step."""

    url: str
    title: str
    html: Optional[bytes]
    image: Optional[bytes]
    final_url: str = ""


@dataclass
class Page:
    """A page as reported by the publishing backend."""

    path: str
    url: str
    title: str = ""
