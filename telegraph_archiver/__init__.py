"""Archive web pages as Telegraph articles with rehosted media."""

from __future__ import annotations

__version__ = "0.1.0"
