"""Minimal client for the Telegraph publishing API."""

from __future__ import annotations

import json
import logging
import mimetypes
import os
from contextlib import ExitStack
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urljoin

import requests

from .errors import TelegraphAPIError, UploadFailed
from .models import DocumentNode, Element, Page, Text

logger = logging.getLogger("telegraph_archiver")

API_ROOT = "https://api.telegra.ph/"
SITE_ROOT = "https://telegra.ph/"


def node_to_json(node: DocumentNode) -> Any:
    """Serialise a node into the Telegraph Node JSON shape."""
    if isinstance(node, Text):
        return node.value
    payload: Dict[str, Any] = {"tag": node.tag}
    if node.attrs:
        payload["attrs"] = dict(node.attrs)
    if node.children:
        payload["children"] = [node_to_json(child) for child in node.children]
    return payload


def nodes_to_json(nodes: Sequence[DocumentNode]) -> str:
    return json.dumps([node_to_json(node) for node in nodes], ensure_ascii=False)


def _page_from_result(result: Dict[str, Any]) -> Page:
    return Page(
        path=result.get("path", ""),
        url=result.get("url", ""),
        title=result.get("title", ""),
    )


class TelegraphClient:
    """Request-scoped handle on one Telegraph account."""

    def __init__(
        self,
        access_token: str = "",
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        api_root: str = API_ROOT,
        site_root: str = SITE_ROOT,
    ) -> None:
        self.access_token = access_token
        self.session = session or requests.Session()
        self.timeout = timeout
        self.api_root = api_root
        self.site_root = site_root

    def _call(self, method: str, params: Dict[str, Any]) -> Dict[str, Any]:
        resp = self.session.post(urljoin(self.api_root, method), data=params, timeout=self.timeout)
        resp.raise_for_status()
        payload = resp.json()
        if not payload.get("ok"):
            raise TelegraphAPIError(f"{method}: {payload.get('error', 'unknown error')}")
        return payload.get("result") or {}

    def create_account(self, short_name: str, author_name: str = "", author_url: str = "") -> str:
        result = self._call(
            "createAccount",
            {"short_name": short_name, "author_name": author_name, "author_url": author_url},
        )
        self.access_token = result.get("access_token", "")
        logger.debug("Created Telegraph account %s", short_name)
        return self.access_token

    def create_page(
        self,
        title: str,
        nodes: Sequence[DocumentNode],
        return_content: bool = False,
    ) -> Page:
        result = self._call(
            "createPage",
            {
                "access_token": self.access_token,
                "title": title,
                "content": nodes_to_json(nodes),
                "return_content": json.dumps(return_content),
            },
        )
        return _page_from_result(result)

    def edit_page(
        self,
        path: str,
        title: str,
        nodes: Sequence[DocumentNode],
        author_name: str = "",
        author_url: str = "",
    ) -> Page:
        result = self._call(
            f"editPage/{path}",
            {
                "access_token": self.access_token,
                "title": title,
                "content": nodes_to_json(nodes),
                "author_name": author_name,
                "author_url": author_url,
                "return_content": "false",
            },
        )
        return _page_from_result(result)

    def upload(self, paths: Sequence[str]) -> List[str]:
        """Upload local files and return their absolute URLs."""
        with ExitStack() as stack:
            files = []
            for index, path in enumerate(paths):
                mime = mimetypes.guess_type(path)[0] or "application/octet-stream"
                handle = stack.enter_context(open(path, "rb"))
                files.append((f"file{index}", (os.path.basename(path), handle, mime)))
            resp = self.session.post(urljoin(self.site_root, "upload"), files=files, timeout=self.timeout)
        resp.raise_for_status()
        payload = resp.json()
        if isinstance(payload, dict):
            raise UploadFailed(f"telegraph upload: {payload.get('error', 'unexpected response')}")
        return [urljoin(self.site_root, item["src"]) for item in payload if item.get("src")]


def new_client(
    short_name: str,
    author_name: str,
    author_url: str,
    session: Optional[requests.Session] = None,
    timeout: float = 30.0,
) -> TelegraphClient:
    """Create a client with a freshly registered anonymous account."""
    client = TelegraphClient(session=session, timeout=timeout)
    client.create_account(short_name, author_name, author_url)
    return client
