"""Image upload backends tried in order by the rehoster."""

from __future__ import annotations

import base64
import logging
import os
from typing import List, Optional, Sequence

import requests

from .config import ArchiveConfig
from .errors import UploadFailed
from .telegraph import TelegraphClient

logger = logging.getLogger("telegraph_archiver")

IMGBB_ENDPOINT = "https://api.imgbb.com/1/upload"
CATBOX_ENDPOINT = "https://catbox.moe/user/api.php"


class UploadBackend:
    """Uploads local files and returns one URL per stored file."""

    name = "backend"

    def upload(self, paths: Sequence[str]) -> List[str]:
        raise NotImplementedError


class TelegraphUploader(UploadBackend):
    """The publishing backend's own file upload."""

    name = "telegraph"

    def __init__(self, client: TelegraphClient) -> None:
        self.client = client

    def upload(self, paths: Sequence[str]) -> List[str]:
        return self.client.upload(paths)


class CatboxUploader(UploadBackend):
    """Anonymous uploads; needs no credentials."""

    name = "catbox"

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        endpoint: str = CATBOX_ENDPOINT,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout
        self.endpoint = endpoint

    def _upload_one(self, path: str) -> str:
        with open(path, "rb") as handle:
            resp = self.session.post(
                self.endpoint,
                data={"reqtype": "fileupload"},
                files={"fileToUpload": (os.path.basename(path), handle)},
                timeout=self.timeout,
            )
        resp.raise_for_status()
        url = resp.text.strip()
        if not url.startswith("http"):
            raise UploadFailed(f"catbox upload: {url or 'empty response'}")
        return url

    def upload(self, paths: Sequence[str]) -> List[str]:
        return [self._upload_one(path) for path in paths]


class ImgBBUploader(UploadBackend):
    name = "imgbb"

    def __init__(
        self,
        api_key: str,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        endpoint: str = IMGBB_ENDPOINT,
    ) -> None:
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout
        self.endpoint = endpoint

    def _upload_one(self, path: str) -> str:
        with open(path, "rb") as handle:
            encoded = base64.b64encode(handle.read()).decode("ascii")
        resp = self.session.post(
            self.endpoint,
            data={"key": self.api_key, "image": encoded},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        payload = resp.json()
        url = (payload.get("data") or {}).get("url")
        if not payload.get("success") or not url:
            raise UploadFailed(f"imgbb upload: {payload.get('error', 'no url returned')}")
        return url

    def upload(self, paths: Sequence[str]) -> List[str]:
        return [self._upload_one(path) for path in paths]


class ImgurUploader(UploadBackend):
    name = "imgur"

    def __init__(self, client_id: str) -> None:
        import pyimgur

        self.client = pyimgur.Imgur(client_id)

    def upload(self, paths: Sequence[str]) -> List[str]:
        return [self.client.upload_image(path).link for path in paths]


def build_backends(
    client: TelegraphClient,
    config: ArchiveConfig,
    session: Optional[requests.Session] = None,
) -> List[UploadBackend]:
    """Return the upload fallback chain: Telegraph first, then the secondary host.

    A secondary host whose credentials are missing is replaced by the
    anonymous catbox backend.
    """
    backends: List[UploadBackend] = [TelegraphUploader(client)]
    secondary = config.secondary_backend
    if secondary == "imgbb":
        if config.imgbb_api_key:
            backends.append(ImgBBUploader(config.imgbb_api_key, session=session))
            return backends
        logger.warning("IMGBB_API_KEY not set; using catbox as secondary image host")
        secondary = "catbox"
    elif secondary == "imgur":
        if config.imgur_client_id:
            backends.append(ImgurUploader(config.imgur_client_id))
            return backends
        logger.warning("IMGUR_CLIENT_ID not set; using catbox as secondary image host")
        secondary = "catbox"
    if secondary == "catbox":
        backends.append(CatboxUploader(session=session))
    else:
        logger.warning("No secondary image host configured; uploads have no fallback")
    return backends
