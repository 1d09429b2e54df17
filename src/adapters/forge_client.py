"""
HTTP adapters backed by httpx.

HttpxForgeApi talks to the Forge API for CTA records and the disconnect
webhook; HttpxDownloader fetches remote files for media uploads.
"""

from __future__ import annotations

import logging

import httpx

from src.components.cta.models import ApiResponse
from src.components.cta.ports import ForgeApiError
from src.components.media.ports import DownloadError, DownloadTooLargeError

logger = logging.getLogger(__name__)


class HttpxForgeApi:
    def __init__(self, client: httpx.Client | None = None) -> None:
        self._client = client or httpx.Client()

    def get(self, url: str, headers: dict[str, str], timeout: float) -> ApiResponse:
        try:
            response = self._client.get(url, headers=headers, timeout=timeout)
        except httpx.HTTPError as exc:
            raise ForgeApiError(str(exc) or exc.__class__.__name__) from exc
        logger.debug("GET %s -> %s", url, response.status_code)
        return ApiResponse(status_code=response.status_code, text=response.text)

    def post(
        self, url: str, body: str, headers: dict[str, str], timeout: float
    ) -> ApiResponse:
        try:
            response = self._client.post(url, content=body, headers=headers, timeout=timeout)
        except httpx.HTTPError as exc:
            raise ForgeApiError(str(exc) or exc.__class__.__name__) from exc
        logger.debug("POST %s -> %s", url, response.status_code)
        return ApiResponse(status_code=response.status_code, text=response.text)

    def close(self) -> None:
        self._client.close()


class HttpxDownloader:
    def __init__(self, client: httpx.Client | None = None) -> None:
        self._client = client or httpx.Client(follow_redirects=True)

    def download(self, url: str, timeout: float, max_bytes: int) -> bytes:
        """Stream the body, giving up once it passes max_bytes."""
        try:
            with self._client.stream("GET", url, timeout=timeout) as response:
                if not response.is_success:
                    raise DownloadError(response.reason_phrase or f"HTTP {response.status_code}")

                declared = response.headers.get("Content-Length", "")
                if declared.isdigit() and int(declared) > max_bytes:
                    raise DownloadTooLargeError(f"{declared} bytes")

                chunks: list[bytes] = []
                received = 0
                for chunk in response.iter_bytes():
                    received += len(chunk)
                    if received > max_bytes:
                        raise DownloadTooLargeError(f"more than {max_bytes} bytes")
                    chunks.append(chunk)
        except httpx.HTTPError as exc:
            raise DownloadError(str(exc) or exc.__class__.__name__) from exc
        return b"".join(chunks)
