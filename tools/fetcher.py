"""Fetchers that turn a URL or local reference into bytes.

The same fetcher serves local images picked for upload, resolved image URLs
and JSON sidecars.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse
from urllib.request import url2pathname

import httpx

from tools.blob_store import BlobNotFoundError, InMemoryBlobStore, StorageError

logger = logging.getLogger(__name__)


class FetchError(StorageError):
    """Raised when a URL cannot be retrieved successfully."""


class Fetcher(ABC):
    """Fetch raw bytes for a URL."""

    @abstractmethod
    async def fetch(self, url: str) -> bytes:
        """Return the body behind ``url`` or raise :class:`FetchError`."""


class UrlFetcher(Fetcher):
    """Fetch ``http(s)`` URLs with httpx and ``file://`` URLs or bare paths from disk."""

    def __init__(self, timeout: Optional[float] = 10.0, client: httpx.AsyncClient | None = None) -> None:
        self.timeout = timeout
        self._client = client

    async def _fetch_http(self, client: httpx.AsyncClient, url: str) -> bytes:
        try:
            response = await client.get(url)
        except httpx.HTTPError as exc:
            logger.error("Network error fetching url", extra={"error": str(exc)})
            raise FetchError(f"Network error fetching {url}: {exc}") from exc

        if not 200 <= response.status_code < 300:
            logger.warning("Non-success status when fetching url", extra={"status_code": response.status_code})
            raise FetchError(f"Failed to fetch {url}: HTTP {response.status_code}")
        return response.content

    @staticmethod
    async def _read_file(path: Path) -> bytes:
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise FetchError(f"Failed to read {path}: {exc}") from exc

    async def fetch(self, url: str) -> bytes:
        parsed = urlparse(url)
        if parsed.scheme in {"http", "https"}:
            if self._client is not None:
                return await self._fetch_http(self._client, url)
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                return await self._fetch_http(client, url)
        if parsed.scheme == "file":
            return await self._read_file(Path(url2pathname(parsed.path)))
        if parsed.scheme == "" or len(parsed.scheme) == 1:
            # bare paths, including Windows drive letters
            return await self._read_file(Path(url))
        raise FetchError(f"Unsupported URL scheme: {parsed.scheme}")


class InMemoryFetcher(Fetcher):
    """Serve ``memory://`` URLs issued by an :class:`InMemoryBlobStore`.

    Any other reference is looked up in ``local_files``, standing in for images
    picked on the device.
    """

    def __init__(self, store: InMemoryBlobStore, local_files: dict[str, bytes] | None = None) -> None:
        self.store = store
        self.local_files = dict(local_files or {})

    async def fetch(self, url: str) -> bytes:
        if url.startswith("memory://"):
            try:
                return self.store.read_url(url)
            except BlobNotFoundError as exc:
                raise FetchError(str(exc)) from exc
        if url in self.local_files:
            return self.local_files[url]
        raise FetchError(f"Nothing to fetch at {url}")


__all__ = ["FetchError", "Fetcher", "UrlFetcher", "InMemoryFetcher"]
