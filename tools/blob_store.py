"""Blob store abstractions with in-memory and filesystem implementations.

Paths are opaque ``/``-separated strings such as
``images/<owner>/<record>/image.jpg``. The store offers no multi-object
transactions; callers must tolerate folders holding only some of their blobs.
"""
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Tuple
from urllib.parse import quote, unquote, urlparse

from closet_app.logging_config import get_logger

LOGGER = get_logger(__name__)


class StorageError(RuntimeError):
    """Transient or unexpected failure talking to a storage backend."""


class BlobNotFoundError(StorageError):
    """Raised when a blob path does not exist."""


def _clean(path: str) -> str:
    return path.strip("/")


class BlobStore(ABC):
    """Minimal blob store interface consumed by the persistence layer."""

    @abstractmethod
    async def put(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        """Write ``data`` at ``path``, replacing any existing blob."""

    @abstractmethod
    async def resolve_url(self, path: str) -> str:
        """Return a fetchable URL for ``path`` or raise :class:`BlobNotFoundError`."""

    @abstractmethod
    async def list_child_prefixes(self, prefix: str) -> List[str]:
        """Return the immediate child folders of ``prefix`` as full prefixes."""

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Return whether a blob exists at ``path``."""


class InMemoryBlobStore(BlobStore):
    """Dictionary-backed store for tests and local runs.

    URLs take the form ``memory://<bucket>/<quoted path>`` and are served by
    :class:`tools.fetcher.InMemoryFetcher`.
    """

    def __init__(self, bucket: str = "closet") -> None:
        self.bucket = bucket
        self._blobs: Dict[str, Tuple[bytes, str]] = {}

    async def put(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        self._blobs[_clean(path)] = (bytes(data), content_type)

    async def resolve_url(self, path: str) -> str:
        key = _clean(path)
        if key not in self._blobs:
            raise BlobNotFoundError(f"No blob at {key}")
        return f"memory://{self.bucket}/{quote(key)}"

    async def list_child_prefixes(self, prefix: str) -> List[str]:
        base = _clean(prefix)
        children = set()
        for key in self._blobs:
            if not key.startswith(base + "/"):
                continue
            remainder = key[len(base) + 1 :]
            if "/" in remainder:
                children.add(f"{base}/{remainder.split('/', 1)[0]}")
        return sorted(children)

    async def exists(self, path: str) -> bool:
        return _clean(path) in self._blobs

    def read_url(self, url: str) -> bytes:
        """Return the bytes behind a ``memory://`` URL issued by this store."""

        parsed = urlparse(url)
        if parsed.scheme != "memory" or parsed.netloc != self.bucket:
            raise BlobNotFoundError(f"URL not issued by this store: {url}")
        key = unquote(parsed.path).strip("/")
        if key not in self._blobs:
            raise BlobNotFoundError(f"No blob at {key}")
        return self._blobs[key][0]

    def content_type(self, path: str) -> str:
        return self._blobs[_clean(path)][1]


class LocalBlobStore(BlobStore):
    """Filesystem-backed store rooted at ``base_dir``; URLs are ``file://`` URIs."""

    def __init__(self, base_dir: str | Path = "data/blobs") -> None:
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        full_path = (self.base_dir / _clean(path)).resolve()
        base_resolved = self.base_dir.resolve()
        if full_path != base_resolved and base_resolved not in full_path.parents:
            raise ValueError("Path traversal not allowed")
        return full_path

    @staticmethod
    def _write(target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

    async def put(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(self._write, target, data)
        except OSError as exc:
            raise StorageError(f"Failed to write {path}: {exc}") from exc
        LOGGER.debug("Stored blob", extra={"path": path, "size": len(data), "content_type": content_type})

    async def resolve_url(self, path: str) -> str:
        target = self._resolve(path)
        if not await asyncio.to_thread(target.is_file):
            raise BlobNotFoundError(f"No blob at {_clean(path)}")
        return target.as_uri()

    async def list_child_prefixes(self, prefix: str) -> List[str]:
        base = _clean(prefix)
        folder = self._resolve(base)

        def _scan() -> List[str]:
            if not folder.is_dir():
                return []
            return sorted(f"{base}/{child.name}" for child in folder.iterdir() if child.is_dir())

        try:
            return await asyncio.to_thread(_scan)
        except OSError as exc:
            raise StorageError(f"Failed to list {base}: {exc}") from exc

    async def exists(self, path: str) -> bool:
        return await asyncio.to_thread(self._resolve(path).is_file)


__all__ = ["StorageError", "BlobNotFoundError", "BlobStore", "InMemoryBlobStore", "LocalBlobStore"]
