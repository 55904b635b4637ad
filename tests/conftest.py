"""Shared fixtures for the closet persistence tests."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, List

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from closet_app import metrics
from logic.blob_layout import BlobLayout
from tools.blob_store import InMemoryBlobStore
from tools.fetcher import InMemoryFetcher

OWNER = "user-123"
LOCAL_IMAGE = "file:///device/photos/look.jpg"
IMAGE_BYTES = b"\xff\xd8\xff\xe0fake-jpeg"


class RecordingSleep:
    """Async stand-in for ``asyncio.sleep`` that only records requested waits."""

    def __init__(self) -> None:
        self.waits: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.waits.append(seconds)


def sidecar_bytes(created_at: str, **fields: Any) -> bytes:
    payload: Dict[str, Any] = {"createdAt": created_at, "ownerId": OWNER}
    payload.update(fields)
    return json.dumps(payload).encode("utf-8")


async def put_record(
    store: InMemoryBlobStore,
    prefix: str,
    record_id: str,
    created_at: str | None = None,
    *,
    image: bool = True,
    sidecar: bytes | None = None,
    **fields: Any,
) -> None:
    """Write an image and/or sidecar into ``<prefix>/<record_id>/``."""

    if image:
        await store.put(f"{prefix}/{record_id}/image.jpg", IMAGE_BYTES, "image/jpeg")
    if sidecar is None and created_at is not None:
        sidecar = sidecar_bytes(created_at, **fields)
    if sidecar is not None:
        await store.put(f"{prefix}/{record_id}/metadata.json", sidecar, "application/json")


@pytest.fixture(autouse=True)
def _reset_metrics():
    metrics.reset_metrics()
    yield
    metrics.reset_metrics()


@pytest.fixture()
def store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture()
def fetcher(store: InMemoryBlobStore) -> InMemoryFetcher:
    return InMemoryFetcher(store, local_files={LOCAL_IMAGE: IMAGE_BYTES})


@pytest.fixture()
def layout(store: InMemoryBlobStore) -> BlobLayout:
    return BlobLayout(store)


@pytest.fixture()
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
