"""Upload pipeline: image blob, optional enrichment, JSON sidecar, optional index row.

The steps of one upload run strictly in sequence and the whole sequence is the
unit that :func:`logic.retry.retry` repeats. A retry mints a fresh record id,
so an attempt that failed half-way can leave an orphaned image or sidecar
behind; the record assembler drops such folders when listing.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import BaseModel

from closet_app import metrics
from closet_app.logging_config import get_logger, log_event, operation_context
from logic.blob_layout import BlobLayout, Namespace
from logic.retry import DEFAULT_DELAY_SECONDS, DEFAULT_MAX_ATTEMPTS, DelayPolicy, retry
from models.records import EMPTY_ANALYSIS, ClothingAnalysis
from models.sidecar import OutfitMetadata, WishlistMetadata, encode_sidecar, to_iso, validate_metadata
from tools.clothing_analyzer import ClothingAnalyzer
from tools.fetcher import Fetcher
from tools.observability import instrument_operation
from tools.record_index import IndexRow, RecordIndex

LOGGER = get_logger(__name__)

IMAGE_CONTENT_TYPE = "image/jpeg"
SIDECAR_CONTENT_TYPE = "application/json"

_METADATA_MODELS: Dict[Namespace, type[BaseModel]] = {
    Namespace.OUTFITS: OutfitMetadata,
    Namespace.WISHLIST: WishlistMetadata,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UploadPipeline:
    """Writes a new outfit or wishlist record for an owner."""

    def __init__(
        self,
        layout: BlobLayout,
        fetcher: Fetcher,
        analyzer: Optional[ClothingAnalyzer] = None,
        index: Optional[RecordIndex] = None,
        *,
        analysis_timeout: float = 20.0,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        delay: float = DEFAULT_DELAY_SECONDS,
        delay_policy: Optional[DelayPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self.layout = layout
        self.fetcher = fetcher
        self.analyzer = analyzer
        self.index = index
        self.analysis_timeout = analysis_timeout
        self.max_attempts = max_attempts
        self.delay = delay
        self.delay_policy = delay_policy
        self._sleep = sleep
        self._clock = clock
        self._id_factory = id_factory or self._time_based_id

    def _time_based_id(self) -> str:
        millis = int(self._clock().timestamp() * 1000)
        return f"{millis}-{secrets.token_hex(3)}"

    async def _enrich(self, image_url: str) -> ClothingAnalysis:
        """Ask the analyzer for clothing tags; any failure yields an empty analysis."""

        if self.analyzer is None:
            return EMPTY_ANALYSIS
        try:
            return await asyncio.wait_for(self.analyzer.analyze(image_url), timeout=self.analysis_timeout)
        except Exception as exc:  # enrichment never aborts an upload
            metrics.increment("enrichment_failures")
            log_event(
                LOGGER,
                logging.WARNING,
                "enrichment_failed",
                error=type(exc).__name__,
            )
            return EMPTY_ANALYSIS

    async def _upload_once(
        self,
        local_image: str | bytes,
        owner_id: str,
        metadata: BaseModel,
        namespace: Namespace,
        record_id: Optional[str],
    ) -> str:
        if isinstance(local_image, bytes):
            image_bytes = local_image
        else:
            image_bytes = await self.fetcher.fetch(local_image)

        record_id = record_id or self._id_factory()
        image_path = self.layout.image_path(namespace, owner_id, record_id)
        await self.layout.store.put(image_path, image_bytes, IMAGE_CONTENT_TYPE)
        image_url = await self.layout.store.resolve_url(image_path)

        analysis = await self._enrich(image_url)

        created_at = self._clock()
        sidecar = encode_sidecar(metadata, analysis, created_at, owner_id, image_url)
        await self.layout.store.put(
            self.layout.metadata_path(namespace, owner_id, record_id), sidecar, SIDECAR_CONTENT_TYPE
        )

        if self.index is not None:
            row = IndexRow(
                user_id=owner_id,
                namespace=namespace.value,
                record_id=record_id,
                image_url=image_url,
                created_at=to_iso(created_at),
                genre=getattr(metadata, "genre", ""),
                rating=getattr(metadata, "rating", 0),
                name=getattr(metadata, "name", ""),
            )
            await asyncio.to_thread(self.index.add_row, row)

        log_event(
            LOGGER,
            logging.INFO,
            "record_uploaded",
            namespace=namespace.value,
            record_id=record_id,
            size=len(image_bytes),
            enriched=not analysis.is_empty(),
        )
        return image_url

    @instrument_operation("upload_record")
    async def upload(
        self,
        local_image: str | bytes,
        owner_id: str,
        metadata: BaseModel | Dict[str, Any],
        namespace: Namespace = Namespace.OUTFITS,
        record_id: Optional[str] = None,
    ) -> str:
        """Store ``local_image`` with ``metadata`` and return the resolved image URL.

        ``local_image`` is either a reference the fetcher can read or the image
        bytes themselves; callers outside the process should only pass bytes.

        Invalid metadata raises :class:`models.sidecar.InvalidMetadataError` before
        any I/O. Storage failures are retried as a whole and re-raised once the
        attempts are spent.
        """

        validated = validate_metadata(_METADATA_MODELS[namespace], metadata)
        if record_id is not None:
            self.layout.record_prefix(namespace, owner_id, record_id)
        else:
            self.layout.owner_prefix(namespace, owner_id)

        with operation_context("upload_record"):
            return await retry(
                lambda: self._upload_once(local_image, owner_id, validated, namespace, record_id),
                self.max_attempts,
                self.delay,
                delay_policy=self.delay_policy,
                sleep=self._sleep,
            )


__all__ = ["UploadPipeline", "IMAGE_CONTENT_TYPE", "SIDECAR_CONTENT_TYPE"]
