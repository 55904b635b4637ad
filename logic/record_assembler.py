"""Rebuild typed records by walking the blob layout.

Every record folder is loaded independently; a folder whose image or sidecar
is missing or unreadable is dropped without affecting its siblings. The whole
enumerate-and-load pass runs under :func:`logic.retry.retry`, and when retries
are exhausted the assembler answers with an empty list, recording the failure
in logs and metrics so operators can tell an outage from an empty closet.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional

from closet_app import metrics
from closet_app.logging_config import get_logger, log_event, operation_context
from logic.blob_layout import BlobLayout, Namespace
from logic.retry import DEFAULT_DELAY_SECONDS, DEFAULT_MAX_ATTEMPTS, DelayPolicy, retry
from models.records import Record
from models.sidecar import MalformedRecordError, decode_outfit, decode_wishlist_item
from tools.blob_store import BlobNotFoundError, StorageError
from tools.fetcher import Fetcher
from tools.observability import instrument_operation

LOGGER = get_logger(__name__)

Decoder = Callable[[str, str, str, bytes], Record]

_DECODERS: Dict[Namespace, Decoder] = {
    Namespace.OUTFITS: decode_outfit,
    Namespace.WISHLIST: decode_wishlist_item,
}


class RecordAssembler:
    """Reads outfit and wishlist records for one owner at a time."""

    def __init__(
        self,
        layout: BlobLayout,
        fetcher: Fetcher,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        delay: float = DEFAULT_DELAY_SECONDS,
        delay_policy: Optional[DelayPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.layout = layout
        self.fetcher = fetcher
        self.max_attempts = max_attempts
        self.delay = delay
        self.delay_policy = delay_policy
        self._sleep = sleep

    async def _fetch_sidecar(self, namespace: Namespace, owner_id: str, record_id: str) -> bytes:
        metadata_url = await self.layout.store.resolve_url(
            self.layout.metadata_path(namespace, owner_id, record_id)
        )
        return await self.fetcher.fetch(metadata_url)

    async def _load_folder(self, namespace: Namespace, owner_id: str, record_id: str) -> Record:
        image_url, raw = await asyncio.gather(
            self.layout.store.resolve_url(self.layout.image_path(namespace, owner_id, record_id)),
            self._fetch_sidecar(namespace, owner_id, record_id),
        )
        return _DECODERS[namespace](record_id, owner_id, image_url, raw)

    def _record_drop(self, namespace: Namespace, record_id: str, exc: Exception) -> None:
        metrics.increment("records_dropped")
        log_event(
            LOGGER,
            logging.WARNING,
            "record_dropped",
            namespace=namespace.value,
            record_id=record_id,
            reason=type(exc).__name__,
        )

    async def _try_load(self, namespace: Namespace, owner_id: str, record_id: str) -> Optional[Record]:
        try:
            return await self._load_folder(namespace, owner_id, record_id)
        except (MalformedRecordError, StorageError) as exc:
            self._record_drop(namespace, record_id, exc)
            return None

    async def _assemble_once(self, namespace: Namespace, owner_id: str) -> List[Record]:
        record_ids = await self.layout.list_record_ids(namespace, owner_id)
        loaded = await asyncio.gather(
            *(self._try_load(namespace, owner_id, record_id) for record_id in record_ids)
        )
        records = [record for record in loaded if record is not None]
        # sorted() keeps enumeration order for equal timestamps, also with reverse=True
        return sorted(records, key=lambda record: record.created_at, reverse=True)

    async def _retry(self, operation: Callable[[], Awaitable[object]]) -> object:
        return await retry(
            operation,
            self.max_attempts,
            self.delay,
            delay_policy=self.delay_policy,
            sleep=self._sleep,
        )

    @instrument_operation("assemble_records")
    async def assemble(self, namespace: Namespace, owner_id: str) -> List[Record]:
        """Return the owner's records newest first; ``[]`` if nothing could be read."""

        self.layout.owner_prefix(namespace, owner_id)
        with operation_context("assemble_records") as correlation_id:
            try:
                records = await self._retry(lambda: self._assemble_once(namespace, owner_id))
            except Exception as exc:  # reads fail soft; the caller sees an empty closet
                metrics.increment("assembly_failures")
                log_event(
                    LOGGER,
                    logging.ERROR,
                    "record_assembly_failed",
                    namespace=namespace.value,
                    error=type(exc).__name__,
                    correlation_id=correlation_id,
                    exc_info=True,
                )
                return []
            log_event(
                LOGGER,
                logging.INFO,
                "records_assembled",
                namespace=namespace.value,
                count=len(records),
                correlation_id=correlation_id,
            )
            return records

    async def load(self, namespace: Namespace, owner_id: str, record_id: str) -> Optional[Record]:
        """Load a single record folder, or ``None`` if it is missing, incomplete or unreadable."""

        self.layout.record_prefix(namespace, owner_id, record_id)

        async def attempt() -> Optional[Record]:
            try:
                return await self._load_folder(namespace, owner_id, record_id)
            except (MalformedRecordError, BlobNotFoundError) as exc:
                self._record_drop(namespace, record_id, exc)
                return None

        try:
            return await self._retry(attempt)
        except StorageError as exc:
            metrics.increment("assembly_failures")
            log_event(
                LOGGER,
                logging.ERROR,
                "record_load_failed",
                namespace=namespace.value,
                record_id=record_id,
                error=type(exc).__name__,
            )
            return None


__all__ = ["RecordAssembler"]
