"""Composition root wiring storage, analysis and the persistence layer together."""

from __future__ import annotations

import asyncio
import copy
from typing import Any, Awaitable, Callable, Dict, List, Optional

import google.generativeai as genai

from closet_app.config import ClosetConfig
from closet_app.logging_config import get_logger
from logic.blob_layout import BlobLayout, Namespace
from logic.closet_view import SortKey, SortOrder, closet_view, filter_outfits
from logic.decision_timer import DecisionTimer, TimerState
from logic.preferences import PreferencesStore, UserPreferences
from logic.record_assembler import RecordAssembler
from logic.similarity import ScoredCandidate, rank
from logic.upload_pipeline import UploadPipeline
from models.records import Outfit, WishlistItem
from tools.blob_store import BlobStore, LocalBlobStore
from tools.clothing_analyzer import ClothingAnalyzer, GeminiClothingAnalyzer
from tools.fetcher import Fetcher, UrlFetcher
from tools.identity import IdentityProvider, StaticIdentityProvider
from tools.realtime_channel import InMemoryRealtimeChannel, RealtimeChannel
from tools.record_index import IndexRow, RecordIndex, SQLiteRecordIndex

LOGGER = get_logger(__name__)


class RecordNotFoundError(LookupError):
    """Raised when an operation targets a record the owner does not have."""


class ClosetApp:
    """Owns the collaborators and exposes the operations callers need.

    Every operation resolves the signed-in owner first and fails with
    :class:`tools.identity.NotSignedInError` before touching storage.
    """

    def __init__(
        self,
        config: ClosetConfig | None = None,
        *,
        identity: IdentityProvider | None = None,
        blob_store: BlobStore | None = None,
        fetcher: Fetcher | None = None,
        analyzer: ClothingAnalyzer | None = None,
        index: RecordIndex | None = None,
        channel: RealtimeChannel | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.config = config or ClosetConfig.from_env()
        self.identity = identity or StaticIdentityProvider()
        self.blob_store = blob_store or LocalBlobStore(self.config.storage_root)
        self.fetcher = fetcher or UrlFetcher(timeout=self.config.fetch_timeout_seconds)
        self.analyzer = analyzer if analyzer is not None else self._build_analyzer()
        if index is None and self.config.index_db_path:
            index = SQLiteRecordIndex(self.config.index_db_path)
        self.index = index
        self.channel = channel or InMemoryRealtimeChannel()

        self.layout = BlobLayout(
            self.blob_store,
            outfit_root=self.config.outfit_namespace_root,
            wishlist_root=self.config.wishlist_namespace_root,
        )
        self.assembler = RecordAssembler(
            self.layout,
            self.fetcher,
            max_attempts=self.config.retry_attempts,
            delay=self.config.retry_delay_seconds,
            sleep=sleep,
        )
        self.uploader = UploadPipeline(
            self.layout,
            self.fetcher,
            self.analyzer,
            self.index,
            analysis_timeout=self.config.analysis_timeout_seconds,
            max_attempts=self.config.retry_attempts,
            delay=self.config.retry_delay_seconds,
            sleep=sleep,
        )
        self.timer = DecisionTimer(self.channel)
        self.preferences = PreferencesStore(self.blob_store, self.fetcher)

    def _build_analyzer(self) -> Optional[ClothingAnalyzer]:
        if not self.config.api_key:
            LOGGER.warning("No Gemini API key configured; uploads will not be enriched")
            return None
        genai.configure(api_key=self.config.api_key)
        return GeminiClothingAnalyzer(self.fetcher, self.config.model)

    def for_user(self, user_id: Optional[str]) -> "ClosetApp":
        """Return a view of this app bound to ``user_id``; collaborators are shared."""

        scoped = copy.copy(self)
        scoped.identity = StaticIdentityProvider(user_id)
        return scoped

    async def list_outfits(
        self,
        query: str = "",
        sort_by: Optional[SortKey] = None,
        order: SortOrder = "desc",
    ) -> List[Outfit]:
        """Closet listing; newest first unless ``sort_by`` asks for another order."""

        owner_id = self.identity.require_user_id()
        outfits = await self.assembler.assemble(Namespace.OUTFITS, owner_id)
        if sort_by is None:
            return filter_outfits(outfits, query)
        return closet_view(outfits, query=query, by=sort_by, order=order)

    async def list_wishlist(self) -> List[WishlistItem]:
        owner_id = self.identity.require_user_id()
        return await self.assembler.assemble(Namespace.WISHLIST, owner_id)

    async def get_wishlist_item(self, item_id: str) -> Optional[WishlistItem]:
        owner_id = self.identity.require_user_id()
        return await self.assembler.load(Namespace.WISHLIST, owner_id, item_id)

    async def upload_outfit(self, local_image: str | bytes, metadata: Dict[str, Any]) -> str:
        owner_id = self.identity.require_user_id()
        return await self.uploader.upload(local_image, owner_id, metadata, Namespace.OUTFITS)

    async def add_wishlist_item(self, local_image: str | bytes, metadata: Dict[str, Any]) -> str:
        owner_id = self.identity.require_user_id()
        return await self.uploader.upload(local_image, owner_id, metadata, Namespace.WISHLIST)

    async def recommend_for_wishlist_item(self, item_id: str) -> List[ScoredCandidate[Outfit]]:
        """Rank the owner's outfits by similarity to a wishlist item's clothing tags."""

        owner_id = self.identity.require_user_id()
        item = await self.assembler.load(Namespace.WISHLIST, owner_id, item_id)
        if item is None:
            return []
        outfits = await self.assembler.assemble(Namespace.OUTFITS, owner_id)
        return rank(outfits, item.clothing_analysis)

    async def start_decision_timer(self, item_id: str) -> TimerState:
        """Start the 48 hour countdown for one of the owner's wishlist items."""

        owner_id = self.identity.require_user_id()
        if await self.assembler.load(Namespace.WISHLIST, owner_id, item_id) is None:
            raise RecordNotFoundError(f"Wishlist item {item_id!r} not found")
        return await self.timer.start(owner_id, item_id)

    async def decision_timer_status(self, item_id: str) -> Optional[TimerState]:
        owner_id = self.identity.require_user_id()
        return await self.timer.status(owner_id, item_id)

    async def list_index_rows(self, namespace: Optional[Namespace] = None) -> List[IndexRow]:
        """Rows the structured index holds for the owner; empty when no index is configured."""

        owner_id = self.identity.require_user_id()
        if self.index is None:
            return []
        scope = namespace.value if namespace is not None else None
        return await asyncio.to_thread(self.index.list_rows, owner_id, scope)

    async def load_preferences(self) -> UserPreferences:
        owner_id = self.identity.require_user_id()
        return await self.preferences.load(owner_id)

    async def save_preferences(self, preferences: UserPreferences) -> UserPreferences:
        owner_id = self.identity.require_user_id()
        return await self.preferences.save(owner_id, preferences)


__all__ = ["ClosetApp", "RecordNotFoundError"]
