"""Per-user style preferences stored as ``users/<owner>/preferences.json``."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import List

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from models.sidecar import MalformedRecordError
from models.taxonomy import normalise_genres
from tools.blob_store import BlobNotFoundError, BlobStore
from tools.fetcher import Fetcher


@dataclass
class UserPreferences:
    aesthetics: List[str] = field(default_factory=list)
    onboarding_completed: bool = False


class _PreferencesPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    aesthetics: List[str] = []
    onboarding_completed: bool = Field(False, alias="onboardingCompleted")


class PreferencesStore:
    """Loads and saves onboarding choices through the blob store."""

    def __init__(self, store: BlobStore, fetcher: Fetcher) -> None:
        self.store = store
        self.fetcher = fetcher

    @staticmethod
    def path(owner_id: str) -> str:
        if not owner_id or "/" in owner_id:
            raise ValueError(f"Invalid owner id: {owner_id!r}")
        return f"users/{owner_id}/preferences.json"

    async def load(self, owner_id: str) -> UserPreferences:
        """Return saved preferences, or defaults when none were saved yet."""

        try:
            url = await self.store.resolve_url(self.path(owner_id))
        except BlobNotFoundError:
            return UserPreferences()
        raw = await self.fetcher.fetch(url)
        try:
            payload = _PreferencesPayload.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as exc:
            raise MalformedRecordError(f"Unreadable preferences: {exc}") from exc
        return UserPreferences(
            aesthetics=list(payload.aesthetics),
            onboarding_completed=payload.onboarding_completed,
        )

    async def save(self, owner_id: str, preferences: UserPreferences) -> UserPreferences:
        """Validate aesthetics against the genre list and persist."""

        cleaned = UserPreferences(
            aesthetics=normalise_genres(preferences.aesthetics),
            onboarding_completed=preferences.onboarding_completed,
        )
        body = json.dumps(
            {"aesthetics": cleaned.aesthetics, "onboardingCompleted": cleaned.onboarding_completed}
        ).encode("utf-8")
        await self.store.put(self.path(owner_id), body, "application/json")
        return cleaned


__all__ = ["PreferencesStore", "UserPreferences"]
