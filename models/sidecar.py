"""Schemas for the ``metadata.json`` sidecar stored beside each record image.

Sidecars are camelCase JSON objects written by :mod:`logic.upload_pipeline` and
read back by :mod:`logic.record_assembler`. Decoding validates required fields,
fills explicit defaults for optional ones and raises
:class:`MalformedRecordError` for anything it cannot trust, so the assembler can
drop that single folder without touching its siblings.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from models.records import ClothingAnalysis, Outfit, WishlistItem
from models.taxonomy import validate_genre


class MalformedRecordError(ValueError):
    """Raised when a sidecar cannot be decoded into a record."""


class InvalidMetadataError(ValueError):
    """Raised when caller-supplied upload metadata fails validation."""


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso(value: datetime) -> str:
    """Format an instant the way the mobile client does (``...T..:..:...000Z``)."""

    return _as_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class _LenientModel(BaseModel):
    """Treats explicit ``null`` the same as a missing key."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class _AnalysisPayload(_LenientModel):
    outerwear: str = ""
    top: str = ""
    bottom: str = ""
    shoes: str = ""

    def to_analysis(self) -> ClothingAnalysis:
        return ClothingAnalysis(
            outerwear=self.outerwear.strip(),
            top=self.top.strip(),
            bottom=self.bottom.strip(),
            shoes=self.shoes.strip(),
        )


class _SidecarBase(_LenientModel):
    created_at: datetime = Field(alias="createdAt")
    owner_id: str = Field("", alias="ownerId")
    image_url: str = Field("", alias="imageUrl")
    clothing_analysis: _AnalysisPayload = Field(default_factory=_AnalysisPayload, alias="clothingAnalysis")

    @field_validator("created_at")
    @classmethod
    def _normalise_created_at(cls, value: datetime) -> datetime:
        return _as_utc(value)


class OutfitSidecar(_SidecarBase):
    details: str = ""
    rating: int = Field(0, ge=0, le=10)
    genre: str = ""
    date: Optional[datetime] = None

    @field_validator("date")
    @classmethod
    def _normalise_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value) if value is not None else None


class WishlistSidecar(_SidecarBase):
    name: str = ""
    notes: str = ""
    timer_started_at: Optional[int] = Field(
        None, validation_alias=AliasChoices("timerStartedAt", "timerStarted", "timer_started_at")
    )
    timer_ends_at: Optional[int] = Field(
        None, validation_alias=AliasChoices("timerEndsAt", "timerEndTime", "timer_ends_at")
    )


class OutfitMetadata(BaseModel):
    """User-entered metadata for a new outfit."""

    details: str = ""
    rating: int = Field(0, ge=0, le=10)
    genre: str = ""
    date: Optional[datetime] = None

    @field_validator("details")
    @classmethod
    def _strip_details(cls, value: str) -> str:
        return value.strip()

    @field_validator("genre")
    @classmethod
    def _canonical_genre(cls, value: str) -> str:
        return validate_genre(value)


class WishlistMetadata(BaseModel):
    """User-entered metadata for a new wishlist item."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1)
    notes: str = ""


def validate_metadata(model: type[BaseModel], payload: BaseModel | Dict[str, Any]) -> BaseModel:
    """Coerce loose upload metadata into ``model`` or raise :class:`InvalidMetadataError`."""

    if isinstance(payload, model):
        return payload
    raw = payload.model_dump() if isinstance(payload, BaseModel) else dict(payload)
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise InvalidMetadataError(f"Invalid {model.__name__}: {exc.errors()}") from exc


def _parse_payload(model: type[_SidecarBase], raw: bytes | str, owner_id: str) -> Any:
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedRecordError(f"Sidecar is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedRecordError("Sidecar must be a JSON object")
    try:
        parsed = model.model_validate(data)
    except ValidationError as exc:
        raise MalformedRecordError(f"Sidecar failed validation: {exc.errors()}") from exc
    if parsed.owner_id and parsed.owner_id != owner_id:
        raise MalformedRecordError("Sidecar owner does not match the folder owner")
    return parsed


def decode_outfit(record_id: str, owner_id: str, image_url: str, raw: bytes | str) -> Outfit:
    """Build an :class:`Outfit` from a sidecar; ``image_url`` is the freshly resolved one."""

    parsed: OutfitSidecar = _parse_payload(OutfitSidecar, raw, owner_id)
    return Outfit(
        id=record_id,
        image_url=image_url,
        created_at=parsed.created_at,
        owner_id=owner_id,
        details=parsed.details,
        rating=parsed.rating,
        genre=parsed.genre,
        date=parsed.date,
        clothing_analysis=parsed.clothing_analysis.to_analysis(),
    )


def decode_wishlist_item(record_id: str, owner_id: str, image_url: str, raw: bytes | str) -> WishlistItem:
    """Build a :class:`WishlistItem` from a sidecar."""

    parsed: WishlistSidecar = _parse_payload(WishlistSidecar, raw, owner_id)
    return WishlistItem(
        id=record_id,
        image_url=image_url,
        created_at=parsed.created_at,
        owner_id=owner_id,
        name=parsed.name,
        notes=parsed.notes,
        timer_started_at=parsed.timer_started_at,
        timer_ends_at=parsed.timer_ends_at,
        clothing_analysis=parsed.clothing_analysis.to_analysis(),
    )


def encode_sidecar(
    metadata: OutfitMetadata | WishlistMetadata,
    analysis: ClothingAnalysis,
    created_at: datetime,
    owner_id: str,
    image_url: str,
) -> bytes:
    """Serialise upload metadata plus derived fields into sidecar bytes."""

    payload: Dict[str, Any]
    if isinstance(metadata, OutfitMetadata):
        payload = {
            "details": metadata.details,
            "rating": metadata.rating,
            "genre": metadata.genre,
            "date": to_iso(metadata.date or created_at),
        }
    else:
        payload = {"name": metadata.name, "notes": metadata.notes}
    payload.update(
        {
            "clothingAnalysis": analysis.as_dict(),
            "createdAt": to_iso(created_at),
            "ownerId": owner_id,
            "imageUrl": image_url,
        }
    )
    return json.dumps(payload).encode("utf-8")


__all__ = [
    "MalformedRecordError",
    "InvalidMetadataError",
    "OutfitSidecar",
    "WishlistSidecar",
    "OutfitMetadata",
    "WishlistMetadata",
    "validate_metadata",
    "decode_outfit",
    "decode_wishlist_item",
    "encode_sidecar",
    "to_iso",
]
