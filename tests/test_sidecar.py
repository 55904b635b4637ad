"""Sidecar decoding, validation and encoding."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from conftest import OWNER, sidecar_bytes
from models.records import ClothingAnalysis
from models.sidecar import (
    InvalidMetadataError,
    MalformedRecordError,
    OutfitMetadata,
    WishlistMetadata,
    decode_outfit,
    decode_wishlist_item,
    encode_sidecar,
    to_iso,
    validate_metadata,
)

URL = "memory://closet/images/user-123/r1/image.jpg"


def test_decode_outfit_fills_defaults() -> None:
    outfit = decode_outfit("r1", OWNER, URL, sidecar_bytes("2024-03-01T10:00:00.000Z"))

    assert outfit.id == "r1"
    assert outfit.image_url == URL
    assert outfit.created_at == datetime(2024, 3, 1, 10, tzinfo=timezone.utc)
    assert outfit.details == ""
    assert outfit.rating == 0
    assert outfit.genre == ""
    assert outfit.date == outfit.created_at
    assert outfit.clothing_analysis == ClothingAnalysis()


def test_decode_outfit_reads_all_fields_and_prefers_resolved_url() -> None:
    raw = sidecar_bytes(
        "2024-03-01T10:00:00.000Z",
        details="  brunch  ",
        rating=8,
        genre="Streetwear",
        date="2024-02-28T00:00:00.000Z",
        imageUrl="https://stale.example/old.jpg",
        clothingAnalysis={"top": "white tee", "shoes": None},
        unexpected="ignored",
    )

    outfit = decode_outfit("r1", OWNER, URL, raw)

    assert outfit.image_url == URL
    assert outfit.rating == 8
    assert outfit.genre == "Streetwear"
    assert outfit.date == datetime(2024, 2, 28, tzinfo=timezone.utc)
    assert outfit.clothing_analysis == ClothingAnalysis(top="white tee")


def test_unknown_stored_genre_is_kept_verbatim() -> None:
    outfit = decode_outfit("r1", OWNER, URL, sidecar_bytes("2024-03-01T10:00:00.000Z", genre="Gorpcore"))
    assert outfit.genre == "Gorpcore"


@pytest.mark.parametrize(
    "raw",
    [
        b"not json",
        b"[1, 2, 3]",
        json.dumps({"ownerId": OWNER}).encode(),
        sidecar_bytes("yesterday"),
        sidecar_bytes("2024-03-01T10:00:00.000Z", rating=11),
        sidecar_bytes("2024-03-01T10:00:00.000Z", ownerId="intruder"),
    ],
)
def test_malformed_outfit_sidecars(raw: bytes) -> None:
    with pytest.raises(MalformedRecordError):
        decode_outfit("r1", OWNER, URL, raw)


def test_decode_wishlist_item_reads_timer_aliases() -> None:
    raw = sidecar_bytes("2024-03-01T10:00:00Z", name="Boots", timerStarted=1000, timerEndTime=2000)

    item = decode_wishlist_item("w1", OWNER, URL, raw)

    assert item.name == "Boots"
    assert item.notes == ""
    assert item.timer_started_at == 1000
    assert item.timer_ends_at == 2000


def test_naive_timestamps_are_treated_as_utc() -> None:
    item = decode_wishlist_item("w1", OWNER, URL, sidecar_bytes("2024-03-01T10:00:00"))
    assert item.created_at.tzinfo is not None
    assert item.created_at == datetime(2024, 3, 1, 10, tzinfo=timezone.utc)


def test_outfit_metadata_validation() -> None:
    metadata = validate_metadata(OutfitMetadata, {"details": " date night ", "rating": 7, "genre": "  boho "})
    assert metadata.details == "date night"
    assert metadata.genre == "Boho"

    with pytest.raises(InvalidMetadataError):
        validate_metadata(OutfitMetadata, {"rating": 12})
    with pytest.raises(InvalidMetadataError):
        validate_metadata(OutfitMetadata, {"genre": "Gorpcore"})


def test_wishlist_metadata_requires_name() -> None:
    with pytest.raises(InvalidMetadataError):
        validate_metadata(WishlistMetadata, {"notes": "maybe"})


def test_encode_outfit_sidecar_round_trips_through_decoder() -> None:
    created_at = datetime(2024, 5, 6, 7, 8, 9, 123000, tzinfo=timezone.utc)
    metadata = OutfitMetadata(details="office", rating=6, genre="Minimalist")
    analysis = ClothingAnalysis(top="grey knit", bottom="black trousers")

    raw = encode_sidecar(metadata, analysis, created_at, OWNER, URL)
    payload = json.loads(raw)

    assert payload["createdAt"] == "2024-05-06T07:08:09.123Z"
    assert payload["date"] == payload["createdAt"]
    assert payload["ownerId"] == OWNER
    assert payload["clothingAnalysis"]["top"] == "grey knit"

    outfit = decode_outfit("r1", OWNER, URL, raw)
    assert outfit.created_at == created_at
    assert outfit.clothing_analysis == analysis


def test_encode_wishlist_sidecar_uses_camel_case_keys() -> None:
    created_at = datetime(2024, 5, 6, tzinfo=timezone.utc)
    raw = encode_sidecar(WishlistMetadata(name="Scarf"), ClothingAnalysis(), created_at, OWNER, URL)

    assert set(json.loads(raw)) == {"name", "notes", "clothingAnalysis", "createdAt", "ownerId", "imageUrl"}


def test_to_iso_converts_offsets_to_utc() -> None:
    value = datetime(2024, 1, 1, 12, tzinfo=timezone(timedelta(hours=2)))
    assert to_iso(value) == "2024-01-01T10:00:00.000Z"


def test_blank_wishlist_name_is_rejected() -> None:
    with pytest.raises(InvalidMetadataError):
        validate_metadata(WishlistMetadata, {"name": "   "})
