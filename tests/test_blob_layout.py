"""Record folder layout and enumeration."""

from __future__ import annotations

import pytest

from conftest import OWNER, put_record
from logic.blob_layout import BlobLayout, Namespace


def test_paths_follow_namespace_roots(layout: BlobLayout) -> None:
    assert layout.image_path(Namespace.OUTFITS, OWNER, "r1") == f"images/{OWNER}/r1/image.jpg"
    assert layout.metadata_path(Namespace.OUTFITS, OWNER, "r1") == f"images/{OWNER}/r1/metadata.json"
    assert layout.image_path(Namespace.WISHLIST, OWNER, "w1") == f"images/wishlist/{OWNER}/w1/image.jpg"


@pytest.mark.parametrize("bad", ["", "a/b", "..", ".", " padded "])
def test_invalid_segments_are_rejected(layout: BlobLayout, bad: str) -> None:
    with pytest.raises(ValueError):
        layout.record_prefix(Namespace.OUTFITS, OWNER, bad)
    with pytest.raises(ValueError):
        layout.owner_prefix(Namespace.WISHLIST, bad)


def test_owner_named_like_wishlist_folder_is_rejected_for_outfits(layout: BlobLayout) -> None:
    with pytest.raises(ValueError):
        layout.owner_prefix(Namespace.OUTFITS, "wishlist")
    assert layout.owner_prefix(Namespace.WISHLIST, "wishlist") == "images/wishlist/wishlist"


def test_shared_roots_are_rejected(store) -> None:
    with pytest.raises(ValueError):
        BlobLayout(store, outfit_root="images", wishlist_root="/images/")


@pytest.mark.asyncio
async def test_empty_owner_has_no_records(layout: BlobLayout) -> None:
    assert await layout.list_record_ids(Namespace.OUTFITS, OWNER) == []


@pytest.mark.asyncio
async def test_lists_record_folders_per_namespace(store, layout: BlobLayout) -> None:
    await put_record(store, f"images/{OWNER}", "a", "2024-01-01T00:00:00.000Z")
    await put_record(store, f"images/{OWNER}", "b", image=False, sidecar=b"{}")
    await put_record(store, f"images/wishlist/{OWNER}", "w", "2024-01-01T00:00:00.000Z")
    await put_record(store, "images/someone-else", "x", "2024-01-01T00:00:00.000Z")

    assert sorted(await layout.list_record_ids(Namespace.OUTFITS, OWNER)) == ["a", "b"]
    assert await layout.list_record_ids(Namespace.WISHLIST, OWNER) == ["w"]


@pytest.mark.asyncio
async def test_wishlist_items_never_show_up_as_outfits(store, layout: BlobLayout) -> None:
    await put_record(store, f"images/wishlist/{OWNER}", "w", "2024-01-01T00:00:00.000Z")

    assert await layout.list_record_ids(Namespace.OUTFITS, OWNER) == []
