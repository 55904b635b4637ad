"""Folder layout for records inside the blob store.

Each record lives in its own folder::

    <namespace root>/<owner>/<record id>/image.jpg
    <namespace root>/<owner>/<record id>/metadata.json

Path derivation is pure; only :meth:`BlobLayout.list_record_ids` touches the
store.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from tools.blob_store import BlobStore

IMAGE_FILENAME = "image.jpg"
METADATA_FILENAME = "metadata.json"


class Namespace(str, Enum):
    OUTFITS = "outfits"
    WISHLIST = "wishlist"


def _validate_segment(value: str, label: str) -> str:
    if not value or "/" in value or value in {".", ".."} or value != value.strip():
        raise ValueError(f"Invalid {label}: {value!r}")
    return value


class BlobLayout:
    """Derives record paths and enumerates record folders per owner."""

    def __init__(
        self,
        store: BlobStore,
        outfit_root: str = "images",
        wishlist_root: str = "images/wishlist",
    ) -> None:
        self.store = store
        self.roots: Dict[Namespace, str] = {
            Namespace.OUTFITS: outfit_root.strip("/"),
            Namespace.WISHLIST: wishlist_root.strip("/"),
        }
        if self.roots[Namespace.OUTFITS] == self.roots[Namespace.WISHLIST]:
            raise ValueError("Outfit and wishlist namespaces must not share a root")

    def _reserved_folder(self, namespace: Namespace) -> Optional[str]:
        """Folder name under an owner's parent that belongs to another namespace."""

        root = self.roots[namespace]
        for other, other_root in self.roots.items():
            if other is namespace:
                continue
            parent, _, leaf = other_root.rpartition("/")
            if parent == root:
                return leaf
        return None

    def owner_prefix(self, namespace: Namespace, owner_id: str) -> str:
        _validate_segment(owner_id, "owner id")
        if owner_id == self._reserved_folder(namespace):
            raise ValueError(f"Owner id {owner_id!r} collides with a namespace folder")
        return f"{self.roots[namespace]}/{owner_id}"

    def record_prefix(self, namespace: Namespace, owner_id: str, record_id: str) -> str:
        _validate_segment(record_id, "record id")
        return f"{self.owner_prefix(namespace, owner_id)}/{record_id}"

    def image_path(self, namespace: Namespace, owner_id: str, record_id: str) -> str:
        return f"{self.record_prefix(namespace, owner_id, record_id)}/{IMAGE_FILENAME}"

    def metadata_path(self, namespace: Namespace, owner_id: str, record_id: str) -> str:
        return f"{self.record_prefix(namespace, owner_id, record_id)}/{METADATA_FILENAME}"

    async def list_record_ids(self, namespace: Namespace, owner_id: str) -> List[str]:
        """Return record folder names for the owner; an empty list means no records yet.

        Outfit scans skip any folder named after the wishlist root, so wishlist
        items nested beside outfits are never compared as outfits.
        """

        prefix = self.owner_prefix(namespace, owner_id)
        reserved = self._reserved_folder(namespace)
        record_ids: List[str] = []
        for child in await self.store.list_child_prefixes(prefix):
            name = child.rstrip("/").rsplit("/", 1)[-1]
            if not name or name == reserved:
                continue
            record_ids.append(name)
        return record_ids


__all__ = ["BlobLayout", "Namespace", "IMAGE_FILENAME", "METADATA_FILENAME"]
