"""Outfit and wishlist domain records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Union


@dataclass(frozen=True)
class ClothingAnalysis:
    """Derived tags for the four clothing slots; empty string means absent."""

    outerwear: str = ""
    top: str = ""
    bottom: str = ""
    shoes: str = ""

    def as_dict(self) -> Dict[str, str]:
        return {
            "outerwear": self.outerwear,
            "top": self.top,
            "bottom": self.bottom,
            "shoes": self.shoes,
        }

    def is_empty(self) -> bool:
        return not any(value.strip() for value in self.as_dict().values())


EMPTY_ANALYSIS = ClothingAnalysis()


@dataclass
class Outfit:
    """A photographed outfit in the owner's closet."""

    id: str
    image_url: str
    created_at: datetime
    owner_id: str
    details: str = ""
    rating: int = 0
    genre: str = ""
    date: Optional[datetime] = None
    clothing_analysis: ClothingAnalysis = field(default_factory=ClothingAnalysis)

    def __post_init__(self) -> None:
        if not 0 <= self.rating <= 10:
            raise ValueError(f"rating must be between 0 and 10, got {self.rating}")
        if self.date is None:
            self.date = self.created_at


@dataclass
class WishlistItem:
    """An item the owner is considering buying."""

    id: str
    image_url: str
    created_at: datetime
    owner_id: str
    name: str = ""
    notes: str = ""
    timer_started_at: Optional[int] = None
    timer_ends_at: Optional[int] = None
    clothing_analysis: ClothingAnalysis = field(default_factory=ClothingAnalysis)


Record = Union[Outfit, WishlistItem]


__all__ = ["ClothingAnalysis", "EMPTY_ANALYSIS", "Outfit", "WishlistItem", "Record"]
