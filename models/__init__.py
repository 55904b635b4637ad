"""Model package exports."""

from models.taxonomy import *  # noqa: F401,F403
from models.records import ClothingAnalysis, Outfit, Record, WishlistItem

__all__ = [
    "CLOTHING_SLOTS",
    "GENRES",
    "ClothingAnalysis",
    "Outfit",
    "Record",
    "WishlistItem",
    "normalise_genres",
    "validate_genre",
]
