"""Canonical labels for outfit genres and clothing slots.

Genres are the fixed set offered when an outfit is created; clothing slots are
the four fields the image analyzer fills in and the similarity scorer compares.
"""

from typing import Dict, Iterable, List, Optional

GENRES: List[str] = [
    "Minimalist",
    "Classic / Timeless",
    "Streetwear",
    "Boho",
    "Edgy / Punk",
    "Academia",
    "Y2K / Retro",
    "Cottagecore",
    "Sporty / Athleisure",
    "Artsy / Eclectic",
    "Techwear / Futuristic",
    "Business Casual / Smart Chic",
    "Other",
]

CLOTHING_SLOTS: List[str] = ["outerwear", "top", "bottom", "shoes"]

_GENRE_LOOKUP: Dict[str, str] = {label.lower(): label for label in GENRES}


def _normalize_key(value: str) -> str:
    """Collapse whitespace and case so labels compare loosely."""

    return " ".join(value.split()).lower()


def validate_genre(genre: Optional[str]) -> str:
    """Return the canonical genre label, or ``""`` when none was chosen."""

    if genre is None or not genre.strip():
        return ""
    key = _normalize_key(genre)
    if key not in _GENRE_LOOKUP:
        raise ValueError(f"Unknown genre: {genre}")
    return _GENRE_LOOKUP[key]


def normalise_genres(values: Iterable[str]) -> List[str]:
    """Validate a list of genre labels, dropping duplicates and keeping order."""

    normalised: List[str] = []
    seen = set()
    for value in values:
        label = validate_genre(str(value))
        if label and label not in seen:
            normalised.append(label)
            seen.add(label)
    return normalised


__all__ = ["GENRES", "CLOTHING_SLOTS", "validate_genre", "normalise_genres"]
