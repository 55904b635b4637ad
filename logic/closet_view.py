"""Search and sort helpers for the closet screen."""

from __future__ import annotations

from typing import List, Literal, Sequence

from models.records import Outfit

SortKey = Literal["date", "rating", "genre"]
SortOrder = Literal["asc", "desc"]


def filter_outfits(outfits: Sequence[Outfit], query: str = "") -> List[Outfit]:
    """Keep outfits whose details or genre contain ``query`` (case-insensitive)."""

    needle = query.strip().lower()
    if not needle:
        return list(outfits)
    return [o for o in outfits if needle in o.details.lower() or needle in o.genre.lower()]


def sort_outfits(outfits: Sequence[Outfit], by: SortKey = "date", order: SortOrder = "desc") -> List[Outfit]:
    if by == "date":
        key = lambda o: o.date or o.created_at  # noqa: E731
    elif by == "rating":
        key = lambda o: o.rating  # noqa: E731
    elif by == "genre":
        key = lambda o: o.genre.lower()  # noqa: E731
    else:
        raise ValueError(f"Unsupported sort key: {by}")
    if order not in ("asc", "desc"):
        raise ValueError(f"Unsupported sort order: {order}")
    return sorted(outfits, key=key, reverse=order == "desc")


def closet_view(
    outfits: Sequence[Outfit],
    query: str = "",
    by: SortKey = "date",
    order: SortOrder = "desc",
) -> List[Outfit]:
    """Filter then sort, as the closet screen shows them."""

    return sort_outfits(filter_outfits(outfits, query), by=by, order=order)


__all__ = ["SortKey", "SortOrder", "filter_outfits", "sort_outfits", "closet_view"]
