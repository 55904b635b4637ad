"""Token-overlap similarity between clothing analyses.

A deliberately rough heuristic: word order, synonyms and colour/material
nuances are ignored. Each of the four clothing slots is compared on its own and
only slots filled on both sides count toward the score.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, List, Sequence, TypeVar

from models.records import ClothingAnalysis
from models.taxonomy import CLOTHING_SLOTS

T = TypeVar("T")

RECOMMENDATION_THRESHOLD = 20.0


@dataclass(frozen=True)
class ScoredCandidate(Generic[T]):
    candidate: T
    score: float


def _tokenise(text: str) -> List[str]:
    return text.lower().split()


def field_similarity(left: str, right: str) -> float:
    """Share of tokens from the shorter side that substring-match a token on the other side."""

    left_tokens, right_tokens = _tokenise(left), _tokenise(right)
    if not left_tokens or not right_tokens:
        return 0.0
    if len(left_tokens) <= len(right_tokens):
        probe, other = left_tokens, right_tokens
    else:
        probe, other = right_tokens, left_tokens
    matched = sum(1 for token in probe if any(token in o or o in token for o in other))
    return matched / len(probe)


def score(candidate: ClothingAnalysis, reference: ClothingAnalysis) -> float:
    """Similarity percentage in [0, 100]; 0 when no slot is filled on both sides."""

    ratios = []
    for slot in CLOTHING_SLOTS:
        left = getattr(candidate, slot).strip()
        right = getattr(reference, slot).strip()
        if left and right:
            ratios.append(field_similarity(left, right))
    if not ratios:
        return 0.0
    return sum(ratios) / len(ratios) * 100


def _default_tags(candidate: object) -> ClothingAnalysis:
    if isinstance(candidate, ClothingAnalysis):
        return candidate
    return getattr(candidate, "clothing_analysis")


def rank(
    candidates: Sequence[T],
    reference: ClothingAnalysis,
    *,
    tags: Callable[[T], ClothingAnalysis] = _default_tags,
    threshold: float = RECOMMENDATION_THRESHOLD,
) -> List[ScoredCandidate[T]]:
    """Order candidates by descending score, keeping those at or above ``threshold``.

    The single best candidate is always kept, so a non-empty input never yields
    an empty recommendation list.
    """

    scored = [ScoredCandidate(candidate, score(tags(candidate), reference)) for candidate in candidates]
    ranked = sorted(scored, key=lambda item: item.score, reverse=True)
    return [item for position, item in enumerate(ranked) if position == 0 or item.score >= threshold]


__all__ = ["RECOMMENDATION_THRESHOLD", "ScoredCandidate", "field_similarity", "rank", "score"]
