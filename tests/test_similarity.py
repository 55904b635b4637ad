"""Token-overlap similarity and recommendation ranking."""

from __future__ import annotations

import pytest

from logic.similarity import RECOMMENDATION_THRESHOLD, field_similarity, rank, score
from models.records import ClothingAnalysis

FULL = ClothingAnalysis(
    outerwear="navy wool coat",
    top="white cotton tee",
    bottom="black slim jeans",
    shoes="white leather sneakers",
)


def test_identical_fully_populated_analyses_score_100() -> None:
    assert score(FULL, FULL) == pytest.approx(100.0)


def test_no_comparable_fields_scores_zero() -> None:
    assert score(ClothingAnalysis(top="white tee"), ClothingAnalysis(shoes="boots")) == 0.0
    assert score(ClothingAnalysis(), FULL) == 0.0
    assert score(ClothingAnalysis(top="   "), ClothingAnalysis(top="tee")) == 0.0


@pytest.mark.parametrize(
    "left, right",
    [
        (FULL, ClothingAnalysis(top="red silk blouse", shoes="white boots")),
        (ClothingAnalysis(top="a b c d e f"), ClothingAnalysis(top="abcdef")),
        (ClothingAnalysis(bottom="Black"), ClothingAnalysis(bottom="BLACKEST denim")),
    ],
)
def test_scores_stay_within_bounds(left: ClothingAnalysis, right: ClothingAnalysis) -> None:
    assert 0.0 <= score(left, right) <= 100.0
    assert 0.0 <= score(right, left) <= 100.0


def test_shared_colour_token_gives_partial_match() -> None:
    ratio = field_similarity("white cotton tee", "white t-shirt")
    assert 0.0 < ratio < 1.0

    tee = ClothingAnalysis(top="white cotton tee")
    shirt = ClothingAnalysis(top="white t-shirt")
    assert score(tee, shirt) > 0.0


def test_substring_tokens_match_in_either_direction() -> None:
    assert field_similarity("jean", "jeans") == 1.0
    assert field_similarity("sneakers", "sneaker shoes") == 1.0


def test_comparison_is_case_insensitive() -> None:
    assert field_similarity("White Tee", "white tee") == 1.0


def test_rank_orders_by_score_and_filters_below_threshold() -> None:
    reference = ClothingAnalysis(top="white tee", shoes="white sneakers")
    close = ClothingAnalysis(top="white tee", shoes="white sneakers")
    partial = ClothingAnalysis(top="white blouse", shoes="brown boots")
    unrelated = ClothingAnalysis(top="red sweater", shoes="brown boots")

    ranked = rank([unrelated, partial, close], reference)

    assert [item.candidate for item in ranked] == [close, partial]
    assert ranked[0].score == pytest.approx(100.0)
    assert all(item.score >= RECOMMENDATION_THRESHOLD for item in ranked)


def test_rank_keeps_single_best_when_everything_scores_low() -> None:
    reference = ClothingAnalysis(outerwear="navy coat", top="white tee", bottom="blue jeans", shoes="black boots")
    weak = ClothingAnalysis(outerwear="beige trench", top="red sweater", bottom="blue skirt", shoes="tan loafers")
    none = ClothingAnalysis(outerwear="green parka", top="green hoodie", bottom="grey shorts", shoes="red heels")

    ranked = rank([none, weak], reference)

    assert len(ranked) == 1
    assert ranked[0].candidate == weak
    assert ranked[0].score < RECOMMENDATION_THRESHOLD


def test_rank_of_nothing_is_empty() -> None:
    assert rank([], FULL) == []


def test_rank_uses_custom_tag_accessor() -> None:
    items = [{"tags": ClothingAnalysis(top="white tee")}, {"tags": ClothingAnalysis(top="black tee")}]

    ranked = rank(items, ClothingAnalysis(top="white tee"), tags=lambda item: item["tags"])

    assert ranked[0].candidate is items[0]
