"""Unit tests for the compatibility scorer."""

from __future__ import annotations

import pytest

from src.ratings.config import COMPATIBILITY_BANDS, rating_scale
from src.ratings.criteria import CRITERIA, Criterion
from src.ratings.models import (
    AggregateRating,
    CompatibilityResult,
    InsufficientData,
    Rating,
    WeightProfile,
)
from src.ratings.scoring.compatibility import (
    bucketize,
    compare,
    compare_profiles,
    weighted_difference,
)
from src.ratings.scoring.weighted import aggregate
from src.ratings.scoring.weights import resolve


def _uniform_aggregate(value: float, count: int = 10) -> AggregateRating:
    ratings = [
        Rating(enjoyment=value, writing=value, themes=value,
               characters=value, worldbuilding=value)
        for _ in range(count)
    ]
    return aggregate(ratings, resolve())


def _flat_profile(weight: float) -> WeightProfile:
    return WeightProfile.from_mapping({c: weight for c in CRITERIA})


class TestBucketize:
    @pytest.mark.parametrize(
        "value, label, score",
        [
            (0.0, "Overwhelmingly compatible", 3),
            (0.02, "Overwhelmingly compatible", 3),
            (0.020001, "Very compatible", 2),
            (0.05, "Very compatible", 2),
            (0.10, "Mostly compatible", 1),
            (0.20, "Mixed compatibility", 0),
            (0.35, "Mostly incompatible", -1),
            (0.40, "Very incompatible", -2),
            (0.400001, "Overwhelmingly incompatible", -3),
            (1.0, "Overwhelmingly incompatible", -3),
        ],
    )
    def test_inclusive_upper_bounds(self, value, label, score):
        band = bucketize(value)
        assert band.label == label
        assert band.score == score

    def test_seven_bands(self):
        assert len(COMPATIBILITY_BANDS) == 7
        assert [b.score for b in COMPATIBILITY_BANDS] == [3, 2, 1, 0, -1, -2, -3]


class TestWeightedDifference:
    def test_zero_weight_is_perfect(self):
        diffs = {c: 0.9 for c in CRITERIA}
        weights = {c: 0.0 for c in CRITERIA}
        assert weighted_difference(diffs, weights) == 0.0

    def test_monotonic_in_diff(self):
        weights = {c: 0.5 for c in CRITERIA}
        diffs = {c: 0.2 for c in CRITERIA}
        base = weighted_difference(diffs, weights)
        for c in CRITERIA:
            for bump in (0.0, 0.1, 0.5):
                raised = dict(diffs)
                raised[c] += bump
                assert weighted_difference(raised, weights) >= base


class TestCompare:
    def test_nine_ratings_insufficient(self):
        agg = _uniform_aggregate(4.0, count=9)
        result = compare(agg, resolve(), 9)
        assert isinstance(result, InsufficientData)
        assert result.has_enough_ratings is False
        assert result.ratings_needed == 1
        assert result.total_ratings == 9
        assert result.author_ratings == agg

    def test_ten_ratings_sufficient(self):
        agg = _uniform_aggregate(4.0, count=10)
        result = compare(agg, resolve(), 10)
        assert isinstance(result, CompatibilityResult)
        assert result.has_enough_ratings is True
        assert result.total_ratings == 10

    def test_no_ratings(self):
        result = compare(AggregateRating.empty(), resolve(), 0)
        assert isinstance(result, InsufficientData)
        assert result.ratings_needed == 10

    def test_custom_threshold(self):
        agg = _uniform_aggregate(4.0, count=3)
        assert compare(agg, resolve(), 3, min_ratings=3).has_enough_ratings
        with pytest.raises(ValueError):
            compare(agg, resolve(), 3, min_ratings=0)

    def test_all_fives_against_default_profile(self):
        agg = _uniform_aggregate(5.0)
        assert agg.overall == pytest.approx(5.0)
        result = compare(agg, resolve(), 10)
        # subject bipolar 1 everywhere; viewer -0.4,-0.4,-0.6,-0.8,-0.8
        assert result.normalized_difference == pytest.approx(0.81)
        assert result.overall == "Overwhelmingly incompatible"
        assert result.score == -3
        enjoyment = result.criteria[Criterion.ENJOYMENT]
        assert enjoyment.difference == pytest.approx(0.7)
        assert enjoyment.normalized == pytest.approx(0.7)
        assert result.criteria[Criterion.WORLDBUILDING].difference == pytest.approx(0.9)

    def test_perfect_match(self):
        # mean 5 -> +1, weight 1.0 -> +1
        result = compare(_uniform_aggregate(5.0), _flat_profile(1.0), 10)
        assert result.normalized_difference == pytest.approx(0.0)
        assert result.score == 3

    def test_neutral_on_both_sides_is_compatible(self):
        # mean 2.5 -> 0, weight 0.5 -> 0: no signal at all
        result = compare(_uniform_aggregate(2.5), _flat_profile(0.5), 10)
        assert result.normalized_difference == 0.0
        assert result.overall == "Overwhelmingly compatible"

    def test_thumbs_scale(self):
        agg = _uniform_aggregate(1.0)
        result = compare(agg, _flat_profile(1.0), 10, scale=rating_scale("thumbs"))
        assert result.normalized_difference == pytest.approx(0.0)
        stars = compare(agg, _flat_profile(1.0), 10, scale=rating_scale("stars"))
        assert stars.normalized_difference > 0.1

    def test_breakdown_covers_every_criterion(self):
        result = compare(_uniform_aggregate(3.0), resolve(), 12)
        assert set(result.criteria) == set(CRITERIA)

    def test_serialized_shape(self):
        result = compare(_uniform_aggregate(3.0), resolve(), 12)
        dumped = result.model_dump(by_alias=True, mode="json")
        assert dumped["hasEnoughRatings"] is True
        assert "normalizedDifference" in dumped
        assert set(dumped["criteria"]["themes"]) == {
            "compatibility", "difference", "normalized",
        }
        assert dumped["authorRatings"]["ratingCount"] == 10

    def test_insufficient_serialized_shape(self):
        result = compare(_uniform_aggregate(3.0, count=4), resolve(), 4)
        dumped = result.model_dump(by_alias=True)
        assert dumped["hasEnoughRatings"] is False
        assert dumped["ratingsNeeded"] == 6
        assert dumped["totalRatings"] == 4


class TestCompareProfiles:
    def test_identical_profiles(self):
        result = compare_profiles(resolve(), resolve())
        assert result.normalized_difference == 0.0
        assert result.score == 3

    def test_opposite_orders(self):
        a = resolve(order=["enjoyment", "writing", "themes", "characters", "worldbuilding"])
        b = resolve(order=["worldbuilding", "characters", "themes", "writing", "enjoyment"])
        result = compare_profiles(a, b)
        # diffs .27 .13 0 .13 .27, weights .215 .185 .2 .185 .215
        assert result.normalized_difference == pytest.approx(0.16420, abs=1e-4)
        assert result.overall == "Mixed compatibility"
        assert result.criteria[Criterion.THEMES].difference == pytest.approx(0.0)

    def test_symmetric(self):
        a = resolve({"enjoyment": 0.6})
        b = resolve(order=["themes"])
        assert compare_profiles(a, b).normalized_difference == pytest.approx(
            compare_profiles(b, a).normalized_difference,
        )
