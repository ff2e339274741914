"""Compatibility scorer — how well a subject's ratings fit a viewer's taste.

Both sides are projected onto a bipolar [-1, +1] axis per criterion:
  - subject: its mean rating, centred on the scale's neutral midpoint
  - viewer:  its weight, read as a like/dislike polarity (w * 2 - 1)
Per criterion, diff = |s - v| / 2 and the criterion counts for
(|s| + |v|) / 2, so strongly held positions outweigh near-neutral ones.
The weighted mean diff is bucketed into seven bands scored +3 .. -3.
"""

from __future__ import annotations

import logging
from typing import Mapping

from src.ratings.config import COMPATIBILITY_BANDS, rating_scale, settings
from src.ratings.criteria import CRITERIA, Criterion
from src.ratings.models import (
    AggregateRating,
    CompatibilityBand,
    CompatibilityOutcome,
    CompatibilityResult,
    CriterionCompatibility,
    InsufficientData,
    RatingScale,
    WeightProfile,
)

logger = logging.getLogger(__name__)


def bucketize(normalized: float) -> CompatibilityBand:
    """First band whose inclusive upper bound covers ``normalized``."""
    for band in COMPATIBILITY_BANDS:
        if band.upper_bound is None or normalized <= band.upper_bound:
            return band
    return COMPATIBILITY_BANDS[-1]


def weighted_difference(
    diffs: Mapping[Criterion, float], weights: Mapping[Criterion, float],
) -> float:
    """Sum(diff * weight) / Sum(weight); 0.0 when no criterion carries weight."""
    total_weight = sum(weights[c] for c in CRITERIA)
    if total_weight <= 0:
        return 0.0
    return sum(diffs[c] * weights[c] for c in CRITERIA) / total_weight


def _result(
    diffs: dict[Criterion, float],
    weights: dict[Criterion, float],
    *,
    total_ratings: int,
    subject: AggregateRating,
) -> CompatibilityResult:
    breakdown: dict[Criterion, CriterionCompatibility] = {}
    for c in CRITERIA:
        breakdown[c] = CriterionCompatibility(
            compatibility=bucketize(diffs[c]).label,
            difference=diffs[c],
            normalized=diffs[c],
        )

    normalized = weighted_difference(diffs, weights)
    band = bucketize(normalized)
    return CompatibilityResult(
        overall=band.label,
        score=band.score,
        normalized_difference=normalized,
        criteria=breakdown,
        total_ratings=total_ratings,
        author_ratings=subject,
    )


def compare(
    subject: AggregateRating,
    viewer: WeightProfile,
    subject_rating_count: int,
    *,
    scale: RatingScale | None = None,
    min_ratings: int | None = None,
) -> CompatibilityOutcome:
    """Compare a subject's aggregate ratings with a viewer's weight profile.

    Returns ``InsufficientData`` while the subject has fewer than
    ``min_ratings`` ratings; callers branch on ``has_enough_ratings``.
    """
    threshold = settings.min_ratings if min_ratings is None else min_ratings
    if threshold < 1:
        raise ValueError("min_ratings must be at least 1")
    scale = scale or rating_scale()

    if subject_rating_count < threshold or not subject.has_data:
        needed = max(threshold - subject_rating_count, 1)
        logger.debug(
            "Not enough ratings for compatibility: %d of %d",
            subject_rating_count, threshold,
        )
        return InsufficientData(
            total_ratings=max(subject_rating_count, 0),
            ratings_needed=needed,
            author_ratings=subject,
        )

    means = subject.means()
    viewer_weights = viewer.as_dict()
    diffs: dict[Criterion, float] = {}
    weights: dict[Criterion, float] = {}
    for c in CRITERIA:
        subject_bipolar = scale.to_bipolar(means[c] or 0.0)
        viewer_bipolar = viewer_weights[c] * 2 - 1
        diffs[c] = abs(subject_bipolar - viewer_bipolar) / 2
        weights[c] = (abs(subject_bipolar) + abs(viewer_bipolar)) / 2

    result = _result(
        diffs, weights, total_ratings=subject_rating_count, subject=subject,
    )
    logger.debug(
        "Compatibility over %d ratings (%s scale): normalized=%.4f -> %s (%+d)",
        subject_rating_count, scale.name, result.normalized_difference,
        result.overall, result.score,
    )
    return result


def compare_profiles(a: WeightProfile, b: WeightProfile) -> CompatibilityResult:
    """Reader-to-reader compatibility from two weight profiles.

    Criteria count in proportion to how much both readers weight them.
    """
    weights_a = a.as_dict()
    weights_b = b.as_dict()
    diffs = {c: abs(weights_a[c] - weights_b[c]) for c in CRITERIA}
    weights = {c: (weights_a[c] + weights_b[c]) / 2 for c in CRITERIA}

    result = _result(diffs, weights, total_ratings=0, subject=AggregateRating.empty())
    logger.debug(
        "Reader compatibility: normalized=%.4f -> %s (%+d)",
        result.normalized_difference, result.overall, result.score,
    )
    return result
