"""Weighted score calculator — one rating, or many collapsed into an aggregate."""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from src.ratings.criteria import CRITERIA
from src.ratings.models import AggregateRating, Rating, WeightProfile

logger = logging.getLogger(__name__)


def _weight_vector(profile: WeightProfile) -> np.ndarray:
    weights = profile.as_dict()
    return np.array([weights[c] for c in CRITERIA], dtype=float)


def _value_vector(rating: Rating) -> np.ndarray:
    values = rating.values()
    return np.array([values[c] for c in CRITERIA], dtype=float)


def score_one(rating: Rating, profile: WeightProfile) -> float:
    """Personalized overall: sum of value x weight.  Not clamped."""
    return float(np.dot(_value_vector(rating), _weight_vector(profile)))


def score_straight_average(rating: Rating) -> float:
    """Unweighted mean of the five values.

    For views that must show an objective figure (e.g. an author managing
    their own books), never a reader's personal weighting.
    """
    return float(np.mean(_value_vector(rating)))


def average_score(
    ratings: Sequence[Rating], profile: WeightProfile | None = None,
) -> float | None:
    """Mean of per-rating overalls; straight averages when ``profile`` is None."""
    if not ratings:
        return None
    if profile is None:
        scores = [score_straight_average(r) for r in ratings]
    else:
        scores = [score_one(r, profile) for r in ratings]
    return float(np.mean(scores))


def aggregate(ratings: Sequence[Rating], profile: WeightProfile) -> AggregateRating:
    """Per-criterion means, then one overall from weighting those means.

    No ratings gives the ``AggregateRating.empty()`` sentinel.
    """
    if not ratings:
        return AggregateRating.empty()

    matrix = np.vstack([_value_vector(r) for r in ratings])
    means = matrix.mean(axis=0)
    synthetic = Rating.from_values(
        {c: float(m) for c, m in zip(CRITERIA, means)},
    )
    overall = score_one(synthetic, profile)

    logger.debug(
        "Aggregated %d ratings: means=%s overall=%.3f",
        len(ratings), np.round(means, 3).tolist(), overall,
    )
    return AggregateRating(
        overall=overall,
        rating_count=len(ratings),
        **{c.value: float(m) for c, m in zip(CRITERIA, means)},
    )
