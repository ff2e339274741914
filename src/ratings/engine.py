"""Top-level orchestrator — storage reads in, scored results out.

Pipeline per request:
  1. Fetch the subject's ratings                      (rating repository)
  2. Resolve the viewer's weight profile              (lazy default row)
  3. Aggregate ratings under that profile             (deterministic)
  4. Compare aggregate against the viewer's profile   (deterministic)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from src.ratings.config import rating_scale
from src.ratings.models import (
    BookRatingSummary,
    CompatibilityOutcome,
    CompatibilityResult,
    EntityId,
    Rating,
)
from src.ratings.scoring import compatibility, weighted
from src.ratings.scoring.weights import resolve, resolve_for_user
from src.ratings.storage import (
    InMemoryRatingRepository,
    IPreferenceRepository,
    IRatingRepository,
)

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent.parent.parent / "data"


def load_ratings_from_json(data: list[dict]) -> list[Rating]:
    return [Rating.model_validate(r) for r in data]


def load_sample_ratings() -> list[Rating]:
    path = DATA_DIR / "sample_ratings.json"
    with open(path) as f:
        raw = json.load(f)
    return load_ratings_from_json(raw)


def sample_repository() -> InMemoryRatingRepository:
    return InMemoryRatingRepository(load_sample_ratings())


class CompatibilityEngine:
    """Binds the scoring functions to a pair of storage ports."""

    def __init__(
        self,
        ratings: IRatingRepository,
        preferences: IPreferenceRepository,
        *,
        preset: str | None = None,
        scale: str | None = None,
        min_ratings: int | None = None,
    ):
        self.ratings = ratings
        self.preferences = preferences
        self.preset = preset
        self.scale = scale
        self.min_ratings = min_ratings

    def book_summary(
        self, book_id: EntityId, viewer_id: EntityId | None = None,
    ) -> BookRatingSummary:
        """Personalized aggregate for a viewer beside the objective average."""
        ratings = self.ratings.get_by_book(book_id)
        if viewer_id is None:
            profile = resolve(preset=self.preset)
        else:
            profile = resolve_for_user(viewer_id, self.preferences, preset=self.preset)

        summary = BookRatingSummary(
            book_id=book_id,
            viewer_id=viewer_id,
            rating_count=len(ratings),
            personalized=weighted.aggregate(ratings, profile),
            straight_average=weighted.average_score(ratings),
            weight_percentages=profile.percentages(),
        )
        logger.info(
            "Book %s summary for viewer %s: %d ratings, overall=%s",
            book_id, viewer_id, len(ratings), summary.personalized.overall,
        )
        return summary

    def author_compatibility(
        self, author_id: EntityId, viewer_id: EntityId,
    ) -> CompatibilityOutcome:
        ratings = self.ratings.get_by_author(author_id)
        profile = resolve_for_user(viewer_id, self.preferences, preset=self.preset)
        author_aggregate = weighted.aggregate(ratings, profile)

        outcome = compatibility.compare(
            author_aggregate,
            profile,
            len(ratings),
            scale=rating_scale(self.scale),
            min_ratings=self.min_ratings,
        )
        logger.info(
            "Author %s vs reader %s: %d ratings, enough=%s",
            author_id, viewer_id, len(ratings), outcome.has_enough_ratings,
        )
        return outcome

    def reader_compatibility(
        self, user_a: EntityId, user_b: EntityId,
    ) -> CompatibilityResult:
        profile_a = resolve_for_user(user_a, self.preferences, preset=self.preset)
        profile_b = resolve_for_user(user_b, self.preferences, preset=self.preset)
        result = compatibility.compare_profiles(profile_a, profile_b)
        logger.info(
            "Reader %s vs reader %s: %s (%+d)",
            user_a, user_b, result.overall, result.score,
        )
        return result
