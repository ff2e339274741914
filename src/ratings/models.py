"""Pydantic v2 data models — the data contracts flowing through the engine.

Field names serialize as camelCase (``model_dump(by_alias=True)``) because
the surrounding HTTP handlers already speak that shape; snake_case is
accepted on input too.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from src.ratings.criteria import CRITERIA, Criterion

EntityId = Union[int, str]


class _Contract(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

class Rating(_Contract):
    """One reviewer's evaluation of one book.

    Criterion values are deliberately not range-checked: the active
    ``RatingScale`` is a reading convention, and scoring passes out-of-range
    values straight through.  Non-finite values are rejected.
    """

    id: EntityId | None = None
    book_id: EntityId | None = None
    user_id: EntityId | None = None
    author_id: EntityId | None = None

    enjoyment: float = Field(allow_inf_nan=False)
    writing: float = Field(allow_inf_nan=False)
    themes: float = Field(allow_inf_nan=False)
    characters: float = Field(allow_inf_nan=False)
    worldbuilding: float = Field(allow_inf_nan=False)

    review: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def values(self) -> dict[Criterion, float]:
        return {
            Criterion.ENJOYMENT: self.enjoyment,
            Criterion.WRITING: self.writing,
            Criterion.THEMES: self.themes,
            Criterion.CHARACTERS: self.characters,
            Criterion.WORLDBUILDING: self.worldbuilding,
        }

    def value(self, criterion: Criterion) -> float:
        return self.values()[criterion]

    @classmethod
    def from_values(cls, values: dict[Criterion, float], **extra: Any) -> Rating:
        return cls(**{c.value: values[c] for c in CRITERIA}, **extra)


class WeightProfile(_Contract):
    """An effective weight per criterion.  Weights need not sum to 1."""

    enjoyment: float = Field(ge=0.0, allow_inf_nan=False)
    writing: float = Field(ge=0.0, allow_inf_nan=False)
    themes: float = Field(ge=0.0, allow_inf_nan=False)
    characters: float = Field(ge=0.0, allow_inf_nan=False)
    worldbuilding: float = Field(ge=0.0, allow_inf_nan=False)

    def as_dict(self) -> dict[Criterion, float]:
        return {
            Criterion.ENJOYMENT: self.enjoyment,
            Criterion.WRITING: self.writing,
            Criterion.THEMES: self.themes,
            Criterion.CHARACTERS: self.characters,
            Criterion.WORLDBUILDING: self.worldbuilding,
        }

    def weight(self, criterion: Criterion) -> float:
        return self.as_dict()[criterion]

    def total(self) -> float:
        return sum(self.as_dict().values())

    def percentages(self) -> dict[Criterion, str]:
        """Display form used by preference screens, e.g. ``{"themes": "20%"}``."""
        return {c: f"{w * 100:.0f}%" for c, w in self.as_dict().items()}

    @classmethod
    def from_mapping(cls, weights: dict[Criterion, float]) -> WeightProfile:
        return cls(**{c.value: weights[c] for c in CRITERIA})


class StoredPreferences(_Contract):
    """A user's preference row as the storage port hands it back.

    ``weights`` is loosely typed on purpose: rows written by older clients
    carry numeric strings.
    """

    user_id: EntityId
    weights: dict[str, Any] | None = None
    criteria_order: list[str] | None = None
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------

class RatingScale(BaseModel):
    name: str
    minimum: float
    maximum: float

    @model_validator(mode="after")
    def _check_bounds(self) -> RatingScale:
        if self.maximum <= self.minimum:
            raise ValueError(
                f"rating scale {self.name!r}: maximum must exceed minimum",
            )
        return self

    @property
    def midpoint(self) -> float:
        return (self.minimum + self.maximum) / 2.0

    @property
    def half_range(self) -> float:
        return (self.maximum - self.minimum) / 2.0

    def to_bipolar(self, value: float) -> float:
        """Map a value on this scale onto [-1, +1] around the neutral midpoint."""
        return (value - self.midpoint) / self.half_range


class CompatibilityBand(BaseModel):
    upper_bound: float | None  # inclusive; None = catch-all
    label: str
    score: int = Field(ge=-3, le=3)


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------

class AggregateRating(_Contract):
    """Per-criterion means over a rating set plus one weighted overall.

    The "no data" sentinel has every figure set to ``None`` and
    ``rating_count == 0``, so it never reads as a genuine zero rating.
    """

    overall: float | None = None
    enjoyment: float | None = None
    writing: float | None = None
    themes: float | None = None
    characters: float | None = None
    worldbuilding: float | None = None
    rating_count: int = Field(default=0, ge=0)

    @classmethod
    def empty(cls) -> AggregateRating:
        return cls()

    @property
    def has_data(self) -> bool:
        return self.rating_count > 0 and self.overall is not None

    def means(self) -> dict[Criterion, float | None]:
        return {
            Criterion.ENJOYMENT: self.enjoyment,
            Criterion.WRITING: self.writing,
            Criterion.THEMES: self.themes,
            Criterion.CHARACTERS: self.characters,
            Criterion.WORLDBUILDING: self.worldbuilding,
        }


class CriterionCompatibility(_Contract):
    compatibility: str
    difference: float
    normalized: float


class CompatibilityResult(_Contract):
    has_enough_ratings: Literal[True] = True
    overall: str
    score: int = Field(ge=-3, le=3)
    normalized_difference: float = Field(ge=0.0)
    criteria: dict[Criterion, CriterionCompatibility]
    total_ratings: int = 0
    author_ratings: AggregateRating = Field(default_factory=AggregateRating.empty)


class InsufficientData(_Contract):
    has_enough_ratings: Literal[False] = False
    total_ratings: int = Field(ge=0)
    ratings_needed: int = Field(ge=1)
    author_ratings: AggregateRating = Field(default_factory=AggregateRating.empty)


CompatibilityOutcome = Union[CompatibilityResult, InsufficientData]


class BookRatingSummary(_Contract):
    """What a book page shows a particular viewer."""

    book_id: EntityId
    viewer_id: EntityId | None = None
    rating_count: int = 0
    personalized: AggregateRating
    straight_average: float | None = None
    weight_percentages: dict[Criterion, str] = Field(default_factory=dict)
