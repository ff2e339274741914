"""Configuration — weight presets, rating scales, compatibility bands."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

from src.ratings.models import CompatibilityBand, RatingScale, WeightProfile

WeightPresetName = Literal["standard", "positional"]
RatingScaleName = Literal["stars", "thumbs"]

# Weight by rank: whichever criterion a reader puts first gets 0.35.
POSITIONAL_WEIGHTS: tuple[float, ...] = (0.35, 0.25, 0.20, 0.12, 0.08)

WEIGHT_PRESETS: dict[str, WeightProfile] = {
    "standard": WeightProfile(
        enjoyment=0.30,
        writing=0.30,
        themes=0.20,
        characters=0.10,
        worldbuilding=0.10,
    ),
    # The rank table laid over the declaration order of the criteria.
    "positional": WeightProfile(
        enjoyment=POSITIONAL_WEIGHTS[0],
        writing=POSITIONAL_WEIGHTS[1],
        themes=POSITIONAL_WEIGHTS[2],
        characters=POSITIONAL_WEIGHTS[3],
        worldbuilding=POSITIONAL_WEIGHTS[4],
    ),
}

RATING_SCALES: dict[str, RatingScale] = {
    "stars": RatingScale(name="stars", minimum=0.0, maximum=5.0),
    "thumbs": RatingScale(name="thumbs", minimum=-1.0, maximum=1.0),
}

COMPATIBILITY_BANDS: tuple[CompatibilityBand, ...] = (
    CompatibilityBand(upper_bound=0.02, label="Overwhelmingly compatible", score=3),
    CompatibilityBand(upper_bound=0.05, label="Very compatible", score=2),
    CompatibilityBand(upper_bound=0.10, label="Mostly compatible", score=1),
    CompatibilityBand(upper_bound=0.20, label="Mixed compatibility", score=0),
    CompatibilityBand(upper_bound=0.35, label="Mostly incompatible", score=-1),
    CompatibilityBand(upper_bound=0.40, label="Very incompatible", score=-2),
    CompatibilityBand(upper_bound=None, label="Overwhelmingly incompatible", score=-3),
)


class Settings(BaseSettings):
    default_weights: WeightPresetName = "standard"
    rating_scale: RatingScaleName = "stars"

    min_ratings: int = Field(default=10, ge=1)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "RATINGS_",
        "extra": "ignore",
    }


settings = Settings()


def weight_preset(name: str | None = None) -> WeightProfile:
    """Return the named default weight table (the configured one if omitted)."""
    key = name or settings.default_weights
    try:
        return WEIGHT_PRESETS[key]
    except KeyError:
        raise ValueError(
            f"unknown weight preset {key!r}; expected one of {sorted(WEIGHT_PRESETS)}",
        ) from None


def rating_scale(name: str | None = None) -> RatingScale:
    key = name or settings.rating_scale
    try:
        return RATING_SCALES[key]
    except KeyError:
        raise ValueError(
            f"unknown rating scale {key!r}; expected one of {sorted(RATING_SCALES)}",
        ) from None
