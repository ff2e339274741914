"""Weight-profile resolution.

Two ways a reader can express preferences:
  - explicit   a weight per criterion (possibly partial, possibly strings)
  - positional a most-to-least important ordering, weighted by rank
Nothing at all resolves to the configured default preset.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Mapping, Sequence

from src.ratings.config import POSITIONAL_WEIGHTS, weight_preset
from src.ratings.criteria import CRITERIA, Criterion, parse_criterion
from src.ratings.models import EntityId, StoredPreferences, WeightProfile
from src.ratings.storage import IPreferenceRepository

logger = logging.getLogger(__name__)


def _coerce_weight(raw: Any) -> float | None:
    if isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def _from_explicit(
    explicit: Mapping[Criterion | str, Any], defaults: WeightProfile,
) -> WeightProfile:
    supplied: dict[Criterion, Any] = {}
    for key, raw in explicit.items():
        criterion = parse_criterion(key)
        if criterion is None:
            logger.debug("Ignoring weight for unknown criterion %r", key)
            continue
        supplied[criterion] = raw

    weights: dict[Criterion, float] = {}
    for criterion in CRITERIA:
        value = _coerce_weight(supplied.get(criterion))
        if value is None:
            if criterion in supplied:
                logger.debug(
                    "Malformed weight %r for %s, using default %.2f",
                    supplied[criterion], criterion.value, defaults.weight(criterion),
                )
            value = defaults.weight(criterion)
        weights[criterion] = value
    return WeightProfile.from_mapping(weights)


def _from_order(order: Sequence[Criterion | str]) -> WeightProfile:
    weights = {c: 0.0 for c in CRITERIA}
    rank = 0
    seen: set[Criterion] = set()
    for entry in order:
        if rank >= len(POSITIONAL_WEIGHTS):
            break
        criterion = parse_criterion(entry)
        if criterion is None or criterion in seen:
            logger.debug("Skipping order entry %r", entry)
            continue
        weights[criterion] = POSITIONAL_WEIGHTS[rank]
        seen.add(criterion)
        rank += 1
    return WeightProfile.from_mapping(weights)


def resolve(
    explicit_weights: Mapping[Criterion | str, Any] | None = None,
    order: Sequence[Criterion | str] | None = None,
    *,
    preset: str | None = None,
) -> WeightProfile:
    """Produce the effective weight per criterion.

    Explicit weights win when present and non-empty; absent or malformed
    entries fall back to the preset's value for that criterion.  Otherwise an
    ``order`` (even an empty one) assigns weights by rank and zero to anything
    left out.  With neither, the preset itself is returned.  Weights are never
    renormalized.
    """
    defaults = weight_preset(preset)
    if explicit_weights:
        return _from_explicit(explicit_weights, defaults)
    if order is not None:
        return _from_order(order)
    return defaults.model_copy()


def resolve_stored(
    preferences: StoredPreferences | None, *, preset: str | None = None,
) -> WeightProfile:
    if preferences is None:
        return resolve(preset=preset)
    return resolve(preferences.weights, preferences.criteria_order, preset=preset)


def default_preferences(
    user_id: EntityId, *, preset: str | None = None,
) -> StoredPreferences:
    profile = weight_preset(preset)
    return StoredPreferences(
        user_id=user_id,
        weights={c.value: w for c, w in profile.as_dict().items()},
    )


def resolve_for_user(
    user_id: EntityId,
    repository: IPreferenceRepository,
    *,
    preset: str | None = None,
) -> WeightProfile:
    """Resolve a user's profile, creating their default row on first access.

    The default row goes through ``upsert_default`` so concurrent first
    accesses still leave a single row.  A failed write is logged and the
    in-memory default is returned.
    """
    stored = repository.get(user_id)
    if stored is not None:
        return resolve_stored(stored, preset=preset)

    defaults = default_preferences(user_id, preset=preset)
    try:
        stored = repository.upsert_default(user_id, defaults)
    except Exception:
        logger.warning(
            "Could not persist default rating preferences for user %s",
            user_id, exc_info=True,
        )
        stored = defaults
    return resolve_stored(stored, preset=preset)
