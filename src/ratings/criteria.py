"""The five rating criteria — the fixed axes every rating and profile shares."""

from __future__ import annotations

from enum import Enum


class Criterion(str, Enum):
    ENJOYMENT = "enjoyment"
    WRITING = "writing"
    THEMES = "themes"
    CHARACTERS = "characters"
    WORLDBUILDING = "worldbuilding"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def description(self) -> str:
        return CRITERION_DESCRIPTIONS[self]


CRITERIA: tuple[Criterion, ...] = tuple(Criterion)

CRITERION_DESCRIPTIONS: dict[Criterion, str] = {
    Criterion.ENJOYMENT: "How much you enjoyed reading the book overall",
    Criterion.WRITING: "Quality of prose, style, and technical writing skill",
    Criterion.THEMES: "Depth and handling of the ideas the book explores",
    Criterion.CHARACTERS: "Development, depth, and believability of the characters",
    Criterion.WORLDBUILDING: "Richness and consistency of the setting",
}


def parse_criterion(value: Criterion | str) -> Criterion | None:
    """Map a criterion or its (case-insensitive) name to the enum, else None."""
    if isinstance(value, Criterion):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Criterion(value.strip().lower())
    except ValueError:
        return None
