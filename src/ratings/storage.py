"""Storage ports for ratings and weight preferences, plus in-memory adapters.

The engine only ever talks to the abstract repositories.  The in-memory
implementations back the tests and the workbench UI.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from itertools import count

from src.ratings.models import EntityId, Rating, StoredPreferences

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class IRatingRepository(ABC):

    @abstractmethod
    def get_by_book(self, book_id: EntityId) -> list[Rating]:
        pass

    @abstractmethod
    def get_by_author(self, author_id: EntityId) -> list[Rating]:
        """All ratings across every book by the author."""
        pass

    @abstractmethod
    def get_by_user_and_book(
        self, user_id: EntityId, book_id: EntityId,
    ) -> Rating | None:
        pass

    @abstractmethod
    def save(self, rating: Rating) -> Rating:
        """Insert, or replace the reviewer's existing rating of the same book."""
        pass

    @abstractmethod
    def delete(self, rating_id: EntityId) -> bool:
        pass


class IPreferenceRepository(ABC):

    @abstractmethod
    def get(self, user_id: EntityId) -> StoredPreferences | None:
        pass

    @abstractmethod
    def upsert_default(
        self, user_id: EntityId, defaults: StoredPreferences,
    ) -> StoredPreferences:
        """Store ``defaults`` unless a row for the user already exists.

        Must be idempotent under concurrent callers: exactly one row per
        user afterwards.  Returns whichever row won.
        """
        pass

    @abstractmethod
    def save(self, preferences: StoredPreferences) -> StoredPreferences:
        pass


# ---------------------------------------------------------------------------
# In-memory adapters
# ---------------------------------------------------------------------------

class InMemoryRatingRepository(IRatingRepository):

    def __init__(self, ratings: list[Rating] | None = None):
        self._lock = threading.Lock()
        self._ratings: dict[EntityId, Rating] = {}
        self._ids = count(1)
        for rating in ratings or []:
            self.save(rating)

    def __len__(self) -> int:
        return len(self._ratings)

    def _snapshot(self) -> list[Rating]:
        with self._lock:
            return list(self._ratings.values())

    def get_by_book(self, book_id: EntityId) -> list[Rating]:
        return [r for r in self._snapshot() if r.book_id == book_id]

    def get_by_author(self, author_id: EntityId) -> list[Rating]:
        return [r for r in self._snapshot() if r.author_id == author_id]

    def get_by_user_and_book(
        self, user_id: EntityId, book_id: EntityId,
    ) -> Rating | None:
        return self._find(self._snapshot(), user_id, book_id)

    @staticmethod
    def _find(
        ratings: list[Rating], user_id: EntityId, book_id: EntityId,
    ) -> Rating | None:
        for r in ratings:
            if r.user_id == user_id and r.book_id == book_id:
                return r
        return None

    def save(self, rating: Rating) -> Rating:
        with self._lock:
            existing = None
            if rating.user_id is not None and rating.book_id is not None:
                existing = self._find(
                    list(self._ratings.values()), rating.user_id, rating.book_id,
                )

            now = _now()
            if existing is not None:
                stored = rating.model_copy(update={
                    "id": existing.id,
                    "created_at": existing.created_at,
                    "updated_at": now,
                })
                logger.debug(
                    "Replaced rating %s (user=%s book=%s)",
                    existing.id, rating.user_id, rating.book_id,
                )
            else:
                stored = rating.model_copy(update={
                    "id": rating.id if rating.id is not None else next(self._ids),
                    "created_at": rating.created_at or now,
                    "updated_at": rating.updated_at or now,
                })
            self._ratings[stored.id] = stored
            return stored

    def delete(self, rating_id: EntityId) -> bool:
        with self._lock:
            return self._ratings.pop(rating_id, None) is not None


class InMemoryPreferenceRepository(IPreferenceRepository):

    def __init__(self):
        self._lock = threading.Lock()
        self._rows: dict[EntityId, StoredPreferences] = {}

    def __len__(self) -> int:
        return len(self._rows)

    def get(self, user_id: EntityId) -> StoredPreferences | None:
        return self._rows.get(user_id)

    def upsert_default(
        self, user_id: EntityId, defaults: StoredPreferences,
    ) -> StoredPreferences:
        with self._lock:
            current = self._rows.get(user_id)
            if current is not None:
                return current
            row = defaults.model_copy(
                update={"user_id": user_id, "updated_at": _now()},
            )
            self._rows[user_id] = row
            logger.info("Created default rating preferences for user %s", user_id)
            return row

    def save(self, preferences: StoredPreferences) -> StoredPreferences:
        with self._lock:
            row = preferences.model_copy(update={"updated_at": _now()})
            self._rows[row.user_id] = row
            return row
