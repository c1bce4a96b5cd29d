"""Storage collaborator interface and an in-memory implementation."""

import logging
import threading
from typing import Protocol

from reelpick_recommendation_service.ml.entities import Item, Rating, Subject

logger = logging.getLogger(__name__)


class CatalogStore(Protocol):
    """Read access the recommendation engine needs from storage."""

    def list_subjects(self) -> list[Subject]: ...

    def list_ratings_for(self, subject_id: str) -> list[Rating]: ...

    def list_all_ratings(self) -> list[Rating]: ...

    def get_item(self, item_id: str) -> Item | None: ...

    def list_items(self, page: int | None = None, limit: int | None = None) -> list[Item]: ...


class MutationListener(Protocol):
    """Receives change notifications raised by a store."""

    def on_item_changed(self, item_id: str) -> None: ...

    def on_rating_changed(self, subject_id: str) -> None: ...


def paginate(items: list, page: int | None, limit: int | None) -> list:
    """Slice a list by 1-based page; no limit means everything."""
    if limit is None:
        return items
    if limit < 1:
        raise ValueError("limit must be positive")
    page = page or 1
    if page < 1:
        raise ValueError("page must be positive")
    start = (page - 1) * limit
    return items[start : start + limit]


def _check_strength(rating: Rating) -> None:
    if not 1 <= rating.strength <= 5:
        raise ValueError(f"Rating strength must be 1-5, got {rating.strength}")


class InMemoryCatalogStore:
    """
    Dict-backed CatalogStore for embedding the engine without a database.

    Mutations notify the optional listener the same way CatalogRepository does.
    """

    def __init__(
        self,
        items: list[Item] | None = None,
        ratings: list[Rating] | None = None,
        subjects: list[Subject] | None = None,
        listener: MutationListener | None = None,
    ):
        ratings = list(ratings or [])
        for rating in ratings:
            _check_strength(rating)
        self._lock = threading.Lock()
        self._items: dict[str, Item] = {item.item_id: item for item in items or []}
        self._ratings: dict[tuple[str, str], Rating] = {
            (r.subject_id, r.item_id): r for r in ratings
        }
        self._subjects: dict[str, Subject] = {s.subject_id: s for s in subjects or []}
        self.listener = listener

    def list_subjects(self) -> list[Subject]:
        with self._lock:
            return [self._subjects[k] for k in sorted(self._subjects)]

    def list_ratings_for(self, subject_id: str) -> list[Rating]:
        with self._lock:
            return [r for (s, _), r in sorted(self._ratings.items()) if s == subject_id]

    def list_all_ratings(self) -> list[Rating]:
        with self._lock:
            return [r for _, r in sorted(self._ratings.items())]

    def get_item(self, item_id: str) -> Item | None:
        with self._lock:
            return self._items.get(item_id)

    def list_items(self, page: int | None = None, limit: int | None = None) -> list[Item]:
        with self._lock:
            items = [self._items[k] for k in sorted(self._items)]
        return paginate(items, page, limit)

    def store_item(self, item: Item) -> Item:
        with self._lock:
            self._items[item.item_id] = item
        if self.listener is not None:
            self.listener.on_item_changed(item.item_id)
        return item

    def delete_item(self, item_id: str) -> bool:
        with self._lock:
            removed = self._items.pop(item_id, None) is not None
        if removed and self.listener is not None:
            self.listener.on_item_changed(item_id)
        return removed

    def store_subject(self, subject: Subject) -> Subject:
        with self._lock:
            self._subjects[subject.subject_id] = subject
        return subject

    def store_rating(self, rating: Rating) -> Rating:
        _check_strength(rating)
        with self._lock:
            self._ratings[(rating.subject_id, rating.item_id)] = rating
        if self.listener is not None:
            self.listener.on_rating_changed(rating.subject_id)
        return rating

    def delete_rating(self, subject_id: str, item_id: str) -> bool:
        with self._lock:
            removed = self._ratings.pop((subject_id, item_id), None) is not None
        if removed and self.listener is not None:
            self.listener.on_rating_changed(subject_id)
        return removed
