"""Read-only records the scoring code works on."""
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from functools import cached_property
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

MAX_RATING = 5
FAVORABLE_MIN_RATING = 4


@dataclass(frozen=True)
class Item:
    """A catalog entry. Owned by the storage collaborator, immutable during scoring."""

    item_id: str
    title: str
    tags: Tuple[str, ...] = ()
    year: Optional[int] = None
    creator: Optional[str] = None
    quality: Optional[float] = None
    runtime: Optional[int] = None
    region: Optional[str] = None
    language: Optional[str] = None
    description: Optional[str] = None

    def has_tag(self, tag: str) -> bool:
        wanted = tag.strip().lower()
        return any(t.lower() == wanted for t in self.tags)

    def to_dict(self) -> Dict:
        return {
            'item_id': self.item_id,
            'title': self.title,
            'tags': list(self.tags),
            'year': self.year,
            'creator': self.creator,
            'quality': self.quality,
            'runtime': self.runtime,
            'region': self.region,
            'language': self.language,
        }


@dataclass(frozen=True)
class Subject:
    """A user recommendations are generated for."""

    subject_id: str
    username: Optional[str] = None


@dataclass(frozen=True)
class Rating:
    """One subject's rating of one item; unique per (subject_id, item_id)."""

    subject_id: str
    item_id: str
    strength: int
    liked: bool = False
    note: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_favorable(self) -> bool:
        """Liked and rated at least 4."""
        return self.liked and self.strength >= FAVORABLE_MIN_RATING


@dataclass(frozen=True)
class RatingVector:
    """A subject's ratings keyed by item id."""

    subject_id: str
    ratings: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_ratings(cls, subject_id: str, ratings: List[Rating]) -> 'RatingVector':
        return cls(
            subject_id=subject_id,
            ratings={r.item_id: r.strength for r in ratings if r.subject_id == subject_id},
        )

    def shared_items(self, other: 'RatingVector') -> List[str]:
        """Item ids rated by both vectors, sorted so iteration order is stable."""
        return sorted(self.ratings.keys() & other.ratings.keys())

    def __len__(self) -> int:
        return len(self.ratings)


@dataclass(frozen=True)
class ScoredItem:
    """An item with a ranking score in [0, 1] and a short justification."""

    item: Item
    score: float
    reason: str

    @property
    def item_id(self) -> str:
        return self.item.item_id

    def to_dict(self) -> Dict:
        return {
            'item': self.item.to_dict(),
            'score': round(self.score, 4),
            'reason': self.reason,
        }


def rank(scored: List[ScoredItem], limit: int) -> List[ScoredItem]:
    """Sort by score descending, break ties by item id, truncate to limit."""
    return sorted(scored, key=lambda s: (-s.score, s.item_id))[:limit]


@dataclass(frozen=True)
class RecommendationFilters:
    """Optional restrictions on which catalog items may be recommended."""

    genres: Tuple[str, ...] = ()
    min_year: Optional[int] = None
    max_year: Optional[int] = None

    def accepts(self, item: Item) -> bool:
        if self.genres and not any(item.has_tag(g) for g in self.genres):
            return False
        if self.min_year is not None and (item.year is None or item.year < self.min_year):
            return False
        if self.max_year is not None and (item.year is None or item.year > self.max_year):
            return False
        return True

    def cache_token(self) -> str:
        genres = ",".join(sorted(g.lower() for g in self.genres))
        return f"genres={genres};min_year={self.min_year};max_year={self.max_year}"


NO_FILTERS = RecommendationFilters()


@dataclass(frozen=True)
class CatalogSnapshot:
    """
    Consistent view of subjects, ratings and items for one scoring call.

    Built once per request from the storage collaborator and never mutated.
    """

    items: Tuple[Item, ...] = ()
    subjects: Tuple[Subject, ...] = ()
    ratings: Tuple[Rating, ...] = ()

    @classmethod
    def from_store(cls, store) -> 'CatalogSnapshot':
        """
        Read everything the recommenders need from a CatalogStore.

        Args:
            store: Object implementing the CatalogStore protocol

        Returns:
            Snapshot of the store's current contents
        """
        return cls(
            items=tuple(store.list_items()),
            subjects=tuple(store.list_subjects()),
            ratings=tuple(store.list_all_ratings()),
        )

    @cached_property
    def items_by_id(self) -> Dict[str, Item]:
        return {item.item_id: item for item in self.items}

    @cached_property
    def ratings_by_subject(self) -> Dict[str, List[Rating]]:
        grouped: Dict[str, List[Rating]] = {}
        for rating in self.ratings:
            grouped.setdefault(rating.subject_id, []).append(rating)
        return grouped

    @cached_property
    def known_ratings(self) -> List[Rating]:
        """Ratings whose item is in the catalog; each dangling rating is logged once."""
        known = []
        for rating in self.ratings:
            if rating.item_id not in self.items_by_id:
                logger.warning(
                    f"Rating by subject {rating.subject_id} references missing item {rating.item_id}, skipping"
                )
                continue
            known.append(rating)
        return known

    @cached_property
    def known_ratings_by_subject(self) -> Dict[str, List[Rating]]:
        grouped: Dict[str, List[Rating]] = {}
        for rating in self.known_ratings:
            grouped.setdefault(rating.subject_id, []).append(rating)
        return grouped

    @cached_property
    def subject_ids(self) -> List[str]:
        """Every known subject, including ones that only appear in ratings."""
        ids = {s.subject_id for s in self.subjects} | set(self.ratings_by_subject)
        return sorted(ids)

    def get_item(self, item_id: str) -> Optional[Item]:
        return self.items_by_id.get(item_id)

    def ratings_for(self, subject_id: str) -> List[Rating]:
        return self.ratings_by_subject.get(subject_id, [])

    def rating_vector(self, subject_id: str) -> RatingVector:
        return RatingVector.from_ratings(subject_id, self.ratings_for(subject_id))

    def known_ratings_for(self, subject_id: str) -> List[Rating]:
        return self.known_ratings_by_subject.get(subject_id, [])

    def known_rating_vector(self, subject_id: str) -> RatingVector:
        return RatingVector.from_ratings(subject_id, self.known_ratings_for(subject_id))

    def rated_item_ids(self, subject_id: str) -> set:
        return {r.item_id for r in self.ratings_for(subject_id)}

    def liked_item_ids(self, subject_id: str) -> List[str]:
        return sorted(r.item_id for r in self.ratings_for(subject_id) if r.is_favorable)

    def liked_items(self, subject_id: str) -> List[Item]:
        """Favorably-rated items present in the catalog; dangling ratings are skipped."""
        liked = [
            self.items_by_id[r.item_id]
            for r in self.known_ratings_for(subject_id)
            if r.is_favorable
        ]
        return sorted(liked, key=lambda item: item.item_id)


@dataclass
class ScoringContext:
    """Everything a recommender needs to score one request."""

    subject_id: str
    snapshot: CatalogSnapshot
    filters: RecommendationFilters = NO_FILTERS
    cancel_event: Optional[threading.Event] = None

    @cached_property
    def rated_ids(self) -> set:
        return self.snapshot.rated_item_ids(self.subject_id)

    @property
    def is_cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def candidate_items(self) -> List[Item]:
        """Catalog items the subject has not rated and that pass the filters."""
        return [item for item in self.snapshot.items if self.is_candidate(item)]

    def is_candidate(self, item: Item) -> bool:
        return item.item_id not in self.rated_ids and self.filters.accepts(item)
