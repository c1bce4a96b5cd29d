"""Service for personalized and category recommendations."""
import threading
from typing import List, Dict, Optional
import logging

from reelpick_recommendation_service.config import (
    get_ai_timeout,
    get_cache_ttl,
    get_max_recommendation_limit
)
from reelpick_recommendation_service.exceptions import InvalidRequestError
from reelpick_recommendation_service.ml.base import Recommender
from reelpick_recommendation_service.ml.collaborative import CollaborativeRecommender
from reelpick_recommendation_service.ml.content import ContentRecommender
from reelpick_recommendation_service.ml.entities import (
    NO_FILTERS,
    CatalogSnapshot,
    RecommendationFilters,
    ScoredItem,
    ScoringContext,
)
from reelpick_recommendation_service.ml.external import ExternalRecommender
from reelpick_recommendation_service.ml.hybrid import HybridRecommender
from reelpick_recommendation_service.ml.popularity import PopularityRanker
from reelpick_recommendation_service.services.fallback_policy import FallbackOutcome, FallbackPolicy
from reelpick_recommendation_service.services.result_cache import ResultCache

logger = logging.getLogger(__name__)


class RecommendationService:
    """
    Entry point for callers (e.g. an HTTP layer).

    Reads a fresh snapshot from the storage collaborator for every request,
    runs the requested strategy through the fallback policy and memoizes the
    outcome. Also acts as the MutationListener that keeps the cache honest.
    """

    def __init__(
            self,
            store,
            cache: Optional[ResultCache] = None,
            ai_client=None,
            collaborative: Optional[CollaborativeRecommender] = None,
            content: Optional[ContentRecommender] = None,
            popularity: Optional[PopularityRanker] = None,
            ai_timeout: Optional[float] = None,
            max_limit: Optional[int] = None
    ):
        """
        Initialize the recommendation service.

        Args:
            store: Storage collaborator implementing the CatalogStore protocol
            cache: Shared result cache (None disables caching)
            ai_client: External AI client with propose(); None leaves the AI strategy unconfigured
            collaborative: Collaborative recommender (default settings if None)
            content: Content recommender (default settings if None)
            popularity: Popularity ranker used for fallback and category slices
            ai_timeout: Seconds to wait for the AI client (from config if None)
            max_limit: Largest allowed limit (from config if None)
        """
        self.store = store
        self.cache = cache
        self.popularity = popularity or PopularityRanker()
        self.max_limit = max_limit if max_limit is not None else get_max_recommendation_limit()

        collaborative = collaborative or CollaborativeRecommender()
        content = content or ContentRecommender()
        self.external = ExternalRecommender(
            client=ai_client,
            timeout=ai_timeout if ai_timeout is not None else get_ai_timeout()
        )

        self.recommenders: Dict[str, Recommender] = {
            recommender.name: recommender
            for recommender in (
                collaborative,
                content,
                HybridRecommender(collaborative=collaborative, content=content),
                self.external,
            )
        }
        self.fallback_policy = FallbackPolicy(popularity=self.popularity)

        logger.info(
            f"Initialized RecommendationService (strategies: {', '.join(self.strategies)}, "
            f"cache: {'on' if cache is not None else 'off'}, "
            f"ai: {'configured' if ai_client is not None else 'not configured'})"
        )

    @property
    def strategies(self) -> List[str]:
        return sorted(self.recommenders)

    def _validate_limit(self, limit: int):
        if not isinstance(limit, int) or isinstance(limit, bool) or limit < 1:
            raise InvalidRequestError(f"limit must be a positive integer, got {limit!r}")
        if limit > self.max_limit:
            raise InvalidRequestError(f"limit must be at most {self.max_limit}, got {limit}")

    def _validate(self, strategy: str, limit: int, filters: RecommendationFilters):
        if strategy not in self.recommenders:
            raise InvalidRequestError(
                f"Unknown strategy {strategy!r}; expected one of {', '.join(self.strategies)}"
            )
        self._validate_limit(limit)
        if (
            filters.min_year is not None
            and filters.max_year is not None
            and filters.min_year > filters.max_year
        ):
            raise InvalidRequestError("min_year must not be greater than max_year")

    def _ttl_for(self, outcome: FallbackOutcome) -> float:
        return get_cache_ttl(outcome.source)

    def _compute(
            self,
            subject_id: str,
            strategy: str,
            limit: int,
            filters: RecommendationFilters,
            cancel_event: Optional[threading.Event]
    ) -> FallbackOutcome:
        snapshot = CatalogSnapshot.from_store(self.store)
        context = ScoringContext(
            subject_id=subject_id,
            snapshot=snapshot,
            filters=filters,
            cancel_event=cancel_event,
        )
        outcome = self.fallback_policy.resolve(strategy, self.recommenders, context, limit)
        logger.debug(
            f"Subject {subject_id}: {len(outcome.items)} items from {outcome.source} "
            f"({strategy} requested)"
        )
        return outcome

    def get_recommendations(
            self,
            subject_id: str,
            strategy: str = "hybrid",
            limit: int = 10,
            filters: Optional[RecommendationFilters] = None,
            cancel_event: Optional[threading.Event] = None
    ) -> List[ScoredItem]:
        """
        Get a ranked list of suggestions for a subject.

        Args:
            subject_id: Subject to recommend for
            strategy: One of 'collaborative', 'content', 'hybrid', 'ai'
            limit: Maximum number of results (1..max_limit)
            filters: Optional genre/year restrictions on the candidates
            cancel_event: Set by the caller to abandon the request before any network call

        Returns:
            Scored items, best first. Empty only when no catalog item qualifies.

        Raises:
            InvalidRequestError: unknown strategy, bad limit or inconsistent filters
            RequestCancelledError: cancel_event was set before the AI call
        """
        filters = filters or NO_FILTERS
        self._validate(strategy, limit, filters)

        def compute() -> FallbackOutcome:
            return self._compute(subject_id, strategy, limit, filters, cancel_event)

        if self.cache is None:
            return list(compute().items)

        liked_ids = [r.item_id for r in self.store.list_ratings_for(subject_id) if r.is_favorable]
        fingerprint = ResultCache.fingerprint(liked_ids, limit=limit, filters=filters.cache_token())
        outcome = self.cache.get_or_compute(subject_id, strategy, fingerprint, self._ttl_for, compute)
        return list(outcome.items)

    def get_category_recommendations(self, category: str, limit: int = 10) -> List[ScoredItem]:
        """
        Most popular catalog items carrying a tag. Not personalized.

        Args:
            category: Tag to slice by (case-insensitive)
            limit: Maximum number of results

        Returns:
            Scored items, best quality first; empty if nothing carries the tag
        """
        if not isinstance(category, str) or not category.strip():
            raise InvalidRequestError("category is required")
        self._validate_limit(limit)
        category = category.strip()

        def compute() -> List[ScoredItem]:
            return self.popularity.rank_category(self.store.list_items(), category, limit)

        if self.cache is None:
            return compute()

        items = self.cache.get_or_compute(
            f"category:{category.lower()}",
            self.popularity.name,
            str(limit),
            get_cache_ttl(self.popularity.name),
            compute,
        )
        return list(items)

    def on_item_changed(self, item_id: str) -> None:
        """An item was created, updated or deleted; any ranking may be affected."""
        logger.debug(f"Item {item_id} changed")
        if self.cache is not None:
            self.cache.invalidate_all()

    def on_rating_changed(self, subject_id: str) -> None:
        """One of the subject's ratings was created, updated or deleted."""
        logger.debug(f"Ratings of subject {subject_id} changed")
        if self.cache is not None:
            self.cache.invalidate_subject(subject_id)

    def get_stats(self) -> Dict:
        """Get statistics about the recommendation system."""
        return {
            'strategies': self.strategies,
            'ai_configured': self.external.client is not None,
            'cache': self.cache.get_stats() if self.cache is not None else None,
        }

    def close(self):
        self.external.shutdown()
