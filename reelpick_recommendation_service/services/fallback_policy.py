"""Decide which strategy answers a request when data is thin or upstreams fail."""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from reelpick_recommendation_service.exceptions import (
    InsufficientSignalError,
    UpstreamUnavailableError,
)
from reelpick_recommendation_service.ml.base import Recommender
from reelpick_recommendation_service.ml.entities import ScoredItem, ScoringContext
from reelpick_recommendation_service.ml.popularity import PopularityRanker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FallbackOutcome:
    """A ranking plus the name of the strategy that actually produced it."""

    items: List[ScoredItem]
    source: str
    requested: str

    @property
    def fell_back(self) -> bool:
        return self.source != self.requested


class FallbackPolicy:
    """
    Try strategies in order until one yields candidates.

    1. The requested strategy.
    2. Its substitute, if it has one (the AI strategy falls back to content).
    3. Popularity over the subject's unrated, filter-passing items.

    An empty catalog gives an empty list, never an error.
    """

    def __init__(
            self,
            popularity: Optional[PopularityRanker] = None,
            substitutes: Optional[Dict[str, str]] = None
    ):
        self.popularity = popularity or PopularityRanker()
        self.substitutes = {"ai": "content"} if substitutes is None else substitutes

    def resolve(
            self,
            strategy: str,
            registry: Dict[str, Recommender],
            context: ScoringContext,
            limit: int
    ) -> FallbackOutcome:
        """
        Produce a ranking for the requested strategy, falling back as needed.

        Args:
            strategy: Requested strategy name (must be in registry)
            registry: Strategy name to recommender lookup table
            context: Scoring context for the request
            limit: Maximum results

        Returns:
            FallbackOutcome with the ranking and the strategy that produced it
        """
        chain = [strategy]
        substitute = self.substitutes.get(strategy)
        if substitute is not None and substitute in registry:
            chain.append(substitute)

        for name in chain:
            try:
                items = registry[name].score(context, limit)
            except InsufficientSignalError as e:
                logger.debug(f"Strategy {name} lacks signal: {e}")
                continue
            except UpstreamUnavailableError as e:
                logger.warning(f"Strategy {name} unavailable, falling back: {e}")
                continue

            if items:
                return FallbackOutcome(items=items, source=name, requested=strategy)
            logger.debug(f"Strategy {name} produced no candidates")

        logger.info(f"Using popularity fallback for subject {context.subject_id} ({strategy} requested)")
        items = self.popularity.rank_items(context.candidate_items(), limit)
        return FallbackOutcome(items=items, source=self.popularity.name, requested=strategy)
