"""Weighted fusion of collaborative and content-based rankings."""
import logging
import math
from typing import Dict, List, Optional

from reelpick_recommendation_service.exceptions import InsufficientSignalError
from reelpick_recommendation_service.ml.base import Recommender
from reelpick_recommendation_service.ml.collaborative import CollaborativeRecommender
from reelpick_recommendation_service.ml.content import ContentRecommender
from reelpick_recommendation_service.ml.entities import ScoredItem, ScoringContext, rank

logger = logging.getLogger(__name__)


class HybridRecommender(Recommender):
    """
    Blend collaborative and content-based rankings.

    An item found by only one source keeps that source's score times the
    source weight. An item found by both gets the weighted sum of the two
    scores, which always lies between the two raw scores.
    """

    name = "hybrid"

    def __init__(
            self,
            collaborative: Optional[CollaborativeRecommender] = None,
            content: Optional[ContentRecommender] = None,
            collaborative_weight: float = 0.6,
            content_weight: float = 0.4
    ):
        self.collaborative = collaborative or CollaborativeRecommender()
        self.content = content or ContentRecommender()

        total_weight = collaborative_weight + content_weight
        self.collaborative_weight = collaborative_weight / total_weight
        self.content_weight = content_weight / total_weight

    def _source_scores(
            self,
            recommender: Recommender,
            context: ScoringContext,
            limit: int
    ) -> List[ScoredItem]:
        """Run one source; a source without signal contributes nothing."""
        try:
            return recommender.score(context, limit)
        except InsufficientSignalError as e:
            logger.debug(f"Hybrid source {recommender.name} skipped: {e}")
            return []

    def fuse(
            self,
            collaborative: List[ScoredItem],
            content: List[ScoredItem],
            limit: int
    ) -> List[ScoredItem]:
        """
        Merge two ranked lists by item id.

        Args:
            collaborative: Collaborative ranking
            content: Content-based ranking
            limit: Maximum results

        Returns:
            Fused ranking
        """
        merged: Dict[str, ScoredItem] = {}
        collaborative_by_id = {s.item_id: s for s in collaborative}

        for scored in collaborative:
            merged[scored.item_id] = ScoredItem(
                item=scored.item,
                score=scored.score * self.collaborative_weight,
                reason=f"{scored.reason} (collaborative filtering)",
            )

        for scored in content:
            both = collaborative_by_id.get(scored.item_id)
            if both is not None:
                merged[scored.item_id] = ScoredItem(
                    item=scored.item,
                    score=both.score * self.collaborative_weight + scored.score * self.content_weight,
                    reason=f"{both.reason} + {scored.reason}",
                )
            else:
                merged[scored.item_id] = ScoredItem(
                    item=scored.item,
                    score=scored.score * self.content_weight,
                    reason=f"{scored.reason} (content-based)",
                )

        return rank(list(merged.values()), limit)

    def score(self, context: ScoringContext, limit: int) -> List[ScoredItem]:
        # Each source gets only its weighted share of the limit, so a single
        # surviving source returns at most ceil(limit * weight) items.
        collaborative = self._source_scores(
            self.collaborative, context, math.ceil(limit * self.collaborative_weight)
        )
        content = self._source_scores(
            self.content, context, math.ceil(limit * self.content_weight)
        )

        if not collaborative and not content:
            raise InsufficientSignalError(
                f"Neither source produced candidates for subject {context.subject_id}"
            )

        return self.fuse(collaborative, content, limit)
