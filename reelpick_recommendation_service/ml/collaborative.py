"""User-based collaborative filtering."""
import logging
from typing import Dict, List, Optional, Tuple

from reelpick_recommendation_service.exceptions import InsufficientSignalError
from reelpick_recommendation_service.ml.base import Recommender
from reelpick_recommendation_service.ml.entities import (
    MAX_RATING,
    ScoredItem,
    ScoringContext,
    rank,
)
from reelpick_recommendation_service.ml.similarity_computer import SimilarityComputer

logger = logging.getLogger(__name__)


class CollaborativeRecommender(Recommender):
    """
    Rank unseen items by similarity-weighted votes of the subject's nearest peers.

    A peer votes for the items it rated favorably (liked, strength >= 4) that
    the subject has not rated. The candidate's score is the average of
    strength x similarity over its voters, scaled by the maximum rating into [0, 1].
    """

    name = "collaborative"

    def __init__(
            self,
            similarity_computer: Optional[SimilarityComputer] = None,
            min_similarity: float = 0.3,
            max_neighbours: int = 10
    ):
        """
        Args:
            similarity_computer: Pearson similarity implementation
            min_similarity: Peers must be strictly above this to vote
            max_neighbours: Size of the neighbourhood
        """
        self.similarity_computer = similarity_computer or SimilarityComputer()
        self.min_similarity = min_similarity
        self.max_neighbours = max_neighbours

    def find_neighbours(self, context: ScoringContext) -> List[Tuple[str, float]]:
        """
        Find the subject's most similar peers.

        Returns:
            (subject_id, similarity) pairs, most similar first
        """
        snapshot = context.snapshot
        target = snapshot.known_rating_vector(context.subject_id)
        peer_ids = [s for s in snapshot.subject_ids if s != context.subject_id]
        if not peer_ids:
            return []

        matrix, item_index = self.similarity_computer.build_rating_matrix(
            snapshot.known_ratings, peer_ids
        )
        similarities = self.similarity_computer.compute_similarities(target, matrix, item_index)

        neighbours = [
            (peer_id, float(similarity))
            for peer_id, similarity in zip(peer_ids, similarities)
            if similarity > self.min_similarity
        ]
        neighbours.sort(key=lambda pair: (-pair[1], pair[0]))
        return neighbours[:self.max_neighbours]

    def score(self, context: ScoringContext, limit: int) -> List[ScoredItem]:
        snapshot = context.snapshot
        if not snapshot.known_ratings_for(context.subject_id):
            raise InsufficientSignalError(f"Subject {context.subject_id} has no ratings")

        neighbours = self.find_neighbours(context)
        if not neighbours:
            raise InsufficientSignalError(
                f"No peers above similarity {self.min_similarity} for subject {context.subject_id}"
            )
        logger.debug(f"Subject {context.subject_id}: {len(neighbours)} neighbours")

        votes: Dict[str, Dict[str, float]] = {}
        for peer_id, similarity in neighbours:
            for rating in snapshot.known_ratings_for(peer_id):
                if not rating.is_favorable or rating.item_id in context.rated_ids:
                    continue
                current = votes.setdefault(rating.item_id, {'score': 0.0, 'count': 0})
                current['score'] += rating.strength * similarity
                current['count'] += 1

        recommendations = []
        for item_id, vote in votes.items():
            item = snapshot.items_by_id[item_id]
            if not context.filters.accepts(item):
                continue

            count = int(vote['count'])
            average = vote['score'] / count
            recommendations.append(ScoredItem(
                item=item,
                score=min(1.0, average / MAX_RATING),
                reason=f"Recommended by {count} similar user{'s' if count > 1 else ''}",
            ))

        return rank(recommendations, limit)
