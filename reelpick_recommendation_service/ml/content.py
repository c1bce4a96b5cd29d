"""Content-based scoring against a subject's liked items."""
import numpy as np
from typing import List
from sklearn.preprocessing import MultiLabelBinarizer  # type: ignore
import logging

from reelpick_recommendation_service.exceptions import InsufficientSignalError
from reelpick_recommendation_service.ml.base import Recommender
from reelpick_recommendation_service.ml.entities import Item, ScoredItem, ScoringContext, rank

logger = logging.getLogger(__name__)


# noinspection PyMethodMayBeStatic
class ContentRecommender(Recommender):
    """
    Rank unseen items by attribute similarity to the subject's liked items.

    Per (candidate, liked item) pair the score adds up:
    - tag overlap (Jaccard) x tag_weight
    - creator_bonus when both creators are set and equal
    - near_era_bonus within near_era_years, else far_era_bonus within far_era_years
    - quality_bonus when both quality scores are set and within quality_tolerance

    The candidate's score is the mean over all liked items.
    """

    name = "content"

    def __init__(
        self,
        tag_weight: float = 0.5,
        creator_bonus: float = 0.2,
        near_era_bonus: float = 0.15,
        far_era_bonus: float = 0.10,
        quality_bonus: float = 0.15,
        near_era_years: int = 5,
        far_era_years: int = 15,
        quality_tolerance: float = 1.0
    ):
        self.tag_weight = tag_weight
        self.creator_bonus = creator_bonus
        self.near_era_bonus = near_era_bonus
        self.far_era_bonus = far_era_bonus
        self.quality_bonus = quality_bonus
        self.near_era_years = near_era_years
        self.far_era_years = far_era_years
        self.quality_tolerance = quality_tolerance

    def compute_tag_overlap(self, candidates: List[Item], liked: List[Item]) -> np.ndarray:
        """
        Jaccard overlap of tag sets for every (candidate, liked) pair.

        Returns:
            Matrix (n_candidates x n_liked); pairs where both tag sets are empty are 0
        """
        encoder = MultiLabelBinarizer()
        encoder.fit([set(i.tags) for i in candidates] + [set(i.tags) for i in liked])
        candidate_tags = encoder.transform([set(i.tags) for i in candidates]).astype(float)
        liked_tags = encoder.transform([set(i.tags) for i in liked]).astype(float)

        intersection = candidate_tags @ liked_tags.T
        union = (
            candidate_tags.sum(axis=1)[:, np.newaxis]
            + liked_tags.sum(axis=1)[np.newaxis, :]
            - intersection
        )
        overlap = np.zeros_like(intersection)
        np.divide(intersection, union, out=overlap, where=union > 0)
        return overlap

    def compute_creator_match(self, candidates: List[Item], liked: List[Item]) -> np.ndarray:
        candidate_creators = np.array([i.creator or "" for i in candidates], dtype=object)
        liked_creators = np.array([i.creator or "" for i in liked], dtype=object)
        same = candidate_creators[:, np.newaxis] == liked_creators[np.newaxis, :]
        present = (candidate_creators != "")[:, np.newaxis] & (liked_creators != "")[np.newaxis, :]
        return (same & present).astype(float)

    def compute_era_proximity(self, candidates: List[Item], liked: List[Item]) -> np.ndarray:
        candidate_years = np.array([np.nan if i.year is None else i.year for i in candidates], dtype=float)
        liked_years = np.array([np.nan if i.year is None else i.year for i in liked], dtype=float)
        gap = np.abs(candidate_years[:, np.newaxis] - liked_years[np.newaxis, :])

        with np.errstate(invalid='ignore'):
            return np.where(
                gap <= self.near_era_years,
                self.near_era_bonus,
                np.where(gap <= self.far_era_years, self.far_era_bonus, 0.0)
            )

    def compute_quality_proximity(self, candidates: List[Item], liked: List[Item]) -> np.ndarray:
        candidate_quality = np.array([np.nan if i.quality is None else i.quality for i in candidates], dtype=float)
        liked_quality = np.array([np.nan if i.quality is None else i.quality for i in liked], dtype=float)
        gap = np.abs(candidate_quality[:, np.newaxis] - liked_quality[np.newaxis, :])

        with np.errstate(invalid='ignore'):
            return (gap <= self.quality_tolerance).astype(float)

    def compute_scores(self, candidates: List[Item], liked: List[Item]) -> np.ndarray:
        """
        Content score of each candidate averaged over the liked items.

        Args:
            candidates: Items to score
            liked: The subject's favorably-rated items (non-empty)

        Returns:
            Array of scores aligned with candidates
        """
        pair_scores = (
            self.tag_weight * self.compute_tag_overlap(candidates, liked)
            + self.creator_bonus * self.compute_creator_match(candidates, liked)
            + self.compute_era_proximity(candidates, liked)
            + self.quality_bonus * self.compute_quality_proximity(candidates, liked)
        )
        return np.clip(pair_scores.mean(axis=1), 0.0, 1.0)

    def explain(self, candidate: Item, liked: List[Item]) -> str:
        """Describe which signals tie the candidate to the liked items."""
        reasons = []

        liked_tags = {tag for item in liked for tag in item.tags}
        common_tags = [tag for tag in candidate.tags if tag in liked_tags]
        if common_tags:
            suffix = "s" if len(common_tags) > 1 else ""
            reasons.append(f"shares {', '.join(common_tags)} genre{suffix}")

        if candidate.creator and any(item.creator == candidate.creator for item in liked):
            reasons.append("same creator as liked items")

        if reasons:
            return f"Recommended because it {' and '.join(reasons)}"
        return "Similar to your preferences"

    def score(self, context: ScoringContext, limit: int) -> List[ScoredItem]:
        liked = context.snapshot.liked_items(context.subject_id)
        if not liked:
            raise InsufficientSignalError(f"Subject {context.subject_id} has no liked items")

        candidates = context.candidate_items()
        if not candidates:
            return []

        scores = self.compute_scores(candidates, liked)
        logger.debug(
            f"Scored {len(candidates)} candidates against {len(liked)} liked items "
            f"for subject {context.subject_id}"
        )

        # Justifications are built for the returned items only
        ranked = rank(
            [ScoredItem(item=item, score=float(score), reason="") for item, score in zip(candidates, scores)],
            limit
        )
        return [
            ScoredItem(item=s.item, score=s.score, reason=self.explain(s.item, liked))
            for s in ranked
        ]
