"""Non-personalized popularity ranking."""
from typing import Iterable, List

from reelpick_recommendation_service.ml.entities import Item, ScoredItem


class PopularityRanker:
    """
    Rank items by external quality score.

    Items without a quality score are left out of the general ranking. The
    top item scores start_score and each following rank loses step, floored at 0.
    """

    name = "popularity"

    def __init__(self, start_score: float = 0.8, step: float = 0.05):
        self.start_score = start_score
        self.step = step

    def _assign_scores(self, ordered: List[Item], reason: str, start: float) -> List[ScoredItem]:
        return [
            ScoredItem(item=item, score=max(0.0, start - position * self.step), reason=reason)
            for position, item in enumerate(ordered)
        ]

    def rank_items(
            self,
            items: Iterable[Item],
            limit: int,
            reason: str = "Popular highly-rated item",
            start_score: float | None = None
    ) -> List[ScoredItem]:
        """
        Args:
            items: Candidate items
            limit: Maximum results
            reason: Justification attached to every result
            start_score: Score of the first rank (defaults to self.start_score)

        Returns:
            Ranked items, best quality first, ties broken by item id
        """
        start = self.start_score if start_score is None else start_score
        rated = sorted(
            (item for item in items if item.quality is not None),
            key=lambda item: (-item.quality, item.item_id)
        )
        return self._assign_scores(rated[:limit], reason, start)

    def rank_category(self, items: Iterable[Item], category: str, limit: int) -> List[ScoredItem]:
        """
        Popularity ranking restricted to items tagged with category.

        Every tagged item is eligible. Unscored items follow the scored ones,
        newest first (unknown year last), ties broken by item id.
        """
        tagged = [item for item in items if item.has_tag(category)]
        scored = sorted(
            (item for item in tagged if item.quality is not None),
            key=lambda item: (-item.quality, item.item_id)
        )
        unscored = sorted(
            (item for item in tagged if item.quality is None),
            key=lambda item: (item.year is None, -(item.year or 0), item.item_id)
        )
        return self._assign_scores((scored + unscored)[:limit], f"Popular {category} item", 0.9)
