"""Capability interface shared by all recommendation strategies."""

from abc import ABC, abstractmethod
from typing import List

from reelpick_recommendation_service.ml.entities import ScoredItem, ScoringContext


class Recommender(ABC):
    """A strategy that ranks catalog items for one subject."""

    name: str = ""

    @abstractmethod
    def score(self, context: ScoringContext, limit: int) -> List[ScoredItem]:
        """
        Rank candidate items for the subject in context.

        Raises:
            InsufficientSignalError: the strategy has nothing to work from
            UpstreamUnavailableError: a remote dependency could not be used
        """
