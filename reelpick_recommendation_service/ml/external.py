"""Recommender backed by the external AI proposal service."""
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import List, Optional

from reelpick_recommendation_service.exceptions import (
    InsufficientSignalError,
    RequestCancelledError,
    UpstreamUnavailableError,
)
from reelpick_recommendation_service.ml.base import Recommender
from reelpick_recommendation_service.ml.entities import ScoredItem, ScoringContext, rank

logger = logging.getLogger(__name__)


class ExternalRecommender(Recommender):
    """
    Delegate ranking to an AI proposal client.

    The network call runs on a worker thread and is abandoned after
    `timeout` seconds. Any failure surfaces as UpstreamUnavailableError.
    """

    name = "ai"

    def __init__(self, client=None, timeout: float = 10.0, max_workers: int = 4):
        """
        Args:
            client: Object with propose(liked_items, catalog); None means unconfigured
            timeout: Seconds to wait for a proposal
            max_workers: Concurrent proposal calls allowed
        """
        self.client = client
        self.timeout = timeout
        self._executor: Optional[ThreadPoolExecutor] = None
        self._max_workers = max_workers

    @property
    def executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers, thread_name_prefix="ai-proposal"
            )
        return self._executor

    def shutdown(self):
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None

    def score(self, context: ScoringContext, limit: int) -> List[ScoredItem]:
        if self.client is None:
            raise UpstreamUnavailableError("AI proposal service is not configured")

        liked = context.snapshot.liked_items(context.subject_id)
        if not liked:
            raise InsufficientSignalError(f"Subject {context.subject_id} has no liked items")

        candidates = context.candidate_items()
        if not candidates:
            return []

        if context.is_cancelled:
            raise RequestCancelledError(
                f"Request for subject {context.subject_id} cancelled before AI call"
            )

        future = self.executor.submit(self.client.propose, liked, candidates)
        try:
            proposals = future.result(timeout=self.timeout)
        except FutureTimeoutError as e:
            future.cancel()
            raise UpstreamUnavailableError(
                f"AI proposal timed out after {self.timeout}s"
            ) from e
        except UpstreamUnavailableError:
            raise
        except Exception as e:
            raise UpstreamUnavailableError(f"AI proposal failed: {e}") from e

        # The service may propose items outside the candidate set
        allowed = [p for p in proposals if context.is_candidate(p.item)]
        return rank(allowed, limit)
