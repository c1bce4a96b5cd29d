"""Client for the external AI proposal service"""
from typing import List, Dict, Optional
import logging
import requests

from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from reelpick_recommendation_service.config import (
    get_ai_service_url,
    get_ai_service_api_key,
    get_ai_timeout
)
from reelpick_recommendation_service.exceptions import UpstreamUnavailableError
from reelpick_recommendation_service.ml.entities import Item, ScoredItem

logger = logging.getLogger(__name__)

DEFAULT_AI_REASON = "AI recommended based on your preferences"


class AIProposalClient:
    """Asks an external AI service to propose items from a candidate list."""

    def __init__(
            self,
            base_url: str,
            api_key: Optional[str] = None,
            timeout: float = 10.0,
            min_score: float = 0.1,
            max_score: float = 1.0
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.min_score = min_score
        self.max_score = max_score

        # Configure session with retries
        self.session = requests.Session()
        retry_strategy = Retry(
            total=2,
            backoff_factor=0.5,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["POST"]
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        # noinspection HttpUrlsUsage
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)
        if api_key:
            self.session.headers['Authorization'] = f"Bearer {api_key}"

    @classmethod
    def from_config(cls) -> Optional['AIProposalClient']:
        """
        Build a client from configuration.

        Returns:
            Client, or None when AI_SERVICE_URL is not set
        """
        base_url = get_ai_service_url()
        if not base_url:
            logger.info("AI_SERVICE_URL not configured, AI strategy disabled")
            return None
        return cls(base_url, api_key=get_ai_service_api_key(), timeout=get_ai_timeout())

    def _parse_proposals(self, payload: Dict, catalog: List[Item]) -> List[ScoredItem]:
        """Turn the service's JSON into scored catalog items, dropping unknown ids."""
        items_by_id = {item.item_id: item for item in catalog}
        proposals = []

        for entry in payload.get('recommendations', []):
            item = items_by_id.get(str(entry.get('item_id', '')))
            if item is None:
                continue
            try:
                raw_score = float(entry.get('score') or 0.5)
            except (TypeError, ValueError):
                raw_score = 0.5
            proposals.append(ScoredItem(
                item=item,
                score=max(self.min_score, min(self.max_score, raw_score)),
                reason=entry.get('reason') or DEFAULT_AI_REASON,
            ))

        return proposals

    def propose(self, liked_items: List[Item], catalog: List[Item]) -> List[ScoredItem]:
        """
        Request proposals for a subject.

        Args:
            liked_items: The subject's favorably-rated items
            catalog: Items the service may choose from

        Returns:
            Proposed items with scores clamped to [min_score, max_score]

        Raises:
            UpstreamUnavailableError: transport failure or malformed response
        """
        url = f"{self.base_url}/propose"
        body = {
            'liked_items': [item.to_dict() for item in liked_items],
            'candidates': [item.to_dict() for item in catalog],
        }

        try:
            response = self.session.post(url, json=body, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            raise UpstreamUnavailableError(f"AI proposal request failed: {e}") from e
        except ValueError as e:
            raise UpstreamUnavailableError(f"AI proposal response is not JSON: {e}") from e

        if not isinstance(payload, dict):
            raise UpstreamUnavailableError("AI proposal response has unexpected shape")

        proposals = self._parse_proposals(payload, catalog)
        logger.debug(f"AI service proposed {len(proposals)} items")
        return proposals
