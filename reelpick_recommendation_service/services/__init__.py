"""Service classes"""

from .ai_client import AIProposalClient
from .fallback_policy import FallbackOutcome, FallbackPolicy
from .recommendation_service import RecommendationService
from .result_cache import ResultCache

__all__ = [
    "AIProposalClient",
    "FallbackOutcome",
    "FallbackPolicy",
    "RecommendationService",
    "ResultCache",
]
