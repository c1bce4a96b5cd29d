"""Scoring strategies and the records they operate on"""

from .base import Recommender
from .collaborative import CollaborativeRecommender
from .content import ContentRecommender
from .entities import (
    CatalogSnapshot,
    Item,
    Rating,
    RatingVector,
    RecommendationFilters,
    ScoredItem,
    ScoringContext,
    Subject,
)
from .external import ExternalRecommender
from .hybrid import HybridRecommender
from .popularity import PopularityRanker
from .similarity_computer import SimilarityComputer

__all__ = [
    "CatalogSnapshot",
    "CollaborativeRecommender",
    "ContentRecommender",
    "ExternalRecommender",
    "HybridRecommender",
    "Item",
    "PopularityRanker",
    "Rating",
    "RatingVector",
    "RecommendationFilters",
    "Recommender",
    "ScoredItem",
    "ScoringContext",
    "SimilarityComputer",
    "Subject",
]
