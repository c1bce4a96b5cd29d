"""Repository classes"""

from reelpick_recommendation_service.repos.catalog_repository import CatalogRepository
from reelpick_recommendation_service.repos.catalog_store import (
    CatalogStore,
    InMemoryCatalogStore,
    MutationListener,
)

__all__ = [
    "CatalogRepository",
    "CatalogStore",
    "InMemoryCatalogStore",
    "MutationListener",
]
