"""SQLAlchemy models"""

from reelpick_recommendation_service.models.base import Base
from reelpick_recommendation_service.models.item_record import ItemRecord
from reelpick_recommendation_service.models.rating_record import RatingRecord
from reelpick_recommendation_service.models.subject_record import SubjectRecord

__all__ = [
    "Base",
    "ItemRecord",
    "RatingRecord",
    "SubjectRecord",
]
