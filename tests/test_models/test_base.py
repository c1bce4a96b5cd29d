"""Unit tests for reelpick_recommendation_service.models.base."""
from sqlalchemy.orm import DeclarativeMeta

from reelpick_recommendation_service.models import ItemRecord, RatingRecord, SubjectRecord
from reelpick_recommendation_service.models.base import Base


class TestBase:
    """Tests for Base declarative base."""

    def test_base_is_declarative_base(self):
        """Test that Base is a declarative base."""
        # Assert
        assert hasattr(Base, 'metadata')
        assert hasattr(Base, 'registry')
        assert isinstance(Base, DeclarativeMeta)

    def test_base_metadata_has_catalog_tables(self):
        """Test that the record classes register their tables."""
        # Assert
        assert {'items', 'subjects', 'ratings'} <= set(Base.metadata.tables)

    def test_records_inherit_base(self):
        # Assert
        assert issubclass(ItemRecord, Base)
        assert issubclass(SubjectRecord, Base)
        assert issubclass(RatingRecord, Base)
