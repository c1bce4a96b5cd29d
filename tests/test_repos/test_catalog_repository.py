"""Unit tests for reelpick_recommendation_service.repos.catalog_repository."""
import pytest

from reelpick_recommendation_service.ml.entities import Item, Rating, Subject
from reelpick_recommendation_service.models import ItemRecord, RatingRecord
from reelpick_recommendation_service.repos.catalog_repository import CatalogRepository


@pytest.fixture
def catalog_repository(test_db_session, mock_listener):
    """Create CatalogRepository with test database session."""
    return CatalogRepository(test_db_session, listener=mock_listener)


@pytest.fixture
def seeded_repository(catalog_repository, sample_items, sample_subjects, sample_ratings, mock_listener):
    """Repository holding the sample catalog, with listener calls reset."""
    catalog_repository.bulk_store_items(sample_items)
    for subject in sample_subjects:
        catalog_repository.store_subject(subject)
    for rating in sample_ratings:
        catalog_repository.store_rating(rating)
    mock_listener.reset_mock()
    return catalog_repository


class TestCatalogRepositoryInit:
    """Tests for CatalogRepository initialization."""

    def test_init_with_session(self, test_db_session):
        """Test initialization with database session."""
        # Act
        repo = CatalogRepository(test_db_session)

        # Assert
        assert repo.db == test_db_session
        assert repo.listener is None


class TestItems:
    """Tests for item reads and writes."""

    def test_store_item_creates_record(self, catalog_repository, test_db_session, mock_listener):
        # Arrange
        item = Item(item_id='m1', title='The Matrix', tags=('action', 'sci-fi'), year=1999, quality=8.7)

        # Act
        catalog_repository.store_item(item)

        # Assert
        record = test_db_session.get(ItemRecord, 'm1')
        assert record.title == 'The Matrix'
        assert record.tags == ['action', 'sci-fi']
        mock_listener.on_item_changed.assert_called_once_with('m1')

    def test_store_item_updates_existing(self, catalog_repository, test_db_session):
        # Arrange
        catalog_repository.store_item(Item(item_id='m1', title='Old'))

        # Act
        catalog_repository.store_item(Item(item_id='m1', title='New', quality=7.0))

        # Assert
        assert test_db_session.query(ItemRecord).count() == 1
        assert catalog_repository.get_item('m1') == Item(item_id='m1', title='New', quality=7.0)

    def test_get_item_not_found(self, catalog_repository):
        # Act & Assert
        assert catalog_repository.get_item('missing') is None

    def test_get_item_round_trip(self, seeded_repository, sample_items):
        # Act
        item = seeded_repository.get_item('m2')

        # Assert
        assert item == sample_items[1]

    def test_bulk_store_notifies_once(self, catalog_repository, sample_items, mock_listener):
        # Act
        count = catalog_repository.bulk_store_items(sample_items, batch_size=3)

        # Assert
        assert count == 7
        assert catalog_repository.count_items() == 7
        mock_listener.on_item_changed.assert_called_once()

    def test_bulk_store_empty(self, catalog_repository, mock_listener):
        # Act
        count = catalog_repository.bulk_store_items([])

        # Assert
        assert count == 0
        mock_listener.on_item_changed.assert_not_called()

    def test_list_items_sorted_and_paginated(self, seeded_repository):
        # Act
        everything = seeded_repository.list_items()
        page_two = seeded_repository.list_items(page=2, limit=3)

        # Assert
        assert [i.item_id for i in everything] == ['m1', 'm2', 'm3', 'm4', 'm5', 'm6', 'm7']
        assert [i.item_id for i in page_two] == ['m4', 'm5', 'm6']

    @pytest.mark.parametrize("page,limit", [(1, 0), (0, 5)])
    def test_list_items_rejects_bad_paging(self, seeded_repository, page, limit):
        # Act & Assert
        with pytest.raises(ValueError):
            seeded_repository.list_items(page=page, limit=limit)

    def test_delete_item(self, seeded_repository, mock_listener):
        # Act
        deleted = seeded_repository.delete_item('m7')

        # Assert
        assert deleted is True
        assert seeded_repository.get_item('m7') is None
        mock_listener.on_item_changed.assert_called_once_with('m7')

    def test_delete_item_not_found(self, seeded_repository, mock_listener):
        # Act
        deleted = seeded_repository.delete_item('missing')

        # Assert
        assert deleted is False
        mock_listener.on_item_changed.assert_not_called()


class TestSubjects:
    """Tests for subject methods."""

    def test_list_subjects(self, seeded_repository):
        # Act
        subjects = seeded_repository.list_subjects()

        # Assert
        assert [s.subject_id for s in subjects] == ['alice', 'bob', 'carol', 'dave']

    def test_store_subject_updates_username(self, catalog_repository):
        # Arrange
        catalog_repository.store_subject(Subject(subject_id='alice'))

        # Act
        catalog_repository.store_subject(Subject(subject_id='alice', username='Alice'))

        # Assert
        assert catalog_repository.list_subjects() == [Subject(subject_id='alice', username='Alice')]


class TestRatings:
    """Tests for rating reads and writes."""

    def test_list_ratings_for(self, seeded_repository):
        # Act
        ratings = seeded_repository.list_ratings_for('alice')

        # Assert
        assert [(r.item_id, r.strength, r.liked) for r in ratings] == [
            ('m1', 5, True), ('m2', 4, True), ('m5', 2, False)
        ]
        assert all(r.created_at is not None for r in ratings)

    def test_list_all_ratings(self, seeded_repository, sample_ratings):
        # Act
        ratings = seeded_repository.list_all_ratings()

        # Assert
        assert len(ratings) == len(sample_ratings)
        assert [r.subject_id for r in ratings] == sorted(r.subject_id for r in ratings)

    def test_store_rating_notifies_subject(self, catalog_repository, mock_listener):
        # Act
        stored = catalog_repository.store_rating(Rating(subject_id='alice', item_id='m1', strength=4, liked=True))

        # Assert
        assert stored.is_favorable
        assert stored.updated_at is None
        mock_listener.on_rating_changed.assert_called_once_with('alice')

    def test_store_rating_updates_existing(self, seeded_repository, test_db_session):
        # Act
        stored = seeded_repository.store_rating(
            Rating(subject_id='alice', item_id='m1', strength=2, liked=False, note='rewatched')
        )

        # Assert
        assert stored.strength == 2
        assert stored.note == 'rewatched'
        assert stored.updated_at is not None
        assert test_db_session.query(RatingRecord).filter_by(subject_id='alice').count() == 3

    @pytest.mark.parametrize("strength", [0, 6])
    def test_store_rating_rejects_out_of_range(self, catalog_repository, mock_listener, strength):
        # Act & Assert
        with pytest.raises(ValueError):
            catalog_repository.store_rating(Rating(subject_id='alice', item_id='m1', strength=strength))
        mock_listener.on_rating_changed.assert_not_called()

    def test_delete_rating(self, seeded_repository, mock_listener):
        # Act
        deleted = seeded_repository.delete_rating('alice', 'm5')

        # Assert
        assert deleted is True
        assert [r.item_id for r in seeded_repository.list_ratings_for('alice')] == ['m1', 'm2']
        mock_listener.on_rating_changed.assert_called_once_with('alice')

    def test_delete_rating_not_found(self, seeded_repository, mock_listener):
        # Act & Assert
        assert seeded_repository.delete_rating('alice', 'm9') is False
        mock_listener.on_rating_changed.assert_not_called()
