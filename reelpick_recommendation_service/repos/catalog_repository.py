"""Repository for catalog items, subjects and ratings."""

import logging
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from reelpick_recommendation_service.ml.entities import Item, Rating, Subject
from reelpick_recommendation_service.models import ItemRecord, RatingRecord, SubjectRecord
from reelpick_recommendation_service.repos.catalog_store import MutationListener

logger = logging.getLogger(__name__)


def _to_item(record: ItemRecord) -> Item:
    return Item(
        item_id=record.item_id,
        title=record.title,
        tags=tuple(record.tags or ()),
        year=record.year,
        creator=record.creator,
        quality=record.quality,
        runtime=record.runtime,
        region=record.region,
        language=record.language,
        description=record.description,
    )


def _to_rating(record: RatingRecord) -> Rating:
    return Rating(
        subject_id=record.subject_id,
        item_id=record.item_id,
        strength=record.strength,
        liked=bool(record.liked),
        note=record.note,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _apply_item(record: ItemRecord, item: Item) -> None:
    record.title = item.title  # type: ignore[assignment]
    record.tags = list(item.tags)  # type: ignore[assignment]
    record.year = item.year  # type: ignore[assignment]
    record.creator = item.creator  # type: ignore[assignment]
    record.quality = item.quality  # type: ignore[assignment]
    record.runtime = item.runtime  # type: ignore[assignment]
    record.region = item.region  # type: ignore[assignment]
    record.language = item.language  # type: ignore[assignment]
    record.description = item.description  # type: ignore[assignment]
    record.synced_at = datetime.now(UTC)  # type: ignore[assignment]


class CatalogRepository:
    """
    SQLAlchemy-backed CatalogStore.

    Every item mutation calls listener.on_item_changed and every rating
    mutation calls listener.on_rating_changed after the commit.
    """

    def __init__(self, db: Session, listener: MutationListener | None = None):
        self.db = db
        self.listener = listener

    def _item_changed(self, item_id: str) -> None:
        if self.listener is not None:
            self.listener.on_item_changed(item_id)

    def _rating_changed(self, subject_id: str) -> None:
        if self.listener is not None:
            self.listener.on_rating_changed(subject_id)

    # ===== READS =====

    # noinspection PyTypeChecker
    def list_subjects(self) -> list[Subject]:
        records = self.db.query(SubjectRecord).order_by(SubjectRecord.subject_id).all()
        return [Subject(subject_id=r.subject_id, username=r.username) for r in records]

    # noinspection PyTypeChecker
    def list_ratings_for(self, subject_id: str) -> list[Rating]:
        records = (
            self.db.query(RatingRecord)
            .filter(RatingRecord.subject_id == subject_id)
            .order_by(RatingRecord.item_id)
            .all()
        )
        return [_to_rating(r) for r in records]

    # noinspection PyTypeChecker
    def list_all_ratings(self) -> list[Rating]:
        records = (
            self.db.query(RatingRecord)
            .order_by(RatingRecord.subject_id, RatingRecord.item_id)
            .all()
        )
        return [_to_rating(r) for r in records]

    def get_item(self, item_id: str) -> Item | None:
        record = self.db.query(ItemRecord).filter(ItemRecord.item_id == item_id).first()
        return _to_item(record) if record else None

    # noinspection PyTypeChecker
    def list_items(self, page: int | None = None, limit: int | None = None) -> list[Item]:
        """
        List catalog items ordered by id.

        Args:
            page: 1-based page number (default 1 when limit is given)
            limit: Page size; None returns every item

        Returns:
            Items on the requested page
        """
        query = self.db.query(ItemRecord).order_by(ItemRecord.item_id)
        if limit is not None:
            if limit < 1 or (page is not None and page < 1):
                raise ValueError("page and limit must be positive")
            query = query.offset(((page or 1) - 1) * limit).limit(limit)
        return [_to_item(r) for r in query.all()]

    def count_items(self) -> int:
        return self.db.query(ItemRecord).count()

    # ===== ITEM MUTATIONS =====

    def store_item(self, item: Item) -> Item:
        """
        Insert or update an item.

        Args:
            item: Item to store

        Returns:
            The stored item
        """
        record = self.db.query(ItemRecord).filter(ItemRecord.item_id == item.item_id).first()
        if record is None:
            record = ItemRecord(item_id=item.item_id)
            self.db.add(record)
        _apply_item(record, item)

        self.db.commit()
        self._item_changed(item.item_id)
        return item

    def bulk_store_items(self, items: list[Item], batch_size: int = 100) -> int:
        """
        Insert or update many items, committing in batches.

        Args:
            items: Items to store
            batch_size: Items per commit

        Returns:
            Number of items stored
        """
        count = 0
        for i in range(0, len(items), batch_size):
            batch = items[i : i + batch_size]
            for item in batch:
                record = self.db.get(ItemRecord, item.item_id)
                if record is None:
                    record = ItemRecord(item_id=item.item_id)
                    self.db.add(record)
                _apply_item(record, item)
            self.db.commit()
            count += len(batch)

        if count:
            # Listeners drop every ranking on any item change
            self._item_changed(items[-1].item_id)
        logger.info(f"✓ Stored {count} items")
        return count

    def delete_item(self, item_id: str) -> bool:
        """
        Delete an item. Ratings that reference it are kept.

        Returns:
            True if deleted, False if not found
        """
        count = self.db.query(ItemRecord).filter(ItemRecord.item_id == item_id).delete()
        self.db.commit()

        if count > 0:
            self._item_changed(item_id)
        return count > 0

    # ===== SUBJECTS =====

    def store_subject(self, subject: Subject) -> Subject:
        record = self.db.get(SubjectRecord, subject.subject_id)
        if record is None:
            record = SubjectRecord(subject_id=subject.subject_id)
            self.db.add(record)
        record.username = subject.username  # type: ignore[assignment]
        self.db.commit()
        return subject

    # ===== RATING MUTATIONS =====

    def store_rating(self, rating: Rating) -> Rating:
        """
        Create a rating, or update the existing one for the same subject and item.

        Args:
            rating: Rating to store (strength 1-5)

        Returns:
            The stored rating with its timestamps
        """
        if not 1 <= rating.strength <= 5:
            raise ValueError(f"Rating strength must be 1-5, got {rating.strength}")

        record = self.db.get(RatingRecord, (rating.subject_id, rating.item_id))
        if record is None:
            record = RatingRecord(
                subject_id=rating.subject_id,
                item_id=rating.item_id,
                created_at=rating.created_at or datetime.now(UTC),
            )
            self.db.add(record)
        else:
            record.updated_at = datetime.now(UTC)  # type: ignore[assignment]

        record.strength = rating.strength  # type: ignore[assignment]
        record.liked = rating.liked  # type: ignore[assignment]
        record.note = rating.note  # type: ignore[assignment]

        self.db.commit()
        self.db.refresh(record)
        self._rating_changed(rating.subject_id)
        return _to_rating(record)

    def delete_rating(self, subject_id: str, item_id: str) -> bool:
        count = (
            self.db.query(RatingRecord)
            .filter(RatingRecord.subject_id == subject_id, RatingRecord.item_id == item_id)
            .delete()
        )
        self.db.commit()

        if count > 0:
            self._rating_changed(subject_id)
        return count > 0
