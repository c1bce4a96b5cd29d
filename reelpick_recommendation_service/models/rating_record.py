"""Stores one subject's rating of one item."""

from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, Text

from reelpick_recommendation_service.models.base import Base


class RatingRecord(Base):
    """A rating. At most one per (subject_id, item_id).

    item_id is not a foreign key; ratings of deleted items are skipped by readers.
    """

    __tablename__ = "ratings"

    # Composite primary key enforces one rating per subject and item
    subject_id = Column(String(64), primary_key=True)
    item_id = Column(String(64), primary_key=True)

    strength = Column(Integer, nullable=False)  # 1-5
    liked = Column(Boolean, nullable=False, default=False)
    note = Column(Text, nullable=True)

    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    updated_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_rating_subject_id", "subject_id"),
        Index("idx_rating_item_id", "item_id"),
    )

    def __repr__(self):
        return (
            f"<RatingRecord(subject_id='{self.subject_id}', item_id='{self.item_id}', "
            f"strength={self.strength}, liked={self.liked})>"
        )
