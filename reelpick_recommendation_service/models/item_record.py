"""Catalog items as stored by the catalog service."""
from datetime import UTC, datetime

from sqlalchemy import JSON, Column, DateTime, Float, Integer, String, Text

from reelpick_recommendation_service.models.base import Base


class ItemRecord(Base):
    """One catalog item. Tags are stored as a JSON list."""

    __tablename__ = "items"

    item_id = Column(String(64), primary_key=True)
    title = Column(String(255), nullable=False)
    tags = Column(JSON, nullable=True)
    year = Column(Integer, nullable=True)
    creator = Column(String(255), nullable=True)
    quality = Column(Float, nullable=True)
    runtime = Column(Integer, nullable=True)
    region = Column(String(100), nullable=True)
    language = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)

    synced_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    def __repr__(self):
        return f"<ItemRecord(item_id='{self.item_id}', title='{self.title}')>"
