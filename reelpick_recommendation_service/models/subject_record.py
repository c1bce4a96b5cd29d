"""Subjects (users) that ratings belong to."""
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, String

from reelpick_recommendation_service.models.base import Base


class SubjectRecord(Base):
    __tablename__ = "subjects"

    subject_id = Column(String(64), primary_key=True)
    username = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    def __repr__(self):
        return f"<SubjectRecord(subject_id='{self.subject_id}', username='{self.username}')>"
