"""Shared test fixtures and configuration for pytest."""
import json
from pathlib import Path
from typing import List
from unittest.mock import Mock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from reelpick_recommendation_service.ml.entities import (
    CatalogSnapshot,
    Item,
    Rating,
    ScoringContext,
    Subject,
)
from reelpick_recommendation_service.models.base import Base
from reelpick_recommendation_service.repos.catalog_store import InMemoryCatalogStore


# ===== Database Fixtures =====

@pytest.fixture(scope="function")
def test_db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def test_db_session(test_db_engine):
    """Create a database session for testing."""
    SessionLocal = sessionmaker(bind=test_db_engine)
    session = SessionLocal()
    yield session
    session.close()


# ===== Sample Data Fixtures =====

@pytest.fixture
def sample_items() -> List[Item]:
    """
    Seven catalog items.

    m7 has no quality score, so only the category slice includes it.
    """
    return [
        Item(item_id='m1', title='The Matrix', tags=('action', 'sci-fi'),
             year=1999, creator='Wachowski', quality=8.7),
        Item(item_id='m2', title='Inception', tags=('action', 'sci-fi', 'thriller'),
             year=2010, creator='Nolan', quality=8.8),
        Item(item_id='m3', title='Interstellar', tags=('sci-fi', 'drama'),
             year=2014, creator='Nolan', quality=8.6),
        Item(item_id='m4', title='The Dark Knight', tags=('action', 'crime', 'drama'),
             year=2008, creator='Nolan', quality=9.0),
        Item(item_id='m5', title='Toy Story', tags=('animation', 'comedy'),
             year=1995, creator='Lasseter', quality=8.3),
        Item(item_id='m6', title='Heat', tags=('action', 'crime'),
             year=1995, creator='Mann', quality=8.3),
        Item(item_id='m7', title='Tenet', tags=('action', 'sci-fi'),
             year=2020, creator='Nolan', quality=None),
    ]


@pytest.fixture
def sample_subjects() -> List[Subject]:
    """alice and bob agree, carol disagrees with both, dave has rated nothing."""
    return [
        Subject(subject_id='alice', username='alice'),
        Subject(subject_id='bob', username='bob'),
        Subject(subject_id='carol', username='carol'),
        Subject(subject_id='dave', username='dave'),
    ]


@pytest.fixture
def sample_ratings() -> List[Rating]:
    """Ratings where alice and bob correlate at ~0.996 over m1, m2, m5."""
    return [
        Rating(subject_id='alice', item_id='m1', strength=5, liked=True),
        Rating(subject_id='alice', item_id='m2', strength=4, liked=True),
        Rating(subject_id='alice', item_id='m5', strength=2, liked=False),
        Rating(subject_id='bob', item_id='m1', strength=5, liked=True),
        Rating(subject_id='bob', item_id='m2', strength=4, liked=True),
        Rating(subject_id='bob', item_id='m5', strength=1, liked=False),
        Rating(subject_id='bob', item_id='m3', strength=5, liked=True),
        Rating(subject_id='bob', item_id='m4', strength=4, liked=True),
        Rating(subject_id='carol', item_id='m1', strength=2, liked=False),
        Rating(subject_id='carol', item_id='m2', strength=5, liked=True),
        Rating(subject_id='carol', item_id='m5', strength=5, liked=True),
        Rating(subject_id='carol', item_id='m6', strength=4, liked=True),
    ]


@pytest.fixture
def sample_snapshot(sample_items, sample_subjects, sample_ratings) -> CatalogSnapshot:
    """Snapshot of the sample catalog."""
    return CatalogSnapshot(
        items=tuple(sample_items),
        subjects=tuple(sample_subjects),
        ratings=tuple(sample_ratings),
    )


@pytest.fixture
def make_context(sample_snapshot):
    """Build a ScoringContext over the sample snapshot."""
    def _make(subject_id, snapshot=None, **kwargs):
        if snapshot is None:
            snapshot = sample_snapshot
        return ScoringContext(subject_id=subject_id, snapshot=snapshot, **kwargs)
    return _make


@pytest.fixture
def sample_store(sample_items, sample_subjects, sample_ratings) -> InMemoryCatalogStore:
    """In-memory store holding the sample catalog."""
    return InMemoryCatalogStore(
        items=sample_items,
        ratings=sample_ratings,
        subjects=sample_subjects,
    )


# ===== Mock Fixtures =====

@pytest.fixture
def mock_listener():
    """Mock MutationListener."""
    mock = Mock()
    mock.on_item_changed.return_value = None
    mock.on_rating_changed.return_value = None
    return mock


@pytest.fixture
def mock_requests_session(requests_mock):
    """Mock requests session with requests_mock."""
    return requests_mock


# ===== Configuration Fixtures =====

@pytest.fixture
def mock_config(monkeypatch):
    """Mock configuration values."""
    monkeypatch.setenv('DATABASE_URL', 'sqlite:///:memory:')
    monkeypatch.setenv('AI_SERVICE_URL', 'http://localhost:8000/api')
    monkeypatch.setenv('AI_SERVICE_API_KEY', 'test-key')
    monkeypatch.setenv('AI_SERVICE_TIMEOUT', '2')


@pytest.fixture
def clean_config(monkeypatch, tmp_path):
    """Unset every engine setting and hide any local.settings.json."""
    for key in (
        'DATABASE_URL', 'AI_SERVICE_URL', 'AI_SERVICE_API_KEY', 'AI_SERVICE_TIMEOUT',
        'MAX_RECOMMENDATION_LIMIT', 'CACHE_TTL_HYBRID', 'CACHE_TTL_POPULARITY',
        'CACHE_TTL_COLLABORATIVE', 'CACHE_TTL_CONTENT', 'CACHE_TTL_AI',
    ):
        monkeypatch.delenv(key, raising=False)

    import reelpick_recommendation_service.config as config_module
    fake_module_file = tmp_path / 'pkg' / 'config.py'
    monkeypatch.setattr(config_module, '__file__', str(fake_module_file))
    yield tmp_path


@pytest.fixture
def local_settings(clean_config):
    """Write a local.settings.json next to the (faked) project root."""
    def _write(values):
        settings_file = Path(clean_config) / 'local.settings.json'
        with open(settings_file, 'w') as f:
            json.dump({"Values": values}, f)
        return settings_file
    return _write


# ===== Temporary Directory Fixtures =====

@pytest.fixture
def temp_data_dir(tmp_path):
    """Directory for seed input files."""
    data_dir = tmp_path / 'data'
    data_dir.mkdir()
    return data_dir
