"""Engine and session factory for the catalog database."""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from reelpick_recommendation_service.config import get_database_url
from reelpick_recommendation_service.models.base import Base

DATABASE_URL = get_database_url()

if DATABASE_URL is None:
    raise ValueError("DATABASE_URL is not configured. Set the DATABASE_URL environment variable.")

engine = create_engine(
    DATABASE_URL,
    pool_pre_ping=True,
    echo=False  # Set to True for SQL debugging
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None):
    """Create the items, subjects and ratings tables if they do not exist."""
    # Registers the models on Base.metadata
    from reelpick_recommendation_service import models  # noqa: F401

    Base.metadata.create_all(bind or engine)


def get_db():
    """Dependency to get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
