"""
Seed the catalog database with items, subjects and ratings.
Reads CSV or JSON exports and stores them through CatalogRepository.
"""

import sys
from pathlib import Path

# Add parent directory to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

import argparse
import logging
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from reelpick_recommendation_service.ml.entities import Item, Rating, Subject

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def clean_dataframe_for_db(df: pd.DataFrame) -> pd.DataFrame:
    """
    Replace NaN/NA values with None so optional fields stay empty.

    Args:
        df: Input DataFrame

    Returns:
        Cleaned DataFrame
    """
    df = df.astype(object)
    return df.where(pd.notnull(df), None)


def read_table(path: Path) -> pd.DataFrame:
    """Read a CSV or JSON (array of records) file into a DataFrame."""
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    if path.suffix.lower() == '.json':
        return pd.read_json(path, orient='records', dtype=False)
    return pd.read_csv(path, dtype={'item_id': str, 'subject_id': str})


def parse_tags(value) -> List[str]:
    """Tags arrive either as a list (JSON) or a '|'-separated string (CSV)."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, np.ndarray)):
        return [str(tag).strip() for tag in value if str(tag).strip()]
    return [tag.strip() for tag in str(value).split('|') if tag.strip()]


def _optional_int(value) -> Optional[int]:
    return None if value is None else int(value)


def _optional_float(value) -> Optional[float]:
    return None if value is None else float(value)


def _parse_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes', 'y')
    return bool(value)


def items_from_records(records: List[Dict]) -> List[Item]:
    items = []
    for row in records:
        items.append(Item(
            item_id=str(row['item_id']),
            title=row['title'],
            tags=tuple(parse_tags(row.get('tags'))),
            year=_optional_int(row.get('year')),
            creator=row.get('creator'),
            quality=_optional_float(row.get('quality')),
            runtime=_optional_int(row.get('runtime')),
            region=row.get('region'),
            language=row.get('language'),
            description=row.get('description'),
        ))
    return items


def ratings_from_records(records: List[Dict]) -> List[Rating]:
    return [
        Rating(
            subject_id=str(row['subject_id']),
            item_id=str(row['item_id']),
            strength=int(row['strength']),
            liked=_parse_bool(row.get('liked', False)),
            note=row.get('note'),
        )
        for row in records
    ]


def seed_catalog(
    repo,
    items_path: Path,
    ratings_path: Optional[Path] = None,
    subjects_path: Optional[Path] = None
) -> Dict[str, int]:
    """
    Load input files and store them.

    Args:
        repo: CatalogRepository bound to the target database
        items_path: Items file (CSV or JSON)
        ratings_path: Optional ratings file
        subjects_path: Optional subjects file

    Returns:
        Counts of stored items, subjects and ratings
    """
    logger.info("=" * 70)
    logger.info("SEEDING CATALOG")
    logger.info("=" * 70)

    items_df = clean_dataframe_for_db(read_table(items_path))
    items = items_from_records(items_df.to_dict('records'))
    logger.info(f"Loaded {len(items)} items from {items_path}")
    stats = {'items': repo.bulk_store_items(items), 'subjects': 0, 'ratings': 0}

    subject_ids = set()
    if subjects_path is not None:
        subjects_df = clean_dataframe_for_db(read_table(subjects_path))
        for row in subjects_df.to_dict('records'):
            repo.store_subject(Subject(subject_id=str(row['subject_id']), username=row.get('username')))
            subject_ids.add(str(row['subject_id']))

    if ratings_path is not None:
        ratings_df = clean_dataframe_for_db(read_table(ratings_path))
        ratings = ratings_from_records(ratings_df.to_dict('records'))
        logger.info(f"Loaded {len(ratings)} ratings from {ratings_path}")

        skipped = 0
        for rating in ratings:
            if rating.subject_id not in subject_ids:
                repo.store_subject(Subject(subject_id=rating.subject_id))
                subject_ids.add(rating.subject_id)
            try:
                repo.store_rating(rating)
                stats['ratings'] += 1
            except ValueError as e:
                skipped += 1
                logger.warning(f"Skipped rating {rating.subject_id}/{rating.item_id}: {e}")
        if skipped:
            logger.warning(f"Skipped {skipped} invalid ratings")

    stats['subjects'] = len(subject_ids)

    logger.info("=" * 70)
    logger.info("SEEDING COMPLETE")
    logger.info("=" * 70)
    logger.info(f"Items: {stats['items']}, subjects: {stats['subjects']}, ratings: {stats['ratings']}")
    return stats


def main():
    parser = argparse.ArgumentParser(description='Seed the catalog database')
    parser.add_argument('--items', type=Path, required=True, help='Items CSV or JSON file')
    parser.add_argument('--ratings', type=Path, default=None, help='Ratings CSV or JSON file')
    parser.add_argument('--subjects', type=Path, default=None, help='Subjects CSV or JSON file')
    args = parser.parse_args()

    from reelpick_recommendation_service.models.database import SessionLocal, init_db
    from reelpick_recommendation_service.repos import CatalogRepository

    init_db()
    db = SessionLocal()
    try:
        seed_catalog(CatalogRepository(db), args.items, args.ratings, args.subjects)
    except Exception as e:
        logger.error(f"Seeding failed: {e}", exc_info=True)
        sys.exit(1)
    finally:
        db.close()


if __name__ == '__main__':
    main()
