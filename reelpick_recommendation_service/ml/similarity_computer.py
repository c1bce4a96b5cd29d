"""Compute user-user similarity from sparse rating matrices."""
import numpy as np
from typing import Dict, List, Tuple
from scipy.sparse import csr_matrix
import logging

from reelpick_recommendation_service.ml.entities import Rating, RatingVector

logger = logging.getLogger(__name__)


def _pearson(n, sum_x, sum_y, sum_xx, sum_yy, sum_xy, min_shared_items: int):
    """
    Pearson correlation from running sums.

    r = (n*Sxy - Sx*Sy) / sqrt((n*Sxx - Sx^2) * (n*Syy - Sy^2))

    Works element-wise on arrays. Entries with fewer than min_shared_items
    shared items or zero variance on either side are 0.
    """
    n = np.asarray(n, dtype=float)
    numerator = n * sum_xy - sum_x * sum_y
    variance = (n * sum_xx - sum_x ** 2) * (n * sum_yy - sum_y ** 2)
    # Integer ratings keep the sums exact, so variance is never slightly negative
    denominator = np.sqrt(np.clip(variance, 0.0, None))

    valid = (n >= min_shared_items) & (denominator > 0)
    result = np.zeros_like(numerator, dtype=float)
    np.divide(numerator, denominator, out=result, where=valid)
    return np.clip(result, -1.0, 1.0)


class SimilarityComputer:
    """Compute Pearson similarity between subjects' rating vectors."""

    def __init__(self, min_shared_items: int = 2):
        """
        Initialize similarity computer.

        Args:
            min_shared_items: Fewer shared items than this yields similarity 0
        """
        self.min_shared_items = min_shared_items

    def similarity(self, a: RatingVector, b: RatingVector) -> float:
        """
        Pearson correlation of two rating vectors over their shared items.

        Args:
            a: First subject's ratings
            b: Second subject's ratings

        Returns:
            Correlation in [-1, 1]; 0 when there is no usable signal
        """
        shared = a.shared_items(b)
        if len(shared) < self.min_shared_items:
            return 0.0

        x = np.array([a.ratings[item_id] for item_id in shared], dtype=float)
        y = np.array([b.ratings[item_id] for item_id in shared], dtype=float)

        r = _pearson(
            len(shared),
            x.sum(), y.sum(),
            (x * x).sum(), (y * y).sum(),
            (x * y).sum(),
            self.min_shared_items,
        )
        return float(r)

    def build_rating_matrix(
        self,
        ratings: List[Rating],
        subject_ids: List[str]
    ) -> Tuple[csr_matrix, Dict[str, int]]:
        """
        Build a sparse subjects x items matrix of rating strengths.

        Args:
            ratings: All ratings in the snapshot
            subject_ids: Row order of the matrix

        Returns:
            (rating_matrix, item_id_to_column) tuple
        """
        subject_index = {subject_id: idx for idx, subject_id in enumerate(subject_ids)}
        item_index: Dict[str, int] = {}
        rows, cols, data = [], [], []

        for rating in ratings:
            row = subject_index.get(rating.subject_id)
            if row is None:
                continue
            col = item_index.setdefault(rating.item_id, len(item_index))
            rows.append(row)
            cols.append(col)
            data.append(float(rating.strength))

        matrix = csr_matrix(
            (data, (rows, cols)),
            shape=(len(subject_ids), len(item_index))
        )
        logger.debug(
            f"Rating matrix: {matrix.shape}, {matrix.nnz} ratings"
        )
        return matrix, item_index

    def compute_similarities(
        self,
        target: RatingVector,
        rating_matrix: csr_matrix,
        item_index: Dict[str, int]
    ) -> np.ndarray:
        """
        Similarity of one subject to every row of a rating matrix.

        Each sum of the Pearson formula, restricted to the items both sides
        rated, is a sparse matrix-vector product.

        Args:
            target: Rating vector of the subject to compare
            rating_matrix: Sparse subjects x items strengths
            item_index: Item id to column mapping of rating_matrix

        Returns:
            Array of similarities aligned with the matrix rows
        """
        n_items = rating_matrix.shape[1]
        x = np.zeros(n_items)
        for item_id, strength in target.ratings.items():
            col = item_index.get(item_id)
            if col is not None:
                x[col] = strength
        target_mask = (x != 0).astype(float)

        rated_mask = rating_matrix.copy()
        rated_mask.data = np.ones_like(rated_mask.data)
        squared = rating_matrix.multiply(rating_matrix).tocsr()

        shared_counts = rated_mask @ target_mask
        sum_x = rated_mask @ x
        sum_xx = rated_mask @ (x * x)
        sum_y = rating_matrix @ target_mask
        sum_yy = squared @ target_mask
        sum_xy = rating_matrix @ x

        return _pearson(
            shared_counts, sum_x, sum_y, sum_xx, sum_yy, sum_xy,
            self.min_shared_items,
        )
