"""
KD-Tree Matcher

Wraps scikit-learn's NearestNeighbors so filters can look up the k closest
reference points of a query cloud. The reference cloud is indexed once per
filter call; the query point itself is part of the reference set, so it is
returned as its own first neighbour.
"""

from __future__ import annotations

from dataclasses import dataclass
import time

import numpy as np
from sklearn.neighbors import NearestNeighbors

from ..datapoints import DataPoints
from ..errors import InvalidParameterError
from ..utils.logging import setup_logger

logger = setup_logger(__name__)


@dataclass
class Matches:
    """
    Result of a k-nearest-neighbour query.

    Attributes:
        dists: (k, n) Euclidean distances, closest first
        ids: (k, n) column indices into the reference cloud
    """

    dists: np.ndarray
    ids: np.ndarray


class KDTreeMatcher:
    """k-nearest-neighbour matcher over a reference cloud."""

    def __init__(self, knn: int = 1, epsilon: float = 0.0):
        """
        Args:
            knn: Number of neighbours returned per query point.
            epsilon: Approximation factor. Accepted for compatibility with
                approximate matchers; the scikit-learn search is always exact.
        """
        if knn < 1:
            raise InvalidParameterError(f"knn must be at least 1, got {knn}")
        if epsilon < 0:
            raise InvalidParameterError(f"epsilon must be non-negative, got {epsilon}")
        self.knn = int(knn)
        self.epsilon = float(epsilon)
        self._nbrs = None
        self._reference_count = 0

    def init(self, reference: DataPoints) -> "KDTreeMatcher":
        """Index the spatial rows of ``reference``."""
        n_ref = reference.n_points
        if self.knn > n_ref:
            raise InvalidParameterError(
                f"Cannot match {self.knn} neighbours in a cloud of {n_ref} points"
            )
        build_start = time.time()
        self._nbrs = NearestNeighbors(n_neighbors=self.knn, algorithm="kd_tree").fit(reference.spatial.T)
        self._reference_count = n_ref
        logger.debug(
            "KD-Tree built over %d points in %.4f s (knn=%d).",
            n_ref,
            time.time() - build_start,
            self.knn,
        )
        return self

    def find_closests(self, query: np.ndarray) -> Matches:
        """
        Find the ``knn`` closest reference points of every query column.

        Args:
            query: (d, n) spatial coordinates

        Returns:
            Matches with arrays of shape (knn, n)
        """
        if self._nbrs is None:
            raise ValueError("Matcher must be initialised with init() before querying")
        query = np.asarray(query, dtype=float)
        if query.ndim == 1:
            query = query[:, np.newaxis]
        distances, indices = self._nbrs.kneighbors(query.T, n_neighbors=self.knn)
        return Matches(dists=distances.T, ids=indices.T)

    def query(self, point: np.ndarray) -> Matches:
        """Neighbours of a single point given as a (d,) vector."""
        return self.find_closests(np.asarray(point, dtype=float).reshape(-1, 1))


def build_matcher(reference: DataPoints, knn: int, epsilon: float = 0.0) -> KDTreeMatcher:
    """Create and initialise a KDTreeMatcher over ``reference``."""
    return KDTreeMatcher(knn=knn, epsilon=epsilon).init(reference)
