"""
Uniformize Density Filter

Scans taken from a single sensor position are much denser close to the sensor.
This filter bins points by their distance to the origin and randomly thins the
most populated bins so that, on average, ``ratio`` of the points are kept while
sparse bins are left intact.

The number of kept points is random: each point survives independently with the
retention ratio of its bin.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..datapoints import DataPoints
from ..errors import DensityEqualizationError
from ..utils.config import UniformizeDensityParams
from ..utils.logging import setup_logger
from .base import DataPointsFilter, make_rng

logger = setup_logger(__name__)


@dataclass
class DensityHistogram:
    """
    Radial histogram of a cloud and the per-bin retention ratios.

    Attributes:
        bin_ids: Bin index of every point
        counts: Number of points per bin
        ratios: Probability of keeping a point of each bin
        theta: Per-bin point cap applied to the dense bins
        dense_bins: Ids of the bins capped to theta, densest first
        min_dist: Smallest distance to the origin
        max_dist: Largest distance to the origin
    """

    bin_ids: np.ndarray
    counts: np.ndarray
    ratios: np.ndarray
    theta: float
    dense_bins: np.ndarray
    min_dist: float
    max_dist: float

    @property
    def expected_output(self) -> float:
        """Expected number of kept points."""
        return float(np.sum(self.counts * np.minimum(self.ratios, 1.0)))


def compute_cap(sorted_counts: np.ndarray, target: float) -> tuple[float, int]:
    """
    Find the per-bin cap for histogram counts sorted in decreasing order.

    For each prefix of the densest bins the excess over the next bin is
    accumulated; the first prefix whose excess exceeds ``target`` fixes the cap
    as ``(prefix_sum - target) / prefix_length``.

    Args:
        sorted_counts: Bin counts, largest first
        target: Target number of points

    Returns:
        Tuple of (theta, prefix_length)

    Raises:
        DensityEqualizationError: If no prefix qualifies.
    """
    if sorted_counts.size < 2:
        raise DensityEqualizationError("At least two bins are required to equalize density")

    prefix_sums = np.cumsum(sorted_counts)[:-1]
    prefix_lengths = np.arange(1, sorted_counts.size)
    excess = prefix_sums - prefix_lengths * sorted_counts[1:]

    qualifying = np.flatnonzero(excess > target)
    if qualifying.size == 0:
        raise DensityEqualizationError(
            f"No density cap reaches the target of {target:.1f} points with {sorted_counts.size} bins "
            f"(largest excess {int(excess.max())}); use more bins or a smaller ratio"
        )

    j = int(qualifying[0])
    theta = (float(prefix_sums[j]) - target) / (j + 1)
    return theta, j + 1


class UniformizeDensityFilter(DataPointsFilter):
    """
    Randomly thin the densest radial bins of a cloud.

    Example usage:
        equalizer = UniformizeDensityFilter(ratio=0.5, nb_bin=100, seed=0)
        thinned = equalizer.filter(cloud)
    """

    name = "UniformizeDensityDataPointsFilter"
    params_model = UniformizeDensityParams

    def __init__(
        self,
        ratio: float = 0.5,
        nb_bin: int = 1000,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Args:
            ratio: Target fraction of points to keep, in (0, 1].
            nb_bin: Number of radial bins, >= 2.
            seed: Seed of the sampling RNG (ignored when ``rng`` is given).
            rng: Explicit random generator to draw from.
        """
        super().__init__(ratio=ratio, nb_bin=nb_bin, seed=seed)
        self.ratio = self.params.ratio
        self.nb_bin = self.params.nb_bin
        self._rng = make_rng(self.params.seed, rng)

    def compute_histogram(self, cloud: DataPoints) -> DensityHistogram:
        """Bin the points by radial distance and derive the retention ratio of each bin."""
        n_points = cloud.n_points
        if n_points == 0:
            raise ValueError("Cannot build a density histogram of an empty cloud")

        distances = np.linalg.norm(cloud.spatial, axis=0)
        min_dist = float(distances.min())
        max_dist = float(distances.max())
        delta = (max_dist - min_dist) / self.nb_bin

        if delta > 0:
            bin_ids = np.floor((distances - min_dist) / delta).astype(np.int64)
        else:
            bin_ids = np.zeros(n_points, dtype=np.int64)
        # The farthest point lands on the upper edge of the last bin
        bin_ids = np.minimum(bin_ids, self.nb_bin - 1)

        counts = np.bincount(bin_ids, minlength=self.nb_bin)

        order = np.argsort(-counts, kind="stable")
        target = self.ratio * n_points
        theta, prefix_length = compute_cap(counts[order], target)

        dense_bins = order[:prefix_length]
        ratios = np.ones(self.nb_bin)
        # Not clamped to 1: a boundary bin smaller than theta gets a ratio above 1
        ratios[dense_bins] = theta / counts[dense_bins]

        logger.debug(
            "Density histogram: %d bins over [%.3f, %.3f], theta=%.2f applied to %d bins.",
            self.nb_bin,
            min_dist,
            max_dist,
            theta,
            prefix_length,
        )

        return DensityHistogram(
            bin_ids=bin_ids,
            counts=counts,
            ratios=ratios,
            theta=theta,
            dense_bins=dense_bins,
            min_dist=min_dist,
            max_dist=max_dist,
        )

    def filter(self, cloud: DataPoints) -> DataPoints:
        if cloud.n_points == 0:
            return cloud.copy()

        histogram = self.compute_histogram(cloud)

        draws = self._rng.random(cloud.n_points)
        keep = draws < histogram.ratios[histogram.bin_ids]

        output = cloud.select(keep)
        logger.info(
            "UniformizeDensity: %d -> %d points (expected %.1f, ratio=%.3f).",
            cloud.n_points,
            output.n_points,
            histogram.expected_output,
            self.ratio,
        )
        return output
