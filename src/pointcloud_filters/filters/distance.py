"""
Distance Threshold Filters

Remove points by their distance to the origin, either along one axis or as
Euclidean norm, or by a quantile along one axis.
"""

from __future__ import annotations

import numpy as np

from ..datapoints import DataPoints
from ..errors import InvalidParameterError
from ..utils.config import MaxDistParams, MinDistParams, MaxQuantileOnAxisParams
from ..utils.logging import setup_logger
from ..utils.point_cloud_filters import create_distance_mask, get_filter_statistics
from .base import DataPointsFilter

logger = setup_logger(__name__)


def _describe_axis(dim: int, cloud: DataPoints) -> str:
    return "euclidean" if dim == cloud.features.shape[0] - 1 else f"axis {dim}"


class MaxDistFilter(DataPointsFilter):
    """Keep points strictly closer than ``max_dist``."""

    name = "MaxDistDataPointsFilter"
    params_model = MaxDistParams

    def __init__(self, dim: int = 3, max_dist: float = 1.0):
        super().__init__(dim=dim, max_dist=max_dist)
        self.dim = self.params.dim
        self.max_dist = self.params.max_dist

    def filter(self, cloud: DataPoints) -> DataPoints:
        mask = create_distance_mask(cloud.features, self.dim, self.max_dist, keep_below=True)
        stats = get_filter_statistics(
            cloud.n_points,
            int(mask.sum()),
            f"max dist {self.max_dist} ({_describe_axis(self.dim, cloud)})",
        )
        logger.debug("MaxDist: %s", stats)
        return cloud.select(mask)


class MinDistFilter(DataPointsFilter):
    """Keep points strictly farther than ``min_dist``."""

    name = "MinDistDataPointsFilter"
    params_model = MinDistParams

    def __init__(self, dim: int = 3, min_dist: float = 1.0):
        super().__init__(dim=dim, min_dist=min_dist)
        self.dim = self.params.dim
        self.min_dist = self.params.min_dist

    def filter(self, cloud: DataPoints) -> DataPoints:
        mask = create_distance_mask(cloud.features, self.dim, self.min_dist, keep_below=False)
        stats = get_filter_statistics(
            cloud.n_points,
            int(mask.sum()),
            f"min dist {self.min_dist} ({_describe_axis(self.dim, cloud)})",
        )
        logger.debug("MinDist: %s", stats)
        return cloud.select(mask)


class MaxQuantileOnAxisFilter(DataPointsFilter):
    """
    Keep points whose coordinate on ``dim`` lies below the ``ratio`` quantile.

    The limit is the ``floor(N * ratio)``-th smallest value; points equal to it
    are removed, so at most ``floor(N * ratio)`` points remain.
    """

    name = "MaxQuantileOnAxisDataPointsFilter"
    params_model = MaxQuantileOnAxisParams

    def __init__(self, dim: int = 0, ratio: float = 0.5):
        super().__init__(dim=dim, ratio=ratio)
        self.dim = self.params.dim
        self.ratio = self.params.ratio

    def filter(self, cloud: DataPoints) -> DataPoints:
        n_rows = cloud.features.shape[0]
        if self.dim >= n_rows:
            raise InvalidParameterError(
                f"Filtering on dimension number {self.dim}, larger than feature dimensionality {n_rows}"
            )
        if cloud.n_points == 0:
            return cloud.copy()

        values = cloud.features[self.dim]
        n_out = int(cloud.n_points * self.ratio)
        limit = np.partition(values, n_out)[n_out]

        mask = values < limit
        logger.debug(
            "MaxQuantileOnAxis: limit %.4f on axis %d keeps %d of %d points.",
            limit,
            self.dim,
            int(mask.sum()),
            cloud.n_points,
        )
        return cloud.select(mask)
