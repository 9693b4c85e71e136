"""
Sampling Surface Normal Filter

Reduces a cloud by recursively splitting it at the median of its longest
bounding-box axis until every cell holds at most ``bin_size`` points, then
replaces each cell by its centroid together with the local surface descriptors
(normal, density, eigenvalues, eigenvectors) of the fused points.

Cells whose scatter matrix is rank deficient (coincident or coplanar points in
full dimension) are dropped: they yield no output point at all.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple

import numpy as np

from ..datapoints import DataPoints
from ..geometry import DescriptorFlags, estimate_local_geometry
from ..utils.config import SamplingSurfaceNormalParams
from ..utils.logging import setup_logger
from .base import DataPointsFilter

logger = setup_logger(__name__)


def iter_leaves(
    indices: np.ndarray,
    positions: np.ndarray,
    bin_size: int,
) -> Iterator[Tuple[int, int]]:
    """
    Partition ``indices`` in place and yield the leaf ranges in order.

    Each range ``[first, last)`` of at most ``bin_size`` entries is a leaf.
    Larger ranges are cut on the axis with the largest bounding-box extent
    (first axis on ties): the range is reordered so that position
    ``first + ceil(count / 2)`` holds that order statistic, with smaller values
    before it and larger values after it, and both halves are processed with
    the pivot value as their new bound.

    Args:
        indices: Column indices into ``positions``; reordered in place
        positions: (d, N) spatial coordinates
        bin_size: Maximum leaf size, >= 1

    Yields:
        (first, last) leaf ranges over ``indices``, left to right
    """
    if bin_size < 1:
        raise ValueError(f"bin_size must be at least 1, got {bin_size}")
    if indices.size == 0:
        return

    subset = positions[:, indices]
    stack = [(0, indices.size, subset.min(axis=1), subset.max(axis=1))]
    while stack:
        first, last, min_values, max_values = stack.pop()
        count = last - first
        if count <= bin_size:
            yield first, last
            continue

        cut_dim = int(np.argmax(max_values - min_values))

        right_count = count // 2
        left_count = count - right_count

        segment = indices[first:last]
        order = np.argpartition(positions[cut_dim, segment], left_count)
        indices[first:last] = segment[order]

        cut_val = positions[cut_dim, indices[first + left_count]]

        left_max_values = max_values.copy()
        left_max_values[cut_dim] = cut_val
        right_min_values = min_values.copy()
        right_min_values[cut_dim] = cut_val

        # Pushed right first so the left half is visited first
        stack.append((first + left_count, last, right_min_values, max_values))
        stack.append((first, first + left_count, min_values, left_max_values))


@dataclass
class _BuildData:
    """Buffers shared by every leaf of one filter call."""

    indices: np.ndarray
    input_features: np.ndarray
    input_descriptors: np.ndarray
    output_features: np.ndarray
    output_descriptors: np.ndarray
    output_insertion_point: int = 0
    leaf_count: int = 0
    dropped_leaf_count: int = 0
    dropped_point_count: int = 0


class SamplingSurfaceNormalFilter(DataPointsFilter):
    """
    Subsample a cloud into fused points carrying local surface descriptors.

    Example usage:
        sampler = SamplingSurfaceNormalFilter(bin_size=10, keep_densities=True)
        reduced = sampler.filter(cloud)
        normals = reduced.get_descriptor_by_name("normals")
    """

    name = "SamplingSurfaceNormalDataPointsFilter"
    params_model = SamplingSurfaceNormalParams

    def __init__(
        self,
        bin_size: int = 7,
        average_existing_descriptors: bool = True,
        keep_normals: bool = True,
        keep_densities: bool = False,
        keep_eigen_values: bool = False,
        keep_eigen_vectors: bool = False,
    ):
        """
        Initialize sampling parameters.

        Args:
            bin_size: Maximum number of input points fused into one output point.
            average_existing_descriptors: Average the input descriptors of each
                leaf into the output. When False, input descriptors are dropped.
            keep_normals: Emit the ``normals`` descriptor.
            keep_densities: Emit the ``densities`` descriptor.
            keep_eigen_values: Emit the ``eigenValues`` descriptor.
            keep_eigen_vectors: Emit the ``eigenVectors`` descriptor.
        """
        super().__init__(
            bin_size=bin_size,
            average_existing_descriptors=average_existing_descriptors,
            keep_normals=keep_normals,
            keep_densities=keep_densities,
            keep_eigen_values=keep_eigen_values,
            keep_eigen_vectors=keep_eigen_vectors,
        )
        self.bin_size = self.params.bin_size
        self.average_existing_descriptors = self.params.average_existing_descriptors
        self.flags = DescriptorFlags(
            normals=self.params.keep_normals,
            densities=self.params.keep_densities,
            eigen_values=self.params.keep_eigen_values,
            eigen_vectors=self.params.keep_eigen_vectors,
        )

    def filter(self, cloud: DataPoints) -> DataPoints:
        n_points = cloud.n_points
        dimension = cloud.dimension

        insert_dim = 0
        output_labels = []
        if self.average_existing_descriptors:
            insert_dim = cloud.validate_descriptors()
            output_labels = list(cloud.descriptor_labels)
        output_labels += self.flags.labels(dimension)
        final_dim = insert_dim + self.flags.total_span(dimension)

        dtype = cloud.features.dtype if np.issubdtype(cloud.features.dtype, np.floating) else np.float64
        data = _BuildData(
            indices=np.arange(n_points),
            input_features=cloud.features,
            input_descriptors=cloud.descriptors[:insert_dim],
            output_features=np.empty((dimension + 1, n_points), dtype=dtype),
            output_descriptors=np.empty((final_dim, n_points), dtype=dtype),
        )

        for first, last in iter_leaves(data.indices, cloud.spatial, self.bin_size):
            self._fuse_range(data, first, last)

        n_out = data.output_insertion_point
        logger.info(
            "SamplingSurfaceNormal: %d -> %d points (%d leaves, %d degenerate leaves dropped).",
            n_points,
            n_out,
            data.leaf_count,
            data.dropped_leaf_count,
        )
        logger.debug("Degenerate leaves covered %d input points.", data.dropped_point_count)

        return DataPoints(
            data.output_features[:, :n_out].copy(),
            cloud.feature_labels,
            data.output_descriptors[:, :n_out].copy(),
            output_labels,
        )

    def _fuse_range(self, data: _BuildData, first: int, last: int) -> None:
        """Collapse one leaf into a single output point, or drop it if degenerate."""
        leaf = data.indices[first:last]
        data.leaf_count += 1

        attributes = data.input_descriptors[:, leaf] if data.input_descriptors.shape[0] else None
        geometry = estimate_local_geometry(data.input_features[:-1, leaf], attributes)
        if geometry.degenerate:
            data.dropped_leaf_count += 1
            data.dropped_point_count += leaf.size
            return

        col = data.output_insertion_point
        data.output_features[:-1, col] = geometry.centroid
        data.output_features[-1, col] = 1

        row = 0
        if geometry.averaged_attributes is not None:
            row = geometry.averaged_attributes.size
            data.output_descriptors[:row, col] = geometry.averaged_attributes
        descriptors = geometry.descriptor_column(self.flags)
        data.output_descriptors[row:row + descriptors.size, col] = descriptors

        data.output_insertion_point += 1
