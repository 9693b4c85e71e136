"""
Surface Normal Filter

Attaches local surface descriptors to every point of a cloud from its k
nearest neighbours. The point set itself is left untouched.
"""

from __future__ import annotations

import numpy as np

from ..datapoints import DataPoints, Label
from ..geometry import DescriptorFlags, LocalGeometry, estimate_local_geometry
from ..matching import build_matcher
from ..utils.config import SurfaceNormalParams
from ..utils.logging import setup_logger
from .base import DataPointsFilter

logger = setup_logger(__name__)


class SurfaceNormalFilter(DataPointsFilter):
    """
    Per-point normals, densities and principal axes from k-nearest neighbourhoods.

    Neighbourhoods whose scatter matrix is rank deficient get neutral
    descriptors (unit eigenvalues, identity eigenvectors) and are counted; the
    count is reported once per call.
    """

    name = "SurfaceNormalDataPointsFilter"
    params_model = SurfaceNormalParams

    def __init__(
        self,
        knn: int = 5,
        epsilon: float = 0.0,
        keep_normals: bool = True,
        keep_densities: bool = False,
        keep_eigen_values: bool = False,
        keep_eigen_vectors: bool = False,
        keep_matched_ids: bool = False,
    ):
        """
        Args:
            knn: Number of neighbours (the point itself included) per estimation.
            epsilon: Approximation factor forwarded to the kd-tree matcher.
            keep_normals: Emit the ``normals`` descriptor.
            keep_densities: Emit the ``densities`` descriptor.
            keep_eigen_values: Emit the ``eigenValues`` descriptor.
            keep_eigen_vectors: Emit the ``eigenVectors`` descriptor.
            keep_matched_ids: Emit the neighbour indices as ``matchedIds``.
                Indices are stored in the cloud's float type and lose precision
                beyond its exact integer range.
        """
        super().__init__(
            knn=knn,
            epsilon=epsilon,
            keep_normals=keep_normals,
            keep_densities=keep_densities,
            keep_eigen_values=keep_eigen_values,
            keep_eigen_vectors=keep_eigen_vectors,
            keep_matched_ids=keep_matched_ids,
        )
        self.knn = self.params.knn
        self.epsilon = self.params.epsilon
        self.keep_matched_ids = self.params.keep_matched_ids
        self.flags = DescriptorFlags(
            normals=self.params.keep_normals,
            densities=self.params.keep_densities,
            eigen_values=self.params.keep_eigen_values,
            eigen_vectors=self.params.keep_eigen_vectors,
        )
        # Runtime metadata of the last call
        self.last_degenerate_count: int = 0

    def filter(self, cloud: DataPoints) -> DataPoints:
        n_points = cloud.n_points
        dimension = cloud.dimension

        insert_dim = cloud.validate_descriptors()

        labels = list(cloud.descriptor_labels) + self.flags.labels(dimension)
        if self.keep_matched_ids:
            labels.append(Label("matchedIds", self.knn))
        final_dim = insert_dim + self.flags.total_span(dimension) + (self.knn if self.keep_matched_ids else 0)

        dtype = cloud.features.dtype if np.issubdtype(cloud.features.dtype, np.floating) else np.float64
        descriptors = np.empty((final_dim, n_points), dtype=dtype)
        descriptors[:insert_dim] = cloud.descriptors

        if n_points == 0:
            return DataPoints(cloud.features.copy(), cloud.feature_labels, descriptors, labels)

        matcher = build_matcher(cloud, knn=self.knn, epsilon=self.epsilon)
        matches = matcher.find_closests(cloud.spatial)

        positions = cloud.spatial
        degenerate_count = 0
        for i in range(n_points):
            ids = matches.ids[:, i]
            geometry = estimate_local_geometry(positions[:, ids])
            if geometry.degenerate:
                degenerate_count += 1
                geometry = LocalGeometry.neutral(dimension, self.knn, geometry.centroid)

            row = insert_dim
            column = geometry.descriptor_column(self.flags)
            descriptors[row:row + column.size, i] = column
            row += column.size

            if self.keep_matched_ids:
                descriptors[row:row + self.knn, i] = ids.astype(dtype)

        self.last_degenerate_count = degenerate_count
        if degenerate_count:
            logger.warning(
                "Scatter matrix was degenerate in %d points over %d (%.2f %%); "
                "neutral descriptors used. Expected cause: no noise in data.",
                degenerate_count,
                n_points,
                100.0 * degenerate_count / n_points,
            )
        logger.info(
            "SurfaceNormal: descriptors %s computed for %d points (knn=%d).",
            [label.text for label in labels[len(cloud.descriptor_labels):]],
            n_points,
            self.knn,
        )

        return DataPoints(cloud.features.copy(), cloud.feature_labels, descriptors, labels)
