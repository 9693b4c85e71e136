"""
Point Cloud Container

A cloud stores points column-wise: ``features`` has one row per spatial
dimension plus a homogeneous row, ``descriptors`` carries per-point attributes
(normals, densities, ...). Both arrays are described by ordered lists of
labels, each naming a contiguous block of rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import numpy as np

from .errors import DescriptorLabelMismatchError


@dataclass(frozen=True)
class Label:
    """Named block of rows in a feature or descriptor array."""

    text: str
    span: int = 1


Labels = List[Label]


def labels_span(labels: Sequence[Label]) -> int:
    """Total number of rows described by ``labels``."""
    return int(sum(label.span for label in labels))


class DataPoints:
    """
    Point cloud with homogeneous features and optional descriptors.

    Attributes:
        features: (D, N) array, D = spatial dimensions + 1 homogeneous row
        feature_labels: Labels describing the feature rows
        descriptors: (M, N) array; M == 0 when the cloud has no descriptors
        descriptor_labels: Labels describing the descriptor rows
    """

    def __init__(
        self,
        features: np.ndarray,
        feature_labels: Optional[Sequence[Label]] = None,
        descriptors: Optional[np.ndarray] = None,
        descriptor_labels: Optional[Sequence[Label]] = None,
    ):
        features = np.asarray(features)
        if features.ndim != 2:
            raise ValueError(f"Features must be a 2D array, got shape {features.shape}")
        if features.shape[0] < 2:
            raise ValueError(
                f"Features need at least one spatial row and a homogeneous row, got {features.shape[0]} rows"
            )

        if descriptors is None:
            descriptors = np.empty((0, features.shape[1]), dtype=features.dtype)
        descriptors = np.asarray(descriptors)
        if descriptors.size == 0 and descriptors.ndim != 2:
            descriptors = np.empty((0, features.shape[1]), dtype=features.dtype)
        if descriptors.ndim != 2 or descriptors.shape[1] != features.shape[1]:
            raise ValueError(
                f"Descriptors shape {descriptors.shape} does not match {features.shape[1]} points"
            )

        if feature_labels is None:
            feature_labels = default_feature_labels(features.shape[0] - 1)

        self.features = features
        self.feature_labels: Labels = list(feature_labels)
        self.descriptors = descriptors
        self.descriptor_labels: Labels = list(descriptor_labels or [])

    @classmethod
    def from_points(
        cls,
        points: np.ndarray,
        descriptors: Optional[np.ndarray] = None,
        descriptor_labels: Optional[Sequence[Label]] = None,
    ) -> "DataPoints":
        """
        Build a homogeneous cloud from an N x d array of coordinates.

        Args:
            points: N x d coordinates (d = 2 or 3 in practice)
            descriptors: Optional (M, N) descriptor array
            descriptor_labels: Labels for the descriptor rows

        Returns:
            DataPoints with features of shape (d + 1, N)
        """
        points = np.asarray(points, dtype=float)
        if points.ndim != 2:
            raise ValueError(f"Points must be an N x d array, got shape {points.shape}")
        n, dim = points.shape
        features = np.ones((dim + 1, n), dtype=points.dtype)
        features[:dim] = points.T
        return cls(features, default_feature_labels(dim), descriptors, descriptor_labels)

    # ------------------------ Shape helpers ------------------------
    @property
    def n_points(self) -> int:
        return int(self.features.shape[1])

    @property
    def dimension(self) -> int:
        """Number of spatial dimensions (homogeneous row excluded)."""
        return int(self.features.shape[0] - 1)

    @property
    def spatial(self) -> np.ndarray:
        """View on the spatial rows of the features, shape (D-1, N)."""
        return self.features[:-1]

    @property
    def has_descriptors(self) -> bool:
        return self.descriptors.shape[0] > 0

    def validate_descriptors(self) -> int:
        """
        Check that the descriptor labels describe the descriptor array.

        Returns:
            Total descriptor row count

        Raises:
            DescriptorLabelMismatchError: If the label spans do not sum to the row count.
        """
        total = labels_span(self.descriptor_labels)
        if total != self.descriptors.shape[0]:
            raise DescriptorLabelMismatchError(
                f"Descriptor labels span {total} rows but descriptors have {self.descriptors.shape[0]} rows"
            )
        return total

    # ------------------------ Descriptor access ------------------------
    def descriptor_row_offset(self, name: str) -> Optional[int]:
        """First row of the descriptor block called ``name``, or None if absent."""
        row = 0
        for label in self.descriptor_labels:
            if label.text == name:
                return row
            row += label.span
        return None

    def get_descriptor_by_name(self, name: str) -> np.ndarray:
        """
        Return the rows of the descriptor block called ``name``.

        An absent descriptor yields an empty (0, N) array rather than an error.
        """
        row = self.descriptor_row_offset(name)
        if row is None:
            return np.empty((0, self.n_points), dtype=self.descriptors.dtype)
        span = next(label.span for label in self.descriptor_labels if label.text == name)
        return self.descriptors[row:row + span]

    # ------------------------ Selection ------------------------
    def select(self, selection: Union[np.ndarray, Sequence[int], slice]) -> "DataPoints":
        """
        New cloud made of the selected columns (boolean mask, indices or slice).

        Labels are carried over unchanged; arrays are copied.
        """
        if not isinstance(selection, slice):
            selection = np.asarray(selection)
        return DataPoints(
            self.features[:, selection].copy(),
            self.feature_labels,
            self.descriptors[:, selection].copy(),
            self.descriptor_labels,
        )

    def copy(self) -> "DataPoints":
        return DataPoints(
            self.features.copy(),
            self.feature_labels,
            self.descriptors.copy(),
            self.descriptor_labels,
        )

    def __len__(self) -> int:
        return self.n_points

    def __repr__(self) -> str:
        return (
            f"DataPoints(n_points={self.n_points}, dimension={self.dimension}, "
            f"descriptors={[(label.text, label.span) for label in self.descriptor_labels]})"
        )


def default_feature_labels(dimension: int) -> Labels:
    """Feature labels x, y[, z] plus the homogeneous ``pad`` row."""
    names = ["x", "y", "z"]
    if dimension <= len(names):
        spatial = [Label(names[i], 1) for i in range(dimension)]
    else:
        spatial = [Label(f"d{i}", 1) for i in range(dimension)]
    return spatial + [Label("pad", 1)]
