"""
Local Geometry Estimation

Shape descriptors of a small set of points derived from the eigen-decomposition
of its scatter matrix. Both the bounded-space sampler and the per-point surface
normal filter use this routine; each decides on its own what to do with a
degenerate (rank-deficient) neighbourhood.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ..datapoints import Label

# Added to the eigenvalue product so flat neighbourhoods get a finite density
DENSITY_EPSILON = 0.005

# Singular values below factor * s_max * d * eps(dtype) count as zero
RANK_TOLERANCE_FACTOR = 1.0


@dataclass(frozen=True)
class DescriptorFlags:
    """Which geometric descriptors to emit, in emission order."""

    normals: bool = True
    densities: bool = False
    eigen_values: bool = False
    eigen_vectors: bool = False

    def labels(self, dimension: int) -> List[Label]:
        """Descriptor labels for a cloud with ``dimension`` spatial axes."""
        labels = []
        if self.normals:
            labels.append(Label("normals", dimension))
        if self.densities:
            labels.append(Label("densities", 1))
        if self.eigen_values:
            labels.append(Label("eigenValues", dimension))
        if self.eigen_vectors:
            labels.append(Label("eigenVectors", dimension * dimension))
        return labels

    def total_span(self, dimension: int) -> int:
        return sum(label.span for label in self.labels(dimension))


@dataclass
class LocalGeometry:
    """
    Result of a local geometry estimation.

    Attributes:
        count: Number of points in the neighbourhood
        centroid: Mean position, shape (d,)
        eigenvalues: Eigenvalues of the scatter matrix in decomposition order
        eigenvectors: Matching eigenvectors stored as columns, shape (d, d)
        degenerate: True when the scatter matrix is rank deficient
        averaged_attributes: Mean of the attribute vectors, if any were given
    """

    count: int
    centroid: np.ndarray
    eigenvalues: np.ndarray
    eigenvectors: np.ndarray
    degenerate: bool
    averaged_attributes: Optional[np.ndarray] = None

    @classmethod
    def neutral(cls, dimension: int, count: int, centroid: Optional[np.ndarray] = None) -> "LocalGeometry":
        """Unit eigenvalues and identity eigenvectors, used in place of a degenerate result."""
        if centroid is None:
            centroid = np.zeros(dimension)
        return cls(
            count=count,
            centroid=centroid,
            eigenvalues=np.ones(dimension),
            eigenvectors=np.eye(dimension),
            degenerate=False,
        )

    @property
    def dimension(self) -> int:
        return int(self.eigenvalues.shape[0])

    @property
    def normal(self) -> np.ndarray:
        """Eigenvector of the smallest eigenvalue (first one on ties); sign is arbitrary."""
        smallest = int(np.argmin(self.eigenvalues))
        return self.eigenvectors[:, smallest]

    @property
    def density(self) -> float:
        volume = float(np.prod(self.eigenvalues))
        return self.count / (volume + DENSITY_EPSILON)

    @property
    def scaled_eigenvectors(self) -> np.ndarray:
        """
        Row k of the eigenvector matrix multiplied elementwise by the eigenvalues,
        rows concatenated. Kept in this exact form for downstream consumers.
        """
        return (self.eigenvectors * self.eigenvalues[np.newaxis, :]).reshape(-1)

    def descriptor_column(self, flags: DescriptorFlags) -> np.ndarray:
        """Concatenate the requested descriptors in emission order."""
        parts = []
        if flags.normals:
            parts.append(self.normal)
        if flags.densities:
            parts.append(np.array([self.density]))
        if flags.eigen_values:
            parts.append(self.eigenvalues)
        if flags.eigen_vectors:
            parts.append(self.scaled_eigenvectors)
        if not parts:
            return np.empty(0)
        return np.concatenate(parts)


def scatter_rank(scatter: np.ndarray) -> int:
    """
    Numerical rank of a scatter matrix from its singular values.

    The tolerance is ``RANK_TOLERANCE_FACTOR * s_max * d * eps``, the usual
    SVD-based criterion (same as numpy's default for square matrices).
    """
    singular_values = np.linalg.svd(scatter, compute_uv=False)
    if singular_values.size == 0 or singular_values[0] <= 0.0:
        return 0
    dtype = scatter.dtype if np.issubdtype(scatter.dtype, np.floating) else np.float64
    tol = RANK_TOLERANCE_FACTOR * singular_values[0] * scatter.shape[0] * np.finfo(dtype).eps
    return int(np.count_nonzero(singular_values > tol))


def estimate_local_geometry(
    positions: np.ndarray,
    attributes: Optional[np.ndarray] = None,
) -> LocalGeometry:
    """
    Estimate centroid and principal axes of a point set.

    Args:
        positions: (d, n) spatial coordinates, n >= 1
        attributes: Optional (m, n) per-point attribute vectors to average

    Returns:
        LocalGeometry. When the scatter matrix is rank deficient the
        decomposition is still filled in but ``degenerate`` is set; callers
        choose whether to drop the set or substitute neutral values.
    """
    positions = np.asarray(positions, dtype=float)
    if positions.ndim != 2 or positions.shape[1] == 0:
        raise ValueError(f"Expected a non-empty (d, n) position array, got shape {positions.shape}")

    dimension, count = positions.shape
    centroid = positions.mean(axis=1)
    centered = positions - centroid[:, np.newaxis]
    scatter = centered @ centered.T

    degenerate = scatter_rank(scatter) < dimension

    # Symmetric solver; callers still locate the minimum explicitly
    eigenvalues, eigenvectors = np.linalg.eigh(scatter)

    averaged = None
    if attributes is not None and np.asarray(attributes).shape[0] > 0:
        averaged = np.asarray(attributes, dtype=float).mean(axis=1)

    return LocalGeometry(
        count=count,
        centroid=centroid,
        eigenvalues=eigenvalues,
        eigenvectors=eigenvectors,
        degenerate=degenerate,
        averaged_attributes=averaged,
    )
