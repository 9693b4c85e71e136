"""
Local Geometry Module

Centroid, scatter matrix and eigen-decomposition of small point sets, and the
descriptors derived from them (normals, densities, eigenvalues, eigenvectors).
"""

from .local_geometry import (
    DENSITY_EPSILON,
    DescriptorFlags,
    LocalGeometry,
    estimate_local_geometry,
    scatter_rank,
)

__all__ = [
    "DENSITY_EPSILON",
    "DescriptorFlags",
    "LocalGeometry",
    "estimate_local_geometry",
    "scatter_rank",
]
