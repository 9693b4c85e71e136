"""
Data-Points Filters Module

Transforms that reduce, reweight or enrich point clouds before registration:
- Surface normal estimation from k-nearest neighbourhoods
- Bounded-space sampling with local surface descriptors
- Radial density equalization
- Distance, quantile, random and fixed-step filtering
- Normal orientation
- Filter chains built from the YAML configuration
"""

from .base import DataPointsFilter, IdentityFilter
from .distance import MaxDistFilter, MinDistFilter, MaxQuantileOnAxisFilter
from .density import UniformizeDensityFilter, DensityHistogram, compute_cap
from .surface_normals import SurfaceNormalFilter
from .sampling_surface_normals import SamplingSurfaceNormalFilter, iter_leaves
from .orientation import OrientNormalsFilter
from .sampling import RandomSamplingFilter, FixstepSamplingFilter
from .chain import DataPointsFilters, FILTER_REGISTRY, create_filter

__all__ = [
    "DataPointsFilter",
    "IdentityFilter",
    "MaxDistFilter",
    "MinDistFilter",
    "MaxQuantileOnAxisFilter",
    "UniformizeDensityFilter",
    "DensityHistogram",
    "compute_cap",
    "SurfaceNormalFilter",
    "SamplingSurfaceNormalFilter",
    "iter_leaves",
    "OrientNormalsFilter",
    "RandomSamplingFilter",
    "FixstepSamplingFilter",
    "DataPointsFilters",
    "FILTER_REGISTRY",
    "create_filter",
]
