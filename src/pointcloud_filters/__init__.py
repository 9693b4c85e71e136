"""
Point Cloud Filters Package

Preprocessing filters for point clouds that feed an iterative registration
(ICP) pipeline. Filters reduce clouds (bounded-space sampling, density
equalization, distance and random subsampling) or enrich them with local
surface descriptors (normals, densities, eigenvalues, eigenvectors).
"""

__version__ = "0.1.0"

from .datapoints import DataPoints, Label
from .errors import InvalidParameterError, DescriptorLabelMismatchError, DensityEqualizationError
from .geometry import *
from .matching import *
from .filters import *
from .utils import *

__all__ = [
    "DataPoints",
    "Label",
    "InvalidParameterError",
    "DescriptorLabelMismatchError",
    "DensityEqualizationError",
    "geometry",
    "matching",
    "filters",
    "utils",
]
