"""
Utility Functions Module

This module provides common utility functions used across the package.
- Logging setup
- Typed configuration loading
- Point cloud filtering masks and statistics
"""

from .logging import setup_logger, set_package_level
from .point_cloud_filters import (
    axis_distances,
    create_distance_mask,
    get_filter_statistics,
)
from .config import AppConfig, load_config

__all__ = [
    "setup_logger",
    "set_package_level",
    "axis_distances",
    "create_distance_mask",
    "get_filter_statistics",
    "AppConfig",
    "load_config",
]
