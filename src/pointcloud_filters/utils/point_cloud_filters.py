"""
Point Cloud Filtering Utilities

Shared mask helpers for the threshold filters, plus summary statistics used
when logging filter results.
"""

from typing import Optional

import numpy as np

from ..errors import InvalidParameterError


def axis_distances(features: np.ndarray, dim: int) -> np.ndarray:
    """Distance of every point measured along ``dim``.

    ``dim`` equal to the homogeneous row index (the last feature row) selects
    the Euclidean norm of the spatial rows; any other row selects ``|x[dim]|``.

    Args:
        features: (D, N) homogeneous feature array
        dim: Row index in [0, D)

    Returns:
        Array of N distances

    Raises:
        InvalidParameterError: If ``dim`` is not a feature row.

    Examples:
        >>> feats = np.array([[3.0, -1.0], [4.0, 0.0], [1.0, 1.0]])
        >>> axis_distances(feats, 2)
        array([5., 1.])
        >>> axis_distances(feats, 0)
        array([3., 1.])
    """
    n_rows = features.shape[0]
    if dim >= n_rows:
        raise InvalidParameterError(
            f"Filtering on dimension number {dim}, larger than feature dimensionality {n_rows}"
        )
    if dim == n_rows - 1:
        return np.linalg.norm(features[:-1], axis=0)
    return np.abs(features[dim])


def create_distance_mask(
    features: np.ndarray,
    dim: int,
    threshold: float,
    keep_below: bool = True,
) -> np.ndarray:
    """Create a boolean mask for distance threshold filtering.

    Both directions use strict comparisons: a point exactly at the threshold
    is rejected whether ``keep_below`` is True or False.

    Args:
        features: (D, N) homogeneous feature array
        dim: Axis row, or the homogeneous row index for Euclidean distance
        threshold: Distance threshold
        keep_below: Keep points closer than the threshold if True, farther otherwise

    Returns:
        Boolean array indicating which points pass the filter (True = accept)

    Examples:
        >>> feats = np.array([[0.5, 1.0, 2.0], [1.0, 1.0, 1.0]])
        >>> create_distance_mask(feats, 0, 1.0, keep_below=True)
        array([ True, False, False])
        >>> create_distance_mask(feats, 0, 1.0, keep_below=False)
        array([False, False,  True])
    """
    distances = axis_distances(features, dim)
    if keep_below:
        return distances < threshold
    return distances > threshold


def get_filter_statistics(
    total_points: int,
    filtered_points: int,
    filter_description: Optional[str] = None,
) -> dict:
    """
    Generate statistics about point filtering results.

    Useful for logging and validation of filtering operations.

    Args:
        total_points: Total number of points before filtering
        filtered_points: Number of points after filtering
        filter_description: Human readable description of the filter

    Returns:
        Dictionary with statistics including counts, percentage, and filter description
    """
    percentage = (filtered_points / total_points * 100.0) if total_points > 0 else 0.0

    return {
        "total_points": total_points,
        "filtered_points": filtered_points,
        "removed_points": total_points - filtered_points,
        "percentage": percentage,
        "filter_description": filter_description or "no filter",
    }
