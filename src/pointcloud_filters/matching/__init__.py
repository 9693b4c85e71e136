"""
Nearest Neighbour Matching Module

k-nearest-neighbour search over the spatial rows of a cloud.
"""

from .kdtree import KDTreeMatcher, Matches, build_matcher

__all__ = [
    "KDTreeMatcher",
    "Matches",
    "build_matcher",
]
