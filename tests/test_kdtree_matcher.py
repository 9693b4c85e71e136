"""Tests for the kd-tree nearest neighbour matcher."""

from pathlib import Path
import sys

import numpy as np
import pytest

sys.path.append(str(Path(__file__).parent.parent / "src"))

from pointcloud_filters.datapoints import DataPoints
from pointcloud_filters.errors import InvalidParameterError
from pointcloud_filters.matching import KDTreeMatcher, build_matcher


def _grid_cloud() -> DataPoints:
    xs, ys = np.meshgrid(np.arange(5.0), np.arange(5.0))
    return DataPoints.from_points(np.column_stack([xs.ravel(), ys.ravel(), np.zeros(25)]))


def test_self_query_returns_point_first():
    rng = np.random.default_rng(0)
    cloud = DataPoints.from_points(rng.normal(size=(50, 3)))
    matches = build_matcher(cloud, knn=3).find_closests(cloud.spatial)

    assert matches.ids.shape == (3, 50)
    assert matches.dists.shape == (3, 50)
    np.testing.assert_array_equal(matches.ids[0], np.arange(50))
    np.testing.assert_allclose(matches.dists[0], 0.0)
    assert np.all(np.diff(matches.dists, axis=0) >= 0)


def test_matches_brute_force():
    rng = np.random.default_rng(1)
    reference = DataPoints.from_points(rng.uniform(size=(80, 3)))
    query = rng.uniform(size=(3, 10))

    matches = KDTreeMatcher(knn=4).init(reference).find_closests(query)

    for j in range(10):
        dists = np.linalg.norm(reference.spatial - query[:, j:j + 1], axis=0)
        expected = np.sort(dists)[:4]
        np.testing.assert_allclose(matches.dists[:, j], expected)


def test_single_point_query():
    matcher = build_matcher(_grid_cloud(), knn=1)
    matches = matcher.query(np.array([2.1, 2.9, 0.0]))

    assert matches.ids.shape == (1, 1)
    assert matches.ids[0, 0] == 3 * 5 + 2


def test_knn_larger_than_reference():
    with pytest.raises(InvalidParameterError):
        KDTreeMatcher(knn=30).init(_grid_cloud())


@pytest.mark.parametrize("kwargs", [{"knn": 0}, {"knn": 2, "epsilon": -1.0}])
def test_invalid_parameters(kwargs):
    with pytest.raises(InvalidParameterError):
        KDTreeMatcher(**kwargs)


def test_query_before_init():
    with pytest.raises(ValueError):
        KDTreeMatcher(knn=1).find_closests(np.zeros((3, 1)))
