"""
Tests for the bounded-space sampling filter.

Checks the leaf partition (termination, disjoint cover, order statistic
split), fused output points, degenerate leaf dropping and descriptor layout.
"""

from itertools import product
from pathlib import Path
import sys

import numpy as np
import pytest

sys.path.append(str(Path(__file__).parent.parent / "src"))

from pointcloud_filters.datapoints import DataPoints, Label
from pointcloud_filters.errors import DescriptorLabelMismatchError
from pointcloud_filters.filters.sampling_surface_normals import (
    SamplingSurfaceNormalFilter,
    iter_leaves,
)
from pointcloud_filters.geometry import estimate_local_geometry


def _make_random_cloud(n: int = 512, seed: int = 0) -> DataPoints:
    rng = np.random.default_rng(seed)
    # Anisotropic spread to avoid degenerate covariance
    points = rng.normal(size=(n, 3)) * np.array([10.0, 5.0, 2.0])
    return DataPoints.from_points(points)


class TestIterLeaves:
    """Partition of the index array into leaves."""

    @pytest.mark.parametrize("n_points", [1, 2, 7, 8, 100, 513])
    @pytest.mark.parametrize("bin_size", [1, 3, 7])
    def test_leaves_cover_every_index_once(self, n_points, bin_size):
        positions = np.random.default_rng(n_points).normal(size=(3, n_points))
        indices = np.arange(n_points)

        leaves = list(iter_leaves(indices, positions, bin_size))

        sizes = [last - first for first, last in leaves]
        assert all(1 <= size <= bin_size for size in sizes)
        assert sum(sizes) == n_points
        # Leaves are contiguous and ordered
        assert leaves[0][0] == 0
        assert leaves[-1][1] == n_points
        for (_, last), (first, _) in zip(leaves[:-1], leaves[1:]):
            assert last == first
        np.testing.assert_array_equal(np.sort(indices), np.arange(n_points))

    def test_single_leaf_when_below_bin_size(self):
        positions = np.random.default_rng(0).normal(size=(3, 5))
        indices = np.arange(5)
        assert list(iter_leaves(indices, positions, 7)) == [(0, 5)]

    def test_first_split_is_median_of_longest_axis(self):
        """With one split, the left half holds the smallest values of the widest axis."""
        rng = np.random.default_rng(2)
        positions = np.vstack([rng.uniform(0, 1, 10), rng.uniform(0, 100, 10), rng.uniform(0, 1, 10)])
        indices = np.arange(10)

        leaves = list(iter_leaves(indices, positions, 5))

        assert leaves == [(0, 5), (5, 10)]
        left = positions[1, indices[:5]]
        right = positions[1, indices[5:]]
        assert left.max() <= right.min()
        assert positions[1, indices[5]] == np.sort(positions[1])[5]

    def test_ties_cut_first_axis(self):
        """Equal extents on every axis cut on axis 0."""
        positions = np.array([[0.0, 1.0, 2.0, 3.0], [3.0, 2.0, 1.0, 0.0]])
        indices = np.arange(4)

        list(iter_leaves(indices, positions, 2))

        assert set(indices[:2]) == {0, 1}
        assert set(indices[2:]) == {2, 3}

    def test_empty(self):
        assert list(iter_leaves(np.arange(0), np.empty((3, 0)), 7)) == []

    def test_invalid_bin_size(self):
        with pytest.raises(ValueError):
            list(iter_leaves(np.arange(4), np.zeros((3, 4)), 0))


class TestSamplingSurfaceNormalFilter:
    """Fused output of the sampling filter."""

    def test_output_points_are_leaf_means(self):
        cloud = _make_random_cloud(n=512, seed=1)
        result = SamplingSurfaceNormalFilter(bin_size=7).filter(cloud)

        # The partition is deterministic: recompute it to recover the leaves
        indices = np.arange(cloud.n_points)
        leaves = list(iter_leaves(indices, cloud.spatial, 7))

        assert result.n_points == len(leaves)
        for col, (first, last) in enumerate(leaves):
            expected = cloud.spatial[:, indices[first:last]].mean(axis=1)
            np.testing.assert_allclose(result.spatial[:, col], expected)
        np.testing.assert_array_equal(result.features[-1], np.ones(result.n_points))

    def test_normals_are_unit_vectors(self):
        cloud = _make_random_cloud(n=300, seed=4)
        result = SamplingSurfaceNormalFilter(bin_size=10).filter(cloud)

        normals = result.get_descriptor_by_name("normals")
        assert normals.shape == (3, result.n_points)
        np.testing.assert_allclose(np.linalg.norm(normals, axis=0), 1.0, atol=1e-9)

    def test_planar_cloud_drops_every_leaf(self):
        rng = np.random.default_rng(0)
        points = np.column_stack([rng.uniform(size=(200, 2)), np.zeros(200)])
        cloud = DataPoints.from_points(points)

        result = SamplingSurfaceNormalFilter(bin_size=7, keep_densities=True).filter(cloud)

        assert result.n_points == 0
        assert result.descriptors.shape == (4, 0)
        assert [label.text for label in result.descriptor_labels] == ["normals", "densities"]

    def test_degenerate_leaves_reduce_count(self):
        """Leaves made of coincident points are dropped, others are kept."""
        rng = np.random.default_rng(3)
        spread = rng.normal(size=(64, 3))
        # Eight far-away clusters of eight identical points each
        centers = np.array([[100.0 * i, 0.0, 0.0] for i in range(1, 9)])
        clusters = np.repeat(centers, 8, axis=0)
        cloud = DataPoints.from_points(np.vstack([spread, clusters]))

        result = SamplingSurfaceNormalFilter(bin_size=8).filter(cloud)

        indices = np.arange(cloud.n_points)
        leaves = list(iter_leaves(indices, cloud.spatial, 8))
        kept = sum(
            not estimate_local_geometry(cloud.spatial[:, indices[first:last]]).degenerate
            for first, last in leaves
        )
        assert result.n_points == kept
        assert result.n_points < len(leaves)
        assert result.n_points < cloud.n_points

    def test_unique_random_points_never_degenerate(self):
        cloud = _make_random_cloud(n=256, seed=9)
        result = SamplingSurfaceNormalFilter(bin_size=4).filter(cloud)
        # 256 points split evenly into leaves of four
        assert result.n_points == 64

    @pytest.mark.parametrize("flags", list(product([False, True], repeat=4)))
    def test_descriptor_rows_match_enabled_fields(self, flags):
        keep_normals, keep_densities, keep_eigen_values, keep_eigen_vectors = flags
        cloud = _make_random_cloud(n=128, seed=2)
        cloud.descriptors = np.vstack([np.arange(128.0), np.ones((2, 128))])
        cloud.descriptor_labels = [Label("intensity", 1), Label("color", 2)]

        result = SamplingSurfaceNormalFilter(
            bin_size=8,
            keep_normals=keep_normals,
            keep_densities=keep_densities,
            keep_eigen_values=keep_eigen_values,
            keep_eigen_vectors=keep_eigen_vectors,
        ).filter(cloud)

        expected_rows = 3 + 3 * keep_normals + keep_densities + 3 * keep_eigen_values + 9 * keep_eigen_vectors
        assert result.descriptors.shape[0] == expected_rows
        assert result.validate_descriptors() == expected_rows

    def test_existing_descriptors_are_averaged(self):
        cloud = _make_random_cloud(n=128, seed=5)
        cloud.descriptors = cloud.spatial[:1].copy()
        cloud.descriptor_labels = [Label("x_copy", 1)]

        result = SamplingSurfaceNormalFilter(bin_size=8).filter(cloud)

        assert result.descriptor_labels[0] == Label("x_copy", 1)
        np.testing.assert_allclose(result.get_descriptor_by_name("x_copy")[0], result.spatial[0])

    def test_existing_descriptors_dropped_without_averaging(self):
        cloud = _make_random_cloud(n=64, seed=6)
        cloud.descriptors = np.ones((1, 64))
        cloud.descriptor_labels = [Label("intensity", 1)]

        result = SamplingSurfaceNormalFilter(bin_size=8, average_existing_descriptors=False).filter(cloud)

        assert [label.text for label in result.descriptor_labels] == ["normals"]
        assert result.descriptors.shape[0] == 3

    def test_mismatched_labels_rejected(self):
        cloud = _make_random_cloud(n=32)
        cloud.descriptors = np.ones((2, 32))
        cloud.descriptor_labels = [Label("intensity", 1)]

        with pytest.raises(DescriptorLabelMismatchError):
            SamplingSurfaceNormalFilter().filter(cloud)

    def test_input_not_modified(self):
        cloud = _make_random_cloud(n=100, seed=8)
        before = cloud.features.copy()

        SamplingSurfaceNormalFilter(bin_size=5).filter(cloud)

        np.testing.assert_array_equal(cloud.features, before)

    def test_two_dimensional_cloud(self):
        rng = np.random.default_rng(10)
        cloud = DataPoints.from_points(rng.normal(size=(64, 2)))

        result = SamplingSurfaceNormalFilter(bin_size=4, keep_eigen_vectors=True).filter(cloud)

        assert result.features.shape[0] == 3
        assert [(label.text, label.span) for label in result.descriptor_labels] == [
            ("normals", 2),
            ("eigenVectors", 4),
        ]

    def test_empty_cloud(self):
        cloud = DataPoints.from_points(np.empty((0, 3)))
        result = SamplingSurfaceNormalFilter().filter(cloud)
        assert result.n_points == 0

    def test_invalid_bin_size(self):
        with pytest.raises(ValueError):
            SamplingSurfaceNormalFilter(bin_size=0)
