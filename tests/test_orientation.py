"""Tests for normal orientation."""

from pathlib import Path
import sys

import numpy as np
import pytest

sys.path.append(str(Path(__file__).parent.parent / "src"))

from pointcloud_filters.datapoints import DataPoints, Label
from pointcloud_filters.filters import OrientNormalsFilter, SurfaceNormalFilter


def _cloud_with_normals(points, normals) -> DataPoints:
    return DataPoints.from_points(
        np.asarray(points, dtype=float),
        descriptors=np.asarray(normals, dtype=float).T,
        descriptor_labels=[Label("normals", 3)],
    )


def test_normals_pointing_at_origin_are_flipped():
    cloud = _cloud_with_normals(
        points=[[0.0, 0.0, 5.0], [3.0, 0.0, 0.0]],
        normals=[[0.0, 0.0, -1.0], [1.0, 0.0, 0.0]],
    )

    result = OrientNormalsFilter().filter(cloud)

    np.testing.assert_array_equal(
        result.get_descriptor_by_name("normals"),
        np.array([[0.0, 0.0, 1.0], [1.0, 0.0, 0.0]]).T,
    )


def test_every_normal_points_away_from_origin():
    rng = np.random.default_rng(0)
    points = rng.normal(size=(200, 3)) * 10.0
    normals = rng.normal(size=(200, 3))
    cloud = _cloud_with_normals(points, normals)

    result = OrientNormalsFilter().filter(cloud)

    oriented = result.get_descriptor_by_name("normals")
    assert np.all(np.sum(result.spatial * oriented, axis=0) >= 0)
    np.testing.assert_allclose(np.abs(oriented), np.abs(normals.T))


def test_other_descriptors_untouched():
    cloud = DataPoints.from_points(
        np.array([[0.0, 0.0, 2.0]]),
        descriptors=np.array([[7.0], [0.0], [0.0], [-1.0]]),
        descriptor_labels=[Label("intensity", 1), Label("normals", 3)],
    )

    result = OrientNormalsFilter().filter(cloud)

    assert result.descriptors[0, 0] == 7.0
    np.testing.assert_array_equal(result.get_descriptor_by_name("normals")[:, 0], [0.0, 0.0, 1.0])


def test_input_not_modified():
    cloud = _cloud_with_normals([[0.0, 0.0, 5.0]], [[0.0, 0.0, -1.0]])
    OrientNormalsFilter().filter(cloud)
    np.testing.assert_array_equal(cloud.descriptors[:, 0], [0.0, 0.0, -1.0])


def test_missing_normals_returns_copy():
    cloud = DataPoints.from_points(np.ones((4, 3)))
    result = OrientNormalsFilter().filter(cloud)

    assert result is not cloud
    np.testing.assert_array_equal(result.features, cloud.features)


def test_normals_span_mismatch_rejected():
    cloud = DataPoints.from_points(
        np.ones((2, 3)),
        descriptors=np.ones((2, 2)),
        descriptor_labels=[Label("normals", 2)],
    )
    with pytest.raises(ValueError):
        OrientNormalsFilter().filter(cloud)


def test_orients_estimated_normals():
    rng = np.random.default_rng(1)
    xy = rng.uniform(-5.0, 5.0, size=(300, 2))
    ground = np.column_stack([xy, -2.0 + 1e-3 * rng.standard_normal(300)])
    with_normals = SurfaceNormalFilter(knn=8).filter(DataPoints.from_points(ground))

    result = OrientNormalsFilter().filter(with_normals)

    # Ground below the origin: outward normals point down
    assert np.all(result.get_descriptor_by_name("normals")[2] < -0.99)
