"""
Normal orientation filter.

Flips surface normals so they point away from the origin, i.e. away from the
sensor for clouds expressed in the sensor frame.
"""

from __future__ import annotations

import numpy as np

from ..datapoints import DataPoints
from ..utils.config import OrientNormalsParams
from ..utils.logging import setup_logger
from .base import DataPointsFilter

logger = setup_logger(__name__)


class OrientNormalsFilter(DataPointsFilter):
    """Flip every normal whose dot product with the point-to-origin vector is positive."""

    name = "OrientNormalsDataPointsFilter"
    params_model = OrientNormalsParams

    def filter(self, cloud: DataPoints) -> DataPoints:
        row = cloud.descriptor_row_offset("normals")
        if row is None:
            logger.warning("Cannot find normals in descriptors; cloud returned unchanged.")
            return cloud.copy()

        output = cloud.copy()
        normals = output.get_descriptor_by_name("normals")
        if normals.shape[0] != cloud.dimension:
            raise ValueError(
                f"Normals span {normals.shape[0]} rows but the cloud has {cloud.dimension} spatial dimensions"
            )

        scalar = np.sum(-cloud.spatial * normals, axis=0)
        flip = scalar > 0
        # get_descriptor_by_name returns a view, so this updates output.descriptors
        normals[:, flip] *= -1

        logger.debug("OrientNormals: flipped %d of %d normals.", int(flip.sum()), cloud.n_points)
        return output
