"""
Filter chains.

Filters are looked up by their registered name and applied in sequence, the
output of one feeding the next. Chains are usually built from the ``filters``
section of the YAML configuration.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Type

import numpy as np

from ..datapoints import DataPoints
from ..errors import InvalidParameterError
from ..utils.config import AppConfig
from ..utils.logging import setup_logger
from .base import DataPointsFilter, IdentityFilter
from .density import UniformizeDensityFilter
from .distance import MaxDistFilter, MinDistFilter, MaxQuantileOnAxisFilter
from .orientation import OrientNormalsFilter
from .sampling import RandomSamplingFilter, FixstepSamplingFilter
from .sampling_surface_normals import SamplingSurfaceNormalFilter
from .surface_normals import SurfaceNormalFilter

logger = setup_logger(__name__)

FILTER_REGISTRY: Dict[str, Type[DataPointsFilter]] = {
    cls.name: cls
    for cls in (
        IdentityFilter,
        MaxDistFilter,
        MinDistFilter,
        MaxQuantileOnAxisFilter,
        UniformizeDensityFilter,
        SurfaceNormalFilter,
        SamplingSurfaceNormalFilter,
        OrientNormalsFilter,
        RandomSamplingFilter,
        FixstepSamplingFilter,
    )
}


def create_filter(name: str, params: Optional[Dict[str, Any]] = None) -> DataPointsFilter:
    """
    Instantiate a registered filter.

    Args:
        name: Registered filter name (e.g. "SurfaceNormalDataPointsFilter")
        params: Parameter mapping validated by the filter's parameter model

    Returns:
        Configured filter instance

    Raises:
        InvalidParameterError: If the name is unknown.
        pydantic.ValidationError: If a parameter violates its constraints.
    """
    try:
        cls = FILTER_REGISTRY[name]
    except KeyError:
        raise InvalidParameterError(
            f"Unknown filter '{name}'. Available: {sorted(FILTER_REGISTRY)}"
        ) from None
    return cls.from_params(params)


class DataPointsFilters:
    """Ordered sequence of filters applied one after the other."""

    def __init__(self, filters: Optional[Iterable[DataPointsFilter]] = None):
        self.filters: List[DataPointsFilter] = list(filters or [])

    @classmethod
    def from_config(cls, config: AppConfig) -> "DataPointsFilters":
        """
        Build the chain described by ``config.filters``.

        When ``config.random.seed`` is set, every filter accepting a ``seed``
        that does not define its own gets one spawned from it.
        """
        seeds = None
        if config.random.seed is not None:
            children = np.random.SeedSequence(config.random.seed).spawn(len(config.filters))
            seeds = [int(child.generate_state(1)[0]) for child in children]

        filters = []
        for i, entry in enumerate(config.filters):
            params = dict(entry.params)
            filter_cls = FILTER_REGISTRY.get(entry.name)
            if seeds is not None and filter_cls is not None and "seed" in filter_cls.params_model.model_fields:
                params.setdefault("seed", seeds[i])
            filters.append(create_filter(entry.name, params))
        return cls(filters)

    def init(self) -> None:
        """Reset the state of every filter (e.g. fixed-step counters)."""
        for f in self.filters:
            f.init()

    def apply(self, cloud: DataPoints) -> DataPoints:
        """Run every filter in order and return the final cloud."""
        n_start = cloud.n_points
        for f in self.filters:
            n_before = cloud.n_points
            cloud = f.filter(cloud)
            logger.debug("%s: %d -> %d points.", f.name, n_before, cloud.n_points)
        logger.info("Filter chain of %d filters: %d -> %d points.", len(self.filters), n_start, cloud.n_points)
        return cloud

    def append(self, f: DataPointsFilter) -> None:
        self.filters.append(f)

    def __len__(self) -> int:
        return len(self.filters)

    def __iter__(self):
        return iter(self.filters)
