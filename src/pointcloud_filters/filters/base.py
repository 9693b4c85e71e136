"""
Base class for data-points filters.

A filter is constructed from validated parameters and maps an input cloud to a
new output cloud. Filters never modify the cloud they are given.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Optional, Type

import numpy as np
from pydantic import BaseModel

from ..datapoints import DataPoints
from ..utils.config import IdentityParams


class DataPointsFilter(ABC):
    """
    Common interface of all filters.

    Subclasses set ``name`` (the key used in YAML filter chains) and
    ``params_model`` (the pydantic model validating their parameters).
    """

    name: ClassVar[str]
    params_model: ClassVar[Type[BaseModel]]

    def __init__(self, **params: Any):
        # Raises pydantic.ValidationError (a ValueError) on bad parameters
        self.params = self.params_model(**params)

    @classmethod
    def from_params(cls, params: Optional[Dict[str, Any]] = None) -> "DataPointsFilter":
        """Build the filter from a plain parameter mapping (e.g. parsed YAML)."""
        return cls(**(params or {}))

    def init(self) -> None:
        """Reset internal state between independent uses. Stateless filters do nothing."""

    @abstractmethod
    def filter(self, cloud: DataPoints) -> DataPoints:
        """Return a new filtered cloud."""

    def __call__(self, cloud: DataPoints) -> DataPoints:
        return self.filter(cloud)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.params!r})"


class IdentityFilter(DataPointsFilter):
    """Returns a copy of its input."""

    name = "IdentityDataPointsFilter"

    params_model = IdentityParams

    def filter(self, cloud: DataPoints) -> DataPoints:
        return cloud.copy()


def make_rng(seed: Optional[int] = None, rng: Optional[np.random.Generator] = None) -> np.random.Generator:
    """Explicit random source: the given generator, or a new one seeded with ``seed``."""
    if rng is not None:
        return rng
    return np.random.default_rng(seed)
