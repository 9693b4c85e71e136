"""
Subsampling Filters

Random and fixed-step subsampling. Both draw from an explicit numpy Generator
so results are reproducible for a given seed.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..datapoints import DataPoints
from ..utils.config import RandomSamplingParams, FixstepSamplingParams
from ..utils.logging import setup_logger
from .base import DataPointsFilter, make_rng

logger = setup_logger(__name__)


class RandomSamplingFilter(DataPointsFilter):
    """Keep every point independently with probability ``prob``."""

    name = "RandomSamplingDataPointsFilter"
    params_model = RandomSamplingParams

    def __init__(
        self,
        prob: float = 0.75,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        super().__init__(prob=prob, seed=seed)
        self.prob = self.params.prob
        self._rng = make_rng(self.params.seed, rng)

    def filter(self, cloud: DataPoints) -> DataPoints:
        keep = self._rng.random(cloud.n_points) < self.prob
        logger.debug("RandomSampling: kept %d of %d points.", int(keep.sum()), cloud.n_points)
        return cloud.select(keep)


class FixstepSamplingFilter(DataPointsFilter):
    """
    Keep one point every ``step`` points, starting at a random phase.

    After each call the step is multiplied by ``step_mult`` and clamped so it
    never moves past ``end_step``. The step persists across calls; call
    ``init()`` to reset it before an independent run.
    """

    name = "FixstepSamplingDataPointsFilter"
    params_model = FixstepSamplingParams

    def __init__(
        self,
        start_step: float = 10.0,
        end_step: float = 10.0,
        step_mult: float = 1.0,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        super().__init__(start_step=start_step, end_step=end_step, step_mult=step_mult, seed=seed)
        self.start_step = self.params.start_step
        self.end_step = self.params.end_step
        self.step_mult = self.params.step_mult
        self._rng = make_rng(self.params.seed, rng)
        self.step = self.start_step

    def init(self) -> None:
        self.step = self.start_step

    def filter(self, cloud: DataPoints) -> DataPoints:
        i_step = int(self.step)
        phase = int(self._rng.integers(i_step))
        keep = np.arange(phase, cloud.n_points, i_step)
        output = cloud.select(keep)

        delta_step = self.start_step * self.step_mult - self.start_step
        self.step *= self.step_mult
        if delta_step < 0 and self.step < self.end_step:
            self.step = self.end_step
        if delta_step > 0 and self.step > self.end_step:
            self.step = self.end_step

        logger.debug(
            "FixstepSampling: step %d, phase %d kept %d of %d points; next step %.2f.",
            i_step,
            phase,
            output.n_points,
            cloud.n_points,
            self.step,
        )
        return output
