"""Normally distributed samples for the station's stochastic decisions."""

from __future__ import annotations

import math
import random
from typing import Optional


class RandomModel:
    """Box-Muller sampler over an injectable uniform source.

    Pass a seeded ``random.Random`` (or a ``seed``) to replay a run. Tests may
    subclass and override ``standard_normal`` to feed exact z-values.
    """

    def __init__(self, rng: Optional[random.Random] = None, seed: Optional[int] = None):
        self.rng = rng if rng is not None else random.Random(seed)

    def standard_normal(self) -> float:
        # 1 - random() keeps u1 in (0, 1] so log(u1) stays finite
        u1 = 1.0 - self.rng.random()
        u2 = self.rng.random()
        return math.sqrt(-2.0 * math.log(u1)) * math.sin(2.0 * math.pi * u2)

    def normal(self, mean: float, stddev: float) -> float:
        return mean + stddev * self.standard_normal()
