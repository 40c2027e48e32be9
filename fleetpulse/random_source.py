"""Uniform and standard-normal variates for the samplers."""

from __future__ import annotations

import math

import numpy as np


class RandomSource:
    """Thin wrapper over a numpy ``Generator``.

    One instance per run (or per thread): numpy generators are not safe for
    concurrent use.
    """

    def __init__(self, seed: int | None = None, generator: np.random.Generator | None = None):
        self._gen = generator if generator is not None else np.random.default_rng(seed)

    def random(self) -> float:
        """Uniform draw in [0, 1)."""
        return float(self._gen.random())

    def uniform(self, lo: float, hi: float) -> float:
        """Uniform draw in [lo, hi); returns lo when the range is degenerate."""
        if lo == hi:
            return lo
        return lo + self.random() * (hi - lo)

    def standard_normal(self) -> float:
        """Box-Muller, cosine branch only. Nothing is cached between calls."""
        u1 = 0.0
        while u1 == 0.0:
            u1 = self.random()
        u2 = 0.0
        while u2 == 0.0:
            u2 = self.random()
        return math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
