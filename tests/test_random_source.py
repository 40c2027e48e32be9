import math

import numpy as np
import pytest

from fleetpulse.random_source import RandomSource


class _ScriptedGenerator:
    """Stands in for numpy's Generator, replaying fixed uniform draws."""

    def __init__(self, values):
        self._values = list(values)

    def random(self):
        return self._values.pop(0)


def test_uniform_within_bounds():
    rng = RandomSource(seed=1)
    draws = [rng.uniform(2.0, 5.0) for _ in range(2000)]
    assert all(2.0 <= x < 5.0 for x in draws)


def test_uniform_degenerate_range_returns_min():
    rng = RandomSource(seed=1)
    assert rng.uniform(0.1, 0.1) == 0.1


def test_seeded_sources_repeat():
    a = RandomSource(seed=42)
    b = RandomSource(seed=42)
    assert [a.standard_normal() for _ in range(10)] == [b.standard_normal() for _ in range(10)]


def test_standard_normal_redraws_zero_uniforms():
    rng = RandomSource(generator=_ScriptedGenerator([0.0, 0.5, 0.0, 0.25]))
    # u1 = 0.5, u2 = 0.25 -> cos(pi / 2) == 0
    assert rng.standard_normal() == pytest.approx(0.0, abs=1e-12)


def test_standard_normal_uses_cosine_branch():
    rng = RandomSource(generator=_ScriptedGenerator([math.exp(-0.5), 1.0 / 2]))
    # sqrt(-2 ln u1) == 1, cos(pi) == -1
    assert rng.standard_normal() == pytest.approx(-1.0)


def test_standard_normal_moments():
    rng = RandomSource(seed=7)
    draws = np.array([rng.standard_normal() for _ in range(20000)])
    assert abs(draws.mean()) < 0.05
    assert draws.std() == pytest.approx(1.0, abs=0.05)
