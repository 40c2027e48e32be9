"""Summary statistics over sample sequences.

Non-finite entries (the sensor channel's "no evidence" marker) are ignored.
A sequence with no finite entries yields an undefined statistic, which is
kept distinct from a statistic whose values happen to be zero.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np

from fleetpulse.config import PERCENTILE_HIGH, PERCENTILE_LOW


@dataclass(frozen=True)
class SummaryStatistic:
    mean: float
    p5: float
    p95: float

    @classmethod
    def undefined(cls) -> "SummaryStatistic":
        return cls(mean=math.nan, p5=math.nan, p95=math.nan)

    @property
    def is_defined(self) -> bool:
        return math.isfinite(self.mean)


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """Linear-interpolation percentile of an ascending, non-empty sequence.

    idx = p * (m - 1); the result interpolates between a[floor(idx)] and
    a[ceil(idx)], and is exactly a[idx] when idx is integral.
    """
    if len(sorted_values) == 0:
        raise ValueError("percentile of an empty sequence")
    idx = p * (len(sorted_values) - 1)
    lo = math.floor(idx)
    hi = math.ceil(idx)
    if lo == hi:
        return float(sorted_values[lo])
    return float(sorted_values[lo] * (hi - idx) + sorted_values[hi] * (idx - lo))


def summarize(values: Iterable[float]) -> SummaryStatistic:
    """Mean and the 5th/95th percentile band over the finite values."""
    arr = np.fromiter(values, dtype=float)
    finite = np.sort(arr[np.isfinite(arr)])
    if finite.size == 0:
        return SummaryStatistic.undefined()
    return SummaryStatistic(
        mean=float(finite.mean()),
        p5=percentile(finite, PERCENTILE_LOW),
        p95=percentile(finite, PERCENTILE_HIGH),
    )


def format_mean(stat: SummaryStatistic) -> str:
    """Rounded mean, or "–" when undefined."""
    return str(round(stat.mean)) if stat.is_defined else "–"


def format_range(stat: SummaryStatistic) -> str:
    """Rounded "p5–p95" band, or "–" when undefined."""
    if not math.isfinite(stat.p5):
        return "–"
    return f"{round(stat.p5)}–{round(stat.p95)}"
