"""
Monte Carlo engine combining the fleet, trip and sensor channels.

Each iteration draws one sample per channel, blends them, and stores all four
values. Iterations never read each other's output, so the loop could be split
across workers as long as each worker owns its own RandomSource.

The observed sensor point is passed in explicitly; the engine keeps no
"last observation" of its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from fleetpulse.estimate import blend_samples
from fleetpulse.params import SimulationParameters
from fleetpulse.random_source import RandomSource
from fleetpulse.samplers import is_valid_point, sample_fleet, sample_sensor, sample_trip
from fleetpulse.summary import SummaryStatistic, summarize

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulationResult:
    """Four parallel sample sequences and their summaries for one run."""

    fleet_samples: np.ndarray
    trip_samples: np.ndarray
    sensor_samples: np.ndarray
    blended_samples: np.ndarray
    fleet_stats: SummaryStatistic
    trip_stats: SummaryStatistic
    sensor_stats: SummaryStatistic
    blended_stats: SummaryStatistic
    sensor_point: Optional[float] = None

    @property
    def samples(self) -> int:
        return len(self.blended_samples)

    def stats_by_channel(self) -> dict[str, SummaryStatistic]:
        return {
            "Fleet model": self.fleet_stats,
            "Trip model": self.trip_stats,
            "Sensor": self.sensor_stats,
            "Blended": self.blended_stats,
        }


class MonteCarloEngine:
    """
    Runs ``params.samples`` independent draws through the three samplers and
    the blender.

    Args:
        rng: Random source for this engine. A fresh unseeded source is used
            when omitted; pass ``RandomSource(seed)`` for reproducible runs.
    """

    def __init__(self, rng: RandomSource | None = None):
        self.rng = rng if rng is not None else RandomSource()

    def run(self, params: SimulationParameters, sensor_point: float | None = None) -> SimulationResult:
        if not isinstance(params, SimulationParameters):
            raise TypeError("params must be a SimulationParameters instance")

        n = params.samples
        LOGGER.info(
            "Running %d draws (sensor point: %s, sensor weight: %.2f)",
            n,
            sensor_point if is_valid_point(sensor_point) else "none",
            params.sensor_weight,
        )

        fleet = np.zeros(n)
        trip = np.zeros(n)
        sensor = np.zeros(n)
        blended = np.zeros(n)

        for i in range(n):
            f = sample_fleet(params, self.rng)
            t = sample_trip(params, self.rng)
            s = sample_sensor(sensor_point, self.rng)
            fleet[i] = f
            trip[i] = t
            sensor[i] = s
            blended[i] = blend_samples(f, t, s, params.sensor_weight)

        result = SimulationResult(
            fleet_samples=fleet,
            trip_samples=trip,
            sensor_samples=sensor,
            blended_samples=blended,
            fleet_stats=summarize(fleet),
            trip_stats=summarize(trip),
            sensor_stats=summarize(sensor),
            blended_stats=summarize(blended),
            sensor_point=float(sensor_point) if is_valid_point(sensor_point) else None,
        )
        LOGGER.debug("Blended summary: %s", result.blended_stats)
        return result


def run_monte_carlo(
    params: SimulationParameters,
    sensor_point: float | None = None,
    rng: RandomSource | None = None,
) -> SimulationResult:
    """Module-level convenience wrapper around ``MonteCarloEngine.run``."""
    return MonteCarloEngine(rng=rng).run(params, sensor_point)
