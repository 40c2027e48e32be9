"""Per-draw samplers for the fleet, trip and sensor channels.

Each function consumes randomness from a ``RandomSource`` and nothing else;
they never log or touch shared state, so draws are independent.
"""

from __future__ import annotations

import math

from fleetpulse.config import SENSOR_RELATIVE_SD
from fleetpulse.params import SimulationParameters
from fleetpulse.random_source import RandomSource


def sample_fleet(params: SimulationParameters, rng: RandomSource) -> float:
    """Fleet-size channel: fleet_size * market share * utilization."""
    share = rng.uniform(params.sf_share_min, params.sf_share_max)
    util = rng.uniform(params.util_min, params.util_max)
    return params.fleet_size * share * util


def sample_trip(params: SimulationParameters, rng: RandomSource) -> float:
    """Demand channel: daily trips divided by trips per vehicle.

    Returns exactly 0 when there is no demand, without consuming randomness.
    """
    if params.trips_per_day <= 0:
        return 0.0
    trips_per_car = rng.uniform(params.tpc_min, params.tpc_max)
    return params.trips_per_day / trips_per_car


def lognormal_params(mean: float, sd: float) -> tuple[float, float]:
    """Convert a mean and standard deviation to log-space (mu, sigma).

    Args:
        mean: Expected value of the distribution (must be positive).
        sd: Standard deviation (non-negative).

    Returns:
        Tuple (mu, sigma) such that exp(mu + sigma * Z) has the given moments.
    """
    if mean <= 0 or sd < 0:
        raise ValueError("mean must be positive and sd must be non-negative")
    variance_ratio = (sd / mean) ** 2
    sigma2 = math.log(1.0 + variance_ratio)
    return math.log(mean) - sigma2 / 2.0, math.sqrt(sigma2)


def is_valid_point(point: object) -> bool:
    """True when ``point`` is a finite, strictly positive real."""
    if point is None or isinstance(point, bool):
        return False
    try:
        v = float(point)
    except (TypeError, ValueError):
        return False
    return math.isfinite(v) and v > 0


def sample_sensor(
    point: float | None,
    rng: RandomSource,
    relative_sd: float = SENSOR_RELATIVE_SD,
) -> float:
    """Sensor channel: log-normal around the observed citywide estimate.

    Returns NaN when there is no usable point estimate (None, NaN, inf,
    zero or negative); that NaN means "no sensor evidence for this draw".
    """
    if not is_valid_point(point):
        return math.nan
    mean = float(point)
    mu, sigma = lognormal_params(mean, relative_sd * mean)
    return math.exp(mu + sigma * rng.standard_normal())
