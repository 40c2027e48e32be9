"""Simulation input parameters and their validation."""

from __future__ import annotations

import math
import numbers
from dataclasses import asdict, dataclass

from fleetpulse.config import MIN_SAMPLES


class ValidationError(ValueError):
    """Raised when simulation inputs violate their constraints."""


def _finite(name: str, value: float) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number.") from None
    if not math.isfinite(v):
        raise ValidationError(f"{name} must be finite.")
    return v


@dataclass(frozen=True)
class SimulationParameters:
    """Validated, immutable inputs for one Monte Carlo run.

    Market share and utilization bounds are fractions in [0, 1]. Use
    ``from_form`` to build an instance from percentage inputs.
    """

    fleet_size: float
    sf_share_min: float
    sf_share_max: float
    util_min: float
    util_max: float
    trips_per_day: float
    tpc_min: float
    tpc_max: float
    samples: int
    sensor_weight: float

    def __post_init__(self) -> None:
        for name in (
            "fleet_size",
            "sf_share_min",
            "sf_share_max",
            "util_min",
            "util_max",
            "trips_per_day",
            "tpc_min",
            "tpc_max",
            "sensor_weight",
        ):
            # frozen dataclass: normalise through object.__setattr__
            object.__setattr__(self, name, _finite(name, getattr(self, name)))

        if self.fleet_size <= 0:
            raise ValidationError("fleet_size must be > 0.")
        _check_fraction_range("sf_share", self.sf_share_min, self.sf_share_max)
        _check_fraction_range("util", self.util_min, self.util_max)
        if self.trips_per_day < 0:
            raise ValidationError("trips_per_day must be >= 0.")
        if self.tpc_min <= 0 or self.tpc_max < self.tpc_min:
            raise ValidationError("tpc_min must be > 0 and tpc_max >= tpc_min.")

        samples = self.samples
        if isinstance(samples, bool) or not isinstance(samples, (numbers.Integral, float)):
            raise ValidationError("samples must be an integer.")
        if isinstance(samples, float) and not samples.is_integer():
            raise ValidationError("samples must be an integer.")
        object.__setattr__(self, "samples", int(samples))
        if self.samples < MIN_SAMPLES:
            raise ValidationError(f"samples must be >= {MIN_SAMPLES}.")

        if not 0 <= self.sensor_weight <= 1:
            raise ValidationError("sensor_weight must be in [0, 1].")

    @classmethod
    def from_form(
        cls,
        *,
        fleet_size: float,
        sf_share_min: float,
        sf_share_max: float,
        util_min: float,
        util_max: float,
        trips_per_day: float,
        tpc_min: float,
        tpc_max: float,
        samples: int,
        sensor_weight: float,
    ) -> "SimulationParameters":
        """Build parameters from form inputs where shares are given in percent.

        Raises:
            ValidationError: with the message shown next to the form.
        """
        if not fleet_size > 0:
            raise ValidationError("Fleet size must be > 0.")
        if not (0 <= sf_share_min <= sf_share_max <= 100):
            raise ValidationError("SF share % invalid.")
        if not (0 <= util_min <= util_max <= 100):
            raise ValidationError("Utilization % invalid.")
        if not (tpc_min > 0 and tpc_max >= tpc_min):
            raise ValidationError("Trips/car invalid.")
        if not samples >= MIN_SAMPLES:
            raise ValidationError(f"Samples must be ≥ {MIN_SAMPLES}.")
        if not 0 <= sensor_weight <= 1:
            raise ValidationError("Sensor weight must be 0–1.")

        return cls(
            fleet_size=fleet_size,
            sf_share_min=sf_share_min / 100,
            sf_share_max=sf_share_max / 100,
            util_min=util_min / 100,
            util_max=util_max / 100,
            trips_per_day=trips_per_day,
            tpc_min=tpc_min,
            tpc_max=tpc_max,
            samples=samples,
            sensor_weight=sensor_weight,
        )

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


def _check_fraction_range(prefix: str, lo: float, hi: float) -> None:
    if lo < 0 or hi > 1 or lo > hi:
        raise ValidationError(
            f"{prefix}_min/{prefix}_max must satisfy 0 <= min <= max <= 1 (got {lo}, {hi})."
        )
