import dataclasses
import math
import re

import numpy as np
import pytest

from fleetpulse.params import SimulationParameters, ValidationError

VALID = dict(
    fleet_size=1500,
    sf_share_min=0.1,
    sf_share_max=0.2,
    util_min=0.5,
    util_max=0.6,
    trips_per_day=0,
    tpc_min=10,
    tpc_max=10,
    samples=5000,
    sensor_weight=0,
)

FORM = dict(
    fleet_size=1500,
    sf_share_min=30,
    sf_share_max=50,
    util_min=40,
    util_max=70,
    trips_per_day=10000,
    tpc_min=15,
    tpc_max=25,
    samples=10000,
    sensor_weight=0.3,
)


def _with(base, **overrides):
    out = dict(base)
    out.update(overrides)
    return out


def test_valid_parameters_construct():
    p = SimulationParameters(**VALID)
    assert p.samples == 5000
    assert isinstance(p.fleet_size, float)


def test_parameters_are_immutable():
    p = SimulationParameters(**VALID)
    with pytest.raises(dataclasses.FrozenInstanceError):
        p.fleet_size = 10


@pytest.mark.parametrize(
    "overrides",
    [
        {"fleet_size": 0},
        {"fleet_size": -1},
        {"sf_share_min": 0.3, "sf_share_max": 0.2},
        {"util_min": -0.1},
        {"util_max": 1.2},
        {"trips_per_day": -1},
        {"tpc_min": 0},
        {"tpc_min": 12, "tpc_max": 10},
        {"samples": 500},
        {"samples": 1000.5},
        {"samples": True},
        {"sensor_weight": 1.5},
        {"sensor_weight": -0.1},
        {"fleet_size": math.nan},
        {"trips_per_day": math.inf},
        {"fleet_size": "many"},
    ],
)
def test_invalid_parameters_rejected(overrides):
    with pytest.raises(ValidationError):
        SimulationParameters(**_with(VALID, **overrides))


def test_validation_error_is_value_error():
    assert issubclass(ValidationError, ValueError)


def test_from_form_converts_percentages():
    p = SimulationParameters.from_form(**FORM)
    assert p.sf_share_min == pytest.approx(0.3)
    assert p.sf_share_max == pytest.approx(0.5)
    assert p.util_min == pytest.approx(0.4)
    assert p.util_max == pytest.approx(0.7)
    assert p.tpc_min == 15


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"fleet_size": 0}, "Fleet size must be > 0."),
        ({"sf_share_min": 60}, "SF share % invalid."),
        ({"sf_share_max": 120}, "SF share % invalid."),
        ({"util_min": -5}, "Utilization % invalid."),
        ({"tpc_min": 0}, "Trips/car invalid."),
        ({"tpc_max": 10}, "Trips/car invalid."),
        ({"samples": 500}, "Samples must be ≥ 1000."),
        ({"sensor_weight": 1.5}, "Sensor weight must be 0–1."),
    ],
)
def test_from_form_messages(overrides, message):
    with pytest.raises(ValidationError, match=re.escape(message)):
        SimulationParameters.from_form(**_with(FORM, **overrides))


def test_to_dict_round_trips_fields():
    p = SimulationParameters(**VALID)
    assert SimulationParameters(**p.to_dict()) == p


def test_numpy_integer_samples_accepted():
    p = SimulationParameters(**_with(VALID, samples=np.int64(5000)))
    assert p.samples == 5000
    assert type(p.samples) is int


def test_integral_float_samples_accepted():
    assert SimulationParameters(**_with(VALID, samples=2000.0)).samples == 2000
