"""Citywide estimate helpers: extrapolating detections and blending channels."""


def citywide_from_detections(total_detections: int, coverage: float) -> float:
    """Extrapolate a citywide vehicle count from what the cameras saw.

    Formula: citywide = total_detections / coverage.

    Args:
        total_detections: Vehicles detected across all usable cameras.
        coverage: Estimated fraction of city activity the cameras see, in (0, 1].

    Returns:
        Citywide estimate (non-negative float).
    """
    if not 0 < coverage <= 1:
        raise ValueError("coverage must be in (0, 1]")
    if total_detections < 0:
        raise ValueError("total_detections must be non-negative")
    return total_detections / coverage


def blend_samples(fleet: float, trip: float, sensor: float, sensor_weight: float) -> float:
    """Combine one draw from each channel into a blended estimate.

    Without sensor evidence (NaN/inf sensor, or sensor_weight == 0) the result
    is the plain average of fleet and trip. Otherwise the sensor gets
    ``sensor_weight`` and fleet/trip share the rest equally. A missing sensor
    never bumps fleet/trip above 0.5 each.

    Args:
        fleet: Fleet-channel sample.
        trip: Trip-channel sample.
        sensor: Sensor-channel sample, or a non-finite value for "no evidence".
        sensor_weight: Sensor weight in [0, 1].

    Returns:
        Blended estimate.
    """
    import math
    if not math.isfinite(sensor) or sensor_weight == 0:
        return 0.5 * fleet + 0.5 * trip
    rest = (1 - sensor_weight) / 2
    return rest * fleet + rest * trip + sensor_weight * sensor
