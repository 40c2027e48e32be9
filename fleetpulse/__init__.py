"""FleetPulse: citywide robotaxi fleet estimation from cameras, fleet and demand models."""

from fleetpulse.params import SimulationParameters, ValidationError
from fleetpulse.random_source import RandomSource
from fleetpulse.samplers import sample_fleet, sample_trip, sample_sensor
from fleetpulse.estimate import blend_samples, citywide_from_detections
from fleetpulse.summary import SummaryStatistic, percentile, summarize
from fleetpulse.simulation import MonteCarloEngine, SimulationResult, run_monte_carlo
from fleetpulse.cameras import AcquisitionError, Camera, CameraListError, load_cameras
from fleetpulse.detect import get_detector
from fleetpulse.sensor import SensorObservation, SensorPoller, sample_cameras
from fleetpulse.viz import histogram

__all__ = [
    "SimulationParameters",
    "ValidationError",
    "RandomSource",
    "sample_fleet",
    "sample_trip",
    "sample_sensor",
    "blend_samples",
    "citywide_from_detections",
    "SummaryStatistic",
    "percentile",
    "summarize",
    "MonteCarloEngine",
    "SimulationResult",
    "run_monte_carlo",
    "AcquisitionError",
    "Camera",
    "CameraListError",
    "load_cameras",
    "get_detector",
    "SensorObservation",
    "SensorPoller",
    "sample_cameras",
    "histogram",
]
