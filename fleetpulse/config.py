"""Defaults and tuning constants for FleetPulse.

Values that operators may want to change without touching code are read from
environment variables; everything else is a plain module constant.
"""

import logging
import os

LOGGER = logging.getLogger(__name__)


def env_int(name, default=None):
    """Integer from an environment variable; unset, empty or malformed gives ``default``."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        LOGGER.warning("Ignoring %s=%r: not an integer", name, raw)
        return default


# Simulation
MIN_SAMPLES = 1000
SENSOR_RELATIVE_SD = 0.3  # sensor channel sd as a fraction of its point estimate
PERCENTILE_LOW = 0.05
PERCENTILE_HIGH = 0.95
RANDOM_SEED = env_int("FLEETPULSE_SEED")

# Histogram
HISTOGRAM_MIN_BINS = 10
HISTOGRAM_MAX_BINS = 40

# Camera sampling
CAMERAS_PATH = os.environ.get("FLEETPULSE_CAMERAS", "cameras.json")
DETECTOR = os.environ.get("FLEETPULSE_DETECTOR", "heuristic")
SAMPLE_INTERVAL_S = 30.0
MAX_FETCH_WORKERS = 8
REQUEST_TIMEOUT = (3.0, 15.0)  # (connect, read) seconds

# Heuristic detector
DETECT_WIDTH = 320
DETECT_BAND_START = 0.4  # fraction of frame height where the scan starts
BRIGHT_THRESHOLD = 180
LOW_SAT_THRESHOLD = 40
MIN_WHITE_PIXELS = 200
WHITE_PIXELS_PER_CAR = 800

# Form defaults (shares and utilization in percent, as entered)
DEFAULT_INPUTS = {
    "fleet_size": 1500,
    "sf_share_min": 30.0,
    "sf_share_max": 50.0,
    "util_min": 40.0,
    "util_max": 70.0,
    "trips_per_day": 10000,
    "tpc_min": 15.0,
    "tpc_max": 25.0,
    "samples": 10000,
    "sensor_weight": 0.3,
}
DEFAULT_COVERAGE = 0.05
