"""Camera sampling passes that turn per-camera detections into a citywide estimate."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

import numpy as np

from fleetpulse.cameras import AcquisitionError, Camera, CameraListError, fetch_frame, make_session
from fleetpulse.config import MAX_FETCH_WORKERS, SAMPLE_INTERVAL_S
from fleetpulse.detect import detect_vehicles_heuristic
from fleetpulse.estimate import citywide_from_detections

LOGGER = logging.getLogger(__name__)

FetchFn = Callable[[Camera], np.ndarray]
DetectFn = Callable[[np.ndarray], int]


@dataclass(frozen=True)
class SensorObservation:
    """Outcome of one sampling pass over all cameras."""

    detections: int
    cameras_used: int
    citywide_estimate: Optional[float]
    sampled_at: float = field(default_factory=time.time)

    @property
    def available(self) -> bool:
        return self.citywide_estimate is not None


def _count_one(camera: Camera, fetch: FetchFn, detector: DetectFn) -> Optional[int]:
    try:
        count = int(detector(fetch(camera)))
    except AcquisitionError as exc:
        LOGGER.warning("Skipping camera: %s", exc)
        return None
    except Exception:  # detector failures skip the camera, like fetch failures
        LOGGER.warning("Detection failed for %s", camera.label, exc_info=True)
        return None
    if count < 0:
        LOGGER.warning("Detector returned %d for %s; ignoring", count, camera.label)
        return None
    return count


class _WorkerSessions:
    """One HTTP session per fetch thread, all closed when the pass ends.

    requests.Session is not guaranteed thread-safe, so workers never share one.
    """

    def __init__(self) -> None:
        self._local = threading.local()
        self._lock = threading.Lock()
        self._sessions: list = []

    def fetch(self, camera: Camera) -> np.ndarray:
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._local.session = make_session()
            with self._lock:
                self._sessions.append(session)
        return fetch_frame(camera, session=session)

    def __enter__(self) -> "_WorkerSessions":
        return self

    def __exit__(self, *exc_info) -> None:
        with self._lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()


def _count_all(cameras: Sequence[Camera], fetch: FetchFn, detector: DetectFn, max_workers: int) -> list:
    workers = max(1, min(max_workers, len(cameras)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="camera-fetch") as pool:
        return list(pool.map(lambda cam: _count_one(cam, fetch, detector), cameras))


def sample_cameras(
    cameras: Sequence[Camera],
    coverage: float,
    detector: DetectFn = detect_vehicles_heuristic,
    fetch: Optional[FetchFn] = None,
    max_workers: int = MAX_FETCH_WORKERS,
) -> SensorObservation:
    """Fetch and analyse every camera once, then extrapolate citywide.

    Cameras that fail to load or analyse are skipped. When none succeed, the
    observation carries no estimate.

    Raises:
        ValueError: If coverage is outside (0, 1].
    """
    if not 0 < coverage <= 1:
        raise ValueError("Coverage must be between 0–1.")

    if not cameras:
        counts = []
    elif fetch is not None:
        counts = _count_all(cameras, fetch, detector, max_workers)
    else:
        with _WorkerSessions() as sessions:
            counts = _count_all(cameras, sessions.fetch, detector, max_workers)

    usable = [c for c in counts if c is not None]
    if not usable:
        LOGGER.info("No cameras returned usable images")
        return SensorObservation(detections=0, cameras_used=0, citywide_estimate=None)

    total = sum(usable)
    estimate = citywide_from_detections(total, coverage)
    LOGGER.info("Sampled %d detections across %d cameras -> %.0f citywide", total, len(usable), estimate)
    return SensorObservation(detections=total, cameras_used=len(usable), citywide_estimate=estimate)


class SensorPoller:
    """Re-run ``sample_cameras`` on a fixed interval in a background thread.

    The most recent observation is exposed as ``latest``; callers read it and
    pass ``latest.citywide_estimate`` to the simulation explicitly.
    """

    def __init__(
        self,
        cameras: Sequence[Camera],
        coverage: Callable[[], float] | float,
        detector: DetectFn = detect_vehicles_heuristic,
        fetch: Optional[FetchFn] = None,
        interval: float = SAMPLE_INTERVAL_S,
    ) -> None:
        self._cameras = list(cameras)
        self._coverage = coverage
        self._detector = detector
        self._fetch = fetch
        self._interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._latest: Optional[SensorObservation] = None
        self._last_error: Optional[str] = None

    # ------------------------------------------------------------------ status
    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def latest(self) -> Optional[SensorObservation]:
        with self._lock:
            return self._latest

    @property
    def last_error(self) -> Optional[str]:
        with self._lock:
            return self._last_error

    # ------------------------------------------------------------------ control
    def start(self) -> None:
        if not self._cameras:
            raise CameraListError("No cameras available.")
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="sensor-poller", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
        self._thread = None

    def sample_once(self) -> Optional[SensorObservation]:
        coverage = self._coverage() if callable(self._coverage) else self._coverage
        try:
            obs = sample_cameras(self._cameras, coverage, detector=self._detector, fetch=self._fetch)
        except ValueError as exc:
            LOGGER.warning("Sampling skipped: %s", exc)
            with self._lock:
                self._last_error = str(exc)
            return None
        with self._lock:
            self._latest = obs
            self._last_error = None
        return obs

    def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.sample_once()
            except Exception as exc:
                LOGGER.exception("Camera sampling pass failed")
                with self._lock:
                    self._last_error = str(exc) or type(exc).__name__
            self._stop.wait(self._interval)
