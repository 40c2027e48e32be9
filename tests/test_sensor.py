import threading
import time

import cv2
import numpy as np
import pytest
import requests

from fleetpulse.cameras import AcquisitionError, Camera, CameraListError
from fleetpulse.sensor import SensorPoller, sample_cameras

CAMERAS = [Camera(f"http://cam/{i}.jpg", name=f"cam-{i}") for i in range(4)]


def _fetch(camera):
    if camera.name == "cam-3":
        raise AcquisitionError("cam-3: load error")
    return np.zeros((4, 4, 3), dtype=np.uint8)


def _detector(frame):
    return 2


def _failing_fetch(camera):
    raise AcquisitionError(f"{camera.label}: load error")


def test_sample_cameras_extrapolates_usable_cameras():
    obs = sample_cameras(CAMERAS, 0.5, detector=_detector, fetch=_fetch)
    assert obs.detections == 6
    assert obs.cameras_used == 3
    assert obs.citywide_estimate == pytest.approx(12.0)
    assert obs.available


def test_sample_cameras_no_usable_images():
    obs = sample_cameras(CAMERAS, 0.5, detector=_detector, fetch=_failing_fetch)
    assert (obs.detections, obs.cameras_used, obs.citywide_estimate) == (0, 0, None)
    assert not obs.available


def test_sample_cameras_zero_detections_is_still_evidence():
    obs = sample_cameras(CAMERAS[:2], 0.2, detector=lambda frame: 0, fetch=_fetch)
    assert obs.cameras_used == 2
    assert obs.citywide_estimate == 0.0


def test_detector_failure_skips_camera():
    def flaky(frame):
        raise RuntimeError("bad frame")

    obs = sample_cameras(CAMERAS[:2], 1.0, detector=flaky, fetch=_fetch)
    assert obs.citywide_estimate is None


def test_empty_camera_list():
    obs = sample_cameras([], 0.5, detector=_detector, fetch=_fetch)
    assert obs.citywide_estimate is None


@pytest.mark.parametrize("coverage", [0, -0.5, 1.01])
def test_invalid_coverage_rejected(coverage):
    with pytest.raises(ValueError, match="Coverage"):
        sample_cameras(CAMERAS, coverage, detector=_detector, fetch=_fetch)


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


def test_poller_samples_immediately_and_stops():
    poller = SensorPoller(CAMERAS, coverage=0.5, detector=_detector, fetch=_fetch, interval=60)
    poller.start()
    try:
        assert poller.running
        assert _wait_for(lambda: poller.latest is not None)
        assert poller.latest.citywide_estimate == pytest.approx(12.0)
    finally:
        poller.stop(timeout=2.0)
    assert not poller.running


def test_poller_invalid_coverage_keeps_previous_observation():
    box = {"value": 0.5}
    poller = SensorPoller(CAMERAS, coverage=lambda: box["value"], detector=_detector, fetch=_fetch)
    first = poller.sample_once()
    box["value"] = 0
    assert poller.sample_once() is None
    assert poller.latest is first
    assert poller.last_error == "Coverage must be between 0–1."


def test_poller_requires_cameras():
    with pytest.raises(CameraListError, match="No cameras available."):
        SensorPoller([], coverage=0.5).start()


class _Response:
    def __init__(self, content):
        self.content = content

    def raise_for_status(self):
        pass


class _TrackingSession:
    def __init__(self):
        self.closed = False
        self.threads = set()

    def get(self, url, timeout=None):
        self.threads.add(threading.get_ident())
        if "/down" in url:
            raise requests.ConnectionError("refused")
        ok, buf = cv2.imencode(".png", np.zeros((4, 4, 3), dtype=np.uint8))
        return _Response(buf.tobytes())

    def close(self):
        self.closed = True


@pytest.fixture
def tracked_sessions(monkeypatch):
    created = []

    def make():
        s = _TrackingSession()
        created.append(s)
        return s

    monkeypatch.setattr("fleetpulse.sensor.make_session", make)
    return created


def test_default_fetch_uses_closed_per_thread_sessions(tracked_sessions):
    cameras = [Camera(f"http://cam/{i}.jpg") for i in range(6)] + [Camera("http://cam/down.jpg")]
    obs = sample_cameras(cameras, 0.5, detector=_detector, max_workers=3)
    assert obs.cameras_used == 6
    assert obs.citywide_estimate == pytest.approx(24.0)
    assert tracked_sessions
    assert all(s.closed for s in tracked_sessions)
    assert all(len(s.threads) == 1 for s in tracked_sessions)


def test_default_fetch_maps_request_errors_to_skips(tracked_sessions):
    obs = sample_cameras([Camera("http://cam/down.jpg")], 1.0, detector=_detector)
    assert obs.citywide_estimate is None
    assert all(s.closed for s in tracked_sessions)


def test_poller_survives_unexpected_errors():
    def broken_coverage():
        raise RuntimeError("coverage unavailable")

    poller = SensorPoller(CAMERAS, coverage=broken_coverage, detector=_detector, fetch=_fetch, interval=0.01)
    poller.start()
    try:
        assert _wait_for(lambda: poller.last_error == "coverage unavailable")
        time.sleep(0.05)
        assert poller.running
    finally:
        poller.stop(timeout=2.0)
