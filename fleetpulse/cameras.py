"""Camera list loading and frame retrieval."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import cv2  # opencv-python
import numpy as np
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from fleetpulse.config import CAMERAS_PATH, REQUEST_TIMEOUT

LOGGER = logging.getLogger(__name__)


class CameraListError(RuntimeError):
    """The camera list could not be loaded, or is empty where cameras are required."""


class AcquisitionError(RuntimeError):
    """A single camera frame could not be fetched or decoded."""


@dataclass(frozen=True)
class Camera:
    url: str
    name: Optional[str] = None

    @property
    def label(self) -> str:
        return self.name or self.url


def load_cameras(path: str | Path = CAMERAS_PATH) -> list[Camera]:
    """Load cameras from a JSON array of objects with a string ``url``.

    Entries without a usable url are skipped.

    Raises:
        CameraListError: If the file is missing or is not a JSON array.
    """
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise CameraListError(f"Failed to load {p.name}: {exc}") from exc
    if not isinstance(data, list):
        raise CameraListError(f"{p.name} must contain a JSON array")

    cameras = []
    for entry in data:
        if isinstance(entry, dict) and isinstance(entry.get("url"), str):
            name = entry.get("name")
            cameras.append(Camera(url=entry["url"], name=name if isinstance(name, str) else None))
    LOGGER.info("Loaded %d cameras from %s (%d entries skipped)", len(cameras), p, len(data) - len(cameras))
    return cameras


def frame_url(url: str, timestamp_ms: int | None = None) -> str:
    """Append a cache-busting ``t`` parameter so every fetch gets a fresh frame."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}t={timestamp_ms}"


def make_session(retries: int = 2) -> requests.Session:
    """HTTP session with a small retry budget for transient camera errors."""
    session = requests.Session()
    retry = Retry(
        total=retries,
        backoff_factor=0.3,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET",),
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def decode_frame(data: bytes) -> np.ndarray:
    """Decode encoded image bytes (JPEG/PNG/...) into an RGB uint8 array."""
    buf = np.frombuffer(data, dtype=np.uint8)
    bgr = cv2.imdecode(buf, cv2.IMREAD_COLOR) if buf.size else None
    if bgr is None:
        raise AcquisitionError("image could not be decoded")
    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)


def fetch_frame(
    camera: Camera,
    session: requests.Session | None = None,
    timeout: tuple[float, float] = REQUEST_TIMEOUT,
) -> np.ndarray:
    """Download and decode the current frame of one camera.

    Returns:
        RGB image as a numpy array (H, W, 3), uint8.

    Raises:
        AcquisitionError: On any network, HTTP or decoding failure.
    """
    own_session = session is None
    http = make_session() if own_session else session
    try:
        resp = http.get(frame_url(camera.url), timeout=timeout)
        resp.raise_for_status()
        content = resp.content
    except requests.RequestException as exc:
        raise AcquisitionError(f"{camera.label}: {exc}") from exc
    finally:
        if own_session:
            http.close()
    try:
        return decode_frame(content)
    except AcquisitionError as exc:
        raise AcquisitionError(f"{camera.label}: {exc}") from exc
