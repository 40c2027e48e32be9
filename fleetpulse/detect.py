"""Vehicle detection on camera frames.

Two backends return a non-negative vehicle count per frame:

- ``heuristic``: counts bright, low-saturation pixels (white robotaxi bodies) in
  the lower part of a downscaled frame. Cheap, no model, deliberately coarse.
- ``yolo``: Ultralytics YOLO vehicle boxes whose centre is in the same band.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable

import numpy as np
import cv2  # opencv-python

from fleetpulse.config import (
    BRIGHT_THRESHOLD,
    DETECT_BAND_START,
    DETECT_WIDTH,
    LOW_SAT_THRESHOLD,
    MIN_WHITE_PIXELS,
    WHITE_PIXELS_PER_CAR,
)

LOGGER = logging.getLogger(__name__)

# COCO / VisDrone vehicle class names
VEHICLE_CLASS_NAMES = {"car", "van", "truck", "bus"}

DEFAULT_YOLO_MODEL = "yolov8n.pt"

_model = None


@dataclass(frozen=True)
class Detection:
    """Heuristic result: count plus what was measured, in resized-frame pixels."""

    count: int
    white_pixels: int
    width: int
    height: int
    band_top: int


def _as_rgb_uint8(image_rgb: np.ndarray) -> np.ndarray:
    # Strip alpha if present
    if image_rgb.ndim == 3 and image_rgb.shape[2] == 4:
        image_rgb = image_rgb[:, :, :3]
    if image_rgb.ndim != 3 or image_rgb.shape[2] != 3:
        raise ValueError(f"expected an RGB image, got shape {image_rgb.shape}")
    if image_rgb.dtype != np.uint8:
        image_rgb = np.clip(image_rgb, 0, 255).astype(np.uint8)
    return image_rgb


def count_from_white_pixels(white: int) -> int:
    """Map a bright-pixel count to 0, 1 or 2 vehicles."""
    if white < MIN_WHITE_PIXELS:
        return 0
    cars = white / WHITE_PIXELS_PER_CAR
    if cars < 0.5:
        return 0
    if cars < 1.5:
        return 1
    return 2


def analyze_frame(image_rgb: np.ndarray, width: int = DETECT_WIDTH) -> Detection:
    """Run the pixel heuristic and return the full measurement."""
    img = _as_rgb_uint8(image_rgb)
    src_h, src_w = img.shape[:2]
    if src_w == 0 or src_h == 0:
        raise ValueError("empty image")

    h = max(1, int(math.floor(src_h / src_w * width + 0.5)))
    small = cv2.resize(img, (width, h), interpolation=cv2.INTER_AREA)

    band_top = int(math.floor(h * DETECT_BAND_START))
    band = small[band_top:].astype(np.int32)
    hi = band.max(axis=2)
    lo = band.min(axis=2)
    bright = band.sum(axis=2) / 3 > BRIGHT_THRESHOLD
    low_sat = (hi - lo) < LOW_SAT_THRESHOLD
    white = int(np.count_nonzero(bright & low_sat))

    return Detection(
        count=count_from_white_pixels(white),
        white_pixels=white,
        width=width,
        height=h,
        band_top=band_top,
    )


def detect_vehicles_heuristic(image_rgb: np.ndarray) -> int:
    """Vehicle count (0-2) from the bright-pixel heuristic."""
    return analyze_frame(image_rgb).count


def load_model(model_name: str = DEFAULT_YOLO_MODEL):
    """Load a YOLO model by name (downloads if not present)."""
    global _model
    from ultralytics import YOLO

    LOGGER.info("Loading YOLO model %s", model_name)
    _model = YOLO(model_name)
    return _model


def _get_model():
    """Return the globally loaded model, loading the default if needed."""
    if _model is None:
        return load_model()
    return _model


def detect_vehicles_yolo(image_rgb: np.ndarray, conf: float = 0.25, imgsz: int = 640) -> int:
    """Count YOLO vehicle detections whose centre lies in the lower band."""
    img = _as_rgb_uint8(image_rgb)
    model = _get_model()
    r = model.predict(img, conf=conf, imgsz=imgsz, verbose=False)[0]
    if r.boxes is None or len(r.boxes) == 0:
        return 0

    boxes = r.boxes.xyxy.cpu().numpy()
    clses = r.boxes.cls.cpu().numpy()
    names = getattr(model, "names", {}) or {}
    band_top = img.shape[0] * DETECT_BAND_START

    count = 0
    for (x1, y1, x2, y2), cls_id in zip(boxes, clses):
        cls_name = str(names.get(int(cls_id), cls_id)).lower()
        if cls_name not in VEHICLE_CLASS_NAMES:
            continue
        if (y1 + y2) / 2 < band_top:
            continue
        count += 1
    return count


DETECTORS: dict[str, Callable[[np.ndarray], int]] = {
    "heuristic": detect_vehicles_heuristic,
    "yolo": detect_vehicles_yolo,
}


def get_detector(name: str) -> Callable[[np.ndarray], int]:
    try:
        return DETECTORS[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown detector {name!r}; expected one of {sorted(DETECTORS)}") from None
