"""Visualization helpers: histogram binning and frame annotation."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

import numpy as np
import pandas as pd
import cv2

from fleetpulse.config import HISTOGRAM_MAX_BINS, HISTOGRAM_MIN_BINS
from fleetpulse.detect import Detection


@dataclass(frozen=True)
class Histogram:
    labels: list[str]
    counts: list[int]
    edges: list[float]

    @property
    def midpoints(self) -> list[float]:
        return [(a + b) / 2 for a, b in zip(self.edges[:-1], self.edges[1:])]

    def to_frame(self) -> pd.DataFrame:
        """Counts indexed by numeric bin midpoint (keeps chart order numeric)."""
        return pd.DataFrame({"count": self.counts}, index=pd.Index(self.midpoints, name="vehicles"))


def histogram_bin_count(n: int) -> int:
    """clamp(floor(sqrt(n)), 10, 40)."""
    return min(HISTOGRAM_MAX_BINS, max(HISTOGRAM_MIN_BINS, int(math.floor(math.sqrt(n)))))


def histogram(values: Iterable[float]) -> Histogram:
    """Equal-width histogram of the finite values.

    All-equal input gives a single bin holding every value; empty input gives
    an empty histogram.
    """
    arr = np.fromiter(values, dtype=float)
    finite = arr[np.isfinite(arr)]
    if finite.size == 0:
        return Histogram(labels=[], counts=[], edges=[])

    lo = float(finite.min())
    hi = float(finite.max())
    if lo == hi:
        return Histogram(labels=[f"{lo:.0f}"], counts=[int(finite.size)], edges=[lo, hi])

    n = histogram_bin_count(finite.size)
    width = (hi - lo) / n
    idx = np.floor((finite - lo) / width).astype(int)
    idx = np.clip(idx, 0, n - 1)
    counts = np.bincount(idx, minlength=n)

    labels = [f"{lo + (i + 0.5) * width:.0f}" for i in range(n)]
    edges = [lo + i * width for i in range(n)] + [hi]
    return Histogram(labels=labels, counts=[int(c) for c in counts], edges=edges)


def draw_detection_band(image_rgb: np.ndarray, detection: Detection) -> np.ndarray:
    """Outline the band the heuristic scanned and label it with the count.

    Works on a resized copy matching the detector's working size; the
    original is unchanged.

    Args:
        image_rgb: RGB image as numpy array (H, W, 3), uint8.
        detection: Result of ``analyze_frame`` for this image.

    Returns:
        New RGB image (uint8) of size (detection.height, detection.width).
    """
    out = cv2.resize(
        np.asarray(image_rgb, dtype=np.uint8)[:, :, :3],
        (detection.width, detection.height),
        interpolation=cv2.INTER_AREA,
    )
    color = (0, 255, 0)
    cv2.rectangle(out, (0, detection.band_top), (detection.width - 1, detection.height - 1), color, 1)

    label = f"{detection.count} veh ({detection.white_pixels}px)"
    font = cv2.FONT_HERSHEY_SIMPLEX
    font_scale = 0.4
    (tw, th), _ = cv2.getTextSize(label, font, font_scale, 1)
    y = max(th + 4, detection.band_top)
    cv2.rectangle(out, (0, y - th - 4), (tw + 4, y), color, -1)
    cv2.putText(out, label, (2, y - 2), font, font_scale, (0, 0, 0), 1, cv2.LINE_AA)
    return out
