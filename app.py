"""
FleetPulse Streamlit app: citywide robotaxi count from cameras + fleet/demand models.
"""

from __future__ import annotations

import logging

import pandas as pd
import streamlit as st

from fleetpulse.cameras import CameraListError, fetch_frame, load_cameras
from fleetpulse.config import CAMERAS_PATH, DEFAULT_COVERAGE, DEFAULT_INPUTS, DETECTOR, RANDOM_SEED
from fleetpulse.detect import DETECTORS, analyze_frame, get_detector
from fleetpulse.params import SimulationParameters, ValidationError
from fleetpulse.random_source import RandomSource
from fleetpulse.sensor import SensorPoller, sample_cameras
from fleetpulse.simulation import run_monte_carlo
from fleetpulse.summary import format_mean, format_range
from fleetpulse.viz import draw_detection_band, histogram

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


# ----- Cached helpers -----

@st.cache_data(ttl=3600)
def _cached_cameras(path: str):
    return load_cameras(path)


def _latest_observation():
    """Newest of the manual sample and the background poller's last pass."""
    candidates = [st.session_state.get("observation")]
    poller = st.session_state.get("poller")
    if poller is not None:
        candidates.append(poller.latest)
    candidates = [c for c in candidates if c is not None]
    return max(candidates, key=lambda o: o.sampled_at) if candidates else None


# ----- Page -----

st.set_page_config(page_title="FleetPulse", page_icon="🚕", layout="wide")

st.title("FleetPulse")
st.markdown(
    "Estimate how many robotaxis are on the road citywide by blending three channels: a **fleet model** "
    "(fleet size × market share × utilization), a **demand model** (daily trips ÷ trips per car), and a "
    "**camera sample** extrapolated by coverage. A Monte Carlo run turns the uncertainty into a distribution."
)

st.divider()

# ----- Sensor channel -----

st.subheader("Camera sampling")

try:
    cameras = _cached_cameras(CAMERAS_PATH)
    st.caption(f"Loaded {len(cameras)} cameras.")
except CameraListError as e:
    cameras = []
    st.warning(f"Failed to load {CAMERAS_PATH}: {e}")

coverage = st.slider(
    "Coverage fraction (share of city activity the cameras see)",
    min_value=0.01,
    max_value=1.00,
    value=DEFAULT_COVERAGE,
    step=0.01,
)
# read by the background poller thread
st.session_state.setdefault("coverage_box", {})["value"] = coverage

detector_names = sorted(DETECTORS)
detector_name = st.selectbox(
    "Detector",
    options=detector_names,
    index=detector_names.index(DETECTOR) if DETECTOR in detector_names else 0,
)
detector = get_detector(detector_name)

col_once, col_auto = st.columns(2)
with col_once:
    if st.button("Sample cameras now"):
        if not cameras:
            st.error("No cameras available.")
        else:
            with st.spinner(f"Sampling {len(cameras)} cameras…"):
                st.session_state["observation"] = sample_cameras(cameras, coverage, detector=detector)

with col_auto:
    poller = st.session_state.get("poller")
    auto = st.toggle("Resample every 30s", value=poller is not None and poller.running)
    if auto and (poller is None or not poller.running):
        box = st.session_state["coverage_box"]
        poller = SensorPoller(cameras, coverage=lambda: box["value"], detector=detector)
        try:
            poller.start()
            st.session_state["poller"] = poller
        except CameraListError as e:
            st.error(str(e))
    elif not auto and poller is not None and poller.running:
        poller.stop(timeout=1.0)
        st.caption("Camera sampling stopped.")
    if poller is not None and poller.last_error:
        st.warning(poller.last_error)

observation = _latest_observation()
c1, c2, c3 = st.columns(3)
with c1:
    st.metric("Observed detections", observation.detections if observation else 0)
with c2:
    st.metric("Cameras used", observation.cameras_used if observation else 0)
with c3:
    est = observation.citywide_estimate if observation else None
    st.metric("Sensor citywide estimate", f"{est:.0f}" if est is not None else "–")
if observation is not None and not observation.available:
    st.caption("No cameras returned usable images.")

if cameras:
    with st.expander("Preview a camera", expanded=False):
        cam = st.selectbox("Camera", options=cameras, format_func=lambda c: c.label)
        if st.button("Fetch frame"):
            try:
                frame = fetch_frame(cam)
            except Exception as e:
                st.error(f"Frame fetch failed: {e}")
            else:
                det = analyze_frame(frame)
                st.image(draw_detection_band(frame, det), channels="RGB")
                st.caption(f"Heuristic count: {det.count} ({det.white_pixels} bright pixels)")

st.divider()

# ----- Model inputs -----

st.subheader("Model inputs")

with st.form("inputs-form"):
    d = DEFAULT_INPUTS
    fleet_size = st.number_input("Fleet size (vehicles)", min_value=0.0, value=float(d["fleet_size"]))
    c1, c2 = st.columns(2)
    with c1:
        sf_share_min = st.number_input("Share of fleet in city, min (%)", value=d["sf_share_min"])
        util_min = st.number_input("Utilization, min (%)", value=d["util_min"])
        tpc_min = st.number_input("Trips per car per day, min", value=d["tpc_min"])
    with c2:
        sf_share_max = st.number_input("Share of fleet in city, max (%)", value=d["sf_share_max"])
        util_max = st.number_input("Utilization, max (%)", value=d["util_max"])
        tpc_max = st.number_input("Trips per car per day, max", value=d["tpc_max"])
    trips_per_day = st.number_input("Trips per day (citywide)", min_value=0.0, value=float(d["trips_per_day"]))
    samples = st.number_input("Monte Carlo samples", min_value=1, value=int(d["samples"]), step=1000)
    sensor_weight = st.slider("Sensor weight", min_value=0.0, max_value=1.0, value=d["sensor_weight"], step=0.05)
    run = st.form_submit_button("Run simulation", type="primary")

if not run:
    st.stop()


# ----- Run simulation -----

try:
    params = SimulationParameters.from_form(
        fleet_size=fleet_size,
        sf_share_min=sf_share_min,
        sf_share_max=sf_share_max,
        util_min=util_min,
        util_max=util_max,
        trips_per_day=trips_per_day,
        tpc_min=tpc_min,
        tpc_max=tpc_max,
        samples=int(samples),
        sensor_weight=sensor_weight,
    )
except ValidationError as e:
    st.error(f"Error: {e}")
    st.stop()

sensor_point = observation.citywide_estimate if observation else None

with st.spinner(f"Running {params.samples:,} draws…"):
    result = run_monte_carlo(params, sensor_point, rng=RandomSource(RANDOM_SEED))

st.success("Simulation complete.")

st.subheader("Results")
table = pd.DataFrame(
    [
        {"Channel": name, "Mean": format_mean(stat), "5th–95th percentile": format_range(stat)}
        for name, stat in result.stats_by_channel().items()
    ]
).set_index("Channel")
st.table(table)

if sensor_point is None:
    st.caption("No sensor evidence this run: blended = average of fleet and trip models.")

st.subheader("Blended estimate distribution")
hist = histogram(result.blended_samples)
if hist.counts:
    st.bar_chart(hist.to_frame())
