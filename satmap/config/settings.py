"""
Project settings (constants + small helpers).
Units: kilometres (km), seconds (s), degrees unless a name says otherwise.
Treated as read-only: values are passed into configs/engines, never reassigned at runtime.
"""
from __future__ import annotations

import math
import os
from datetime import timedelta
from pathlib import Path

# Paths
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))
OUTPUT_DIR = os.path.join(BASE_DIR, "outputs")

# Earth
GM_EARTH_KM3_S2 = 398600.4418
RADIUS_EARTH_KM = 6371.0
SECONDS_PER_DAY = 86400.0

# WGS-84 ellipsoid (geodetic conversion only)
WGS84_A_KM = 6378.137
WGS84_F = 1.0 / 298.257223563
WGS84_B_KM = WGS84_A_KM * (1.0 - WGS84_F)
WGS84_E2 = WGS84_F * (2.0 - WGS84_F)

# Geometry
NEAR_ZERO = 1e-9
HORIZON_FALLBACK_PARALLEL_LIMIT = 0.99

# Antennas (full cone angles)
IRIDIUM_DEFAULT_FOV_DEG = 62.0
BEACON_DEFAULT_FOV_DEG = 62.0

# Simulation defaults
DEFAULT_DURATION_HOURS = 24.0
DEFAULT_TIME_STEP_SEC = 60.0
DEFAULT_HANDSHAKE_MODE = "one-way"
HANDSHAKE_MODES = ("one-way", "bi-directional")
PROGRESS_LOG_EVERY_STEPS = 60

# Beacon defaults (CLI)
DEFAULT_BEACON_ALTITUDE_KM = 550.0
DEFAULT_BEACON_INCLINATION_DEG = 53.0
DEFAULT_BEACON_LST_DN_H = 10.5

# Sun-synchronous inclination bands
SSO_INCLINATION_DEG = 98.6
SSO_INCLINATION_LOW_DEG = 97.4      # altitude < SSO_LOW_ALTITUDE_KM
SSO_INCLINATION_HIGH_DEG = 99.5     # altitude > SSO_HIGH_ALTITUDE_KM
SSO_LOW_ALTITUDE_KM = 500.0
SSO_HIGH_ALTITUDE_KM = 1000.0

# Synthesized TLE
TLE_LINE_LENGTH = 69
BEACON_SATNUM = 99990
BEACON_NAME = "BEACON"
BEACON_ECCENTRICITY = 1e-7
BEACON_ARG_PERIGEE_DEG = 0.0
BEACON_MEAN_ANOMALY_DEG = 0.0
TLE_CLASSIFICATION = "U"
TLE_ELEMENT_SET_NO = 999
TLE_INTL_LAUNCH_NO = "999"
TLE_INTL_PIECE = "A"

# Iridium TLE source
CELESTRAK_GP_URL = "https://celestrak.org/NORAD/elements/gp.php"
IRIDIUM_DATASET_GROUPS = {
    "IRIDIUM": "iridium",
    "IRIDIUM-NEXT": "iridium-next",
}
DEFAULT_IRIDIUM_DATASETS = ("IRIDIUM", "IRIDIUM-NEXT")
TLE_FETCH_TIMEOUT_S = 10.0
TLE_FETCH_ATTEMPTS = 3
TLE_CACHE_FILE = Path("tle_cache.json")
TLE_CACHE_TTL = timedelta(hours=6)

FALLBACK_IRIDIUM_TLE = (
    "IRIDIUM 1 (FALLBACK)",
    "1 24792U 97020A   24150.50000000  .00000000  00000-0  00000-0 0  9999",
    "2 24792  86.4000   0.0000 0001000   0.0000   0.0000 14.34160000    04",
)


def fov_to_half_angle_rad(fov_deg: float) -> float:
    return math.radians(float(fov_deg)) / 2.0


def validate_settings() -> None:
    if RADIUS_EARTH_KM <= 0:
        raise ValueError("RADIUS_EARTH_KM must be > 0")
    if GM_EARTH_KM3_S2 <= 0:
        raise ValueError("GM_EARTH_KM3_S2 must be > 0")
    if not (0 < IRIDIUM_DEFAULT_FOV_DEG <= 180):
        raise ValueError("IRIDIUM_DEFAULT_FOV_DEG must be in (0, 180]")
    if not (0 < BEACON_DEFAULT_FOV_DEG <= 180):
        raise ValueError("BEACON_DEFAULT_FOV_DEG must be in (0, 180]")
    if DEFAULT_DURATION_HOURS <= 0:
        raise ValueError("DEFAULT_DURATION_HOURS must be > 0")
    if DEFAULT_TIME_STEP_SEC <= 0:
        raise ValueError("DEFAULT_TIME_STEP_SEC must be > 0")
    if DEFAULT_HANDSHAKE_MODE not in HANDSHAKE_MODES:
        raise ValueError(f"DEFAULT_HANDSHAKE_MODE must be one of {HANDSHAKE_MODES}")
    if not (0.0 <= BEACON_ECCENTRICITY < 1.0):
        raise ValueError("BEACON_ECCENTRICITY must be in [0, 1)")
    if set(DEFAULT_IRIDIUM_DATASETS) - set(IRIDIUM_DATASET_GROUPS):
        raise ValueError("DEFAULT_IRIDIUM_DATASETS contains unknown datasets")
    if TLE_FETCH_ATTEMPTS < 1:
        raise ValueError("TLE_FETCH_ATTEMPTS must be >= 1")
