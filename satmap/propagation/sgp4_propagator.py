from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sgp4.api import Satrec, jday

from satmap.config.settings import WGS84_A_KM, WGS84_B_KM, WGS84_E2
from satmap.errors import ElementParseError
from satmap.models.satellite import TLE, CartesianVector, GeodeticPosition, SatellitePosition

logger = logging.getLogger(__name__)

SGP4_ERROR_MESSAGES = {
    1: "Mean elements: eccentricity >= 1.0 or < -0.001, or semi-major axis < 0.95 er (possible error in TLE epoch or elements).",
    2: "Mean motion is less than zero.",
    3: "Perturbed eccentricity is out of bounds (possible error in inclination or eccentricity).",
    4: "Semi-latus rectum is less than zero (non-elliptical orbit).",
    5: "Epoch elements are sub-orbital.",
    6: "Satellite has decayed.",
}


def sgp4_error_message(code: int) -> str:
    return SGP4_ERROR_MESSAGES.get(int(code), f"Unknown SGP4 error code {code}")


@dataclass(frozen=True)
class Sgp4State:
    position: CartesianVector  # km (TEME)
    velocity: CartesianVector  # km/s (TEME)


def _as_utc(t: datetime) -> datetime:
    if t.tzinfo is None:
        return t.replace(tzinfo=timezone.utc)
    return t.astimezone(timezone.utc)


def _jday(t_utc: datetime):
    return jday(
        t_utc.year, t_utc.month, t_utc.day,
        t_utc.hour, t_utc.minute,
        t_utc.second + t_utc.microsecond * 1e-6,
    )


def satrec_from_tle(tle: TLE) -> Satrec:
    """
    Build the SGP4 record for one element set.
    Raises ElementParseError on malformed lines or a nonzero initialisation status.
    """
    try:
        sat = Satrec.twoline2rv(tle.line1, tle.line2)
    except (ValueError, IndexError) as e:
        raise ElementParseError(tle.name, f"malformed two-line elements: {e}") from e

    code = int(getattr(sat, "error", 0) or 0)
    if code != 0:
        logger.error("TLE L1: %s", tle.line1)
        logger.error("TLE L2: %s", tle.line2)
        raise ElementParseError(tle.name, sgp4_error_message(code), code=code)
    return sat


def propagate(sat: Satrec, t_utc: datetime) -> Optional[Sgp4State]:
    """
    Propagate using SGP4 to time t_utc (naive means UTC).
    Returns None when the model reports an error or the output is not finite;
    callers treat that as "no data for this instant".
    """
    t_utc = _as_utc(t_utc)
    jd, fr = _jday(t_utc)

    e, r_km, v_kms = sat.sgp4(jd, fr)
    if e != 0:
        logger.warning(
            "SGP4 propagation failed for satnum %s at %s: code=%s (%s)",
            getattr(sat, "satnum", "?"), t_utc.isoformat(), e, sgp4_error_message(e),
        )
        return None

    if not all(math.isfinite(c) for c in (*r_km, *v_kms)):
        logger.warning(
            "SGP4 returned non-finite state for satnum %s at %s",
            getattr(sat, "satnum", "?"), t_utc.isoformat(),
        )
        return None

    return Sgp4State(position=CartesianVector(*r_km), velocity=CartesianVector(*v_kms))


def gmst_rad(t_utc: datetime) -> float:
    """Greenwich Mean Sidereal Time in radians (IAU 1982)."""
    jd, fr = _jday(_as_utc(t_utc))
    T = ((jd - 2451545.0) + fr) / 36525.0
    gmst_sec = (67310.54841
                + (876600.0 * 3600.0 + 8640184.812866) * T
                + 0.093104 * T ** 2
                - 6.2e-6 * T ** 3)
    return (gmst_sec % 86400.0) / 86400.0 * 2.0 * math.pi


def eci_to_geodetic(position: CartesianVector, t_utc: datetime) -> GeodeticPosition:
    """
    Rotate the inertial position into the Earth-fixed frame by GMST, then invert the
    WGS-84 ellipsoid (Bowring). Latitude/longitude in degrees, altitude in km.
    """
    g = gmst_rad(t_utc)
    cg, sg = math.cos(g), math.sin(g)
    x = position.x * cg + position.y * sg
    y = -position.x * sg + position.y * cg
    z = position.z

    lon = math.atan2(y, x)
    p = math.hypot(x, y)
    theta = math.atan2(z * WGS84_A_KM, p * WGS84_B_KM)
    ep2 = WGS84_E2 / (1.0 - WGS84_E2)
    lat = math.atan2(
        z + ep2 * WGS84_B_KM * math.sin(theta) ** 3,
        p - WGS84_E2 * WGS84_A_KM * math.cos(theta) ** 3,
    )
    sin_lat = math.sin(lat)
    N = WGS84_A_KM / math.sqrt(1.0 - WGS84_E2 * sin_lat ** 2)
    cos_lat = math.cos(lat)
    if abs(cos_lat) > 1e-10:
        alt = p / cos_lat - N
    else:
        alt = abs(z) - WGS84_B_KM

    return GeodeticPosition(latitude=math.degrees(lat), longitude=math.degrees(lon), altitude=alt)


def to_timestamp_ms(t_utc: datetime) -> int:
    return int(round(_as_utc(t_utc).timestamp() * 1000.0))


def propagate_position(sat: Satrec, t_utc: datetime) -> Optional[SatellitePosition]:
    """Full track entry (ECI state + geodetic) for one instant, or None on failure."""
    state = propagate(sat, t_utc)
    if state is None:
        return None
    return SatellitePosition(
        timestamp=to_timestamp_ms(t_utc),
        position_eci=state.position,
        velocity_eci=state.velocity,
        position_geodetic=eci_to_geodetic(state.position, t_utc),
    )
