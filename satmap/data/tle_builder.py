"""
Beacon element synthesis: user-level orbit intent -> Keplerian elements -> two-line elements.

Near-circular orbit (fixed tiny eccentricity), argument of perigee and mean anomaly zero
at epoch, mean motion from the circular two-body relation. The element epoch is the
simulation start time, so the Beacon sits on its ascending node at t=0.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

from sgp4.api import Satrec

from satmap.config.settings import (
    BEACON_ARG_PERIGEE_DEG,
    BEACON_ECCENTRICITY,
    BEACON_MEAN_ANOMALY_DEG,
    BEACON_NAME,
    BEACON_SATNUM,
    GM_EARTH_KM3_S2,
    RADIUS_EARTH_KM,
    SECONDS_PER_DAY,
    SSO_HIGH_ALTITUDE_KM,
    SSO_INCLINATION_DEG,
    SSO_INCLINATION_HIGH_DEG,
    SSO_INCLINATION_LOW_DEG,
    SSO_LOW_ALTITUDE_KM,
    TLE_CLASSIFICATION,
    TLE_ELEMENT_SET_NO,
    TLE_INTL_LAUNCH_NO,
    TLE_INTL_PIECE,
    TLE_LINE_LENGTH,
)
from satmap.errors import ElementParseError, InvalidOrbitParametersError
from satmap.models.orbit import BeaconOrbitParams, NonPolarOrbit, SunSynchronousOrbit
from satmap.models.satellite import TLE
from satmap.physics.ephemeris import julian_date, sun_right_ascension_deg
from satmap.propagation.sgp4_propagator import satrec_from_tle

logger = logging.getLogger(__name__)

# mean motion derivatives and BSTAR are always zero for synthesized elements
_ZERO_NDOT = " .00000000"
_ZERO_EXP_FIELD = " 00000-0"
_EPHEMERIS_TYPE = "0"
_REV_NUMBER = "0"


@dataclass(frozen=True)
class BeaconElements:
    tle: TLE
    epoch: datetime
    inclination_deg: float
    raan_deg: float
    mean_motion_rev_per_day: float
    semi_major_axis_km: float
    sun_ra_deg: float
    eccentricity: float = BEACON_ECCENTRICITY
    debug: Dict[str, Any] = field(default_factory=dict, compare=False)


# -----------------------
# Field formatting
# -----------------------
def tle_checksum(line: str) -> int:
    """Sum of digits, '-' counts as 1, modulo 10."""
    total = 0
    for ch in line:
        if ch.isdigit():
            total += int(ch)
        elif ch == "-":
            total += 1
    return total % 10


def _pad(text: str, width: int, fill: str = " ", left: bool = True) -> str:
    if len(text) > width:
        return text[:width]
    return text.rjust(width, fill) if left else text.ljust(width, fill)


def format_angle(angle_deg: float) -> str:
    s = f"{angle_deg:.4f}"
    if len(s) > 8:
        s = f"{angle_deg:.3f}"
        if len(s) > 8:
            s = f"{angle_deg:.2f}"
    return _pad(s, 8)


def format_eccentricity(ecc: float) -> str:
    return f"{int(round(ecc * 1e7)):07d}"


def format_mean_motion(rev_per_day: float) -> str:
    s = f"{rev_per_day:.8f}"
    if len(s.split(".")[0]) > 2:
        s = f"{rev_per_day:.7f}"
        if len(s.split(".")[0]) > 2:
            s = f"{rev_per_day:.6f}"
    return _pad(s, 11)


def format_epoch(epoch: datetime) -> Tuple[str, str]:
    """(YY, DDD.DDDDDDDD) with day 1.0 at Jan 1 00:00 UTC."""
    t = epoch.astimezone(timezone.utc) if epoch.tzinfo else epoch.replace(tzinfo=timezone.utc)
    start_of_year = datetime(t.year, 1, 1, tzinfo=timezone.utc)
    day_of_year = (t - start_of_year).total_seconds() / SECONDS_PER_DAY + 1.0
    return _pad(str(t.year % 100), 2, "0"), _pad(f"{day_of_year:.8f}", 12)


def circular_mean_motion(altitude_km: float) -> Tuple[float, float]:
    """(semi-major axis km, mean motion rev/day) for a circular orbit at altitude_km."""
    a = RADIUS_EARTH_KM + altitude_km
    n_rad_s = math.sqrt(GM_EARTH_KM3_S2 / a ** 3)
    return a, n_rad_s * SECONDS_PER_DAY / (2.0 * math.pi)


def sso_inclination_deg(altitude_km: float) -> float:
    # three fixed bands, not a J2 precession solve
    if altitude_km < SSO_LOW_ALTITUDE_KM:
        return SSO_INCLINATION_LOW_DEG
    if altitude_km > SSO_HIGH_ALTITUDE_KM:
        return SSO_INCLINATION_HIGH_DEG
    return SSO_INCLINATION_DEG


def sso_raan_deg(lst_descending_node_h: float, sun_ra_deg: float) -> float:
    lst_ascending_node_h = (lst_descending_node_h + 12.0) % 24.0
    return (lst_ascending_node_h * 15.0 + sun_ra_deg) % 360.0


# -----------------------
# Validation
# -----------------------
def _fail(message: str, params: BeaconOrbitParams, epoch: datetime, **context) -> InvalidOrbitParametersError:
    ctx = {"params": params, "epoch": epoch.isoformat(), **context}
    logger.error("Beacon element synthesis failed: %s | %s", message, ctx)
    return InvalidOrbitParametersError(message, ctx)


def _check_finite(params: BeaconOrbitParams, epoch: datetime, **values: float) -> None:
    for key, val in values.items():
        if val is None or not math.isfinite(float(val)):
            raise _fail(f"{key} must be a finite number", params, epoch, **{key: val})


def _resolve_orientation(params: BeaconOrbitParams, epoch: datetime, sun_ra: float) -> Tuple[float, float]:
    """(inclination, RAAN) in degrees for either orbit variant."""
    if isinstance(params, SunSynchronousOrbit):
        _check_finite(params, epoch, altitude_km=params.altitude_km,
                      local_solar_time_descending_node_h=params.local_solar_time_descending_node_h)
        if params.altitude_km <= 0:
            raise _fail("Altitude must be positive", params, epoch, altitude_km=params.altitude_km)
        lst = params.local_solar_time_descending_node_h
        if lst < 0 or lst >= 24:
            raise _fail("Local solar time at descending node must be in [0, 24)", params, epoch, lst_dn_h=lst)
        return sso_inclination_deg(params.altitude_km), sso_raan_deg(lst, sun_ra)

    if isinstance(params, NonPolarOrbit):
        _check_finite(params, epoch, altitude_km=params.altitude_km,
                      inclination_deg=params.inclination_deg, raan_deg=params.raan_deg)
        if params.altitude_km <= 0:
            raise _fail("Altitude must be positive", params, epoch, altitude_km=params.altitude_km)
        if params.inclination_deg < 0 or params.inclination_deg > 180:
            raise _fail("Inclination must be in [0, 180]", params, epoch, inclination_deg=params.inclination_deg)
        if params.raan_deg < 0 or params.raan_deg >= 360:
            raise _fail("RAAN must be in [0, 360)", params, epoch, raan_deg=params.raan_deg)
        return float(params.inclination_deg), float(params.raan_deg)

    raise TypeError(f"Unsupported beacon orbit parameters: {type(params).__name__}")


# -----------------------
# Public API
# -----------------------
def build_beacon_tle(
    params: BeaconOrbitParams,
    epoch: datetime,
    name: str = BEACON_NAME,
    satnum: int = BEACON_SATNUM,
) -> BeaconElements:
    """
    Encode the Beacon orbit as two 69-character element lines.
    Raises InvalidOrbitParametersError on invalid input or a malformed line.
    """
    if epoch.tzinfo is None:
        epoch = epoch.replace(tzinfo=timezone.utc)
    else:
        epoch = epoch.astimezone(timezone.utc)

    if not (0 <= int(satnum) <= 99999):
        raise _fail("Satellite number must fit five digits", params, epoch, satnum=satnum)

    sun_ra = sun_right_ascension_deg(epoch)
    inclination, raan = _resolve_orientation(params, epoch, sun_ra)
    semi_major_axis, mean_motion = circular_mean_motion(params.altitude_km)

    satnum_str = f"{int(satnum):05d}"
    epoch_yr, epoch_day = format_epoch(epoch)
    intl_year = _pad(str(epoch.year % 100), 2, "0")
    intl_desig = intl_year + _pad(TLE_INTL_LAUNCH_NO, 3, "0") + _pad(TLE_INTL_PIECE, 3, left=False)

    line1 = (
        "1 " + satnum_str + TLE_CLASSIFICATION + " " + intl_desig + " "
        + epoch_yr + epoch_day + " "
        + _ZERO_NDOT + " " + _ZERO_EXP_FIELD + " " + _ZERO_EXP_FIELD + " "
        + _EPHEMERIS_TYPE + " " + _pad(str(TLE_ELEMENT_SET_NO), 4)
    )
    line1 += str(tle_checksum(line1))

    line2 = (
        "2 " + satnum_str + " "
        + format_angle(inclination) + " "
        + format_angle(raan) + " "
        + format_eccentricity(BEACON_ECCENTRICITY) + " "
        + format_angle(BEACON_ARG_PERIGEE_DEG) + " "
        + format_angle(BEACON_MEAN_ANOMALY_DEG) + " "
        + format_mean_motion(mean_motion)
        + _pad(_REV_NUMBER, 5)
    )
    line2 += str(tle_checksum(line2))

    debug = {
        "altitude_km": params.altitude_km,
        "semi_major_axis_km": semi_major_axis,
        "inclination_deg": inclination,
        "raan_deg": raan,
        "mean_motion_rev_per_day": mean_motion,
        "epoch_jd": julian_date(epoch),
        "sun_ra_deg": sun_ra,
        "epoch_year": epoch_yr,
        "epoch_day": epoch_day.strip(),
        "eccentricity": BEACON_ECCENTRICITY,
        "satnum": satnum_str,
        "intl_desig": intl_desig.strip(),
    }

    for label, line in (("line 1", line1), ("line 2", line2)):
        if len(line) != TLE_LINE_LENGTH:
            raise _fail(
                f"TLE {label} generated with incorrect length: {len(line)}",
                params, epoch, line=line, **debug,
            )

    logger.info("Beacon elements for %s: %s", name, debug)
    logger.debug("TLE L1: %s", line1)
    logger.debug("TLE L2: %s", line2)

    return BeaconElements(
        tle=TLE(name=name, line1=line1, line2=line2),
        epoch=epoch,
        inclination_deg=inclination,
        raan_deg=raan,
        mean_motion_rev_per_day=mean_motion,
        semi_major_axis_km=semi_major_axis,
        sun_ra_deg=sun_ra,
        debug=debug,
    )


def create_beacon_satrec(params: BeaconOrbitParams, epoch: datetime) -> Tuple[Satrec, BeaconElements]:
    """Synthesize the Beacon elements and initialise its SGP4 record."""
    elements = build_beacon_tle(params, epoch)
    try:
        sat = satrec_from_tle(elements.tle)
    except ElementParseError:
        logger.error("SGP4 rejected synthesized Beacon elements: %s", elements.debug)
        raise
    logger.info("Beacon SGP4 record initialised (%s).", type(params).__name__)
    return sat, elements
