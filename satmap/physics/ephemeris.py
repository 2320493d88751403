# satmap/physics/ephemeris.py
import math
from datetime import datetime, timezone

from sgp4.api import jday

# Low-precision solar ephemeris (Astronomical Almanac form, roughly 0.01 deg).
# Good enough for orbit-plane phasing; not for pointing.

J2000_JD = 2451545.0


def julian_date(t_utc: datetime) -> float:
    if t_utc.tzinfo is None:
        t_utc = t_utc.replace(tzinfo=timezone.utc)
    else:
        t_utc = t_utc.astimezone(timezone.utc)
    jd, fr = jday(
        t_utc.year, t_utc.month, t_utc.day,
        t_utc.hour, t_utc.minute,
        t_utc.second + t_utc.microsecond * 1e-6,
    )
    return jd + fr


def sun_ra_dec(t_utc: datetime) -> tuple:
    """
    Apparent right ascension and declination of the Sun, radians.
    Mean longitude + two-term equation of centre, linear obliquity.
    """
    n = julian_date(t_utc) - J2000_JD

    L = math.radians((280.460 + 0.9856474 * n) % 360.0)
    g = math.radians((357.528 + 0.9856003 * n) % 360.0)

    lam = L + math.radians(1.915) * math.sin(g) + math.radians(0.020) * math.sin(2.0 * g)
    eps = math.radians(23.439 - 0.0000004 * n)

    ra = math.atan2(math.cos(eps) * math.sin(lam), math.cos(lam))
    dec = math.asin(math.sin(eps) * math.sin(lam))
    return ra, dec


def sun_right_ascension_deg(t_utc: datetime) -> float:
    """Sun right ascension in degrees, wrapped to [0, 360)."""
    ra, _ = sun_ra_dec(t_utc)
    return math.degrees(ra) % 360.0
