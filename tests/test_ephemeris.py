"""Tests for the low-precision solar ephemeris."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from satmap.physics.ephemeris import J2000_JD, julian_date, sun_ra_dec, sun_right_ascension_deg


def _angle_diff_deg(a: float, b: float) -> float:
    d = (a - b) % 360.0
    return min(d, 360.0 - d)


class TestJulianDate:
    def test_j2000(self) -> None:
        assert julian_date(datetime(2000, 1, 1, 12, 0, tzinfo=timezone.utc)) == pytest.approx(J2000_JD)

    def test_naive_is_utc(self) -> None:
        naive = datetime(2024, 6, 1, 6, 30)
        aware = naive.replace(tzinfo=timezone.utc)
        assert julian_date(naive) == pytest.approx(julian_date(aware))


class TestSunRightAscension:
    def test_march_equinox_near_zero(self) -> None:
        ra = sun_right_ascension_deg(datetime(2025, 3, 20, 9, 1, tzinfo=timezone.utc))
        assert _angle_diff_deg(ra, 0.0) < 0.5

    def test_june_solstice_near_ninety(self) -> None:
        ra = sun_right_ascension_deg(datetime(2025, 6, 21, 2, 42, tzinfo=timezone.utc))
        assert ra == pytest.approx(90.0, abs=0.5)

    def test_wrapped_range(self) -> None:
        for month in range(1, 13):
            ra = sun_right_ascension_deg(datetime(2025, month, 15, tzinfo=timezone.utc))
            assert 0.0 <= ra < 360.0

    def test_declination_at_solstice(self) -> None:
        _, dec = sun_ra_dec(datetime(2025, 6, 21, 2, 42, tzinfo=timezone.utc))
        assert dec == pytest.approx(0.4091, abs=2e-3)  # ~23.44 deg
