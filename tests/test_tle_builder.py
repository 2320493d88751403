"""Tests for Beacon element synthesis and the fixed-width TLE encoding."""

from __future__ import annotations

import math
from datetime import datetime, timezone

import pytest

from satmap.config.settings import BEACON_SATNUM, RADIUS_EARTH_KM
from satmap.data import tle_builder
from satmap.data.tle_builder import (
    build_beacon_tle,
    circular_mean_motion,
    create_beacon_satrec,
    format_angle,
    format_eccentricity,
    format_epoch,
    format_mean_motion,
    sso_inclination_deg,
    sso_raan_deg,
    tle_checksum,
)
from satmap.errors import InvalidOrbitParametersError
from satmap.models.orbit import NonPolarOrbit, SunSynchronousOrbit
from satmap.propagation.sgp4_propagator import propagate


class TestFieldFormatting:
    def test_checksum_matches_published_lines(self, iss_tle) -> None:
        assert tle_checksum(iss_tle.line1[:-1]) == int(iss_tle.line1[-1])
        assert tle_checksum(iss_tle.line2[:-1]) == int(iss_tle.line2[-1])

    def test_checksum_counts_minus_as_one(self) -> None:
        assert tle_checksum("1-1") == 3
        assert tle_checksum("A B.+") == 0

    def test_fixed_widths(self) -> None:
        assert format_angle(0.0) == "  0.0000"
        assert format_angle(98.6) == " 98.6000"
        assert format_angle(337.5) == "337.5000"
        assert format_eccentricity(1e-7) == "0000001"
        assert format_mean_motion(15.0) == "15.00000000"
        assert format_mean_motion(1.0027) == " 1.00270000"

    def test_epoch_day_of_year(self, epoch) -> None:
        year, day = format_epoch(epoch)
        assert year == "25"
        assert len(day) == 12
        assert float(day) == pytest.approx(79.5)

    def test_epoch_first_instant_of_year_is_day_one(self) -> None:
        _, day = format_epoch(datetime(2024, 1, 1, tzinfo=timezone.utc))
        assert float(day) == pytest.approx(1.0)


class TestOrbitHelpers:
    def test_circular_mean_motion(self) -> None:
        a, n = circular_mean_motion(550.0)
        assert a == pytest.approx(RADIUS_EARTH_KM + 550.0)
        # ~95.6 min period
        assert n == pytest.approx(15.078, abs=0.01)

    @pytest.mark.parametrize("altitude, expected", [(400.0, 97.4), (500.0, 98.6), (700.0, 98.6), (1000.0, 98.6), (1200.0, 99.5)])
    def test_sso_inclination_bands(self, altitude, expected) -> None:
        assert sso_inclination_deg(altitude) == expected

    def test_sso_raan_from_descending_node_time(self) -> None:
        """10:30 descending node means 22:30 ascending node."""
        assert sso_raan_deg(10.5, 0.0) == pytest.approx(337.5)
        assert sso_raan_deg(22.0, 10.0) == pytest.approx(160.0)
        assert sso_raan_deg(10.5, 30.0) == pytest.approx(7.5)


class TestBuildBeaconTle:
    def test_non_polar_lines(self, epoch) -> None:
        elements = build_beacon_tle(NonPolarOrbit(550.0, 53.0, 12.25), epoch)
        l1, l2 = elements.tle.line1, elements.tle.line2

        assert len(l1) == 69 and len(l2) == 69
        assert l1.startswith("1 99990U") and l2.startswith("2 99990 ")
        assert int(l1[-1]) == tle_checksum(l1[:-1])
        assert int(l2[-1]) == tle_checksum(l2[:-1])

        assert l1[18:20] == "25"
        assert float(l1[20:32]) == pytest.approx(79.5)
        assert float(l2[8:16]) == pytest.approx(53.0)
        assert float(l2[17:25]) == pytest.approx(12.25)
        assert l2[26:33] == "0000001"
        assert float(l2[34:42]) == 0.0
        assert float(l2[43:51]) == 0.0
        assert float(l2[52:63]) == pytest.approx(circular_mean_motion(550.0)[1], abs=1e-7)

        assert elements.tle.name == "BEACON"
        assert elements.tle.satnum == str(BEACON_SATNUM)
        assert elements.inclination_deg == 53.0
        assert elements.raan_deg == 12.25

    def test_sun_synchronous_orientation(self, epoch) -> None:
        elements = build_beacon_tle(SunSynchronousOrbit(700.0, 10.5), epoch)
        assert elements.inclination_deg == 98.6
        assert elements.raan_deg == pytest.approx(sso_raan_deg(10.5, elements.sun_ra_deg))
        assert float(elements.tle.line2[8:16]) == pytest.approx(98.6)
        assert float(elements.tle.line2[17:25]) == pytest.approx(elements.raan_deg, abs=1e-4)

    def test_custom_name_and_satnum(self, epoch) -> None:
        elements = build_beacon_tle(NonPolarOrbit(780.0, 86.4), epoch, name="IRIDIUM X", satnum=42)
        assert elements.tle.name == "IRIDIUM X"
        assert elements.tle.line1[2:7] == "00042"

    def test_naive_epoch_is_utc(self, epoch) -> None:
        naive = build_beacon_tle(NonPolarOrbit(550.0, 53.0), epoch.replace(tzinfo=None))
        aware = build_beacon_tle(NonPolarOrbit(550.0, 53.0), epoch)
        assert naive.tle == aware.tle

    @pytest.mark.parametrize(
        "params",
        [
            NonPolarOrbit(0.0, 53.0),
            NonPolarOrbit(-10.0, 53.0),
            NonPolarOrbit(550.0, 181.0),
            NonPolarOrbit(550.0, -1.0),
            NonPolarOrbit(550.0, 53.0, 360.0),
            NonPolarOrbit(float("nan"), 53.0),
            SunSynchronousOrbit(0.0, 10.5),
            SunSynchronousOrbit(700.0, 24.0),
            SunSynchronousOrbit(700.0, -0.5),
            SunSynchronousOrbit(700.0, float("inf")),
        ],
    )
    def test_invalid_parameters(self, params, epoch) -> None:
        with pytest.raises(InvalidOrbitParametersError) as exc_info:
            build_beacon_tle(params, epoch)
        assert "params" in exc_info.value.context

    def test_unsupported_parameter_type(self, epoch) -> None:
        with pytest.raises(TypeError):
            build_beacon_tle(object(), epoch)  # type: ignore[arg-type]

    def test_satnum_out_of_range(self, epoch) -> None:
        with pytest.raises(InvalidOrbitParametersError):
            build_beacon_tle(NonPolarOrbit(550.0, 53.0), epoch, satnum=100000)

    def test_wrong_line_length_is_fatal(self, monkeypatch, epoch) -> None:
        monkeypatch.setattr(tle_builder, "format_mean_motion", lambda n: "15.123456789")
        with pytest.raises(InvalidOrbitParametersError, match="line 2") as exc_info:
            build_beacon_tle(NonPolarOrbit(550.0, 53.0), epoch)
        assert len(exc_info.value.context["line"]) == 70


class TestCreateBeaconSatrec:
    def test_propagated_radius_matches_altitude(self, epoch) -> None:
        sat, elements = create_beacon_satrec(NonPolarOrbit(550.0, 53.0), epoch)
        assert sat.error == 0
        state = propagate(sat, epoch)
        assert state is not None
        r = math.sqrt(sum(c * c for c in state.position))
        assert r == pytest.approx(elements.semi_major_axis_km, abs=25.0)

    def test_beacon_starts_on_ascending_node(self, epoch) -> None:
        sat, _ = create_beacon_satrec(NonPolarOrbit(550.0, 53.0, 0.0), epoch)
        state = propagate(sat, epoch)
        assert state is not None
        assert abs(state.position.z) < 50.0
        assert state.position.x > 6800.0
        assert state.velocity.z > 0.0

    def test_sun_synchronous_record(self, epoch) -> None:
        sat, elements = create_beacon_satrec(SunSynchronousOrbit(800.0, 22.0), epoch)
        assert sat.error == 0
        assert math.degrees(sat.inclo) == pytest.approx(98.6, abs=1e-3)
        assert math.degrees(sat.nodeo) == pytest.approx(elements.raan_deg, abs=1e-3)
