"""Shared fixtures: a fixed epoch, synthetic Iridium elements, simulation configs."""

from __future__ import annotations

from datetime import datetime, timezone

import matplotlib

matplotlib.use("Agg")

import pytest

from satmap.data.tle_builder import build_beacon_tle
from satmap.models.orbit import NonPolarOrbit
from satmap.models.satellite import TLE
from satmap.models.simulation import SimulationConfig

EPOCH = datetime(2025, 3, 20, 12, 0, tzinfo=timezone.utc)

ISS_TLE = TLE(
    name="ISS (ZARYA)",
    line1="1 25544U 98067A   08264.51782528 -.00002182  00000-0 -11606-4 0  2927",
    line2="2 25544  51.6416 247.4627 0006703 130.5360 325.0288 15.72125391563537",
)


@pytest.fixture
def epoch() -> datetime:
    return EPOCH


@pytest.fixture
def iss_tle() -> TLE:
    return ISS_TLE


@pytest.fixture
def beacon_orbit() -> NonPolarOrbit:
    """550 km, 53 deg, ascending node on +x at the epoch."""
    return NonPolarOrbit(altitude_km=550.0, inclination_deg=53.0, raan_deg=0.0)


@pytest.fixture
def make_iridium_tle():
    """
    Circular element set at the shared epoch. With the default plane it sits
    radially above the Beacon at t=0.
    """

    def _make(name: str = "IRIDIUM TEST", satnum: int = 90001, altitude_km: float = 780.0,
              inclination_deg: float = 53.0, raan_deg: float = 0.0) -> TLE:
        orbit = NonPolarOrbit(altitude_km=altitude_km, inclination_deg=inclination_deg, raan_deg=raan_deg)
        return build_beacon_tle(orbit, EPOCH, name=name, satnum=satnum).tle

    return _make


@pytest.fixture
def make_config(beacon_orbit):
    def _make(**overrides) -> SimulationConfig:
        values = dict(
            beacon_params=beacon_orbit,
            iridium_fov_deg=62.0,
            beacon_fov_deg=62.0,
            simulation_duration_hours=1.0,
            simulation_time_step_sec=60.0,
            handshake_mode="one-way",
            start_time_iso=EPOCH.isoformat(),
        )
        values.update(overrides)
        return SimulationConfig(**values)

    return _make
