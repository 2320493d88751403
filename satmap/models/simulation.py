# satmap/models/simulation.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from satmap.config import settings
from satmap.models.orbit import BeaconOrbitParams, NonPolarOrbit, SunSynchronousOrbit
from satmap.models.satellite import GeodeticPosition, SatellitePosition


def parse_start_time(value: str) -> datetime:
    """ISO-8601 -> timezone-aware UTC datetime. A trailing 'Z' is accepted; naive means UTC."""
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    t = datetime.fromisoformat(text)
    if t.tzinfo is None:
        return t.replace(tzinfo=timezone.utc)
    return t.astimezone(timezone.utc)


@dataclass(frozen=True)
class SimulationConfig:
    beacon_params: BeaconOrbitParams
    iridium_fov_deg: float = settings.IRIDIUM_DEFAULT_FOV_DEG
    beacon_fov_deg: float = settings.BEACON_DEFAULT_FOV_DEG
    simulation_duration_hours: float = settings.DEFAULT_DURATION_HOURS
    simulation_time_step_sec: float = settings.DEFAULT_TIME_STEP_SEC
    handshake_mode: str = settings.DEFAULT_HANDSHAKE_MODE
    start_time_iso: Optional[str] = None
    iridium_dataset_sources: Tuple[str, ...] = settings.DEFAULT_IRIDIUM_DATASETS

    @property
    def iridium_half_angle_rad(self) -> float:
        return settings.fov_to_half_angle_rad(self.iridium_fov_deg)

    @property
    def beacon_half_angle_rad(self) -> float:
        return settings.fov_to_half_angle_rad(self.beacon_fov_deg)

    @property
    def duration_sec(self) -> float:
        return float(self.simulation_duration_hours) * 3600.0

    def start_time(self) -> Optional[datetime]:
        if not self.start_time_iso:
            return None
        return parse_start_time(self.start_time_iso)

    def validate(self) -> None:
        if not isinstance(self.beacon_params, (SunSynchronousOrbit, NonPolarOrbit)):
            raise ValueError(f"Unsupported beacon_params type: {type(self.beacon_params).__name__}")
        if not (0 < self.iridium_fov_deg <= 180):
            raise ValueError("iridium_fov_deg must be in (0, 180]")
        if not (0 < self.beacon_fov_deg <= 180):
            raise ValueError("beacon_fov_deg must be in (0, 180]")
        if self.simulation_duration_hours <= 0:
            raise ValueError("simulation_duration_hours must be > 0")
        if self.simulation_time_step_sec <= 0:
            raise ValueError("simulation_time_step_sec must be > 0")
        if self.handshake_mode not in settings.HANDSHAKE_MODES:
            raise ValueError(
                f"handshake_mode must be one of {settings.HANDSHAKE_MODES}, got {self.handshake_mode!r}"
            )
        unknown = set(self.iridium_dataset_sources) - set(settings.IRIDIUM_DATASET_GROUPS)
        if unknown:
            raise ValueError(f"Unknown Iridium datasets: {sorted(unknown)}")
        if self.start_time_iso:
            try:
                self.start_time()
            except ValueError as e:
                raise ValueError(f"start_time_iso is not ISO-8601: {self.start_time_iso!r}") from e

    def to_dict(self) -> Dict[str, Any]:
        return {
            "beaconParams": self.beacon_params.to_dict(),
            "iridiumFovDeg": self.iridium_fov_deg,
            "beaconFovDeg": self.beacon_fov_deg,
            "simulationDurationHours": self.simulation_duration_hours,
            "simulationTimeStepSec": self.simulation_time_step_sec,
            "handshakeMode": self.handshake_mode,
            "startTimeISO": self.start_time_iso,
            "iridiumDatasetSources": list(self.iridium_dataset_sources),
        }


@dataclass(frozen=True)
class Handshake:
    timestamp: int  # ms
    iridium_satellite_id: str
    beacon_position: GeodeticPosition
    iridium_position: GeodeticPosition

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "iridiumSatelliteId": self.iridium_satellite_id,
            "beaconPosition": self.beacon_position.to_dict(),
            "iridiumPosition": self.iridium_position.to_dict(),
        }


@dataclass(frozen=True)
class BlackoutPeriod:
    start_time: int  # ms
    end_time: int    # ms
    duration: float  # s

    def to_dict(self) -> Dict[str, Any]:
        return {"startTime": self.start_time, "endTime": self.end_time, "duration": self.duration}


@dataclass(frozen=True)
class SimulationResults:
    """
    Final aggregate of one run. active_links_log[i] and beacon_track[i] refer to the
    same instant. Size grows with steps x satellites; nothing is capped.
    """

    total_handshakes: int
    handshake_log: Tuple[Handshake, ...]
    active_links_log: Tuple[FrozenSet[str], ...]
    blackout_periods: Tuple[BlackoutPeriod, ...]
    total_blackout_duration: float
    average_blackout_duration: float
    number_of_blackouts: int
    beacon_track: Tuple[SatellitePosition, ...]
    iridium_tracks: Mapping[str, Tuple[SatellitePosition, ...]] = field(default_factory=dict)
    start_time: int = 0  # ms
    end_time: int = 0    # ms, configured end of the horizon
    steps_evaluated: int = 0
    steps_skipped: int = 0

    def to_dict(self, include_tracks: bool = True) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "totalHandshakes": self.total_handshakes,
            "handshakeLog": [h.to_dict() for h in self.handshake_log],
            "activeLinksLog": [sorted(s) for s in self.active_links_log],
            "blackoutPeriods": [b.to_dict() for b in self.blackout_periods],
            "totalBlackoutDuration": self.total_blackout_duration,
            "averageBlackoutDuration": self.average_blackout_duration,
            "numberOfBlackouts": self.number_of_blackouts,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "stepsEvaluated": self.steps_evaluated,
            "stepsSkipped": self.steps_skipped,
        }
        if include_tracks:
            out["beaconTrack"] = [p.to_dict() for p in self.beacon_track]
            out["iridiumTracks"] = {
                sid: [p.to_dict() for p in track] for sid, track in self.iridium_tracks.items()
            }
        return out
