# satmap/models/orbit.py
"""
Beacon orbit variants.

`BeaconOrbitParams` is a closed union: code that dispatches on it handles both
classes and raises TypeError for anything else.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Union


@dataclass(frozen=True)
class SunSynchronousOrbit:
    altitude_km: float
    local_solar_time_descending_node_h: float  # e.g. 10.5 for 10:30

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "SunSynchronous",
            "altitude": self.altitude_km,
            "localSolarTimeAtDescendingNode": self.local_solar_time_descending_node_h,
        }


@dataclass(frozen=True)
class NonPolarOrbit:
    altitude_km: float
    inclination_deg: float
    raan_deg: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "NonPolar",
            "altitude": self.altitude_km,
            "inclination": self.inclination_deg,
            "raan": self.raan_deg,
        }


BeaconOrbitParams = Union[SunSynchronousOrbit, NonPolarOrbit]
