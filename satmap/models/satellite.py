# satmap/models/satellite.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, NamedTuple

import numpy as np


class CartesianVector(NamedTuple):
    """3D vector in the ECI (SGP4 TEME) frame. km for positions, km/s for velocities."""

    x: float
    y: float
    z: float

    @classmethod
    def from_array(cls, arr) -> "CartesianVector":
        a = np.asarray(arr, dtype=float)
        if a.shape != (3,):
            raise ValueError(f"Cannot coerce {arr!r} to 3D vector")
        return cls(float(a[0]), float(a[1]), float(a[2]))

    def to_array(self) -> np.ndarray:
        return np.array(self, dtype=float)

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z}


ZERO_VECTOR = CartesianVector(0.0, 0.0, 0.0)


@dataclass(frozen=True)
class GeodeticPosition:
    latitude: float   # deg, [-90, 90]
    longitude: float  # deg, [-180, 180]
    altitude: float   # km above the ellipsoid

    def to_dict(self) -> Dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude, "altitude": self.altitude}


@dataclass(frozen=True)
class TLE:
    name: str
    line1: str
    line2: str

    @property
    def satnum(self) -> str:
        return self.line1[2:7].strip()


@dataclass(frozen=True)
class SatellitePosition:
    """State of one satellite at one simulation instant."""

    timestamp: int  # Unix time, ms
    position_eci: CartesianVector
    velocity_eci: CartesianVector
    position_geodetic: GeodeticPosition

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "positionEci": self.position_eci.to_dict(),
            "velocityEci": self.velocity_eci.to_dict(),
            "positionGeodetic": self.position_geodetic.to_dict(),
        }
