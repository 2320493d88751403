# satmap/physics/geometry.py
"""
Vector algebra and the two link predicates (point-in-cone, Earth occultation).
Everything here is a pure function of its inputs; degenerate input is logged, not raised.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from satmap.config.settings import HORIZON_FALLBACK_PARALLEL_LIMIT, NEAR_ZERO, RADIUS_EARTH_KM
from satmap.models.satellite import ZERO_VECTOR, CartesianVector

logger = logging.getLogger(__name__)

_GLOBAL_X = CartesianVector(1.0, 0.0, 0.0)
_GLOBAL_Y = CartesianVector(0.0, 1.0, 0.0)


def dot(a: Sequence[float], b: Sequence[float]) -> float:
    return float(np.dot(a, b))


def magnitude(v: Sequence[float]) -> float:
    return float(np.linalg.norm(v))


def add(a: Sequence[float], b: Sequence[float]) -> CartesianVector:
    return CartesianVector.from_array(np.add(a, b))


def subtract(a: Sequence[float], b: Sequence[float]) -> CartesianVector:
    return CartesianVector.from_array(np.subtract(a, b))


def scale(v: Sequence[float], k: float) -> CartesianVector:
    return CartesianVector.from_array(np.multiply(v, float(k)))


def cross(a: Sequence[float], b: Sequence[float]) -> CartesianVector:
    return CartesianVector.from_array(np.cross(a, b))


def normalize(v: Sequence[float]) -> CartesianVector:
    """Unit vector along v. A near-zero v yields the zero vector and a warning."""
    mag = magnitude(v)
    if mag < NEAR_ZERO:
        logger.warning("Attempted to normalize a near-zero vector %s; returning zero vector.", tuple(v))
        return ZERO_VECTOR
    return CartesianVector.from_array(np.asarray(v, dtype=float) / mag)


def nadir_vector(position_eci: Sequence[float]) -> CartesianVector:
    """Unit vector from the satellite to the frame origin (Earth's centre)."""
    return normalize(scale(position_eci, -1.0))


@dataclass(frozen=True)
class GeometricCone:
    tip: CartesianVector
    axis: CartesianVector      # unit
    half_angle: float          # rad
    label: Optional[str] = None


def create_nadir_cone(position_eci: CartesianVector, half_angle: float, label: Optional[str] = None) -> GeometricCone:
    return GeometricCone(tip=position_eci, axis=nadir_vector(position_eci), half_angle=half_angle, label=label)


def _horizontal_direction(zenith: CartesianVector, velocity: Sequence[float]) -> Optional[CartesianVector]:
    """
    Velocity projected on the local horizontal plane, or an arbitrary horizontal
    direction when the velocity is (anti-)radial. None if even that is degenerate.
    """
    horizontal = subtract(velocity, scale(zenith, dot(velocity, zenith)))
    if magnitude(horizontal) >= NEAR_ZERO:
        return normalize(horizontal)

    ref = _GLOBAL_X if abs(dot(zenith, _GLOBAL_X)) < HORIZON_FALLBACK_PARALLEL_LIMIT else _GLOBAL_Y
    c = cross(zenith, ref)
    if magnitude(c) < NEAR_ZERO:
        return None
    return normalize(c)


def create_horizon_aligned_cones(
    position_eci: CartesianVector,
    velocity_eci: CartesianVector,
    half_angle: float,
    label_prefix: Optional[str] = None,
) -> List[GeometricCone]:
    """
    Two antenna cones pointing forward and backward along the horizontal projection of
    the velocity. Returns [] when no horizontal direction can be derived; callers treat
    that as "horizon antennas unavailable".
    """
    prefix = label_prefix or "UnknownEntity"
    if magnitude(position_eci) < NEAR_ZERO:
        logger.error("Zero ECI position for %s; cannot determine zenith for horizon cones.", prefix)
        return []
    zenith = normalize(position_eci)

    forward = _horizontal_direction(zenith, velocity_eci)
    if forward is None:
        logger.error("Could not determine a fallback horizontal direction for %s antennas.", prefix)
        return []

    return [
        GeometricCone(tip=position_eci, axis=forward, half_angle=half_angle, label=f"{prefix}-Ant1"),
        GeometricCone(tip=position_eci, axis=scale(forward, -1.0), half_angle=half_angle, label=f"{prefix}-Ant2"),
    ]


def angle_to_target(target: Sequence[float], cone: GeometricCone) -> float:
    """Angle (rad) between the cone axis and the tip->target direction."""
    to_target = normalize(subtract(target, cone.tip))
    cos_angle = max(-1.0, min(1.0, dot(cone.axis, to_target)))
    return math.acos(cos_angle)


def is_point_in_cone(target: Sequence[float], cone: GeometricCone) -> bool:
    return angle_to_target(target, cone) <= cone.half_angle


def is_line_of_sight_clear(
    p1: Sequence[float],
    p2: Sequence[float],
    earth_center: Sequence[float] = ZERO_VECTOR,
    earth_radius: float = RADIUS_EARTH_KM,
) -> bool:
    """
    Segment p1->p2 against a sphere. Intersections are solved on the parametric line
    p1 + t (p2 - p1); only t in [0, 1] lies on the segment.
    """
    p1 = np.asarray(p1, dtype=float)
    p2 = np.asarray(p2, dtype=float)
    center = np.asarray(earth_center, dtype=float)

    d = p2 - p1
    f = p1 - center

    a = float(np.dot(d, d))
    b = 2.0 * float(np.dot(f, d))
    c = float(np.dot(f, f)) - earth_radius * earth_radius

    if a < NEAR_ZERO:
        # zero-length segment: nothing lies between the endpoints
        return True

    disc = b * b - 4.0 * a * c
    if disc < 0:
        return True

    root = math.sqrt(disc)
    t1 = (-b - root) / (2.0 * a)
    t2 = (-b + root) / (2.0 * a)
    if not ((0.0 <= t1 <= 1.0) or (0.0 <= t2 <= 1.0)):
        return True

    r_sq = earth_radius * earth_radius
    p1_sq = float(np.dot(f, f))
    g = p2 - center
    p2_sq = float(np.dot(g, g))

    if (p1_sq < r_sq and p2_sq > r_sq) or (p1_sq > r_sq and p2_sq < r_sq):
        return False
    if p1_sq > r_sq and p2_sq > r_sq:
        return False
    if p1_sq <= r_sq and p2_sq <= r_sq:
        return True
    return False
