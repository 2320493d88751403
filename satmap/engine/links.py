# satmap/engine/links.py
"""
Link eligibility between the Beacon and one Iridium satellite at one instant.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from satmap.config.settings import RADIUS_EARTH_KM
from satmap.models.satellite import CartesianVector
from satmap.physics.geometry import (
    create_horizon_aligned_cones,
    create_nadir_cone,
    is_line_of_sight_clear,
    is_point_in_cone,
)

ONE_WAY = "one-way"
BI_DIRECTIONAL = "bi-directional"

# outcomes
LINK_OK = "ok"
OUT_OF_CONE = "out_of_cone"
OCCULTED = "occulted"
NO_HORIZON_CONES = "no_horizon_cones"


@dataclass(frozen=True)
class LinkGeometry:
    mode: str
    iridium_half_angle: float  # rad
    beacon_half_angle: float   # rad
    earth_radius_km: float = RADIUS_EARTH_KM


def evaluate_link(
    geometry: LinkGeometry,
    beacon_pos: CartesianVector,
    beacon_vel: CartesianVector,
    iridium_pos: CartesianVector,
    iridium_vel: CartesianVector,
    iridium_id: Optional[str] = None,
) -> str:
    """
    Classify the link. one-way: Beacon inside the Iridium nadir cone.
    bi-directional: Beacon inside an Iridium horizon cone AND Iridium inside a Beacon
    horizon cone (second test only runs when the first passes). A passing cone test is
    then gated by Earth occultation.
    """
    if geometry.mode == ONE_WAY:
        cone = create_nadir_cone(iridium_pos, geometry.iridium_half_angle, iridium_id)
        in_cone = is_point_in_cone(beacon_pos, cone)
    elif geometry.mode == BI_DIRECTIONAL:
        iridium_cones = create_horizon_aligned_cones(
            iridium_pos, iridium_vel, geometry.iridium_half_angle, f"{iridium_id or 'Iridium'}-HScan"
        )
        if not iridium_cones:
            return NO_HORIZON_CONES
        in_cone = any(is_point_in_cone(beacon_pos, c) for c in iridium_cones)
        if in_cone:
            beacon_cones = create_horizon_aligned_cones(
                beacon_pos, beacon_vel, geometry.beacon_half_angle, "Beacon-HScan"
            )
            if not beacon_cones:
                return NO_HORIZON_CONES
            in_cone = any(is_point_in_cone(iridium_pos, c) for c in beacon_cones)
    else:
        raise ValueError(f"Unknown handshake mode: {geometry.mode!r}")

    if not in_cone:
        return OUT_OF_CONE
    if not is_line_of_sight_clear(beacon_pos, iridium_pos, earth_radius=geometry.earth_radius_km):
        return OCCULTED
    return LINK_OK


def can_communicate(
    geometry: LinkGeometry,
    beacon_pos: CartesianVector,
    beacon_vel: CartesianVector,
    iridium_pos: CartesianVector,
    iridium_vel: CartesianVector,
) -> bool:
    return evaluate_link(geometry, beacon_pos, beacon_vel, iridium_pos, iridium_vel) == LINK_OK
