"""Tests for vector helpers, antenna cones and the Earth occultation check."""

from __future__ import annotations

import math

import numpy as np
import pytest

from satmap.models.satellite import ZERO_VECTOR, CartesianVector
from satmap.physics import geometry
from satmap.physics.geometry import (
    GeometricCone,
    create_horizon_aligned_cones,
    create_nadir_cone,
    is_line_of_sight_clear,
    is_point_in_cone,
)


class TestVectorOps:
    def test_basic_arithmetic(self) -> None:
        a = CartesianVector(1.0, 2.0, 3.0)
        b = CartesianVector(4.0, 5.0, 6.0)
        assert geometry.dot(a, b) == pytest.approx(32.0)
        assert geometry.add(a, b) == CartesianVector(5.0, 7.0, 9.0)
        assert geometry.subtract(b, a) == CartesianVector(3.0, 3.0, 3.0)
        assert geometry.scale(a, 2.0) == CartesianVector(2.0, 4.0, 6.0)
        assert geometry.cross(CartesianVector(1, 0, 0), CartesianVector(0, 1, 0)) == CartesianVector(0, 0, 1)
        assert geometry.magnitude(CartesianVector(3.0, 4.0, 0.0)) == pytest.approx(5.0)

    def test_normalize_unit_length(self) -> None:
        n = geometry.normalize(CartesianVector(0.0, 3.0, 4.0))
        assert geometry.magnitude(n) == pytest.approx(1.0)
        assert n.y == pytest.approx(0.6)

    def test_normalize_zero_returns_zero_vector(self, caplog) -> None:
        """A near-zero vector is not an error: zero comes back and a warning is logged."""
        assert geometry.normalize(ZERO_VECTOR) == ZERO_VECTOR
        assert geometry.normalize(CartesianVector(1e-12, 0.0, 0.0)) == ZERO_VECTOR
        assert "near-zero" in caplog.text

    def test_nadir_vector_points_at_origin(self) -> None:
        n = geometry.nadir_vector(CartesianVector(0.0, 7000.0, 0.0))
        assert n == pytest.approx((0.0, -1.0, 0.0))


class TestCones:
    def test_nadir_cone_contains_point_below(self) -> None:
        cone = create_nadir_cone(CartesianVector(7500.0, 0.0, 0.0), math.radians(31.0), "IRIDIUM 1")
        assert cone.label == "IRIDIUM 1"
        assert is_point_in_cone(CartesianVector(6900.0, 0.0, 0.0), cone)
        assert not is_point_in_cone(CartesianVector(7500.0, 2000.0, 0.0), cone)

    def test_cone_boundary_is_inclusive(self) -> None:
        cone = GeometricCone(tip=ZERO_VECTOR, axis=CartesianVector(1.0, 0.0, 0.0), half_angle=math.pi / 2)
        assert is_point_in_cone(CartesianVector(0.0, 1.0, 0.0), cone)
        assert not is_point_in_cone(CartesianVector(-1.0, 1.0, 0.0), cone)

    def test_horizon_cones_follow_velocity(self) -> None:
        cones = create_horizon_aligned_cones(
            CartesianVector(7000.0, 0.0, 0.0), CartesianVector(0.0, 7.5, 0.0), math.radians(31.0), "Beacon-HScan"
        )
        assert [c.label for c in cones] == ["Beacon-HScan-Ant1", "Beacon-HScan-Ant2"]
        assert cones[0].axis == pytest.approx((0.0, 1.0, 0.0))
        assert cones[1].axis == pytest.approx((0.0, -1.0, 0.0))

    def test_horizon_cones_drop_radial_velocity_component(self) -> None:
        cones = create_horizon_aligned_cones(
            CartesianVector(7000.0, 0.0, 0.0), CartesianVector(3.0, 0.0, 4.0), 0.5
        )
        assert cones[0].axis == pytest.approx((0.0, 0.0, 1.0))
        assert cones[0].label == "UnknownEntity-Ant1"

    def test_radial_velocity_uses_global_y_when_zenith_along_x(self) -> None:
        cones = create_horizon_aligned_cones(
            CartesianVector(7000.0, 0.0, 0.0), CartesianVector(7.5, 0.0, 0.0), 0.5
        )
        assert len(cones) == 2
        assert cones[0].axis == pytest.approx((0.0, 0.0, 1.0))

    def test_radial_velocity_uses_global_x_otherwise(self) -> None:
        cones = create_horizon_aligned_cones(
            CartesianVector(0.0, 0.0, 7000.0), CartesianVector(0.0, 0.0, -7.5), 0.5
        )
        assert cones[0].axis == pytest.approx((0.0, 1.0, 0.0))

    def test_zero_position_gives_no_cones(self) -> None:
        assert create_horizon_aligned_cones(ZERO_VECTOR, CartesianVector(0.0, 7.5, 0.0), 0.5) == []


class TestLineOfSight:
    def test_blocked_through_earth(self) -> None:
        p1 = CartesianVector(7000.0, 0.0, 0.0)
        p2 = CartesianVector(-7000.0, 0.0, 0.0)
        assert not is_line_of_sight_clear(p1, p2)
        assert not is_line_of_sight_clear(p2, p1)

    def test_clear_when_sphere_missed(self) -> None:
        assert is_line_of_sight_clear(CartesianVector(7000.0, 0.0, 0.0), CartesianVector(7000.0, 1000.0, 0.0))

    def test_clear_when_intersections_outside_segment(self) -> None:
        """Radially aligned points above the surface never cross it between them."""
        assert is_line_of_sight_clear(CartesianVector(6921.0, 0.0, 0.0), CartesianVector(7151.0, 0.0, 0.0))

    def test_both_inside_sphere_is_clear(self) -> None:
        assert is_line_of_sight_clear(CartesianVector(100.0, 0.0, 0.0), CartesianVector(-100.0, 0.0, 0.0))

    def test_surface_point_to_centre_is_clear(self) -> None:
        assert is_line_of_sight_clear(CartesianVector(6371.0, 0.0, 0.0), ZERO_VECTOR)

    def test_inside_to_outside_is_blocked(self) -> None:
        inside = CartesianVector(100.0, 0.0, 0.0)
        outside = CartesianVector(8000.0, 0.0, 0.0)
        assert is_line_of_sight_clear(inside, outside) is False
        assert is_line_of_sight_clear(outside, inside) is False

    def test_surface_point_to_outside_point_is_blocked(self) -> None:
        assert not is_line_of_sight_clear(CartesianVector(6371.0, 0.0, 0.0), CartesianVector(8000.0, 0.0, 0.0))

    def test_custom_radius(self) -> None:
        p1 = CartesianVector(7000.0, 0.0, 0.0)
        p2 = CartesianVector(-7000.0, 0.0, 0.0)
        assert not is_line_of_sight_clear(p1, p2, earth_radius=100.0)
        assert is_line_of_sight_clear(p1, CartesianVector(7000.0, 500.0, 0.0), earth_radius=6999.0)

    def test_zero_length_segment(self) -> None:
        p = CartesianVector(7000.0, 0.0, 0.0)
        assert is_line_of_sight_clear(p, p)


class TestRandomised:
    def test_point_in_cone_matches_brute_force_angle(self) -> None:
        rng = np.random.default_rng(7)
        checked = 0
        for _ in range(500):
            tip = CartesianVector.from_array(rng.uniform(-8000.0, 8000.0, 3))
            axis = geometry.normalize(rng.normal(size=3))
            half_angle = rng.uniform(0.01, math.pi / 2)
            target = rng.uniform(-8000.0, 8000.0, 3)

            d = target - tip.to_array()
            angle = math.atan2(np.linalg.norm(np.cross(axis, d)), np.dot(axis, d))
            if abs(angle - half_angle) < 1e-9:
                continue
            cone = GeometricCone(tip=tip, axis=axis, half_angle=half_angle)
            assert is_point_in_cone(target, cone) == (angle <= half_angle)
            checked += 1
        assert checked > 450

    def test_line_of_sight_symmetric(self) -> None:
        rng = np.random.default_rng(11)
        for _ in range(500):
            p1 = rng.uniform(-9000.0, 9000.0, 3)
            p2 = rng.uniform(-9000.0, 9000.0, 3)
            assert is_line_of_sight_clear(p1, p2) == is_line_of_sight_clear(p2, p1)
