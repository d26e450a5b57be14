"""
Tests for shape sampling.

Covers:
- Deterministic sampling per seed
- Surface and volume fills for every shape kind
- Density-driven rejection and the attempt budget
- Catmull-Rom spine helpers
"""
from __future__ import annotations

import math
import random

import pytest

from murmuration.config import ShapeConfig, derive
from murmuration.geometry import Point3D
from murmuration.noise_field import NoiseField
from murmuration.shape_sampler import (
    ATTEMPT_FACTOR,
    SWEPT_SPINE,
    catmull_rom_point,
    catmull_rom_tangent,
    density_acceptance,
    sample,
    sample_detailed,
)


def _norm(p):
    return math.sqrt(p.x * p.x + p.y * p.y + p.z * p.z)


class TestDeterminism:
    """Same configuration, same cloud."""

    def test_same_seed_identical_points(self):
        """Two runs with identical settings produce identical clouds."""
        cfg = ShapeConfig(count=300, fill_mode="volume")
        assert sample(cfg, NoiseField(cfg.seed)) == sample(cfg, NoiseField(cfg.seed))

    def test_default_noise_matches_seeded_noise(self):
        """Omitting the noise field uses one seeded from the config."""
        cfg = ShapeConfig(count=150)
        assert sample(cfg) == sample(cfg, NoiseField(cfg.seed))

    def test_different_seed_changes_points(self, plain_shape):
        """A new seed moves the points."""
        assert sample(plain_shape) != sample(derive(plain_shape, seed=plain_shape.seed + 1))


class TestShapes:
    """Geometry of the individual shape kinds."""

    def test_sphere_surface_on_radius(self):
        """Surface-filled sphere points lie exactly on the largest radius."""
        cfg = ShapeConfig(shape_type="sphere", count=200, radius_x=10, radius_y=20, radius_z=30,
                          density_falloff=0.0, density_noise=0.0)
        pts = sample(cfg)
        assert len(pts) == 200
        for p in pts:
            assert _norm(p) == pytest.approx(30.0)

    def test_sphere_volume_inside_and_spread(self):
        """Volume fill stays inside the radius and reaches the outer shell."""
        cfg = ShapeConfig(shape_type="sphere", count=2000, radius_x=50, radius_y=50, radius_z=50,
                          fill_mode="volume", density_falloff=0.0, density_noise=0.0)
        norms = [_norm(p) for p in sample(cfg)]
        assert max(norms) <= 50.0 + 1e-9
        # uniform in volume: about half the points have r^3 below half the radius cubed
        inner = sum(1 for r in norms if (r / 50.0) ** 3 < 0.5)
        assert 0.4 < inner / len(norms) < 0.6

    def test_ellipsoid_surface_equation(self, plain_shape):
        """Surface ellipsoid points satisfy the ellipsoid equation."""
        c = plain_shape
        for p in sample(c):
            value = (p.x / c.radius_x) ** 2 + (p.y / c.radius_y) ** 2 + (p.z / c.radius_z) ** 2
            assert value == pytest.approx(1.0)

    def test_torus_surface_distance_from_ring(self):
        """Surface torus points are exactly the minor radius away from the ring."""
        cfg = ShapeConfig(shape_type="torus", count=300, torus_major=60, torus_minor=20,
                          density_falloff=0.0, density_noise=0.0)
        for p in sample(cfg):
            ring = math.hypot(p.x, p.y) - 60.0
            assert math.hypot(ring, p.z) == pytest.approx(20.0)

    def test_torus_volume_inside_tube(self):
        """Volume torus points lie within the tube."""
        cfg = ShapeConfig(shape_type="torus", count=300, torus_major=60, torus_minor=20,
                          fill_mode="volume", density_falloff=0.0, density_noise=0.0)
        for p in sample(cfg):
            ring = math.hypot(p.x, p.y) - 60.0
            assert math.hypot(ring, p.z) <= 20.0 + 1e-9

    def test_swept_stays_near_spine(self):
        """Swept-tube points stay within the tube radius of some spine sample."""
        cfg = ShapeConfig(shape_type="swept", count=200, swept_radius=12,
                          density_falloff=0.0, density_noise=0.0)
        spine = [catmull_rom_point(SWEPT_SPINE, i / 400.0) for i in range(401)]
        for p in sample(cfg):
            nearest = min(_norm(Point3D(p.x - s.x, p.y - s.y, p.z - s.z)) for s in spine)
            assert nearest <= 12.0 + 1.0

    def test_unknown_kind_falls_back_to_ellipsoid(self, plain_shape):
        """An unrecognised shape kind samples the ellipsoid."""
        assert sample(derive(plain_shape, shape_type="cube")) == sample(plain_shape)

    def test_zero_count_is_empty(self, plain_shape):
        """Asking for nothing returns nothing."""
        result = sample_detailed(derive(plain_shape, count=0))
        assert result.points == []
        assert result.attempts == 0


class TestDensity:
    """Rejection sampling against the density function."""

    def test_no_shaping_accepts_every_candidate(self, plain_shape):
        """Without falloff or noise each candidate is kept on the first try."""
        result = sample_detailed(plain_shape)
        assert len(result.points) == plain_shape.count
        assert result.attempts == plain_shape.count
        assert not result.exhausted

    def test_attempt_budget_bounds_work(self):
        """Heavy rejection never exceeds the attempt budget and may fall short."""
        cfg = ShapeConfig(count=400, fill_mode="volume", density_falloff=40.0,
                          density_noise=1.0, density_noise_freq=0.05)
        result = sample_detailed(cfg)
        assert result.attempts <= ATTEMPT_FACTOR * cfg.count
        assert len(result.points) <= cfg.count
        assert result.exhausted

    def test_falloff_concentrates_core(self):
        """Radial falloff pulls volume points towards the centre."""
        flat = ShapeConfig(shape_type="sphere", count=1000, fill_mode="volume",
                           density_falloff=0.0, density_noise=0.0)
        dense = derive(flat, density_falloff=3.0)
        mean_flat = sum(_norm(p) for p in sample(flat)) / 1000
        pts = sample(dense)
        mean_dense = sum(_norm(p) for p in pts) / len(pts)
        assert mean_dense < mean_flat

    def test_surface_ignores_falloff_term(self, noise):
        """Surface candidates are not thinned by radial falloff alone."""
        cfg = ShapeConfig(density_falloff=5.0, density_noise=0.0)
        rng = random.Random(1)
        accepted = sum(
            density_acceptance(Point3D(1.0, 0.0, 0.0), 0.0, False, cfg, noise, rng) for _ in range(100)
        )
        assert accepted == 100

    def test_no_shaping_draws_no_random(self, noise):
        """The acceptance test leaves the generator untouched when shaping is off."""
        cfg = ShapeConfig(density_falloff=0.0, density_noise=0.0)
        rng = random.Random(5)
        state = rng.getstate()
        assert density_acceptance(Point3D(1.0, 2.0, 3.0), 0.5, True, cfg, noise, rng)
        assert rng.getstate() == state


class TestSpine:
    """Catmull-Rom spine helpers."""

    def test_passes_through_endpoints(self):
        """The curve starts and ends on the first and last control points."""
        assert catmull_rom_point(SWEPT_SPINE, 0.0).as_tuple() == pytest.approx(SWEPT_SPINE[0].as_tuple())
        assert catmull_rom_point(SWEPT_SPINE, 1.0).as_tuple() == pytest.approx(SWEPT_SPINE[-1].as_tuple())

    def test_passes_through_interior_knots(self):
        """Quarter parameters land on the interior control points."""
        for i in (1, 2, 3):
            assert catmull_rom_point(SWEPT_SPINE, i / 4.0).as_tuple() == pytest.approx(SWEPT_SPINE[i].as_tuple())

    def test_tangent_points_forward(self):
        """The spine runs from negative to positive z."""
        assert catmull_rom_tangent(SWEPT_SPINE, 0.5).z > 0
