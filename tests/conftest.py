"""Shared fixtures for the murmuration tests."""
from __future__ import annotations

import pytest

from murmuration.config import FlockConfig, ShapeConfig
from murmuration.geometry import Point3D
from murmuration.noise_field import NoiseField


@pytest.fixture
def noise():
    """A field seeded like the default parameter set."""
    return NoiseField(42)


@pytest.fixture
def plain_shape():
    """A small ellipsoid with no density shaping, so every candidate is accepted."""
    return ShapeConfig(count=200, density_falloff=0.0, density_noise=0.0)


@pytest.fixture
def plain_flock():
    return FlockConfig(count=300, density_falloff=0.0, density_noise=0.0)


@pytest.fixture
def line_cloud():
    """Eleven points spaced evenly along z from -50 to 50, offset in x."""
    return [Point3D(10.0, 0.0, -50.0 + 10.0 * i) for i in range(11)]
