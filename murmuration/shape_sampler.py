"""Primitive shape sampling with density-controlled rejection.

Every shape is described by a candidate generator drawing one raw point from
a seeded :class:`random.Random`.  :func:`sample_detailed` feeds candidates
through the density acceptance test until ``count`` points are accepted or the
attempt budget (``ATTEMPT_FACTOR * count``) runs out.  Running out is not an
error: the caller simply receives a shorter cloud.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .config import ShapeConfig
from .geometry import Point3D, PointCloud, disc_offset, orthonormal_frame, sub
from .noise_field import NoiseField

__all__ = [
    "ATTEMPT_FACTOR",
    "SWEPT_SPINE",
    "SampleResult",
    "BUILTIN_SAMPLERS",
    "sample",
    "sample_detailed",
    "density_acceptance",
    "catmull_rom_point",
    "catmull_rom_tangent",
]

logger = logging.getLogger(__name__)

ATTEMPT_FACTOR = 20

SWEPT_SPINE: Tuple[Point3D, ...] = (
    Point3D(-60.0, 0.0, -80.0),
    Point3D(-30.0, 30.0, -30.0),
    Point3D(0.0, -20.0, 0.0),
    Point3D(30.0, 25.0, 30.0),
    Point3D(60.0, -10.0, 80.0),
)

# (point, normalised radial distance, density uses the volume falloff)
Candidate = Tuple[Point3D, float, bool]
CandidateGenerator = Callable[[ShapeConfig, random.Random], Candidate]


@dataclass(frozen=True)
class SampleResult:
    points: PointCloud
    attempts: int
    requested: int

    @property
    def exhausted(self) -> bool:
        return len(self.points) < self.requested


def density_acceptance(
    p: Point3D,
    dist_from_center: float,
    volume: bool,
    config: ShapeConfig,
    noise: NoiseField,
    rng: random.Random,
) -> bool:
    """Decide whether the candidate ``p`` survives the density test.

    The acceptance probability starts at 1, is reduced by the radial falloff
    (volume fills only) and by a simplex-noise multiplier in
    ``[1 - densityNoise, 1]``.  No random number is drawn when neither term is
    active.
    """

    falloff = config.density_falloff or 0.0
    noise_amt = config.density_noise or 0.0
    noise_freq = config.density_noise_freq or 0.0
    if falloff <= 0 and noise_amt <= 0:
        return True

    prob = 1.0
    if volume and falloff > 0 and dist_from_center >= 0:
        prob *= max(0.0, 1.0 - dist_from_center) ** falloff
    if noise_amt > 0 and noise_freq > 0:
        nval = noise.simplex3(p.x * noise_freq, p.y * noise_freq, p.z * noise_freq)
        prob *= 1.0 - noise_amt + noise_amt * (0.5 + 0.5 * nval)
    return rng.random() < prob


# ---------------------------------------------------------------------------
# Candidate generators


def _unit_sphere(rng: random.Random) -> Tuple[float, float, float]:
    # Marsaglia (1972)
    while True:
        u = rng.random() * 2.0 - 1.0
        v = rng.random() * 2.0 - 1.0
        s = u * u + v * v
        if 0 < s < 1:
            break
    factor = 2.0 * math.sqrt(1.0 - s)
    return (u * factor, v * factor, 1.0 - 2.0 * s)


def _ellipsoid_candidate(rx: float, ry: float, rz: float, volume: bool, rng: random.Random) -> Candidate:
    nx, ny, nz = _unit_sphere(rng)
    r = 1.0
    if volume:
        r = rng.random() ** (1.0 / 3.0)
    point = Point3D(nx * rx * r, ny * ry * r, nz * rz * r)
    return point, (r if volume else 0.0), volume


def _gen_ellipsoid(config: ShapeConfig, rng: random.Random) -> Candidate:
    volume = config.fill_mode == "volume"
    return _ellipsoid_candidate(config.radius_x, config.radius_y, config.radius_z, volume, rng)


def _gen_sphere(config: ShapeConfig, rng: random.Random) -> Candidate:
    radius = config.max_radius
    return _ellipsoid_candidate(radius, radius, radius, config.fill_mode == "volume", rng)


def _gen_torus(config: ShapeConfig, rng: random.Random) -> Candidate:
    u = rng.random() * math.pi * 2.0
    v = rng.random() * math.pi * 2.0
    volume = config.fill_mode == "volume"
    r = config.torus_minor
    dist = 0.0
    if volume:
        # sqrt keeps the tube cross-section uniformly filled
        dist = math.sqrt(rng.random())
        r = config.torus_minor * dist
    ring = config.torus_major + r * math.cos(v)
    point = Point3D(ring * math.cos(u), ring * math.sin(u), r * math.sin(v))
    return point, dist, volume


def _gen_swept(config: ShapeConfig, rng: random.Random) -> Candidate:
    t = rng.random()
    pos = catmull_rom_point(SWEPT_SPINE, t)
    right, up = orthonormal_frame(catmull_rom_tangent(SWEPT_SPINE, t))
    angle = rng.random() * math.pi * 2.0
    r_norm = math.sqrt(rng.random())
    point = disc_offset(pos, right, up, config.swept_radius * r_norm, angle)
    return point, r_norm, True


BUILTIN_SAMPLERS: Dict[str, CandidateGenerator] = {
    "ellipsoid": _gen_ellipsoid,
    "sphere": _gen_sphere,
    "torus": _gen_torus,
    "swept": _gen_swept,
}


# ---------------------------------------------------------------------------
# Catmull-Rom spine


def _cr_interp(p0: float, p1: float, p2: float, p3: float, t: float) -> float:
    t2 = t * t
    t3 = t2 * t
    return 0.5 * (
        (2.0 * p1)
        + (-p0 + p2) * t
        + (2.0 * p0 - 5.0 * p1 + 4.0 * p2 - p3) * t2
        + (-p0 + 3.0 * p1 - 3.0 * p2 + p3) * t3
    )


def catmull_rom_point(spine: Sequence[Point3D], t: float) -> Point3D:
    """Evaluate the clamped-end Catmull-Rom curve through ``spine`` at ``t`` in [0, 1]."""

    n = len(spine) - 1
    f = t * n
    i = min(int(math.floor(f)), n - 1)
    local = f - i
    p0 = spine[max(0, i - 1)]
    p1 = spine[i]
    p2 = spine[min(n, i + 1)]
    p3 = spine[min(n, i + 2)]
    return Point3D(
        _cr_interp(p0.x, p1.x, p2.x, p3.x, local),
        _cr_interp(p0.y, p1.y, p2.y, p3.y, local),
        _cr_interp(p0.z, p1.z, p2.z, p3.z, local),
    )


def catmull_rom_tangent(spine: Sequence[Point3D], t: float, eps: float = 0.001) -> Point3D:
    a = catmull_rom_point(spine, max(0.0, t - eps))
    b = catmull_rom_point(spine, min(1.0, t + eps))
    return sub(b, a)


# ---------------------------------------------------------------------------
# Public API


def sample_detailed(config: ShapeConfig, noise: Optional[NoiseField] = None) -> SampleResult:
    """Sample ``config.count`` points and report how many trials it took."""

    if noise is None:
        noise = NoiseField(config.seed)
    generator = BUILTIN_SAMPLERS.get(config.shape_type, _gen_ellipsoid)
    rng = random.Random(config.seed)
    count = max(0, int(config.count))
    max_attempts = count * ATTEMPT_FACTOR
    points: List[Point3D] = []
    attempts = 0
    while len(points) < count and attempts < max_attempts:
        attempts += 1
        point, dist, volume = generator(config, rng)
        if density_acceptance(point, dist, volume, config, noise, rng):
            points.append(point)
    if len(points) < count:
        logger.debug(
            "sample(%s) accepted %d of %d points after %d attempts",
            config.shape_type,
            len(points),
            count,
            attempts,
        )
    return SampleResult(points=points, attempts=attempts, requested=count)


def sample(config: ShapeConfig, noise: Optional[NoiseField] = None) -> PointCloud:
    """Return at most ``config.count`` points for the configured shape."""

    return sample_detailed(config, noise).points
