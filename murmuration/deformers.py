"""Spatial deformers and the ordered stack that chains them.

Every deformer is a pure function from a cloud to a new cloud.  The stack is
a list of ``(name, stage)`` pairs built from a :class:`DeformerConfig`; its
order is fixed (smooth, noise, twist, taper, bend, wave) and later stages see
the geometry produced by earlier ones.
"""

from __future__ import annotations

import logging
import math
from functools import partial
from typing import Callable, List, Optional, Sequence, Tuple

from .config import DeformerConfig
from .geometry import Point3D, PointCloud, axis_bounds, axis_value
from .noise_field import FbmOptions, NoiseField

__all__ = [
    "Stage",
    "BEND_EPSILON",
    "SMOOTH_OFFSET",
    "noise_displace",
    "twist",
    "taper",
    "bend",
    "wave",
    "build_stages",
    "run_stages",
    "deform",
]

logger = logging.getLogger(__name__)

Stage = Tuple[str, Callable[[PointCloud], PointCloud]]

BEND_EPSILON = 0.001
SMOOTH_OFFSET = 200.0


def _normalised_position(value: float, lo: float, hi: float) -> float:
    # zero extent maps everything to 0
    return (value - lo) / ((hi - lo) or 1.0)


def noise_displace(
    points: Sequence[Point3D],
    noise: NoiseField,
    frequency: float,
    amplitude: float,
    octaves: int = 4,
    persistence: float = 0.5,
    lacunarity: float = 2.0,
    offset: Tuple[float, float, float] = (0.0, 0.0, 0.0),
) -> PointCloud:
    """Push every point along a vector fBm field sampled at its position."""

    # frequency is folded into the sample coordinates
    opts = FbmOptions(octaves=octaves, persistence=persistence, lacunarity=lacunarity)
    ox, oy, oz = offset
    out: PointCloud = []
    for p in points:
        dx, dy, dz = noise.fbm3vec(p.x * frequency + ox, p.y * frequency + oy, p.z * frequency + oz, opts)
        out.append(Point3D(p.x + dx * amplitude, p.y + dy * amplitude, p.z + dz * amplitude))
    return out


def _rotate_about(p: Point3D, angle: float, axis: str) -> Point3D:
    c = math.cos(angle)
    s = math.sin(angle)
    if axis == "x":
        return Point3D(p.x, p.y * c - p.z * s, p.y * s + p.z * c)
    if axis == "y":
        return Point3D(p.x * c + p.z * s, p.y, -p.x * s + p.z * c)
    return Point3D(p.x * c - p.y * s, p.x * s + p.y * c, p.z)


def _scale_perpendicular(p: Point3D, factor: float, axis: str) -> Point3D:
    if axis == "x":
        return Point3D(p.x, p.y * factor, p.z * factor)
    if axis == "y":
        return Point3D(p.x * factor, p.y, p.z * factor)
    return Point3D(p.x * factor, p.y * factor, p.z)


def twist(points: Sequence[Point3D], amount: float, axis: str = "z") -> PointCloud:
    """Rotate cross-sections about ``axis`` by ``(t - 0.5) * amount`` full turns."""

    lo, hi = axis_bounds(points, axis)
    out: PointCloud = []
    for p in points:
        t = _normalised_position(axis_value(p, axis), lo, hi)
        out.append(_rotate_about(p, (t - 0.5) * amount * math.pi * 2.0, axis))
    return out


def taper(points: Sequence[Point3D], start_scale: float, end_scale: float, axis: str = "z") -> PointCloud:
    """Scale cross-sections linearly from ``start_scale`` to ``end_scale`` along ``axis``."""

    lo, hi = axis_bounds(points, axis)
    out: PointCloud = []
    for p in points:
        t = _normalised_position(axis_value(p, axis), lo, hi)
        out.append(_scale_perpendicular(p, start_scale + (end_scale - start_scale) * t, axis))
    return out


def bend(points: Sequence[Point3D], angle: float, axis: str = "x") -> PointCloud:
    """Wrap the cloud onto an arc spanning ``angle`` radians along ``axis``.

    The arc radius is ``extent / angle``; each point keeps its perpendicular
    offset as a radial offset from the arc.  Angles below
    :data:`BEND_EPSILON` leave the cloud unchanged.
    """

    if abs(angle) < BEND_EPSILON:
        return list(points)
    lo, hi = axis_bounds(points, axis)
    extent = (hi - lo) or 1.0
    radius = extent / angle
    mid = lo + extent * 0.5
    out: PointCloud = []
    for p in points:
        theta = ((axis_value(p, axis) - lo) / extent - 0.5) * angle
        if axis == "z":
            arm = radius + p.y
            out.append(Point3D(p.x, arm * math.sin(theta), arm * math.cos(theta) - radius + mid))
            continue
        arm = radius + p.z
        along = arm * math.sin(theta) + mid
        depth = arm * math.cos(theta) - radius
        if axis == "x":
            out.append(Point3D(along, p.y, depth))
        else:
            out.append(Point3D(p.x, along, depth))
    return out


def wave(points: Sequence[Point3D], frequency: float, amplitude: float, axis: str = "z", phase: float = 0.0) -> PointCloud:
    """Offset points sideways by ``amplitude * sin(coord * frequency + phase)``.

    Waves along ``x`` or ``z`` move points in ``y``; waves along ``y`` move
    them in ``x``.
    """

    out: PointCloud = []
    for p in points:
        d = amplitude * math.sin(axis_value(p, axis) * frequency + phase)
        if axis == "y":
            out.append(Point3D(p.x + d, p.y, p.z))
        else:
            out.append(Point3D(p.x, p.y + d, p.z))
    return out


def build_stages(config: DeformerConfig, noise: NoiseField) -> List[Stage]:
    """Return the enabled stages of ``config`` in their fixed order."""

    stages: List[Stage] = []
    if config.smooth_enabled and config.smooth_amp > 0:
        ox, oy, oz = config.noise_offset
        stages.append((
            "smooth",
            partial(
                noise_displace,
                noise=noise,
                frequency=config.smooth_freq,
                amplitude=config.smooth_amp,
                octaves=1,
                offset=(ox + SMOOTH_OFFSET, oy + SMOOTH_OFFSET, oz + SMOOTH_OFFSET),
            ),
        ))
    if config.noise_amp > 0:
        stages.append((
            "noise",
            partial(
                noise_displace,
                noise=noise,
                frequency=config.noise_freq,
                amplitude=config.noise_amp,
                octaves=config.noise_octaves,
                persistence=config.noise_persistence,
                lacunarity=config.noise_lacunarity,
                offset=config.noise_offset,
            ),
        ))
    if config.twist_enabled:
        stages.append(("twist", partial(twist, amount=config.twist_amount, axis=config.twist_axis)))
    if config.taper_enabled:
        stages.append((
            "taper",
            partial(taper, start_scale=config.taper_start, end_scale=config.taper_end, axis=config.taper_axis),
        ))
    if config.bend_enabled:
        stages.append(("bend", partial(bend, angle=config.bend_angle, axis=config.bend_axis)))
    if config.wave_enabled:
        stages.append((
            "wave",
            partial(
                wave,
                frequency=config.wave_freq,
                amplitude=config.wave_amp,
                axis=config.wave_axis,
                phase=config.wave_phase,
            ),
        ))
    return stages


def run_stages(cloud: Sequence[Point3D], stages: Sequence[Stage]) -> PointCloud:
    pts: PointCloud = list(cloud)
    for name, stage in stages:
        pts = stage(pts)
        logger.debug("deform stage %s -> %d points", name, len(pts))
    return pts


def deform(cloud: Sequence[Point3D], config: DeformerConfig, noise: Optional[NoiseField] = None) -> PointCloud:
    """Run the configured deformer stack over ``cloud``."""

    if noise is None:
        noise = NoiseField(config.seed)
    return run_stages(cloud, build_stages(config, noise))
