"""Camera projection of a 3D cloud into ordered, oriented 2D primitives.

The per-point pass rotates positions and curl-flow vectors by the same
camera transform, derives a heading and a pose, and projects to screen
space.  The batch pass then normalises depth, derives scale and opacity,
optionally measures screen-space density on a coarse grid, and finally sorts
the primitives back to front.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .config import CameraConfig, ProjectionConfig
from .geometry import Point3D, rotate_camera
from .noise_field import FbmOptions, NoiseField

__all__ = [
    "CAMERA_DISTANCE",
    "NEAR_PLANE",
    "in_front_of_camera",
    "POSE_THRESHOLDS",
    "ProjectedPrimitive",
    "project",
    "pose_index",
    "density_grid",
]

logger = logging.getLogger(__name__)

CAMERA_DISTANCE = 300.0
NEAR_PLANE = 0.1
POSE_THRESHOLDS = (0.35, 0.55, 0.75)
_FALLBACK_FLOW_FREQ = 0.015


def in_front_of_camera(depth: float) -> bool:
    """True when a perspective depth lies beyond the near plane; the plane itself is culled."""

    return depth > NEAR_PLANE


@dataclass
class ProjectedPrimitive:
    """One drawable glyph: where it lands, how it is turned and how it looks."""

    screen_x: float
    screen_y: float
    depth: float
    heading: float
    pose_index: int
    scale: float = 0.0
    opacity: float = 1.0
    local_density: float = 0.0


def _rand_for_index(index: int, salt: int = 0) -> float:
    s = index * 12.9898 + salt * 78.233
    x = math.sin(s) * 43758.5453
    return x - math.floor(x)


def pose_index(noise: NoiseField, world: Point3D, frequency: float) -> int:
    """Pick one of four poses from the noise value at the world position."""

    value = (noise.simplex3(world.x * frequency, world.y * frequency, world.z * frequency) + 1.0) * 0.5
    for index, threshold in enumerate(POSE_THRESHOLDS):
        if value < threshold:
            return index
    return len(POSE_THRESHOLDS)


def _heading(
    world: Point3D,
    index: int,
    camera: CameraConfig,
    style: ProjectionConfig,
    noise: NoiseField,
    flow_opts: FbmOptions,
    flow_freq: float,
) -> float:
    angle = 0.0
    if style.orient_to_flow and flow_freq > 0:
        fx, fy, fz = noise.curl3(world.x * flow_freq, world.y * flow_freq, world.z * flow_freq, flow_opts)
        flow = rotate_camera(Point3D(fx, fy, fz), camera.rot_x, camera.rot_y, camera.rot_z)
        angle = math.atan2(flow.y, flow.x)
    if style.orient_jitter > 0:
        # index hash, independent of the sampling RNG
        jitter = _rand_for_index(style.seed + index * 7, 1)
        angle += (jitter - 0.5) * style.orient_jitter * math.pi * 2.0
    return angle


def density_grid(
    positions: Sequence[Tuple[float, float]], width: float, height: float, cell: float
) -> List[float]:
    """Return, for each position, its 3x3-smoothed cell occupancy over the grid maximum.

    Positions outside the viewport get 0.  The normalising maximum never
    drops below 1.
    """

    cols = int(math.ceil(width / cell))
    rows = int(math.ceil(height / cell))
    counts: Dict[Tuple[int, int], int] = {}
    cells: List[Optional[Tuple[int, int]]] = []
    for sx, sy in positions:
        col = int(math.floor(sx / cell))
        row = int(math.floor(sy / cell))
        if 0 <= col < cols and 0 <= row < rows:
            counts[(col, row)] = counts.get((col, row), 0) + 1
            cells.append((col, row))
        else:
            cells.append(None)

    def smoothed(col: int, row: int) -> float:
        total = 0
        n = 0
        for dr in (-1, 0, 1):
            for dc in (-1, 0, 1):
                r = row + dr
                c = col + dc
                if 0 <= r < rows and 0 <= c < cols:
                    total += counts.get((c, r), 0)
                    n += 1
        return total / n

    peak = 1.0
    for r in range(rows):
        for c in range(cols):
            peak = max(peak, smoothed(c, r))

    return [smoothed(*cell_rc) / peak if cell_rc is not None else 0.0 for cell_rc in cells]


def project(
    cloud: Sequence[Point3D],
    camera: CameraConfig,
    style: Optional[ProjectionConfig] = None,
    noise: Optional[NoiseField] = None,
) -> List[ProjectedPrimitive]:
    """Project ``cloud`` and return its primitives sorted farthest first."""

    style = style or ProjectionConfig()
    if noise is None:
        noise = NoiseField(style.seed)

    cx = camera.width / 2.0
    cy = camera.height / 2.0
    flow_freq = style.curl_flow_freq or style.noise_freq or _FALLBACK_FLOW_FREQ
    flow_opts = FbmOptions(octaves=style.curl_flow_octaves or 2, frequency=1.0)
    use_pose = style.pose_variation and style.pose_noise_freq > 0

    prims: List[ProjectedPrimitive] = []
    persp_scales: List[float] = []
    for index, world in enumerate(cloud):
        v = rotate_camera(world, camera.rot_x, camera.rot_y, camera.rot_z)
        if camera.perspective:
            d = v.z + CAMERA_DISTANCE
            if not in_front_of_camera(d):
                continue
            persp = camera.fov / d
            sx = v.x * persp + cx
            sy = v.y * persp + cy
        else:
            persp = 1.0
            sx = v.x * camera.zoom + cx
            sy = v.y * camera.zoom + cy
        prims.append(
            ProjectedPrimitive(
                screen_x=sx,
                screen_y=sy,
                depth=v.z,
                heading=_heading(world, index, camera, style, noise, flow_opts, flow_freq),
                pose_index=pose_index(noise, world, style.pose_noise_freq) if use_pose else 0,
            )
        )
        persp_scales.append(persp)

    if not prims:
        logger.debug("project: no primitives survived (%d input points)", len(cloud))
        return []

    min_z = min(p.depth for p in prims)
    max_z = max(p.depth for p in prims)
    z_range = (max_z - min_z) or 1.0
    curve = style.depth_opacity_curve or 1.0
    for prim, persp in zip(prims, persp_scales):
        # 0 = farthest, 1 = nearest
        norm_depth = (prim.depth - min_z) / z_range
        if camera.perspective:
            prim.scale = style.bird_scale * persp * 0.5
        else:
            prim.scale = style.bird_scale * camera.zoom * 0.5 * (1.0 - style.depth_scale * (1.0 - norm_depth))
        prim.opacity = style.depth_opacity + (1.0 - style.depth_opacity) * norm_depth ** curve

    if style.dark_band_enabled:
        densities = density_grid(
            [(p.screen_x, p.screen_y) for p in prims],
            camera.width,
            camera.height,
            style.dark_band_grid_size,
        )
        for prim, density in zip(prims, densities):
            prim.local_density = density

    prims.sort(key=lambda p: p.depth)
    return prims
