"""Point and vector helpers shared by every stage of the pipeline.

Points are immutable value objects; every helper returns a new instance so a
cloud handed to one stage is never altered by the next one.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

__all__ = [
    "Point3D",
    "PointCloud",
    "AXES",
    "add",
    "sub",
    "cross",
    "length",
    "normalize",
    "lerp",
    "rotate_x",
    "rotate_y",
    "rotate_z",
    "rotate_camera",
    "orthonormal_frame",
    "disc_offset",
    "axis_value",
    "axis_bounds",
]


@dataclass(frozen=True)
class Point3D:
    """Immutable 3D coordinate."""

    x: float
    y: float
    z: float

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)


PointCloud = List[Point3D]

AXES = ("x", "y", "z")

_ORIGIN = Point3D(0.0, 0.0, 0.0)


def add(a: Point3D, b: Point3D) -> Point3D:
    return Point3D(a.x + b.x, a.y + b.y, a.z + b.z)


def sub(a: Point3D, b: Point3D) -> Point3D:
    return Point3D(a.x - b.x, a.y - b.y, a.z - b.z)


def cross(a: Point3D, b: Point3D) -> Point3D:
    return Point3D(
        a.y * b.z - a.z * b.y,
        a.z * b.x - a.x * b.z,
        a.x * b.y - a.y * b.x,
    )


def length(v: Point3D) -> float:
    return math.sqrt(v.x * v.x + v.y * v.y + v.z * v.z)


def normalize(v: Point3D) -> Point3D:
    size = length(v)
    if size == 0:
        return _ORIGIN
    return Point3D(v.x / size, v.y / size, v.z / size)


def lerp(a: Point3D, b: Point3D, t: float) -> Point3D:
    return Point3D(a.x + (b.x - a.x) * t, a.y + (b.y - a.y) * t, a.z + (b.z - a.z) * t)


def rotate_x(v: Point3D, angle: float) -> Point3D:
    c = math.cos(angle)
    s = math.sin(angle)
    return Point3D(v.x, v.y * c - v.z * s, v.y * s + v.z * c)


def rotate_y(v: Point3D, angle: float) -> Point3D:
    c = math.cos(angle)
    s = math.sin(angle)
    return Point3D(v.x * c + v.z * s, v.y, -v.x * s + v.z * c)


def rotate_z(v: Point3D, angle: float) -> Point3D:
    c = math.cos(angle)
    s = math.sin(angle)
    return Point3D(v.x * c - v.y * s, v.x * s + v.y * c, v.z)


def rotate_camera(v: Point3D, rot_x: float, rot_y: float, rot_z: float) -> Point3D:
    """Apply the camera rotation in its fixed X, then Y, then Z order."""

    return rotate_z(rotate_y(rotate_x(v, rot_x), rot_y), rot_z)


def orthonormal_frame(direction: Point3D) -> Tuple[Point3D, Point3D]:
    """Return ``(right, up)`` perpendicular to ``direction``.

    The world Y axis is used as the reference "up" unless the direction is
    nearly vertical, in which case X is used so the cross product never
    collapses.
    """

    forward = normalize(direction)
    up = Point3D(0.0, 1.0, 0.0)
    if abs(forward.y) > 0.95:
        up = Point3D(1.0, 0.0, 0.0)
    right = normalize(cross(forward, up))
    return right, cross(right, forward)


def disc_offset(center: Point3D, right: Point3D, up: Point3D, radius: float, angle: float) -> Point3D:
    """Place a point ``radius`` away from ``center`` in the (right, up) plane."""

    ca = math.cos(angle)
    sa = math.sin(angle)
    return Point3D(
        center.x + radius * (ca * right.x + sa * up.x),
        center.y + radius * (ca * right.y + sa * up.y),
        center.z + radius * (ca * right.z + sa * up.z),
    )


def axis_value(p: Point3D, axis: str) -> float:
    if axis == "x":
        return p.x
    if axis == "y":
        return p.y
    return p.z


def axis_bounds(points: Sequence[Point3D], axis: str) -> Tuple[float, float]:
    """Return ``(min, max)`` of the cloud along ``axis``; ``(0, 0)`` when empty."""

    if not points:
        return (0.0, 0.0)
    values = [axis_value(p, axis) for p in points]
    return (min(values), max(values))
