"""Silhouette glyph table consumed by drawing and vector-export layers.

Paths are SVG path data centred on the origin, facing +x, about ten units
wide.  The core never parses them; it only decides which glyph a projected
primitive should use.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from .projection import ProjectedPrimitive

__all__ = [
    "Glyph",
    "SHAPES",
    "POSE_KEYS",
    "FALLBACK_GLYPH",
    "pose_shape_key",
    "available_shape_keys",
    "glyph_for",
]


@dataclass(frozen=True)
class Glyph:
    key: str
    name: str
    path: str
    filled: bool


SHAPES: Dict[str, Glyph] = {
    "vee": Glyph("vee", "V-Shape", "M-5,-3 L0,0 L-5,3", False),
    "starling": Glyph(
        "starling",
        "Starling",
        "M5,0 C3.5,0.8 1.5,1.5 -1,2.5 L-4,4 L-3,1.5 L-5,0 L-3,-1.5 L-4,-4 L-1,-2.5 C1.5,-1.5 3.5,-0.8 5,0 Z",
        True,
    ),
    "dot": Glyph("dot", "Dot", "M2,0 A2,2 0 1,1 -2,0 A2,2 0 1,1 2,0 Z", True),
    "swoop": Glyph(
        "swoop",
        "Swooping",
        "M5,0 C3,0.6 1,1.2 -1,2 L-4,3.5 L-2.5,0 L-4,-3.5 L-1,-2 C1,-1.2 3,-0.6 5,0 Z",
        True,
    ),
    "starlingUp": Glyph(
        "starlingUp",
        "Wings Up",
        "M5,0 C3.5,0.5 1.5,1 -1,1.5 L-3.5,5 L-3,1 L-5,0 L-3,-1 L-3.5,-5 L-1,-1.5 C1.5,-1 3.5,-0.5 5,0 Z",
        True,
    ),
    "starlingDown": Glyph(
        "starlingDown",
        "Wings Down",
        "M5,0 C3.5,0.6 1.5,1.2 -1,2 L-4,2.5 L-3,0.8 L-5,0 L-3,-0.8 L-4,-2.5 L-1,-2 C1.5,-1.2 3.5,-0.6 5,0 Z",
        True,
    ),
    "starlingSwept": Glyph(
        "starlingSwept",
        "Wings Swept",
        "M5,0 C3,0.4 1,0.8 -2,1.2 L-5,1.5 L-4,0.5 L-5,0 L-4,-0.5 L-5,-1.5 L-2,-1.2 C1,-0.8 3,-0.4 5,0 Z",
        True,
    ),
}

POSE_KEYS: Tuple[str, ...] = ("starling", "starlingUp", "starlingDown", "starlingSwept")

FALLBACK_GLYPH = Glyph("fallback", "Triangle", "M4,0 L-3,-2.5 L-3,2.5 Z", True)


def pose_shape_key(index: int) -> str:
    if 0 <= index < len(POSE_KEYS):
        return POSE_KEYS[index]
    return POSE_KEYS[0]


def available_shape_keys() -> List[str]:
    return list(SHAPES)


def glyph_for(primitive: ProjectedPrimitive, shape_key: str, pose_variation: bool = True) -> Glyph:
    """Return the glyph to draw for ``primitive``.

    Pose glyphs replace the base glyph only when pose variation is on and the
    base glyph is the starling.
    """

    if pose_variation and shape_key == "starling":
        return SHAPES[pose_shape_key(primitive.pose_index)]
    return SHAPES.get(shape_key, FALLBACK_GLYPH)
