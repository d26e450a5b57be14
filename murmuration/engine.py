"""Staged generation engine with incremental regeneration.

The engine owns the flat parameter state and caches the three pipeline
stages (base cloud, deformed cloud, projected primitives).  Changing a
parameter only marks the stages that depend on it; :meth:`regenerate`
recomputes from the earliest dirty stage onwards.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

from .config import (
    DEFAULTS,
    camera_config_from_params,
    deformer_config_from_params,
    flock_config_from_params,
    merge_params,
    projection_config_from_params,
)
from .deformers import deform
from .flock_composer import compose
from .geometry import PointCloud
from .glyphs import Glyph, glyph_for
from .noise_field import NoiseField
from .presets import apply_preset
from .projection import ProjectedPrimitive, project

__all__ = ["SHAPE_KEYS", "DEFORM_KEYS", "MurmurationEngine", "generate_scene", "dirty_level"]

logger = logging.getLogger(__name__)

SHAPE_KEYS: FrozenSet[str] = frozenset({
    "shapeType", "count", "radiusX", "radiusY", "radiusZ",
    "torusMajor", "torusMinor", "sweptRadius", "fillMode", "seed",
    "densityFalloff", "densityNoise", "densityNoiseFreq",
    "subFlocks", "subFlockSpread", "subFlockSizeVar", "subFlockBridge",
})

DEFORM_KEYS: FrozenSet[str] = frozenset({
    "noiseFreq", "noiseAmp", "noiseOctaves", "noisePersistence", "noiseLacunarity",
    "noiseOffsetX", "noiseOffsetY", "noiseOffsetZ",
    "smoothEnabled", "smoothFreq", "smoothAmp",
    "twistEnabled", "twistAmount", "twistAxis",
    "taperEnabled", "taperStart", "taperEnd", "taperAxis",
    "bendEnabled", "bendAngle", "bendAxis",
    "waveEnabled", "waveFreq", "waveAmp", "waveAxis", "wavePhase",
})

_LEVELS = ("shape", "deform", "camera")


def dirty_level(keys) -> Optional[str]:
    """Return the earliest stage invalidated by changing ``keys``."""

    keys = set(keys)
    if not keys:
        return None
    if keys & SHAPE_KEYS:
        return "shape"
    if keys & DEFORM_KEYS:
        return "deform"
    return "camera"


def generate_scene(params: Optional[Mapping[str, Any]] = None) -> List[ProjectedPrimitive]:
    """Run compose, deform and project once for ``params``."""

    state = merge_params(params)
    flock = flock_config_from_params(state)
    base = compose(flock, NoiseField(flock.seed))
    deformer_cfg = deformer_config_from_params(state)
    noise = NoiseField(deformer_cfg.seed)
    deformed = deform(base, deformer_cfg, noise)
    return project(deformed, camera_config_from_params(state), projection_config_from_params(state), noise)


class MurmurationEngine:
    """Holds parameters and cached stage outputs for repeated regeneration."""

    def __init__(self, params: Optional[Mapping[str, Any]] = None) -> None:
        self.state: Dict[str, Any] = merge_params(params)
        self.base_cloud: PointCloud = []
        self.deformed_cloud: PointCloud = []
        self.primitives: List[ProjectedPrimitive] = []
        self._dirty = set(_LEVELS)
        self._last_counts: Dict[str, int] = {}

    # ------------------------------------------------------------------ helpers
    def _debug(self, stage: str, count: int, note: str = "") -> None:
        if self._last_counts.get(stage) == count:
            return
        self._last_counts[stage] = count
        logger.debug("%s produced %d items%s", stage, count, f" ({note})" if note else "")

    @property
    def dirty(self) -> FrozenSet[str]:
        return frozenset(self._dirty)

    def mark_dirty(self, level: str) -> None:
        if level not in _LEVELS:
            raise ValueError(f"Unknown stage {level!r}")
        self._dirty.update(_LEVELS[_LEVELS.index(level):])

    def set_params(self, payload: Mapping[str, Any]) -> None:
        if not isinstance(payload, Mapping):
            return
        changed = {key for key, value in payload.items() if self.state.get(key, object()) != value}
        self.state = merge_params(self.state, payload)
        level = dirty_level(changed)
        if level is not None:
            self.mark_dirty(level)

    def load_preset(self, name: str) -> bool:
        merged = apply_preset(name, self.state)
        if merged is None:
            logger.debug("unknown preset %r ignored", name)
            return False
        self.state = merge_params(merged)
        self.mark_dirty("shape")
        return True

    # ---------------------------------------------------------------- pipeline
    def regenerate(self) -> List[ProjectedPrimitive]:
        """Recompute dirty stages and return the current primitives."""

        if not self._dirty:
            return self.primitives
        flock = flock_config_from_params(self.state)
        if "shape" in self._dirty:
            self.base_cloud = compose(flock, NoiseField(flock.seed))
            self._debug("compose", len(self.base_cloud), f"shape={flock.shape_type}, sub_flocks={flock.sub_flocks}")
        noise = NoiseField(flock.seed)
        if "deform" in self._dirty:
            self.deformed_cloud = deform(self.base_cloud, deformer_config_from_params(self.state), noise)
            self._debug("deform", len(self.deformed_cloud))
        camera = camera_config_from_params(self.state)
        self.primitives = project(self.deformed_cloud, camera, projection_config_from_params(self.state), noise)
        self._debug("project", len(self.primitives), f"{camera.projection} {camera.width}x{camera.height}")
        self._dirty.clear()
        return self.primitives

    def glyphs(self) -> List[Glyph]:
        """Glyph per current primitive, in draw order."""

        shape_key = str(self.state.get("shapeKey", DEFAULTS["shapeKey"]))
        pose_variation = bool(self.state.get("poseVariation", True))
        return [glyph_for(prim, shape_key, pose_variation) for prim in self.regenerate()]
