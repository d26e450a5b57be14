"""Parameter bundle and the immutable configuration views built from it.

The external parameter surface hands the pipeline one flat mapping using the
keys of :data:`DEFAULTS`.  Each stage receives a frozen dataclass derived from
that mapping; deriving a variant always produces a new value.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, TypeVar

from .geometry import AXES

__all__ = [
    "DEFAULTS",
    "SHAPE_KINDS",
    "FILL_MODES",
    "PROJECTIONS",
    "ShapeConfig",
    "FlockConfig",
    "DeformerConfig",
    "CameraConfig",
    "ProjectionConfig",
    "derive",
    "merge_params",
    "shape_config_from_params",
    "flock_config_from_params",
    "deformer_config_from_params",
    "camera_config_from_params",
    "projection_config_from_params",
]

DEFAULTS: Dict[str, Any] = dict(
    # shape
    shapeType="ellipsoid", count=800,
    radiusX=40.0, radiusY=30.0, radiusZ=100.0,
    torusMajor=60.0, torusMinor=20.0, sweptRadius=15.0,
    fillMode="surface", seed=42,
    densityFalloff=2.0, densityNoise=0.3, densityNoiseFreq=0.02,
    subFlocks=1, subFlockSpread=0.6, subFlockSizeVar=0.3, subFlockBridge=0.15,
    # noise
    noiseFreq=0.02, noiseAmp=20.0, noiseOctaves=4,
    noisePersistence=0.5, noiseLacunarity=2.0,
    noiseOffsetX=0.0, noiseOffsetY=0.0, noiseOffsetZ=0.0,
    smoothEnabled=False, smoothFreq=0.005, smoothAmp=30.0,
    # deformers
    twistEnabled=False, twistAmount=0.5, twistAxis="z",
    taperEnabled=False, taperStart=1.0, taperEnd=0.3, taperAxis="z",
    bendEnabled=False, bendAngle=0.5, bendAxis="x",
    waveEnabled=False, waveFreq=0.05, waveAmp=10.0, waveAxis="z", wavePhase=0.0,
    # camera
    camRotX=0.3, camRotY=0.5, camRotZ=0.0, camZoom=2.5,
    projType="ortho", camFOV=400.0,
    width=800, height=600,
    # appearance
    birdScale=1.0, depthScale=0.5,
    orientToFlow=True, orientJitter=0.2,
    curlFlowFreq=0.015, curlFlowOctaves=2,
    poseVariation=True, poseNoiseFreq=0.01,
    depthOpacity=0.3, depthOpacityCurve=1.0,
    darkBandEnabled=True, darkBandGridSize=20.0,
    # read by drawing layers only
    shapeKey="starling", darkBandStrength=0.5,
)

SHAPE_KINDS = ("ellipsoid", "sphere", "torus", "swept")
FILL_MODES = ("surface", "volume")
PROJECTIONS = ("ortho", "perspective")


def _coerce_float(value: object, default: float = 0.0) -> float:
    """Return ``value`` converted to ``float`` when possible."""

    if value is None:
        return default
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value))
    except (TypeError, ValueError):
        return default


def _coerce_int(value: object, default: int = 0) -> int:
    number = _coerce_float(value, float(default))
    try:
        return int(number)
    except (OverflowError, ValueError):
        return default


def _coerce_bool(value: object, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off", ""}:
            return False
        return default
    return bool(value)


def _coerce_choice(value: object, choices: Tuple[str, ...], default: str) -> str:
    text = str(value).strip() if value is not None else ""
    return text if text in choices else default


_S = TypeVar("_S", bound="ShapeConfig")


@dataclass(frozen=True)
class ShapeConfig:
    """Everything one shape-sampling run depends on."""

    shape_type: str = "ellipsoid"
    count: int = 800
    radius_x: float = 40.0
    radius_y: float = 30.0
    radius_z: float = 100.0
    torus_major: float = 60.0
    torus_minor: float = 20.0
    swept_radius: float = 15.0
    fill_mode: str = "surface"
    seed: int = 42
    density_falloff: float = 2.0
    density_noise: float = 0.3
    density_noise_freq: float = 0.02

    @property
    def max_radius(self) -> float:
        return max(self.radius_x, self.radius_y, self.radius_z)

    def scaled(self: _S, factor: float) -> _S:
        """Return a copy with every dimensional parameter multiplied by ``factor``."""

        return derive(
            self,
            radius_x=self.radius_x * factor,
            radius_y=self.radius_y * factor,
            radius_z=self.radius_z * factor,
            torus_major=self.torus_major * factor,
            torus_minor=self.torus_minor * factor,
            swept_radius=self.swept_radius * factor,
        )


@dataclass(frozen=True)
class FlockConfig(ShapeConfig):
    """Shape parameters plus the sub-flock layout."""

    sub_flocks: int = 1
    sub_flock_spread: float = 0.6
    sub_flock_size_var: float = 0.3
    sub_flock_bridge: float = 0.15


@dataclass(frozen=True)
class DeformerConfig:
    seed: int = 42
    smooth_enabled: bool = False
    smooth_freq: float = 0.005
    smooth_amp: float = 30.0
    noise_freq: float = 0.02
    noise_amp: float = 20.0
    noise_octaves: int = 4
    noise_persistence: float = 0.5
    noise_lacunarity: float = 2.0
    noise_offset: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    twist_enabled: bool = False
    twist_amount: float = 0.5
    twist_axis: str = "z"
    taper_enabled: bool = False
    taper_start: float = 1.0
    taper_end: float = 0.3
    taper_axis: str = "z"
    bend_enabled: bool = False
    bend_angle: float = 0.5
    bend_axis: str = "x"
    wave_enabled: bool = False
    wave_freq: float = 0.05
    wave_amp: float = 10.0
    wave_axis: str = "z"
    wave_phase: float = 0.0


@dataclass(frozen=True)
class CameraConfig:
    """Camera pose and viewport.  Rotations are radians, applied X, Y, Z."""

    rot_x: float = 0.3
    rot_y: float = 0.5
    rot_z: float = 0.0
    zoom: float = 2.5
    projection: str = "ortho"
    fov: float = 400.0
    width: int = 800
    height: int = 600

    @property
    def perspective(self) -> bool:
        return self.projection == "perspective"


@dataclass(frozen=True)
class ProjectionConfig:
    """Orientation, depth and density-band settings of the projection pass."""

    seed: int = 42
    bird_scale: float = 1.0
    depth_scale: float = 0.5
    depth_opacity: float = 0.3
    depth_opacity_curve: float = 1.0
    orient_to_flow: bool = True
    orient_jitter: float = 0.2
    curl_flow_freq: float = 0.015
    curl_flow_octaves: int = 2
    noise_freq: float = 0.02
    pose_variation: bool = True
    pose_noise_freq: float = 0.01
    dark_band_enabled: bool = True
    dark_band_grid_size: float = 20.0


_C = TypeVar("_C")


def derive(config: _C, **overrides: Any) -> _C:
    """Return a new configuration equal to ``config`` except for ``overrides``."""

    return dataclasses.replace(config, **overrides)  # type: ignore[type-var]


def merge_params(base: Optional[Mapping[str, Any]], overrides: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Layer ``overrides`` over ``base`` over :data:`DEFAULTS` into a new dict."""

    merged: Dict[str, Any] = dict(DEFAULTS)
    if base:
        merged.update(base)
    if overrides:
        merged.update(overrides)
    return merged


def _shape_fields(p: Mapping[str, Any]) -> Dict[str, Any]:
    d = DEFAULTS
    return dict(
        shape_type=_coerce_choice(p.get("shapeType"), SHAPE_KINDS, "ellipsoid"),
        count=max(0, _coerce_int(p.get("count"), d["count"])),
        radius_x=_coerce_float(p.get("radiusX"), d["radiusX"]),
        radius_y=_coerce_float(p.get("radiusY"), d["radiusY"]),
        radius_z=_coerce_float(p.get("radiusZ"), d["radiusZ"]),
        torus_major=_coerce_float(p.get("torusMajor"), d["torusMajor"]),
        torus_minor=_coerce_float(p.get("torusMinor"), d["torusMinor"]),
        # a zero tube radius means "unset" upstream
        swept_radius=_coerce_float(p.get("sweptRadius"), d["sweptRadius"]) or d["sweptRadius"],
        fill_mode=_coerce_choice(p.get("fillMode"), FILL_MODES, "surface"),
        seed=_coerce_int(p.get("seed"), d["seed"]),
        density_falloff=_coerce_float(p.get("densityFalloff"), 0.0),
        density_noise=_coerce_float(p.get("densityNoise"), 0.0),
        density_noise_freq=_coerce_float(p.get("densityNoiseFreq"), 0.0),
    )


def shape_config_from_params(params: Optional[Mapping[str, Any]] = None) -> ShapeConfig:
    return ShapeConfig(**_shape_fields(merge_params(params)))


def flock_config_from_params(params: Optional[Mapping[str, Any]] = None) -> FlockConfig:
    p = merge_params(params)
    d = DEFAULTS
    return FlockConfig(
        **_shape_fields(p),
        sub_flocks=_coerce_int(p.get("subFlocks"), 1),
        sub_flock_spread=_coerce_float(p.get("subFlockSpread"), d["subFlockSpread"]),
        sub_flock_size_var=_coerce_float(p.get("subFlockSizeVar"), d["subFlockSizeVar"]),
        sub_flock_bridge=_coerce_float(p.get("subFlockBridge"), d["subFlockBridge"]),
    )


def deformer_config_from_params(params: Optional[Mapping[str, Any]] = None) -> DeformerConfig:
    p = merge_params(params)
    d = DEFAULTS
    return DeformerConfig(
        seed=_coerce_int(p.get("seed"), d["seed"]),
        smooth_enabled=_coerce_bool(p.get("smoothEnabled")),
        smooth_freq=_coerce_float(p.get("smoothFreq"), d["smoothFreq"]),
        smooth_amp=_coerce_float(p.get("smoothAmp"), d["smoothAmp"]),
        noise_freq=_coerce_float(p.get("noiseFreq"), d["noiseFreq"]),
        noise_amp=_coerce_float(p.get("noiseAmp"), 0.0),
        noise_octaves=_coerce_int(p.get("noiseOctaves"), d["noiseOctaves"]),
        noise_persistence=_coerce_float(p.get("noisePersistence"), d["noisePersistence"]),
        noise_lacunarity=_coerce_float(p.get("noiseLacunarity"), d["noiseLacunarity"]),
        noise_offset=(
            _coerce_float(p.get("noiseOffsetX")),
            _coerce_float(p.get("noiseOffsetY")),
            _coerce_float(p.get("noiseOffsetZ")),
        ),
        twist_enabled=_coerce_bool(p.get("twistEnabled")),
        twist_amount=_coerce_float(p.get("twistAmount"), d["twistAmount"]),
        twist_axis=_coerce_choice(p.get("twistAxis"), AXES, "z"),
        taper_enabled=_coerce_bool(p.get("taperEnabled")),
        taper_start=_coerce_float(p.get("taperStart"), d["taperStart"]),
        taper_end=_coerce_float(p.get("taperEnd"), d["taperEnd"]),
        taper_axis=_coerce_choice(p.get("taperAxis"), AXES, "z"),
        bend_enabled=_coerce_bool(p.get("bendEnabled")),
        bend_angle=_coerce_float(p.get("bendAngle"), d["bendAngle"]),
        bend_axis=_coerce_choice(p.get("bendAxis"), AXES, "z"),
        wave_enabled=_coerce_bool(p.get("waveEnabled")),
        wave_freq=_coerce_float(p.get("waveFreq"), d["waveFreq"]),
        wave_amp=_coerce_float(p.get("waveAmp"), d["waveAmp"]),
        wave_axis=_coerce_choice(p.get("waveAxis"), AXES, "z"),
        wave_phase=_coerce_float(p.get("wavePhase")),
    )


def camera_config_from_params(params: Optional[Mapping[str, Any]] = None) -> CameraConfig:
    p = merge_params(params)
    d = DEFAULTS
    return CameraConfig(
        rot_x=_coerce_float(p.get("camRotX")),
        rot_y=_coerce_float(p.get("camRotY")),
        rot_z=_coerce_float(p.get("camRotZ")),
        zoom=_coerce_float(p.get("camZoom"), d["camZoom"]),
        projection=_coerce_choice(p.get("projType"), PROJECTIONS, "ortho"),
        fov=_coerce_float(p.get("camFOV"), d["camFOV"]),
        width=max(1, _coerce_int(p.get("width"), d["width"])),
        height=max(1, _coerce_int(p.get("height"), d["height"])),
    )


def projection_config_from_params(params: Optional[Mapping[str, Any]] = None) -> ProjectionConfig:
    p = merge_params(params)
    d = DEFAULTS
    return ProjectionConfig(
        seed=_coerce_int(p.get("seed"), d["seed"]),
        bird_scale=_coerce_float(p.get("birdScale"), d["birdScale"]),
        depth_scale=_coerce_float(p.get("depthScale"), d["depthScale"]),
        depth_opacity=_coerce_float(p.get("depthOpacity"), d["depthOpacity"]),
        # an unset curve means linear
        depth_opacity_curve=_coerce_float(p.get("depthOpacityCurve"), 1.0) or 1.0,
        orient_to_flow=_coerce_bool(p.get("orientToFlow"), True),
        orient_jitter=_coerce_float(p.get("orientJitter")),
        curl_flow_freq=_coerce_float(p.get("curlFlowFreq")),
        curl_flow_octaves=_coerce_int(p.get("curlFlowOctaves"), 2) or 2,
        noise_freq=_coerce_float(p.get("noiseFreq")),
        pose_variation=_coerce_bool(p.get("poseVariation")),
        pose_noise_freq=_coerce_float(p.get("poseNoiseFreq")),
        dark_band_enabled=_coerce_bool(p.get("darkBandEnabled")),
        dark_band_grid_size=_coerce_float(p.get("darkBandGridSize"), 20.0) or 20.0,
    )
