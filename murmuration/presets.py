"""Built-in parameter presets.

A preset is a partial flat parameter dict; applying it layers the overrides
over the current parameters and returns a new dict.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

__all__ = ["BUILT_IN_PRESETS", "preset_names", "apply_preset"]

BUILT_IN_PRESETS: Dict[str, Dict[str, Any]] = {
    "Classic Murmuration": dict(
        shapeType="ellipsoid", count=1200,
        radiusX=50, radiusY=35, radiusZ=120,
        fillMode="volume",
        densityFalloff=2.5, densityNoise=0.4, densityNoiseFreq=0.02,
        noiseAmp=25, noiseFreq=0.015, noiseOctaves=3,
        smoothEnabled=True, smoothFreq=0.005, smoothAmp=35,
        subFlocks=2, subFlockSpread=0.5, subFlockSizeVar=0.3, subFlockBridge=0.1,
        curlFlowFreq=0.012, curlFlowOctaves=2,
        darkBandEnabled=True, darkBandStrength=0.6,
        birdScale=1.0, poseVariation=True,
        depthOpacity=0.2, depthOpacityCurve=1.8,
        orientToFlow=True, orientJitter=0.15,
    ),
    "Tornado": dict(
        shapeType="ellipsoid", count=1500,
        radiusX=20, radiusY=20, radiusZ=100,
        fillMode="volume",
        densityFalloff=1.5, densityNoise=0.2,
        noiseAmp=15, noiseFreq=0.02, noiseOctaves=3,
        twistEnabled=True, twistAmount=2.0, twistAxis="z",
        taperEnabled=True, taperStart=1.5, taperEnd=0.2, taperAxis="z",
        subFlocks=1,
        darkBandEnabled=True, darkBandStrength=0.5,
        smoothEnabled=False,
        curlFlowFreq=0.015, orientToFlow=True,
    ),
    "River": dict(
        shapeType="swept", count=1000, sweptRadius=12,
        densityFalloff=2.0, densityNoise=0.3,
        noiseAmp=15, noiseFreq=0.02, noiseOctaves=3,
        smoothEnabled=True, smoothFreq=0.008, smoothAmp=20,
        subFlocks=1,
        curlFlowFreq=0.015,
        darkBandEnabled=True, darkBandStrength=0.4,
        orientToFlow=True, poseVariation=True,
    ),
    "Explosion": dict(
        shapeType="sphere", count=2000,
        radiusX=80, radiusY=80, radiusZ=80,
        fillMode="volume",
        densityFalloff=0.8, densityNoise=0.6, densityNoiseFreq=0.015,
        noiseAmp=40, noiseFreq=0.02, noiseOctaves=5,
        smoothEnabled=False,
        subFlocks=3, subFlockSpread=1.2, subFlockSizeVar=0.4, subFlockBridge=0.08,
        darkBandEnabled=True, darkBandStrength=0.4,
        curlFlowFreq=0.01, orientToFlow=True, poseVariation=True,
    ),
    "Ribbon": dict(
        shapeType="torus", count=800,
        torusMajor=70, torusMinor=8,
        fillMode="surface",
        densityFalloff=1.0, densityNoise=0.2,
        noiseAmp=10, noiseFreq=0.02, noiseOctaves=3,
        smoothEnabled=True, smoothFreq=0.006, smoothAmp=20,
        subFlocks=1,
        curlFlowFreq=0.01,
        darkBandEnabled=True, darkBandStrength=0.5,
        orientToFlow=True, poseVariation=True,
    ),
}


def preset_names() -> List[str]:
    return list(BUILT_IN_PRESETS)


def apply_preset(
    name: str, params: Optional[Mapping[str, Any]] = None, *, strict: bool = False
) -> Optional[Dict[str, Any]]:
    """Return ``params`` with preset ``name`` layered on top.

    Unknown names yield ``None`` unless ``strict`` is set, in which case a
    :class:`ValueError` is raised.
    """

    preset = BUILT_IN_PRESETS.get(name)
    if preset is None:
        if strict:
            raise ValueError(f"Unknown preset {name!r}; expected one of {preset_names()}")
        return None
    merged: Dict[str, Any] = dict(params or {})
    merged.update(preset)
    return merged
