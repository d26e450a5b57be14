"""Multi-cluster flock composition.

A flock with more than one sub-flock is assembled from independently sampled
clusters scattered around the origin, plus "bridge" points strung along the
straight paths between consecutive cluster centres.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .config import FlockConfig, derive
from .geometry import Point3D, PointCloud, add, disc_offset, lerp, orthonormal_frame, sub
from .noise_field import NoiseField
from .shape_sampler import sample

__all__ = ["FlockComposition", "compose", "compose_detailed", "distribute_count", "bridge_points"]

logger = logging.getLogger(__name__)

_CENTER_SALT = 999
_BRIDGE_SALT = 7777
_CLUSTER_SEED_STRIDE = 1000


@dataclass(frozen=True)
class FlockComposition:
    """Result of a composition run, with the per-cluster breakdown kept."""

    centers: Tuple[Point3D, ...]
    clusters: Tuple[PointCloud, ...]
    bridge: PointCloud

    @property
    def cluster_counts(self) -> Tuple[int, ...]:
        return tuple(len(c) for c in self.clusters)

    @property
    def points(self) -> PointCloud:
        out: PointCloud = []
        for cluster in self.clusters:
            out.extend(cluster)
        out.extend(self.bridge)
        return out


def distribute_count(total: int, n: int, size_var: float, rng: random.Random) -> List[int]:
    """Split ``total`` over ``n`` clusters; the first cluster is the heaviest.

    Counts are rounded per cluster, so their sum may differ from ``total`` by
    rounding error.
    """

    weights = [1.0]
    for _ in range(1, n):
        weights.append(0.3 + (1.0 - size_var) * 0.4 + rng.random() * size_var * 0.3)
    weight_sum = sum(weights)
    # round half up, not banker's rounding
    return [int(math.floor(total * w / weight_sum + 0.5)) for w in weights]


def bridge_points(centers: Sequence[Point3D], count: int, tube_radius: float, seed: int) -> PointCloud:
    """Scatter ``count`` points in thin tubes joining consecutive ``centers``."""

    paths: List[Tuple[Point3D, Point3D]] = [
        (centers[i], centers[i + 1]) for i in range(len(centers) - 1)
    ]
    if len(centers) >= 3:
        paths.append((centers[-1], centers[0]))
    if not paths:
        return []

    rng = random.Random(seed)
    per_path = count // len(paths)
    out: PointCloud = []
    for a, b in paths:
        right, up = orthonormal_frame(sub(b, a))
        for _ in range(per_path):
            along = lerp(a, b, rng.random())
            angle = rng.random() * math.pi * 2.0
            r = tube_radius * math.sqrt(rng.random())
            out.append(disc_offset(along, right, up, r, angle))
    return out


def compose_detailed(config: FlockConfig, noise: Optional[NoiseField] = None) -> FlockComposition:
    if noise is None:
        noise = NoiseField(config.seed)

    n = int(config.sub_flocks or 0)
    if n <= 1:
        return FlockComposition(centers=(Point3D(0.0, 0.0, 0.0),), clusters=(sample(config, noise),), bridge=[])

    rng = random.Random(config.seed + _CENTER_SALT)
    max_r = config.max_radius
    half = max_r * config.sub_flock_spread
    centers = tuple(
        Point3D(
            (rng.random() - 0.5) * 2.0 * half,
            (rng.random() - 0.5) * 2.0 * half,
            (rng.random() - 0.5) * 2.0 * half,
        )
        for _ in range(n)
    )

    bridge_count = int(math.floor(config.count * config.sub_flock_bridge))
    flock_count = config.count - bridge_count
    counts = distribute_count(flock_count, n, config.sub_flock_size_var, rng)

    clusters: List[PointCloud] = []
    for index, center in enumerate(centers):
        shrink = 1.0 - config.sub_flock_size_var * rng.random() * 0.5
        cluster_cfg = derive(
            config.scaled(shrink),
            count=counts[index],
            seed=config.seed + index * _CLUSTER_SEED_STRIDE,
            sub_flocks=1,
        )
        clusters.append([add(p, center) for p in sample(cluster_cfg, noise)])

    bridge: PointCloud = []
    if bridge_count > 0:
        bridge = bridge_points(centers, bridge_count, max_r * 0.1, config.seed + _BRIDGE_SALT)

    logger.debug(
        "compose: %d clusters %s + %d bridge points (requested %d)",
        n,
        [len(c) for c in clusters],
        len(bridge),
        config.count,
    )
    return FlockComposition(centers=centers, clusters=tuple(clusters), bridge=bridge)


def compose(config: FlockConfig, noise: Optional[NoiseField] = None) -> PointCloud:
    """Generate the full flock cloud: clusters in order, then bridge points."""

    return compose_detailed(config, noise).points
