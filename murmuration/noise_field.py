"""Seeded simplex noise, fractal sums and curl noise.

Each :class:`NoiseField` owns its own permutation table so independent
generation runs never share hidden state.  A field that has not been seeded
explicitly behaves as if ``seed(0)`` had been called before its first use.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import List, Optional, Tuple

__all__ = [
    "FbmOptions",
    "NoiseField",
    "CHANNEL_OFFSET_Y",
    "CHANNEL_OFFSET_Z",
    "CURL_EPSILON",
]

_GRAD3: Tuple[Tuple[int, int, int], ...] = (
    (1, 1, 0), (-1, 1, 0), (1, -1, 0), (-1, -1, 0),
    (1, 0, 1), (-1, 0, 1), (1, 0, -1), (-1, 0, -1),
    (0, 1, 1), (0, -1, 1), (0, 1, -1), (0, -1, -1),
)

_F3 = 1.0 / 3.0
_G3 = 1.0 / 6.0

# Coordinate shifts decorrelating the y and z channels of the vector field.
CHANNEL_OFFSET_Y = (31.416, 47.853, 12.679)
CHANNEL_OFFSET_Z = (74.205, 13.842, 56.917)

CURL_EPSILON = 0.001


@dataclass(frozen=True)
class FbmOptions:
    """Octave parameters for the fractal sums."""

    octaves: int = 4
    persistence: float = 0.5
    lacunarity: float = 2.0
    frequency: float = 1.0
    amplitude: float = 1.0


_DEFAULT_FBM = FbmOptions()


class NoiseField:
    """Deterministic 3D gradient noise driven by an integer seed."""

    def __init__(self, seed: Optional[int] = None) -> None:
        self._perm: Optional[List[int]] = None
        self._seed: Optional[int] = None
        if seed is not None:
            self.seed(seed)

    @property
    def current_seed(self) -> int:
        self._ensure_seeded()
        return self._seed  # type: ignore[return-value]

    def seed(self, s: int) -> None:
        """Rebuild the permutation table from ``s`` with a Fisher-Yates shuffle."""

        rng = random.Random(int(s))
        p = list(range(256))
        for i in range(255, 0, -1):
            j = int(rng.random() * (i + 1))
            p[i], p[j] = p[j], p[i]
        # doubled so lookups never wrap
        self._perm = p + p
        self._seed = int(s)

    def _ensure_seeded(self) -> List[int]:
        if self._perm is None:
            self.seed(0)
        return self._perm  # type: ignore[return-value]

    # ------------------------------------------------------------------ simplex
    def simplex3(self, xin: float, yin: float, zin: float) -> float:
        """Classic 3D simplex noise, roughly in ``[-1, 1]``."""

        perm = self._ensure_seeded()

        s = (xin + yin + zin) * _F3
        i = math.floor(xin + s)
        j = math.floor(yin + s)
        k = math.floor(zin + s)

        t = (i + j + k) * _G3
        x0 = xin - (i - t)
        y0 = yin - (j - t)
        z0 = zin - (k - t)

        if x0 >= y0:
            if y0 >= z0:
                i1, j1, k1, i2, j2, k2 = 1, 0, 0, 1, 1, 0
            elif x0 >= z0:
                i1, j1, k1, i2, j2, k2 = 1, 0, 0, 1, 0, 1
            else:
                i1, j1, k1, i2, j2, k2 = 0, 0, 1, 1, 0, 1
        else:
            if y0 < z0:
                i1, j1, k1, i2, j2, k2 = 0, 0, 1, 0, 1, 1
            elif x0 < z0:
                i1, j1, k1, i2, j2, k2 = 0, 1, 0, 0, 1, 1
            else:
                i1, j1, k1, i2, j2, k2 = 0, 1, 0, 1, 1, 0

        x1 = x0 - i1 + _G3
        y1 = y0 - j1 + _G3
        z1 = z0 - k1 + _G3
        x2 = x0 - i2 + 2.0 * _G3
        y2 = y0 - j2 + 2.0 * _G3
        z2 = z0 - k2 + 2.0 * _G3
        x3 = x0 - 1.0 + 3.0 * _G3
        y3 = y0 - 1.0 + 3.0 * _G3
        z3 = z0 - 1.0 + 3.0 * _G3

        ii = i & 255
        jj = j & 255
        kk = k & 255

        gi0 = perm[ii + perm[jj + perm[kk]]] % 12
        gi1 = perm[ii + i1 + perm[jj + j1 + perm[kk + k1]]] % 12
        gi2 = perm[ii + i2 + perm[jj + j2 + perm[kk + k2]]] % 12
        gi3 = perm[ii + 1 + perm[jj + 1 + perm[kk + 1]]] % 12

        total = (
            _corner(gi0, x0, y0, z0)
            + _corner(gi1, x1, y1, z1)
            + _corner(gi2, x2, y2, z2)
            + _corner(gi3, x3, y3, z3)
        )
        return 32.0 * total

    # ---------------------------------------------------------------- fractals
    def fbm3(self, x: float, y: float, z: float, opts: Optional[FbmOptions] = None) -> float:
        """Sum of octaves normalised by the accumulated weight."""

        opts = opts or _DEFAULT_FBM
        value = 0.0
        amp = opts.amplitude
        freq = opts.frequency
        max_amp = 0.0
        for _ in range(opts.octaves):
            value += self.simplex3(x * freq, y * freq, z * freq) * amp
            max_amp += amp
            amp *= opts.persistence
            freq *= opts.lacunarity
        if max_amp == 0:
            return 0.0
        return value / max_amp

    def fbm3vec(
        self, x: float, y: float, z: float, opts: Optional[FbmOptions] = None
    ) -> Tuple[float, float, float]:
        """Three fBm channels sampled from the same field at shifted positions."""

        oy = CHANNEL_OFFSET_Y
        oz = CHANNEL_OFFSET_Z
        return (
            self.fbm3(x, y, z, opts),
            self.fbm3(x + oy[0], y + oy[1], z + oy[2], opts),
            self.fbm3(x + oz[0], y + oz[1], z + oz[2], opts),
        )

    def curl3(
        self, x: float, y: float, z: float, opts: Optional[FbmOptions] = None
    ) -> Tuple[float, float, float]:
        """Divergence-free field: the curl of the :meth:`fbm3vec` potential."""

        eps = CURL_EPSILON
        inv = 1.0 / (2.0 * eps)
        ox, oy, oz = CHANNEL_OFFSET_Y
        px, py, pz = CHANNEL_OFFSET_Z
        f = self.fbm3

        dnz_dy = (f(x + px, y + eps + py, z + pz, opts) - f(x + px, y - eps + py, z + pz, opts)) * inv
        dny_dz = (f(x + ox, y + oy, z + eps + oz, opts) - f(x + ox, y + oy, z - eps + oz, opts)) * inv

        dnx_dz = (f(x, y, z + eps, opts) - f(x, y, z - eps, opts)) * inv
        dnz_dx = (f(x + eps + px, y + py, z + pz, opts) - f(x - eps + px, y + py, z + pz, opts)) * inv

        dny_dx = (f(x + eps + ox, y + oy, z + oz, opts) - f(x - eps + ox, y + oy, z + oz, opts)) * inv
        dnx_dy = (f(x, y + eps, z, opts) - f(x, y - eps, z, opts)) * inv

        return (dnz_dy - dny_dz, dnx_dz - dnz_dx, dny_dx - dnx_dy)


def _corner(gi: int, x: float, y: float, z: float) -> float:
    t = 0.6 - x * x - y * y - z * z
    if t < 0:
        return 0.0
    t *= t
    g = _GRAD3[gi]
    return t * t * (g[0] * x + g[1] * y + g[2] * z)
