"""
Seeded Noise Fields

Gradient (Perlin) noise used for wind turbulence. The permutation table is
drawn from a seeded numpy Generator so that two simulators built with the
same seed see exactly the same gusts.
"""

import math
import numpy as np
from typing import Optional, Protocol


class NoiseField(Protocol):
    """Source of smooth pseudo-random values in roughly [-1, 1]."""

    def noise3d(self, x: float, y: float, z: float) -> float:
        ...


def _fade(t: float) -> float:
    return t * t * t * (t * (t * 6 - 15) + 10)


def _lerp(t: float, a: float, b: float) -> float:
    return a + t * (b - a)


def _grad(h: int, x: float, y: float, z: float) -> float:
    h &= 15
    u = x if h < 8 else y
    if h < 4:
        v = y
    elif h in (12, 14):
        v = x
    else:
        v = z
    return (u if (h & 1) == 0 else -u) + (v if (h & 2) == 0 else -v)


class PerlinNoise:
    """Improved Perlin noise with a seeded permutation table."""

    def __init__(self, seed: Optional[int] = 0):
        self.seed = seed
        rng = np.random.default_rng(seed)
        p = rng.permutation(256)
        self._perm = [int(v) for v in np.concatenate([p, p])]

    def noise3d(self, x: float, y: float, z: float) -> float:
        fx, fy, fz = math.floor(x), math.floor(y), math.floor(z)
        X = fx & 255
        Y = fy & 255
        Z = fz & 255

        x -= fx
        y -= fy
        z -= fz

        u = _fade(x)
        v = _fade(y)
        w = _fade(z)

        p = self._perm
        A = p[X] + Y
        AA = p[A] + Z
        AB = p[A + 1] + Z
        B = p[X + 1] + Y
        BA = p[B] + Z
        BB = p[B + 1] + Z

        return float(_lerp(w,
            _lerp(v,
                  _lerp(u, _grad(p[AA], x, y, z), _grad(p[BA], x - 1, y, z)),
                  _lerp(u, _grad(p[AB], x, y - 1, z), _grad(p[BB], x - 1, y - 1, z))),
            _lerp(v,
                  _lerp(u, _grad(p[AA + 1], x, y, z - 1), _grad(p[BA + 1], x - 1, y, z - 1)),
                  _lerp(u, _grad(p[AB + 1], x, y - 1, z - 1), _grad(p[BB + 1], x - 1, y - 1, z - 1)))
        ))


class ZeroNoise:
    """Noise field that is identically zero (calm air, deterministic tests)."""

    def noise3d(self, x: float, y: float, z: float) -> float:
        return 0.0
