"""
Terrain Height Providers

The flight core only needs one thing from the terrain service: the ground
height under a horizontal position. Anything with a height_at(x, z) method
(or a plain callable) can be injected into the environment.

Locations without loaded terrain data report height 0.
"""

import numpy as np
from typing import Callable, Protocol, Sequence, runtime_checkable
from scipy.interpolate import RegularGridInterpolator


@runtime_checkable
class TerrainHeightProvider(Protocol):
    """Terrain service contract."""

    def height_at(self, x: float, z: float) -> float:
        ...


class FlatTerrain:
    """Infinite flat ground at a constant height."""

    def __init__(self, height: float = 0.0):
        self.height = float(height)

    def height_at(self, x: float, z: float) -> float:
        return self.height

    def __repr__(self) -> str:
        return f"FlatTerrain(height={self.height})"


class CallableTerrain:
    """Adapts a plain function f(x, z) -> height to the provider contract."""

    def __init__(self, func: Callable[[float, float], float]):
        self.func = func

    def height_at(self, x: float, z: float) -> float:
        return float(self.func(x, z))


class HeightmapTerrain:
    """
    Terrain sampled from a regular height grid.

    Heights are bilinearly interpolated between grid nodes. Queries outside
    the grid return 0, matching an unloaded terrain chunk.
    """

    def __init__(self, x_coords: Sequence[float], z_coords: Sequence[float],
                 heights: np.ndarray):
        """
        Args:
            x_coords: Strictly increasing grid coordinates along X (m)
            z_coords: Strictly increasing grid coordinates along Z (m)
            heights: Array of shape (len(x_coords), len(z_coords)) (m)
        """
        heights = np.asarray(heights, dtype=np.float64)
        expected = (len(x_coords), len(z_coords))
        if heights.shape != expected:
            raise ValueError(
                f"Height grid shape {heights.shape} does not match coordinates {expected}"
            )

        self._interpolator = RegularGridInterpolator(
            (np.asarray(x_coords, dtype=np.float64), np.asarray(z_coords, dtype=np.float64)),
            heights,
            method='linear',
            bounds_error=False,
            fill_value=0.0
        )

    def height_at(self, x: float, z: float) -> float:
        return float(self._interpolator([[x, z]])[0])


def as_terrain_provider(terrain) -> TerrainHeightProvider:
    """Normalise None / callables / providers into a TerrainHeightProvider."""
    if terrain is None:
        return FlatTerrain()
    if isinstance(terrain, TerrainHeightProvider):
        return terrain
    if callable(terrain):
        return CallableTerrain(terrain)
    raise TypeError(f"Unsupported terrain provider: {terrain!r}")
