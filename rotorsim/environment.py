"""
Environment Model

Provides the per-flight environment: ambient temperature, air density,
steady wind, turbulence and the terrain the aircraft flies over.

Air density is scaled from the ISA sea-level value by temperature only;
the simulated altitudes are far too small for a pressure lapse to matter.
"""

import numpy as np
import yaml
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from pathlib import Path

from .noise import NoiseField
from .terrain import TerrainHeightProvider, FlatTerrain, as_terrain_provider


# ISA Constants at sea level
ISA_T0 = 288.15      # Temperature (K)
ISA_RHO0 = 1.225     # Density (kg/m³)
ISA_G0 = 9.81        # Gravity used throughout the simulator (m/s²)

# Turbulence sampling (world units per noise cell, noise cells per second)
TURBULENCE_SPATIAL_SCALE = 10.0
TURBULENCE_TIME_SCALE = 0.5
TURBULENCE_GAIN = np.array([0.3, 0.2, 0.3])


def air_density(temperature_c: float) -> float:
    """
    Air density at sea-level pressure for a given temperature.

    Args:
        temperature_c: Ambient temperature (°C)

    Returns:
        Density (kg/m³)
    """
    temperature_k = max(temperature_c + 273.15, 1.0)
    return ISA_RHO0 * (ISA_T0 / temperature_k)


@dataclass(frozen=True)
class EnvironmentConfiguration:
    """
    Immutable environment for one flight.
    """

    wind_speed: float = 0.0             # m/s
    wind_direction_deg: float = 0.0     # direction the wind blows toward
    temperature_c: float = 20.0         # °C
    terrain: TerrainHeightProvider = field(default_factory=FlatTerrain)

    air_density: float = field(init=False)
    wind_vector: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'terrain', as_terrain_provider(self.terrain))
        object.__setattr__(self, 'air_density', air_density(self.temperature_c))

        direction = np.radians(self.wind_direction_deg)
        wind = np.array([
            np.sin(direction) * self.wind_speed,
            0.0,
            np.cos(direction) * self.wind_speed
        ])
        wind.setflags(write=False)
        object.__setattr__(self, 'wind_vector', wind)

    def height_at(self, x: float, z: float) -> float:
        """Terrain height under a horizontal position."""
        return self.terrain.height_at(x, z)

    def get_wind(self, position: np.ndarray, time: float,
                 noise: Optional[NoiseField]) -> np.ndarray:
        """
        Total wind velocity (steady + turbulence) at a point in world frame.

        Args:
            position: World position (m)
            time: Simulation time (s)
            noise: Turbulence source, None for steady wind only

        Returns:
            Wind velocity in world frame (m/s)
        """
        wind = self.wind_vector.copy()

        if noise is None or self.wind_speed == 0.0:
            return wind

        sx = position[0] / TURBULENCE_SPATIAL_SCALE
        sy = position[1] / TURBULENCE_SPATIAL_SCALE
        st = time * TURBULENCE_TIME_SCALE

        turbulence = np.array([
            noise.noise3d(sx, sy, st),
            noise.noise3d(sx + 100.0, sy, st),
            noise.noise3d(sx, sy + 100.0, st),
        ])
        return wind + turbulence * TURBULENCE_GAIN * self.wind_speed

    @classmethod
    def from_dict(cls, data: Dict[str, Any],
                  terrain: Optional[TerrainHeightProvider] = None) -> 'EnvironmentConfiguration':
        """Create environment from dictionary; terrain is supplied by the caller."""
        terrain_height = data.get('terrain_height')
        if terrain is None and terrain_height is not None:
            terrain = FlatTerrain(terrain_height)

        return cls(
            wind_speed=data.get('wind_speed', 0.0),
            wind_direction_deg=data.get('wind_direction_deg', 0.0),
            temperature_c=data.get('temperature_c', 20.0),
            terrain=terrain,
        )

    @classmethod
    def from_yaml(cls, filepath: str,
                  terrain: Optional[TerrainHeightProvider] = None) -> 'EnvironmentConfiguration':
        """Load environment settings from YAML file."""
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Environment file not found: {filepath}")

        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data, terrain=terrain)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'wind_speed': self.wind_speed,
            'wind_direction_deg': self.wind_direction_deg,
            'temperature_c': self.temperature_c,
        }
