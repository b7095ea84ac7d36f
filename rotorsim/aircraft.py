"""
Aircraft Configuration

Defines the physical build of the multirotor:
- Frame layout, size and material
- Propellers, motors and battery pack
- Payload class

The configuration is immutable for the duration of a flight. Everything the
physics needs (mass, arm length, thrust coefficient, motor speed limits) is
derived once at construction and cached in DerivedProperties.
"""

import numpy as np
import yaml
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any
from pathlib import Path


# Lower bounds that keep force/torque and integration math finite
MIN_MASS_KG = 0.05
MIN_ARM_LENGTH_M = 0.02
MIN_INERTIA = 1e-5
MIN_OMEGA = 1.0

CELL_FULL_VOLTAGE = 4.2
CELL_EMPTY_VOLTAGE = 3.5
INCH_TO_M = 0.0254

FRAME_MATERIAL_MULTIPLIER = {'carbon': 1.0, 'aluminum': 1.3, 'plastic': 1.5}

PAYLOAD_MASS_G = {
    'none': 0.0,
    'camera-small': 50.0,
    'camera-medium': 100.0,
    'camera-large': 200.0,
    'sensor': 50.0,
    'delivery': 300.0,
}


class FrameType(Enum):
    """Supported airframe layouts."""
    QUAD_X = 'quad-x'
    QUAD_PLUS = 'quad-plus'
    HEXA = 'hexa'
    OCTA = 'octa'

    @property
    def motor_count(self) -> int:
        return {
            FrameType.QUAD_X: 4,
            FrameType.QUAD_PLUS: 4,
            FrameType.HEXA: 6,
            FrameType.OCTA: 8,
        }[self]


@dataclass(frozen=True)
class FrameSpec:
    type: FrameType = FrameType.QUAD_X
    size_mm: float = 450.0  # motor-to-motor diagonal
    material: str = 'carbon'

    def __post_init__(self):
        if not isinstance(self.type, FrameType):
            object.__setattr__(self, 'type', FrameType(self.type))
        if self.material not in FRAME_MATERIAL_MULTIPLIER:
            raise ValueError(f"Unknown frame material: {self.material!r}")


@dataclass(frozen=True)
class PropellerSpec:
    diameter_in: float = 10.0
    pitch: float = 4.5
    blade_count: int = 3
    material: str = 'plastic'


@dataclass(frozen=True)
class MotorSpec:
    kv_rating: float = 2300.0


@dataclass(frozen=True)
class BatterySpec:
    cell_count: int = 6
    capacity_mah: float = 1500.0
    c_rating: float = 45.0


@dataclass(frozen=True)
class PayloadSpec:
    mass_class: str = 'none'

    def __post_init__(self):
        if self.mass_class not in PAYLOAD_MASS_G:
            raise ValueError(f"Unknown payload class: {self.mass_class!r}")


@dataclass(frozen=True)
class DerivedProperties:
    """Coefficients computed once from the build."""

    motor_count: int
    total_mass: float               # kg
    arm_length: float               # m
    inertia: float                  # kg·m², scalar (mass * arm²)
    rotor_diameter: float           # m
    thrust_coefficient: float       # N/(rad/s)²
    max_omega: float                # rad/s
    max_thrust_per_motor: float     # N
    full_voltage: float             # V
    empty_voltage: float            # V
    capacity_ah: float              # Ah
    area_top: float                 # m²
    area_side: float                # m²

    @property
    def weight(self) -> float:
        return self.total_mass * 9.81

    @property
    def max_total_thrust(self) -> float:
        return self.max_thrust_per_motor * self.motor_count

    @property
    def thrust_to_weight(self) -> float:
        return self.max_total_thrust / self.weight


@dataclass(frozen=True)
class AircraftConfiguration:
    """Complete multirotor build."""

    name: str = "Generic Quad"
    frame: FrameSpec = field(default_factory=FrameSpec)
    propeller: PropellerSpec = field(default_factory=PropellerSpec)
    motor: MotorSpec = field(default_factory=MotorSpec)
    battery: BatterySpec = field(default_factory=BatterySpec)
    payload: PayloadSpec = field(default_factory=PayloadSpec)

    # Side silhouette as a fraction of the top-down cross-section
    side_area_ratio: float = 0.35

    derived: DerivedProperties = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'derived', self._derive())

    def _derive(self) -> DerivedProperties:
        n_motors = self.frame.type.motor_count
        frame_m = self.frame.size_mm / 1000.0

        mass = max(self._total_mass_grams() / 1000.0, MIN_MASS_KG)
        arm = max(frame_m / 2.0, MIN_ARM_LENGTH_M)

        # Empirical fit: k = 1e-5 * D^4 * pitch * blade multiplier
        diameter = self.propeller.diameter_in * INCH_TO_M
        blade_multiplier = 1.0 + (self.propeller.blade_count - 2) * 0.1
        k_thrust = 1e-5 * diameter**4 * self.propeller.pitch * blade_multiplier

        full_voltage = self.battery.cell_count * CELL_FULL_VOLTAGE
        max_rpm = self.motor.kv_rating * full_voltage
        max_omega = max(max_rpm * 2.0 * np.pi / 60.0, MIN_OMEGA)

        area_top = frame_m**2

        return DerivedProperties(
            motor_count=n_motors,
            total_mass=mass,
            arm_length=arm,
            inertia=max(mass * arm**2, MIN_INERTIA),
            rotor_diameter=diameter,
            thrust_coefficient=k_thrust,
            max_omega=max_omega,
            max_thrust_per_motor=k_thrust * max_omega**2,
            full_voltage=full_voltage,
            empty_voltage=self.battery.cell_count * CELL_EMPTY_VOLTAGE,
            capacity_ah=self.battery.capacity_mah / 1000.0,
            area_top=area_top,
            area_side=area_top * self.side_area_ratio,
        )

    def _total_mass_grams(self) -> float:
        n_motors = self.frame.type.motor_count
        frame_mass = (200.0 * (self.frame.size_mm / 450.0)
                      * FRAME_MATERIAL_MULTIPLIER[self.frame.material])
        motor_mass = 40.0 * n_motors
        prop_mass = self.propeller.diameter_in * 2.0 * n_motors
        battery_mass = self.battery.capacity_mah * 0.15
        controller_mass = 30.0
        payload_mass = PAYLOAD_MASS_G[self.payload.mass_class]
        return (frame_mass + motor_mass + prop_mass + battery_mass
                + controller_mass + payload_mass)

    @property
    def motor_count(self) -> int:
        return self.derived.motor_count

    @classmethod
    def from_yaml(cls, filepath: str) -> 'AircraftConfiguration':
        """Load aircraft configuration from YAML file."""
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Aircraft file not found: {filepath}")

        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AircraftConfiguration':
        """Create config from dictionary."""
        frame_data = dict(data.get('frame', {}))
        if 'type' in frame_data:
            try:
                frame_data['type'] = FrameType(frame_data['type'])
            except ValueError:
                raise ValueError(f"Unknown frame type: {frame_data['type']!r}")

        return cls(
            name=data.get('name', 'Unknown'),
            frame=FrameSpec(**frame_data),
            propeller=PropellerSpec(**data.get('propeller', {})),
            motor=MotorSpec(**data.get('motor', {})),
            battery=BatterySpec(**data.get('battery', {})),
            payload=PayloadSpec(**data.get('payload', {})),
            side_area_ratio=data.get('side_area_ratio', 0.35),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for serialization."""
        return {
            'name': self.name,
            'frame': {
                'type': self.frame.type.value,
                'size_mm': self.frame.size_mm,
                'material': self.frame.material,
            },
            'propeller': {
                'diameter_in': self.propeller.diameter_in,
                'pitch': self.propeller.pitch,
                'blade_count': self.propeller.blade_count,
                'material': self.propeller.material,
            },
            'motor': {'kv_rating': self.motor.kv_rating},
            'battery': {
                'cell_count': self.battery.cell_count,
                'capacity_mah': self.battery.capacity_mah,
                'c_rating': self.battery.c_rating,
            },
            'payload': {'mass_class': self.payload.mass_class},
            'side_area_ratio': self.side_area_ratio,
        }

    def save_yaml(self, filepath: str):
        """Save configuration to YAML file."""
        with open(filepath, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
