"""
Aircraft State Representation

The rigid-body state carries everything the tick pipeline mutates:
- Position (3) and velocity (3) in the Y-up world frame
- Attitude quaternion (4), body to world
- Angular velocity (3) in body frame
- Per-motor normalized speeds, armed / collided flags and sim time

Battery state, control vectors and force breakdowns live alongside it, and
SimulationSnapshot bundles a consistent copy of all of them for readers.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .frames import Quaternion


@dataclass
class RigidBodyState:
    """
    Complete multirotor rigid-body state.

    All values are in SI units (m, m/s, rad, rad/s).
    """

    # Position in world frame (m), y is altitude
    position: np.ndarray = field(default_factory=lambda: np.array([0.0, 2.0, 0.0]))

    # Velocity in world frame (m/s)
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))

    # Attitude quaternion (body to world)
    orientation: Quaternion = field(default_factory=Quaternion.identity)

    # Angular velocity in body frame (rad/s) about [x, y, z] = [pitch, yaw, roll]
    angular_velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))

    # Normalized motor speeds, one per motor, each in [0, 1]
    motor_speeds: np.ndarray = field(default_factory=lambda: np.zeros(4))

    armed: bool = False
    collided: bool = False

    # Simulation time (s)
    timestamp: float = 0.0

    def __post_init__(self):
        """Ensure arrays are numpy arrays."""
        self.position = np.asarray(self.position, dtype=np.float64).copy()
        self.velocity = np.asarray(self.velocity, dtype=np.float64).copy()
        self.angular_velocity = np.asarray(self.angular_velocity, dtype=np.float64).copy()
        self.motor_speeds = np.asarray(self.motor_speeds, dtype=np.float64).copy()

    @property
    def altitude(self) -> float:
        """Height above the world origin plane (m)."""
        return float(self.position[1])

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))

    @property
    def groundspeed(self) -> float:
        """Horizontal speed over ground (m/s)."""
        return float(np.hypot(self.velocity[0], self.velocity[2]))

    @property
    def climb_rate(self) -> float:
        """Vertical speed, positive up (m/s)."""
        return float(self.velocity[1])

    @property
    def euler_angles(self) -> Tuple[float, float, float]:
        """(roll, pitch, yaw) in radians."""
        return self.orientation.to_euler()

    @property
    def roll(self) -> float:
        return self.euler_angles[0]

    @property
    def pitch(self) -> float:
        return self.euler_angles[1]

    @property
    def yaw(self) -> float:
        return self.euler_angles[2]

    @property
    def horizontal_position(self) -> np.ndarray:
        """(x, z) position (m)."""
        return np.array([self.position[0], self.position[2]])

    def copy(self) -> 'RigidBodyState':
        """Create a deep copy of this state."""
        return RigidBodyState(
            position=self.position.copy(),
            velocity=self.velocity.copy(),
            orientation=self.orientation.copy(),
            angular_velocity=self.angular_velocity.copy(),
            motor_speeds=self.motor_speeds.copy(),
            armed=self.armed,
            collided=self.collided,
            timestamp=self.timestamp
        )


@dataclass
class BatteryState:
    """Battery pack state."""

    used_capacity_ah: float = 0.0
    voltage: float = 0.0            # V, terminal voltage under load
    percentage: float = 100.0       # [0, 100]
    current_draw: float = 0.0       # A
    temperature: float = 20.0       # °C, pack temperature

    def copy(self) -> 'BatteryState':
        return BatteryState(
            used_capacity_ah=self.used_capacity_ah,
            voltage=self.voltage,
            percentage=self.percentage,
            current_draw=self.current_draw,
            temperature=self.temperature
        )


def _finite(value: float) -> float:
    value = float(value)
    return value if np.isfinite(value) else 0.0


@dataclass
class ControlVector:
    """
    Normalized pilot / autopilot command.

    throttle in [0, 1]; pitch, roll, yaw in [-1, 1].
    Sign conventions:
        - pitch: positive = tilt forward
        - roll: positive = tilt right
        - yaw: positive = nose left (counter-clockwise from above)
    """

    throttle: float = 0.0
    pitch: float = 0.0
    roll: float = 0.0
    yaw: float = 0.0

    def clamped(self) -> 'ControlVector':
        """
        Return a copy clipped to the canonical ranges.

        Non-finite inputs are treated as centred sticks.
        """
        return ControlVector(
            throttle=float(np.clip(_finite(self.throttle), 0.0, 1.0)),
            pitch=float(np.clip(_finite(self.pitch), -1.0, 1.0)),
            roll=float(np.clip(_finite(self.roll), -1.0, 1.0)),
            yaw=float(np.clip(_finite(self.yaw), -1.0, 1.0))
        )

    def copy(self) -> 'ControlVector':
        return ControlVector(self.throttle, self.pitch, self.roll, self.yaw)


@dataclass
class ForceBreakdown:
    """
    Forces (world frame, N) and torques (body frame, N·m) for one tick.
    """

    force: np.ndarray = field(default_factory=lambda: np.zeros(3))
    torque: np.ndarray = field(default_factory=lambda: np.zeros(3))

    # Individual force components for debugging
    thrust: np.ndarray = field(default_factory=lambda: np.zeros(3))
    gravity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    drag: np.ndarray = field(default_factory=lambda: np.zeros(3))
    wind: np.ndarray = field(default_factory=lambda: np.zeros(3))

    total_thrust: float = 0.0
    ground_effect: float = 1.0
    airspeed: float = 0.0

    def __post_init__(self):
        """Ensure arrays are numpy arrays."""
        self.force = np.asarray(self.force, dtype=np.float64)
        self.torque = np.asarray(self.torque, dtype=np.float64)
        self.thrust = np.asarray(self.thrust, dtype=np.float64)
        self.gravity = np.asarray(self.gravity, dtype=np.float64)
        self.drag = np.asarray(self.drag, dtype=np.float64)
        self.wind = np.asarray(self.wind, dtype=np.float64)


@dataclass(frozen=True)
class SimulationSnapshot:
    """
    Consistent view of the simulator published at a tick boundary.

    Readers (telemetry, rendering, recorders) only ever see these copies,
    never the state the tick pipeline is writing.
    """

    body: RigidBodyState
    battery: BatteryState
    controls: ControlVector
    forces: ForceBreakdown
    mode: str
    home_position: np.ndarray

    @property
    def time(self) -> float:
        return self.body.timestamp

    @property
    def armed(self) -> bool:
        return self.body.armed

    @property
    def collided(self) -> bool:
        return self.body.collided

    @property
    def battery_percentage(self) -> float:
        return self.battery.percentage

    @property
    def distance_to_home(self) -> float:
        delta = self.body.position - self.home_position
        return float(np.hypot(delta[0], delta[2]))


def copy_snapshot(body: RigidBodyState, battery: BatteryState,
                  controls: ControlVector, forces: Optional[ForceBreakdown],
                  mode: str, home_position: np.ndarray) -> SimulationSnapshot:
    """Deep-copy live state into an immutable snapshot."""
    forces = forces if forces is not None else ForceBreakdown()
    return SimulationSnapshot(
        body=body.copy(),
        battery=battery.copy(),
        controls=controls.copy(),
        forces=ForceBreakdown(
            force=forces.force.copy(),
            torque=forces.torque.copy(),
            thrust=forces.thrust.copy(),
            gravity=forces.gravity.copy(),
            drag=forces.drag.copy(),
            wind=forces.wind.copy(),
            total_thrust=forces.total_thrust,
            ground_effect=forces.ground_effect,
            airspeed=forces.airspeed
        ),
        mode=mode,
        home_position=np.array(home_position, dtype=np.float64)
    )
