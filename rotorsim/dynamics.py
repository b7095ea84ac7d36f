"""
Rigid Body Dynamics and Simulation Loop

Implements the multirotor tick pipeline:
- Flight-mode controller and motor mixer
- Force/torque model
- Semi-implicit Euler integration (linear and angular)
- Battery discharge
- Terrain collision

The host drives the simulator with variable frame times; advance() drains
them in fixed steps so results do not depend on the frame rate.
"""

import logging
import numpy as np
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .aircraft import AircraftConfiguration, DerivedProperties
from .aerodynamics import compute_forces_and_torques
from .autopilot import CascadedController
from .battery import BatteryModel
from .environment import EnvironmentConfiguration, ISA_G0
from .flight_modes import FlightMode, FlightModeController
from .frames import Quaternion
from .mixer import MotorMixer
from .noise import NoiseField, PerlinNoise
from .state import (
    RigidBodyState, BatteryState, ControlVector, ForceBreakdown,
    SimulationSnapshot, copy_snapshot
)


logger = logging.getLogger(__name__)


@dataclass
class SimulationConfig:
    """Simulation parameters."""

    # Fixed physics step (s)
    dt: float = 1.0 / 120.0

    # Longest frame time the accumulator accepts (s)
    max_frame_time: float = 0.25

    # Ground contact
    crash_speed: float = 10.0       # m/s, impact speed that destroys the aircraft
    bounce: float = 0.3             # vertical velocity restitution
    ground_friction: float = 0.8    # horizontal velocity retained on contact

    motor_response_rate: float = 20.0   # 1/s
    gravity: float = ISA_G0

    # Home pose
    start_position: np.ndarray = field(default_factory=lambda: np.array([0.0, 2.0, 0.0]))

    # Seed for the turbulence field
    noise_seed: int = 0

    # Enable/disable physics components (for validation)
    enable_wind: bool = True
    enable_ground_effect: bool = True


@dataclass
class CollisionEvent:
    """Result of one terrain check."""
    contact: bool = False
    crashed: bool = False
    impact_speed: float = 0.0
    terrain_height: float = 0.0


class CollisionDetector:
    """
    Terrain contact and crash detection.

    Contact clamps the body onto the terrain. Impacts faster than
    crash_speed set the terminal collided state.
    """

    def __init__(self, environment: EnvironmentConfiguration, crash_speed: float = 10.0,
                 bounce: float = 0.3, ground_friction: float = 0.8):
        self.environment = environment
        self.crash_speed = crash_speed
        self.bounce = bounce
        self.ground_friction = ground_friction

    def check(self, state: RigidBodyState) -> CollisionEvent:
        """
        Resolve terrain contact for a freshly integrated state (in place).

        Args:
            state: State after integration

        Returns:
            CollisionEvent describing what happened
        """
        ground = self.environment.height_at(state.position[0], state.position[2])
        if state.position[1] >= ground:
            return CollisionEvent(terrain_height=ground)

        impact_speed = state.speed
        state.position[1] = ground

        if impact_speed > self.crash_speed:
            state.collided = True
            state.armed = False
            state.motor_speeds = np.zeros_like(state.motor_speeds)
            state.velocity = np.zeros(3)
            state.angular_velocity = np.zeros(3)
            return CollisionEvent(contact=True, crashed=True,
                                  impact_speed=impact_speed, terrain_height=ground)

        state.velocity[1] = max(0.0, -self.bounce * state.velocity[1])
        state.velocity[0] *= self.ground_friction
        state.velocity[2] *= self.ground_friction

        # Parked on the ground: static friction
        if not state.armed:
            state.velocity[0] = 0.0
            state.velocity[2] = 0.0
            state.angular_velocity = np.zeros(3)

        return CollisionEvent(contact=True, impact_speed=impact_speed, terrain_height=ground)


def integrate_step(state: RigidBodyState, forces: ForceBreakdown,
                   props: DerivedProperties, dt: float) -> RigidBodyState:
    """
    Advance the rigid body one step (semi-implicit Euler, in place).

        v += F/m * dt,  p += v * dt
        w += tau/I * dt, q = q * exp(w * dt)

    Args:
        state: State to advance
        forces: Net world-frame force and body-frame torque
        props: Derived aircraft properties (mass, inertia already floored)
        dt: Time step (s)

    Returns:
        The same state object
    """
    acceleration = forces.force / props.total_mass
    state.velocity = state.velocity + acceleration * dt
    state.position = state.position + state.velocity * dt

    angular_acceleration = forces.torque / props.inertia
    state.angular_velocity = state.angular_velocity + angular_acceleration * dt

    # Body-frame rotation composed on the right; Quaternion renormalizes
    delta = Quaternion.from_rotation_vector(state.angular_velocity * dt)
    state.orientation = state.orientation * delta

    state.timestamp += dt
    return state


class FlightDynamics:
    """
    Main multirotor simulation engine.

    Owns the mutable rigid-body and battery state. The tick pipeline is the
    only writer; readers use snapshot, which is replaced atomically at the
    end of every tick.
    """

    def __init__(
        self,
        aircraft: Optional[AircraftConfiguration] = None,
        environment: Optional[EnvironmentConfiguration] = None,
        sim_config: Optional[SimulationConfig] = None,
        noise: Optional[NoiseField] = None,
        controller: Optional[CascadedController] = None
    ):
        self.aircraft = aircraft or AircraftConfiguration()
        self.environment = environment or EnvironmentConfiguration()
        self.sim_config = sim_config or SimulationConfig()
        self.props = self.aircraft.derived

        self.noise = noise if noise is not None else PerlinNoise(self.sim_config.noise_seed)

        self.mixer = MotorMixer(self.props.motor_count, self.sim_config.motor_response_rate)
        self.battery_model = BatteryModel(self.aircraft, self.environment.temperature_c)
        self.collision_detector = CollisionDetector(
            self.environment,
            crash_speed=self.sim_config.crash_speed,
            bounce=self.sim_config.bounce,
            ground_friction=self.sim_config.ground_friction
        )
        self.flight_modes = FlightModeController(
            self.sim_config.start_position,
            controller=controller
        )

        # History (optional, for analysis)
        self.history: List[SimulationSnapshot] = []
        self.record_history = False

        self.reset()

    # --- Commands ---

    def reset(self, initial_state: Optional[RigidBodyState] = None,
              home_position: Optional[np.ndarray] = None):
        """
        Restore all mutable state.

        Without an initial state the aircraft is parked at the configured
        start position; with one, that state becomes the new home pose
        unless home_position names a different one.
        """
        if initial_state is not None:
            self.state = initial_state.copy()
            if len(self.state.motor_speeds) != self.props.motor_count:
                self.state.motor_speeds = np.zeros(self.props.motor_count)
            self.state.collided = False
        else:
            self.state = RigidBodyState(
                position=np.array(self.sim_config.start_position, dtype=np.float64),
                motor_speeds=np.zeros(self.props.motor_count)
            )

        if home_position is None:
            self.home_position = self.state.position.copy()
        else:
            self.home_position = np.array(home_position, dtype=np.float64)
        self.flight_modes.home_position = self.home_position.copy()
        self.flight_modes.reset()

        self.battery = self.battery_model.initial_state()
        self.pilot = ControlVector()
        self.controls = ControlVector()
        self.forces = ForceBreakdown()
        self.last_collision = CollisionEvent()
        self.history = []
        self._accumulator = 0.0

        self._publish()

    def arm(self) -> bool:
        """
        Arm the motors.

        Returns:
            False if the aircraft has crashed and needs a reset
        """
        if self.state.collided:
            logger.warning("Cannot arm: aircraft has crashed, reset required")
            return False
        if not self.state.armed:
            self.state.armed = True
            self.flight_modes.controller.reset()
            logger.info("Armed at t=%.2fs", self.state.timestamp)
        self._publish()
        return True

    def disarm(self, reason: str = "command"):
        """Disarm and stop the motors immediately."""
        if self.state.armed:
            logger.info("Disarmed (%s) at t=%.2fs", reason, self.state.timestamp)
        self.state.armed = False
        self.state.motor_speeds = self.mixer.stop()
        self._publish()

    def emergency_stop(self):
        """Disarm, centre the sticks and drop back to Stabilize."""
        self.disarm(reason="emergency stop")
        self.pilot = ControlVector()
        self.controls = ControlVector()
        self.set_mode(FlightMode.STABILIZE)

    def set_mode(self, mode):
        """Switch flight mode (FlightMode or its string value)."""
        self.flight_modes.set_mode(mode, self.state)
        self._publish()

    @property
    def mode(self) -> FlightMode:
        return self.flight_modes.mode

    @property
    def snapshot(self) -> SimulationSnapshot:
        """Last published post-tick state."""
        return self._snapshot

    # --- Tick pipeline ---

    def step(self, controls: Optional[ControlVector] = None) -> RigidBodyState:
        """
        Advance simulation by one fixed timestep.

        Args:
            controls: Pilot input (uses last if None)

        Returns:
            Updated rigid-body state
        """
        dt = self.sim_config.dt
        state = self.state

        if controls is not None:
            self.pilot = controls.clamped()

        # Terminal state: nothing moves until reset
        if state.collided:
            state.armed = False
            state.motor_speeds = self.mixer.stop()
            self.controls = ControlVector()
            self.forces = ForceBreakdown()
            state.timestamp += dt
            self._publish()
            return state

        # 1. Controller / mixer
        if state.armed:
            self.controls = self.flight_modes.update(self.pilot, state, dt)
            state.motor_speeds = self.mixer.update(self.controls, state.motor_speeds, dt)
        else:
            self.controls = self.pilot.copy()
            state.motor_speeds = self.mixer.stop()

        # 2. Forces and torques
        ground = self.environment.height_at(state.position[0], state.position[2])
        self.forces = compute_forces_and_torques(
            state,
            self.controls,
            self.props,
            self.environment,
            noise=self.noise,
            height_above_ground=state.position[1] - ground,
            enable_wind=self.sim_config.enable_wind,
            enable_ground_effect=self.sim_config.enable_ground_effect,
            gravity=self.sim_config.gravity
        )

        # 3. Integrate
        integrate_step(state, self.forces, self.props, dt)

        # 4. Battery
        result = self.battery_model.update(self.battery, state.motor_speeds, state.armed, dt)
        if result.cutoff:
            self.disarm(reason="low battery")

        # 5. Collision
        self.last_collision = self.collision_detector.check(state)
        if self.last_collision.crashed:
            logger.warning("Crash at t=%.2fs, impact %.1f m/s",
                           state.timestamp, self.last_collision.impact_speed)

        self._publish()

        if self.record_history:
            self.history.append(self._snapshot)

        return state

    def advance(self, elapsed: float, controls: Optional[ControlVector] = None) -> int:
        """
        Drain a variable frame time in fixed physics steps.

        Leftover time below one step carries over to the next call.

        Args:
            elapsed: Wall/frame time since the last call (s)
            controls: Pilot input for these steps

        Returns:
            Number of physics steps taken
        """
        dt = self.sim_config.dt
        elapsed = min(max(float(elapsed), 0.0), self.sim_config.max_frame_time)
        self._accumulator += elapsed

        steps = 0
        while self._accumulator + 1e-9 >= dt:
            self.step(controls)
            self._accumulator -= dt
            steps += 1

        return steps

    def run(
        self,
        duration: float,
        control_callback: Optional[Callable[[RigidBodyState, float], ControlVector]] = None
    ) -> List[SimulationSnapshot]:
        """
        Run simulation for a specified duration.

        Args:
            duration: Simulation duration (s)
            control_callback: Optional function(state, time) -> ControlVector

        Returns:
            History list of snapshots
        """
        self.record_history = True
        steps = int(round(duration / self.sim_config.dt))

        for _ in range(steps):
            if control_callback is not None:
                controls = control_callback(self.state, self.state.timestamp)
                self.step(controls)
            else:
                self.step()

            if self.state.collided:
                logger.warning("Run stopped: aircraft crashed at t=%.2fs", self.state.timestamp)
                break

        self.record_history = False
        return self.history

    def _publish(self):
        self._snapshot = copy_snapshot(
            self.state,
            self.battery,
            self.controls,
            self.forces,
            self.flight_modes.mode.value,
            self.home_position
        )

    def get_diagnostic_string(self) -> str:
        """Get formatted diagnostic output for debugging."""
        s = self.state
        fb = self.forces
        roll, pitch, yaw = np.degrees(s.euler_angles)

        status = ""
        if s.collided:
            status = " | CRASHED"
        elif not s.armed:
            status = " | DISARMED"

        return (
            f"t={s.timestamp:.2f}s | "
            f"Alt={s.altitude:.2f}m | "
            f"V={s.speed:.1f}m/s | "
            f"roll={roll:.1f}° pitch={pitch:.1f}° yaw={yaw:.1f}° | "
            f"T={fb.total_thrust:.1f}N | "
            f"Bat={self.battery.percentage:.1f}% {self.battery.voltage:.1f}V | "
            f"{self.flight_modes.mode.value}"
            f"{status}"
        )
