"""
Flight-Mode State Machine

Selects which controller shapes the control vector each tick:
- Stabilize: pilot sticks pass through, auto-level when centred
- Loiter: hold the position captured on mode entry
- ReturnToHome: climb to a safe altitude, turn toward home, fly there
  and land on the home pad

Mode changes are explicit commands; the only automatic transition is
ReturnToHome -> Stabilize after landing at home.
"""

import logging
import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from .autopilot import CascadedController
from .frames import wrap_angle, bearing
from .state import RigidBodyState, ControlVector


logger = logging.getLogger(__name__)


class FlightMode(Enum):
    """Available flight modes."""
    STABILIZE = "stabilize"
    LOITER = "loiter"
    RETURN_TO_HOME = "rth"

    @classmethod
    def parse(cls, value) -> 'FlightMode':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown flight mode: {value!r}") from None


# Stabilize
STICK_DEADBAND = 0.05
PILOT_BLEND = 0.6
LEVELING_BLEND = 0.4

# Loiter
LOITER_THROTTLE_GAIN = 0.2

# Return to home
RTH_THROTTLE_GAIN = 0.3
RTH_MIN_ALTITUDE = 5.0
RTH_ALTITUDE_MARGIN = 2.0
RTH_PITCH_PER_METER = 0.1
RTH_MIN_PITCH = 0.1
RTH_MAX_PITCH = 0.5
RTH_ARRIVAL_RADIUS = 0.5
RTH_LANDED_HEIGHT = 0.2
RTH_LANDING_SINK = 1.0  # setpoint below the pad so the descent completes
RTH_SETTLE_SPEED = 0.5  # m/s over ground before the descent starts


@dataclass
class Guidance:
    """Setpoints chosen by the active mode on the last tick."""
    desired_roll: float = 0.0
    desired_pitch: float = 0.0
    desired_yaw: Optional[float] = None
    target_altitude: Optional[float] = None
    distance_to_target: Optional[float] = None
    landing: bool = False
    descending: bool = False


def heading_frame(correction_x: float, correction_z: float, yaw: float):
    """
    Rotate a world-frame (x, z) tilt request into (pitch, roll) setpoints.

    Forward for heading yaw is (sin yaw, cos yaw); right is (-cos yaw, sin yaw).
    """
    forward = correction_x * np.sin(yaw) + correction_z * np.cos(yaw)
    right = -correction_x * np.cos(yaw) + correction_z * np.sin(yaw)
    return float(forward), float(right)


class FlightModeController:
    """
    Flight-mode state machine.

    Owns the cascaded controller and turns pilot input plus aircraft state
    into the control vector for the mixer.
    """

    def __init__(self, home_position: np.ndarray,
                 controller: Optional[CascadedController] = None,
                 on_mode_change: Optional[Callable[[FlightMode, FlightMode], None]] = None):
        """
        Args:
            home_position: Home position captured at flight start (world, m)
            controller: Cascaded PID set, default gains if None
            on_mode_change: Optional callback(old_mode, new_mode)
        """
        self.home_position = np.array(home_position, dtype=np.float64)
        self.controller = controller or CascadedController()
        self.on_mode_change = on_mode_change

        self.mode = FlightMode.STABILIZE
        self.loiter_target: Optional[np.ndarray] = None
        self.guidance = Guidance()
        self._landing = False
        self._descending = False

        self._handlers: Dict[FlightMode, Callable[[ControlVector, RigidBodyState, float], ControlVector]] = {
            FlightMode.STABILIZE: self._apply_stabilize,
            FlightMode.LOITER: self._apply_loiter,
            FlightMode.RETURN_TO_HOME: self._apply_return_to_home,
        }

    def set_mode(self, mode, state: RigidBodyState):
        """
        Switch flight mode.

        Entering Loiter captures the current position as the hold target.
        Every mode change resets the PID memory.
        """
        mode = FlightMode.parse(mode)
        old_mode = self.mode

        self.mode = mode
        self.controller.reset()
        self.guidance = Guidance()
        self._landing = False
        self._descending = False

        if mode == FlightMode.LOITER:
            self.loiter_target = state.position.copy()
        else:
            self.loiter_target = None

        if old_mode != mode:
            logger.info("Flight mode %s -> %s", old_mode.value, mode.value)
            if self.on_mode_change is not None:
                self.on_mode_change(old_mode, mode)

    def set_loiter_target(self, position: np.ndarray):
        """Override the loiter hold point."""
        self.loiter_target = np.array(position, dtype=np.float64)

    def update(self, pilot: ControlVector, state: RigidBodyState, dt: float) -> ControlVector:
        """
        Compute this tick's control vector.

        Args:
            pilot: Pilot stick input
            state: Current aircraft state
            dt: Time step (s)

        Returns:
            Control vector clamped to canonical ranges
        """
        pilot = pilot.clamped()
        controls = self._handlers[self.mode](pilot, state, dt)
        return controls.clamped()

    def reset(self):
        """Back to Stabilize with fresh controller memory."""
        self.mode = FlightMode.STABILIZE
        self.loiter_target = None
        self.guidance = Guidance()
        self._landing = False
        self._descending = False
        self.controller.reset()

    # --- Mode handlers ---

    def _apply_stabilize(self, pilot: ControlVector, state: RigidBodyState,
                         dt: float) -> ControlVector:
        roll, pitch, _ = state.euler_angles
        controls = pilot.copy()

        # Sticks near centre: blend in a leveling correction. A deflected
        # stick drops the loop memory so re-centring starts a fresh sample.
        if abs(pilot.roll) < STICK_DEADBAND:
            correction = self.controller.roll_pid.update(0.0, roll, dt)
            controls.roll = pilot.roll * PILOT_BLEND + correction * LEVELING_BLEND
        else:
            self.controller.roll_pid.reset()
        if abs(pilot.pitch) < STICK_DEADBAND:
            correction = self.controller.pitch_pid.update(0.0, pitch, dt)
            controls.pitch = pilot.pitch * PILOT_BLEND + correction * LEVELING_BLEND
        else:
            self.controller.pitch_pid.reset()

        self.guidance = Guidance()
        return controls

    def _apply_loiter(self, pilot: ControlVector, state: RigidBodyState,
                      dt: float) -> ControlVector:
        if self.loiter_target is None:
            self.loiter_target = state.position.copy()

        target = self.loiter_target
        controls = pilot.copy()

        desired_pitch, desired_roll = self._hold_position(target, state, dt)
        self._attitude_to_controls(controls, desired_roll, desired_pitch, state, dt)

        altitude_correction = self.controller.update_altitude(target[1], state.position[1], dt)
        controls.throttle = pilot.throttle + altitude_correction * LOITER_THROTTLE_GAIN

        delta = target - state.position
        self.guidance = Guidance(
            desired_roll=desired_roll,
            desired_pitch=desired_pitch,
            target_altitude=float(target[1]),
            distance_to_target=float(np.hypot(delta[0], delta[2]))
        )
        return controls

    def _apply_return_to_home(self, pilot: ControlVector, state: RigidBodyState,
                              dt: float) -> ControlVector:
        home = self.home_position
        position = state.position
        controls = pilot.copy()

        distance = float(np.hypot(home[0] - position[0], home[2] - position[2]))
        height_above_home = position[1] - home[1]

        if distance < RTH_ARRIVAL_RADIUS and height_above_home < RTH_LANDED_HEIGHT:
            self.set_mode(FlightMode.STABILIZE, state)
            return self._apply_stabilize(pilot, state, dt)

        cruise_altitude = max(RTH_MIN_ALTITUDE, home[1] + RTH_ALTITUDE_MARGIN)

        # Arrival latches the hover over the pad; the descent waits until
        # the aircraft has stopped drifting
        if distance < RTH_ARRIVAL_RADIUS:
            self._landing = True
            if not self._descending and state.groundspeed < RTH_SETTLE_SPEED:
                self._descending = True
                self.controller.altitude_pid.reset()
                logger.info("Return to home: over the pad, descending")

        if self._landing:
            if self._descending:
                target_altitude = home[1] - RTH_LANDING_SINK
            else:
                target_altitude = cruise_altitude
            desired_pitch, desired_roll = self._hold_position(home, state, dt)
            desired_yaw = None
            controls.yaw = 0.0
        else:
            target_altitude = cruise_altitude

            _, _, yaw = state.euler_angles
            desired_yaw = bearing(state.horizontal_position, np.array([home[0], home[2]]))
            yaw_error = wrap_angle(desired_yaw - yaw)
            controls.yaw = float(np.clip(yaw_error / (np.pi / 2), -1.0, 1.0))

            desired_pitch = float(np.clip(distance * RTH_PITCH_PER_METER,
                                          RTH_MIN_PITCH, RTH_MAX_PITCH))
            # Cross-track: the position pair nulls sideways drift off the home line
            _, desired_roll = self._hold_position(home, state, dt)

        self._attitude_to_controls(controls, desired_roll, desired_pitch, state, dt)

        altitude_correction = self.controller.update_altitude(target_altitude, position[1], dt)
        controls.throttle = pilot.throttle + altitude_correction * RTH_THROTTLE_GAIN

        self.guidance = Guidance(
            desired_roll=desired_roll,
            desired_pitch=desired_pitch,
            desired_yaw=desired_yaw,
            target_altitude=float(target_altitude),
            distance_to_target=distance,
            landing=self._landing,
            descending=self._descending
        )
        return controls

    # --- Shared loops ---

    def _hold_position(self, target: np.ndarray, state: RigidBodyState, dt: float):
        """Position loop -> (pitch, roll) tilt setpoints in rad."""
        correction_x, correction_z = self.controller.update_position(
            (target[0], target[2]),
            (state.position[0], state.position[2]),
            dt
        )
        _, _, yaw = state.euler_angles
        return heading_frame(correction_x, correction_z, yaw)

    def _attitude_to_controls(self, controls: ControlVector, desired_roll: float,
                              desired_pitch: float, state: RigidBodyState, dt: float):
        """Attitude loop: tilt setpoints -> roll/pitch commands."""
        roll, pitch, yaw = state.euler_angles
        roll_cmd, pitch_cmd, _ = self.controller.update_attitude(
            (desired_roll, desired_pitch, yaw),
            (roll, pitch, yaw),
            dt
        )
        controls.roll = roll_cmd
        controls.pitch = pitch_cmd
