"""
PID Controllers

Provides the single-axis PID primitive and the cascaded controller built
from six of them:
- Attitude (roll, pitch, yaw): inner, fast loop
- Altitude: outer, slow loop
- Horizontal position (x, z): outer, slow loop

The cascaded controller only produces corrections. Blending them into a
ControlVector is the flight-mode state machine's job.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass
class PIDController:
    """
    PID controller with output clamping and anti-windup.

    Anti-windup: when the clamped output sits on a bound, that step's
    integral accumulation is undone so the integral cannot grow while
    saturated.
    """

    kp: float = 1.0
    ki: float = 0.0
    kd: float = 0.0

    # Output limits
    min_output: float = -np.inf
    max_output: float = np.inf

    # State
    _integral: float = 0.0
    _last_error: Optional[float] = None
    _last_time: Optional[float] = None

    @property
    def integral(self) -> float:
        return self._integral

    @property
    def last_error(self) -> Optional[float]:
        return self._last_error

    @property
    def primed(self) -> bool:
        """True once a baseline sample has been recorded."""
        return self._last_time is not None

    def reset(self):
        """Reset controller state."""
        self._integral = 0.0
        self._last_error = None
        self._last_time = None

    def set_gains(self, kp: float, ki: float, kd: float):
        self.kp = kp
        self.ki = ki
        self.kd = kd

    def set_output_limits(self, min_output: float, max_output: float):
        if min_output > max_output:
            raise ValueError(f"Invalid output limits: {min_output} > {max_output}")
        self.min_output = min_output
        self.max_output = max_output

    def update(self, setpoint: float, measured: float, dt: float) -> float:
        """
        Compute control output.

        The first call after construction or reset() only records the
        sample and returns 0: no derivative exists without a prior sample.

        Args:
            setpoint: Desired value
            measured: Current value
            dt: Time step (s)

        Returns:
            Control output, clamped to [min_output, max_output]
        """
        error = setpoint - measured

        if self._last_time is None:
            self._last_time = 0.0
            self._last_error = error
            return 0.0

        if dt <= 0:
            return 0.0

        self._last_time += dt

        # Proportional
        p_term = self.kp * error

        # Integral
        self._integral += error * dt
        i_term = self.ki * self._integral

        # Derivative
        derivative = (error - self._last_error) / dt
        d_term = self.kd * derivative

        self._last_error = error

        output = p_term + i_term + d_term
        clamped = float(np.clip(output, self.min_output, self.max_output))

        # Anti-windup: undo this step's accumulation while saturated
        if clamped <= self.min_output or clamped >= self.max_output:
            self._integral -= error * dt

        return clamped


@dataclass
class CascadedController:
    """
    Six independent PID loops used by the autonomous flight modes.
    """

    # Attitude controllers (inner loop - fast)
    roll_pid: PIDController = field(default_factory=lambda: PIDController(
        kp=4.0, ki=0.05, kd=1.2, min_output=-1.0, max_output=1.0
    ))
    pitch_pid: PIDController = field(default_factory=lambda: PIDController(
        kp=4.0, ki=0.05, kd=1.2, min_output=-1.0, max_output=1.0
    ))
    yaw_pid: PIDController = field(default_factory=lambda: PIDController(
        kp=3.0, ki=0.01, kd=0.5, min_output=-1.0, max_output=1.0
    ))

    # Altitude controller (outer loop - slow)
    altitude_pid: PIDController = field(default_factory=lambda: PIDController(
        kp=2.0, ki=0.0, kd=1.5, min_output=-1.0, max_output=1.0
    ))

    # Position controllers (outer loop - slow)
    position_x_pid: PIDController = field(default_factory=lambda: PIDController(
        kp=0.5, ki=0.0, kd=0.2, min_output=-0.5, max_output=0.5
    ))
    position_z_pid: PIDController = field(default_factory=lambda: PIDController(
        kp=0.5, ki=0.0, kd=0.2, min_output=-0.5, max_output=0.5
    ))

    def update_attitude(
        self,
        desired: Tuple[float, float, float],
        current: Tuple[float, float, float],
        dt: float
    ) -> Tuple[float, float, float]:
        """
        Attitude loop.

        Args:
            desired: (roll, pitch, yaw) setpoints (rad)
            current: (roll, pitch, yaw) measurements (rad)
            dt: Time step

        Returns:
            (roll, pitch, yaw) commands in [-1, 1]
        """
        return (
            self.roll_pid.update(desired[0], current[0], dt),
            self.pitch_pid.update(desired[1], current[1], dt),
            self.yaw_pid.update(desired[2], current[2], dt),
        )

    def update_altitude(self, desired_altitude: float, current_altitude: float,
                        dt: float) -> float:
        """Altitude loop, returns a correction in [-1, 1]."""
        return self.altitude_pid.update(desired_altitude, current_altitude, dt)

    def update_position(
        self,
        desired: Tuple[float, float],
        current: Tuple[float, float],
        dt: float
    ) -> Tuple[float, float]:
        """
        Horizontal position loop.

        Args:
            desired: (x, z) target (m)
            current: (x, z) position (m)
            dt: Time step

        Returns:
            (x, z) corrections in [-0.5, 0.5], world frame
        """
        return (
            self.position_x_pid.update(desired[0], current[0], dt),
            self.position_z_pid.update(desired[1], current[1], dt),
        )

    def reset(self):
        """Reset all controllers."""
        for pid in self.all_pids():
            pid.reset()

    def all_pids(self) -> Tuple[PIDController, ...]:
        return (self.roll_pid, self.pitch_pid, self.yaw_pid,
                self.altitude_pid, self.position_x_pid, self.position_z_pid)
