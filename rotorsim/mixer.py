"""
Motor Mixer

Maps the 4-axis control vector onto per-motor speed commands and applies
a first-order spin-up/spin-down lag.

Quad layout (X), viewed from above with the nose toward +Z:

    2 FL (CW)    0 FR (CCW)
           \\    /
            body
           /    \\
    1 BL (CCW)   3 BR (CW)

Hexa and octa frames get a uniform throttle mix with no differential
attitude or yaw authority.
"""

import numpy as np

from .state import ControlVector


# Columns: throttle, pitch, roll, yaw
QUAD_X_MIX = np.array([
    [1.0, -1.0, -1.0, -1.0],   # 0 front-right
    [1.0,  1.0,  1.0, -1.0],   # 1 back-left
    [1.0, -1.0,  1.0,  1.0],   # 2 front-left
    [1.0,  1.0, -1.0,  1.0],   # 3 back-right
])

MOTOR_LABELS = {
    4: ('front-right', 'back-left', 'front-left', 'back-right'),
}

DEFAULT_RESPONSE_RATE = 20.0  # 1/s


def mix(controls: ControlVector, motor_count: int) -> np.ndarray:
    """
    Compute target motor speeds for a control vector.

    Args:
        controls: Control vector (re-clamped here)
        motor_count: 4, 6 or 8

    Returns:
        Array of motor speed targets, each in [0, 1]
    """
    c = controls.clamped()

    if motor_count == 4:
        axes = np.array([c.throttle, c.pitch, c.roll, c.yaw])
        targets = QUAD_X_MIX @ axes
    else:
        targets = np.full(motor_count, c.throttle)

    return np.clip(targets, 0.0, 1.0)


def apply_motor_lag(current: np.ndarray, target: np.ndarray, dt: float,
                    response_rate: float = DEFAULT_RESPONSE_RATE) -> np.ndarray:
    """
    First-order lag of motor speeds toward their targets.

    speed += (target - speed) * min(1, response_rate * dt)
    """
    alpha = min(1.0, max(0.0, response_rate * dt))
    return np.clip(current + (target - current) * alpha, 0.0, 1.0)


class MotorMixer:
    """Stateful mixer for a fixed motor count."""

    def __init__(self, motor_count: int, response_rate: float = DEFAULT_RESPONSE_RATE):
        if motor_count not in (4, 6, 8):
            raise ValueError(f"Unsupported motor count: {motor_count}")
        self.motor_count = motor_count
        self.response_rate = response_rate

    def update(self, controls: ControlVector, current_speeds: np.ndarray,
               dt: float) -> np.ndarray:
        """
        Advance motor speeds one tick toward the mixed command.

        Args:
            controls: Control vector for this tick
            current_speeds: Motor speeds from the previous tick
            dt: Time step (s)

        Returns:
            New motor speeds, each in [0, 1]
        """
        targets = mix(controls, self.motor_count)
        return apply_motor_lag(current_speeds, targets, dt, self.response_rate)

    def stop(self) -> np.ndarray:
        """Motor speeds for a disarmed aircraft."""
        return np.zeros(self.motor_count)
