"""
Hover Trim

Finds the throttle at which total rotor thrust (including ground effect)
balances weight, and builds a ready-to-fly hover state from it.

If you can't trim, the build can't fly: a thrust-to-weight ratio below
one has no hover solution.
"""

import numpy as np
from scipy.optimize import brentq
from dataclasses import dataclass
from typing import Optional, Sequence

from .aircraft import AircraftConfiguration
from .aerodynamics import compute_thrust, ground_effect_multiplier
from .environment import EnvironmentConfiguration, ISA_G0
from .state import RigidBodyState


@dataclass
class HoverTrim:
    """Result of hover trim."""

    success: bool
    throttle: float
    state: RigidBodyState
    thrust_to_weight: float
    residual: float
    message: str


def compute_hover_throttle(
    aircraft: AircraftConfiguration,
    environment: Optional[EnvironmentConfiguration] = None,
    position: Sequence[float] = (0.0, 2.0, 0.0),
    gravity: float = ISA_G0,
    enable_ground_effect: bool = True
) -> Optional[float]:
    """
    Throttle that holds the aircraft in a steady hover.

    Args:
        aircraft: Aircraft configuration
        environment: Environment (terrain height for ground effect)
        position: Hover position in world frame (m)
        gravity: Gravitational acceleration (m/s²)
        enable_ground_effect: Include ground effect in the balance

    Returns:
        Throttle in [0, 1], or None if full throttle cannot lift the aircraft
    """
    environment = environment or EnvironmentConfiguration()
    props = aircraft.derived
    weight = props.total_mass * gravity

    multiplier = 1.0
    if enable_ground_effect:
        height = position[1] - environment.height_at(position[0], position[2])
        multiplier = ground_effect_multiplier(height, props.rotor_diameter)

    def thrust_residual(throttle: float) -> float:
        speeds = np.full(props.motor_count, throttle)
        return compute_thrust(speeds, props) * multiplier - weight

    if thrust_residual(1.0) < 0:
        return None

    return float(brentq(thrust_residual, 0.0, 1.0, xtol=1e-12))


def compute_hover_trim(
    aircraft: AircraftConfiguration,
    environment: Optional[EnvironmentConfiguration] = None,
    position: Sequence[float] = (0.0, 2.0, 0.0),
    gravity: float = ISA_G0,
    enable_ground_effect: bool = True
) -> HoverTrim:
    """
    Compute a trimmed, armed hover state.

    The returned state has its motors already spun up to the hover
    throttle, so a simulation started from it does not sag while the
    motors catch up.

    Args:
        aircraft: Aircraft configuration
        environment: Environment
        position: Hover position in world frame (m)
        gravity: Gravitational acceleration (m/s²)
        enable_ground_effect: Include ground effect in the balance

    Returns:
        HoverTrim with solution or failure info
    """
    props = aircraft.derived
    twr = props.max_total_thrust / (props.total_mass * gravity)

    throttle = compute_hover_throttle(aircraft, environment, position,
                                      gravity, enable_ground_effect)

    if throttle is None:
        state = RigidBodyState(position=np.array(position, dtype=np.float64),
                               motor_speeds=np.zeros(props.motor_count))
        return HoverTrim(
            success=False,
            throttle=1.0,
            state=state,
            thrust_to_weight=twr,
            residual=props.max_total_thrust - props.total_mass * gravity,
            message=f"Cannot hover: thrust-to-weight {twr:.2f} < 1"
        )

    state = RigidBodyState(
        position=np.array(position, dtype=np.float64),
        motor_speeds=np.full(props.motor_count, throttle),
        armed=True
    )

    environment = environment or EnvironmentConfiguration()
    multiplier = 1.0
    if enable_ground_effect:
        height = position[1] - environment.height_at(position[0], position[2])
        multiplier = ground_effect_multiplier(height, props.rotor_diameter)
    residual = compute_thrust(state.motor_speeds, props) * multiplier - props.total_mass * gravity

    return HoverTrim(
        success=True,
        throttle=throttle,
        state=state,
        thrust_to_weight=twr,
        residual=float(residual),
        message=f"Hover at {throttle * 100:.1f}% throttle (TWR {twr:.2f})"
    )
