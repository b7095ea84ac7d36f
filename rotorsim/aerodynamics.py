"""
Force and Torque Model

Computes the net force (world frame) and torque (body frame) on the
airframe from:
- Rotor thrust, with ground effect near the surface
- Gravity
- Drag on the body, with an angle-of-attack blended cross-section
- Wind and turbulence, as drag against the air-relative velocity
- Control torques and angular-rate damping

Thrust is k*omega^2 per rotor and the attitude torques are driven straight
from the control vector.
"""

import numpy as np
from typing import Optional

from .state import RigidBodyState, ControlVector, ForceBreakdown
from .aircraft import DerivedProperties
from .environment import EnvironmentConfiguration, ISA_G0
from .noise import NoiseField


DRAG_COEFFICIENT = 0.5
ANGULAR_DAMPING = 0.1           # N·m per rad/s
YAW_TORQUE_FRACTION = 0.05      # of max per-motor thrust
GROUND_EFFECT_GAIN = 0.1


def compute_thrust(motor_speeds: np.ndarray, props: DerivedProperties) -> float:
    """
    Total rotor thrust before ground effect.

    Args:
        motor_speeds: Normalized motor speeds [0, 1]
        props: Derived aircraft properties

    Returns:
        Thrust magnitude (N)
    """
    omega = np.asarray(motor_speeds) * props.max_omega
    return float(np.sum(props.thrust_coefficient * omega**2))


def ground_effect_multiplier(height_above_ground: float, rotor_diameter: float) -> float:
    """
    Thrust multiplier within one rotor diameter of the ground.

    1 + 0.1 * (1 - h / D) for h < D, otherwise 1.
    """
    if rotor_diameter <= 0 or height_above_ground >= rotor_diameter:
        return 1.0
    h = max(height_above_ground, 0.0)
    return 1.0 + GROUND_EFFECT_GAIN * (1.0 - h / rotor_diameter)


def effective_area(up_world: np.ndarray, direction: np.ndarray,
                   props: DerivedProperties) -> float:
    """
    Cross-section presented to the airflow.

    Blends the side and top areas by |cos| of the angle between the body
    up axis and the flow direction.
    """
    projection = abs(float(np.dot(up_world, direction)))
    return props.area_side + (props.area_top - props.area_side) * projection


def compute_drag(velocity: np.ndarray, up_world: np.ndarray,
                 props: DerivedProperties, density: float) -> np.ndarray:
    """
    Quadratic drag opposing a velocity.

    |F| = 0.5 * rho * Cd * A_eff * |v|^2

    Args:
        velocity: Velocity relative to the air (m/s, world frame)
        up_world: Body up axis in world frame
        props: Derived aircraft properties
        density: Air density (kg/m³)

    Returns:
        Drag force in world frame (N)
    """
    speed = float(np.linalg.norm(velocity))
    if speed <= 0.01:
        return np.zeros(3)

    direction = velocity / speed
    area = effective_area(up_world, direction, props)
    magnitude = 0.5 * density * DRAG_COEFFICIENT * area * speed**2
    return -direction * magnitude


def compute_torques(controls: ControlVector, angular_velocity: np.ndarray,
                    props: DerivedProperties) -> np.ndarray:
    """
    Body torques from the control vector plus rate damping.

    Body axes: x = pitch, y = yaw, z = roll.

    Args:
        controls: Control vector (already clamped)
        angular_velocity: Body angular velocity (rad/s)
        props: Derived aircraft properties

    Returns:
        Torque in body frame (N·m)
    """
    attitude_gain = props.arm_length * props.max_thrust_per_motor * 2.0
    torque = np.array([
        controls.pitch * attitude_gain,
        controls.yaw * YAW_TORQUE_FRACTION * props.max_thrust_per_motor,
        controls.roll * attitude_gain,
    ])
    return torque - ANGULAR_DAMPING * np.asarray(angular_velocity)


def compute_forces_and_torques(
    state: RigidBodyState,
    controls: ControlVector,
    props: DerivedProperties,
    environment: EnvironmentConfiguration,
    noise: Optional[NoiseField] = None,
    height_above_ground: Optional[float] = None,
    enable_wind: bool = True,
    enable_ground_effect: bool = True,
    gravity: float = ISA_G0
) -> ForceBreakdown:
    """
    Net force and torque for the current state.

    While disarmed the rotors produce nothing, no control torque is applied
    and the wind term is suppressed so a parked aircraft does not drift.

    Args:
        state: Current rigid-body state (motor speeds already updated)
        controls: Clamped control vector for this tick
        props: Derived aircraft properties
        environment: Environment configuration
        noise: Turbulence source
        height_above_ground: Height over terrain for ground effect
        enable_wind: Include wind/turbulence
        enable_ground_effect: Include ground effect
        gravity: Gravitational acceleration (m/s²)

    Returns:
        ForceBreakdown with world-frame forces and body-frame torque
    """
    fb = ForceBreakdown()
    up_world = state.orientation.up_vector()
    density = environment.air_density

    # === THRUST ===
    thrust = compute_thrust(state.motor_speeds, props) if state.armed else 0.0

    if enable_ground_effect:
        height = state.altitude if height_above_ground is None else height_above_ground
        fb.ground_effect = ground_effect_multiplier(height, props.rotor_diameter)
    thrust *= fb.ground_effect

    fb.total_thrust = thrust
    fb.thrust = up_world * thrust

    # === GRAVITY ===
    fb.gravity = np.array([0.0, -props.total_mass * gravity, 0.0])

    # === DRAG (still air) ===
    fb.drag = compute_drag(state.velocity, up_world, props, density)
    fb.airspeed = state.speed

    # === WIND ===
    if enable_wind and state.armed:
        wind = environment.get_wind(state.position, state.timestamp, noise)
        relative = state.velocity - wind
        fb.wind = compute_drag(relative, up_world, props, density) - fb.drag
        fb.airspeed = float(np.linalg.norm(relative))

    fb.force = fb.thrust + fb.gravity + fb.drag + fb.wind

    # === TORQUES ===
    if state.armed:
        fb.torque = compute_torques(controls, state.angular_velocity, props)
    else:
        fb.torque = np.zeros(3)

    return fb
