"""
Acceptance Scenarios

Closed-loop checks that the whole tick pipeline behaves:
- A: trimmed hover holds altitude
- B: low battery forces a disarm on the same update
- C: hard landing sets the terminal crash state
- D: return-to-home heads home, holds its forward tilt envelope and
  drops back to Stabilize on landing

Every scenario runs the full simulator.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .aircraft import AircraftConfiguration, BatterySpec
from .dynamics import FlightDynamics, SimulationConfig
from .environment import EnvironmentConfiguration
from .flight_modes import FlightMode, RTH_MIN_PITCH, RTH_MAX_PITCH
from .frames import bearing, wrap_angle
from .state import ControlVector
from .trim import compute_hover_trim


@dataclass
class ScenarioResult:
    """Outcome of one scenario."""
    name: str
    passed: bool
    details: Dict[str, float] = field(default_factory=dict)
    message: str = ""


def scenario_hover_hold(aircraft: Optional[AircraftConfiguration] = None,
                        duration: float = 5.0, tolerance: float = 0.5) -> ScenarioResult:
    """Scenario A: hover at 2 m on the computed hover throttle."""
    aircraft = aircraft or AircraftConfiguration()
    environment = EnvironmentConfiguration(wind_speed=0.0)
    sim = FlightDynamics(aircraft, environment, SimulationConfig())

    trim = compute_hover_trim(aircraft, environment, position=(0.0, 2.0, 0.0))
    if not trim.success:
        return ScenarioResult("A: hover hold", False, message=trim.message)

    sim.reset(trim.state)
    controls = ControlVector(throttle=trim.throttle)
    sim.run(duration, lambda state, t: controls)

    error = abs(sim.state.altitude - 2.0)
    return ScenarioResult(
        "A: hover hold",
        passed=error <= tolerance and sim.state.armed,
        details={
            'hover_throttle': trim.throttle,
            'thrust_to_weight': trim.thrust_to_weight,
            'final_altitude': sim.state.altitude,
            'altitude_error': error,
        },
        message=trim.message
    )


def scenario_battery_cutoff(max_time: float = 60.0) -> ScenarioResult:
    """Scenario B: full throttle until the pack drops below 10%."""
    aircraft = AircraftConfiguration(battery=BatterySpec(cell_count=6, capacity_mah=300.0))
    sim = FlightDynamics(aircraft, EnvironmentConfiguration(), SimulationConfig())
    sim.arm()

    full = ControlVector(throttle=1.0)
    steps = int(max_time / sim.sim_config.dt)

    for _ in range(steps):
        was_armed = sim.state.armed
        sim.step(full)
        if was_armed and sim.battery.percentage < 10.0:
            passed = (not sim.state.armed) and not np.any(sim.state.motor_speeds)
            return ScenarioResult(
                "B: battery cutoff",
                passed=passed,
                details={
                    'cutoff_time': sim.state.timestamp,
                    'battery_pct': sim.battery.percentage,
                    'altitude': sim.state.altitude,
                }
            )

    return ScenarioResult("B: battery cutoff", False,
                          message=f"Battery still at {sim.battery.percentage:.1f}%")


def scenario_hard_landing() -> ScenarioResult:
    """Scenario C: descending at 12 m/s into flat ground."""
    sim = FlightDynamics(AircraftConfiguration(), EnvironmentConfiguration(), SimulationConfig())
    trim = compute_hover_trim(sim.aircraft, sim.environment, position=(0.0, 0.05, 0.0))
    state = trim.state
    state.velocity = np.array([0.0, -12.0, 0.0])
    sim.reset(state)

    sim.step(ControlVector(throttle=trim.throttle))

    s = sim.state
    passed = s.collided and not s.armed and not np.any(s.motor_speeds)
    return ScenarioResult(
        "C: hard landing",
        passed=passed,
        details={
            'impact_speed': sim.last_collision.impact_speed,
            'altitude': s.altitude,
        }
    )


def run_return_to_home(start=(50.0, 10.0, 0.0), home=(0.0, 0.0, 0.0),
                       aircraft: Optional[AircraftConfiguration] = None,
                       max_time: float = 60.0,
                       on_tick: Optional[Callable[[FlightDynamics], None]] = None):
    """
    Fly return-to-home through the full tick pipeline.

    The aircraft starts trimmed in hover at start with the pilot holding
    the hover throttle. The run ends when the mode drops back to
    Stabilize, the aircraft crashes or max_time runs out.

    Args:
        start: Starting position (m)
        home: Home position (m)
        aircraft: Build to fly, a quad with a 3000 mAh pack if None
        max_time: Longest flight (s)
        on_tick: Optional callback(sim) after every tick

    Returns:
        (simulator, elapsed time)
    """
    aircraft = aircraft or AircraftConfiguration(
        battery=BatterySpec(cell_count=6, capacity_mah=3000.0))
    environment = EnvironmentConfiguration(wind_speed=0.0)
    sim = FlightDynamics(aircraft, environment, SimulationConfig())

    trim = compute_hover_trim(aircraft, environment, position=tuple(start))
    sim.reset(trim.state, home_position=np.array(home, dtype=np.float64))
    sim.set_mode(FlightMode.RETURN_TO_HOME)

    pilot = ControlVector(throttle=trim.throttle)
    steps = int(round(max_time / sim.sim_config.dt))

    for _ in range(steps):
        sim.step(pilot)
        if on_tick is not None:
            on_tick(sim)
        if sim.mode != FlightMode.RETURN_TO_HOME or sim.state.collided:
            break

    return sim, sim.state.timestamp


def scenario_return_to_home() -> ScenarioResult:
    """Scenario D: return-to-home from (50, 10, 0) with home at the origin."""
    pitch_violations = []
    heading_errors = []
    airframe_pitch = []

    def observe(sim):
        g = sim.flight_modes.guidance
        if sim.mode != FlightMode.RETURN_TO_HOME or g.landing:
            return
        if not (RTH_MIN_PITCH <= g.desired_pitch <= RTH_MAX_PITCH):
            pitch_violations.append(g.desired_pitch)
        # Past the initial turn, while still well clear of home
        if sim.state.timestamp > 4.0 and g.distance_to_target > 3.0:
            desired = bearing(sim.state.horizontal_position, np.zeros(2))
            heading_errors.append(abs(wrap_angle(desired - sim.state.yaw)))
            airframe_pitch.append(sim.state.pitch)

    sim, elapsed = run_return_to_home(on_tick=observe)

    state = sim.state
    distance = float(np.hypot(state.position[0], state.position[2]))
    max_heading_error = max(heading_errors) if heading_errors else np.inf
    max_airframe_pitch = max(airframe_pitch) if airframe_pitch else np.inf
    passed = (
        sim.mode == FlightMode.STABILIZE
        and not state.collided
        and not pitch_violations
        and distance < 0.5
        and max_heading_error < 0.15
        and max_airframe_pitch <= RTH_MAX_PITCH + 0.05
    )
    return ScenarioResult(
        "D: return to home",
        passed=passed,
        details={
            'elapsed': elapsed,
            'final_distance': distance,
            'final_height': float(state.position[1]),
            'max_heading_error': max_heading_error,
            'max_airframe_pitch': max_airframe_pitch,
        }
    )


def run_all_scenarios(aircraft: Optional[AircraftConfiguration] = None) -> List[ScenarioResult]:
    return [
        scenario_hover_hold(aircraft),
        scenario_battery_cutoff(),
        scenario_hard_landing(),
        scenario_return_to_home(),
    ]
