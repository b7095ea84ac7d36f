"""
Main Entry Point

Run the acceptance scenarios or a headless flight for batch rollouts.
"""

import argparse
import logging
import numpy as np

from .aircraft import AircraftConfiguration
from .environment import EnvironmentConfiguration
from .state import RigidBodyState, ControlVector
from .dynamics import FlightDynamics, SimulationConfig
from .flight_modes import FlightMode
from .trim import compute_hover_trim
from .data_export import FlightRecorder, export_flight_csv
from .missions import MissionManager
from .scenarios import run_all_scenarios


def create_default_aircraft() -> AircraftConfiguration:
    """Create a generic 450 mm quad-X configuration."""
    return AircraftConfiguration(name="Generic 450 Quad")


def run_validation_tests(aircraft: AircraftConfiguration, verbose: bool = True) -> bool:
    """
    Run the acceptance scenarios.

    Returns:
        True if every scenario passed
    """
    if verbose:
        print("\n" + "=" * 60)
        print("MULTIROTOR FLIGHT DYNAMICS VALIDATION")
        print("=" * 60)

    results = run_all_scenarios(aircraft)

    for result in results:
        if verbose:
            print(f"\n[{result.name}]")
            if result.message:
                print(f"  {result.message}")
            for key, value in result.details.items():
                print(f"  {key}: {value:.3f}")
            print(f"  Result: {'PASS' if result.passed else 'FAIL'}")

    all_passed = all(r.passed for r in results)

    if verbose:
        print("\n" + "=" * 60)
        print(f"VALIDATION {'COMPLETE' if all_passed else 'FAILED'}: "
              f"{sum(r.passed for r in results)}/{len(results)} passed")
        print("=" * 60 + "\n")

    return all_passed


def run_headless_simulation(
    aircraft: AircraftConfiguration,
    environment: EnvironmentConfiguration,
    duration: float = 30.0,
    mode: str = "loiter",
    output_file: str = None,
    plot_file: str = None,
    seed: int = 0
):
    """Run headless simulation for batch processing."""
    sim_config = SimulationConfig(noise_seed=seed)
    dynamics = FlightDynamics(aircraft, environment, sim_config)

    trim = compute_hover_trim(aircraft, environment,
                              position=tuple(sim_config.start_position),
                              gravity=sim_config.gravity)
    print(trim.message)

    if trim.success:
        dynamics.reset(trim.state)
    else:
        print("Warning: cannot hover, starting parked and disarmed")
        dynamics.reset()

    if mode != FlightMode.STABILIZE.value:
        dynamics.set_mode(mode)

    recorder = FlightRecorder()
    recorder.start()
    missions = MissionManager()

    pilot = ControlVector(throttle=trim.throttle if trim.success else 0.0)

    print(f"Running {duration}s simulation in {dynamics.mode.value} mode...")

    def pilot_input(state: RigidBodyState, time: float) -> ControlVector:
        snapshot = dynamics.snapshot
        recorder.record(snapshot)
        completed = missions.update(snapshot, dynamics.sim_config.dt)
        if completed is not None:
            print(f"  Mission complete: {completed.name} at t={time:.1f}s")
        return pilot

    history = dynamics.run(duration, control_callback=pilot_input)
    recorder.record(dynamics.snapshot)
    recorder.stop()

    print(f"Simulation complete. {len(history)} ticks recorded.")

    if output_file:
        export_flight_csv(recorder, output_file, metadata={
            'aircraft': aircraft.name,
            'mode': mode,
            'duration_s': duration,
            'wind_speed': environment.wind_speed,
            'seed': seed,
        })
        print(f"Saved to {output_file}")

    if plot_file:
        import matplotlib
        matplotlib.use('Agg')
        from .plotting import plot_flight_history
        plot_flight_history(recorder.to_dataframe(), title=f"{aircraft.name} ({mode})",
                            save_path=plot_file)
        print(f"Plot saved to {plot_file}")

    s = dynamics.snapshot
    roll, pitch, yaw = np.degrees(s.body.euler_angles)
    print("\nFinal state:")
    print(f"  Time: {s.time:.1f}s")
    print(f"  Position: ({s.body.position[0]:.2f}, {s.body.position[1]:.2f}, {s.body.position[2]:.2f}) m")
    print(f"  Attitude: roll={roll:.1f}° pitch={pitch:.1f}° yaw={yaw:.1f}°")
    print(f"  Battery: {s.battery_percentage:.1f}% ({s.battery.voltage:.1f} V)")
    print(f"  Armed: {s.armed}  Collided: {s.collided}  Mode: {s.mode}")
    print(f"  {missions.status()}")

    return dynamics


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Multirotor Flight Simulator")

    parser.add_argument(
        '--aircraft', '-a',
        type=str,
        help='Path to aircraft configuration YAML'
    )
    parser.add_argument(
        '--environment', '-e',
        type=str,
        help='Path to environment configuration YAML'
    )
    parser.add_argument(
        '--validate',
        action='store_true',
        help='Run acceptance scenarios'
    )
    parser.add_argument(
        '--headless',
        action='store_true',
        help='Run a headless flight (default)'
    )
    parser.add_argument(
        '--duration', '-d',
        type=float,
        default=30.0,
        help='Simulation duration for headless mode (seconds)'
    )
    parser.add_argument(
        '--mode', '-m',
        choices=[m.value for m in FlightMode],
        default=FlightMode.LOITER.value,
        help='Flight mode for headless mode'
    )
    parser.add_argument(
        '--output', '-o',
        type=str,
        help='CSV output file for headless simulation'
    )
    parser.add_argument(
        '--plot',
        type=str,
        help='PNG time-history plot for headless simulation'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=0,
        help='Turbulence noise seed'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Log simulator events'
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s"
    )

    # Load aircraft
    if args.aircraft:
        aircraft = AircraftConfiguration.from_yaml(args.aircraft)
        print(f"Loaded aircraft: {aircraft.name}")
    else:
        aircraft = create_default_aircraft()
        print(f"Using default aircraft: {aircraft.name}")

    if args.environment:
        environment = EnvironmentConfiguration.from_yaml(args.environment)
        print(f"Loaded environment: wind {environment.wind_speed:.1f} m/s "
              f"toward {environment.wind_direction_deg:.0f}°")
    else:
        environment = EnvironmentConfiguration()

    # Run appropriate mode
    if args.validate:
        passed = run_validation_tests(aircraft)
        raise SystemExit(0 if passed else 1)

    run_headless_simulation(
        aircraft,
        environment,
        duration=args.duration,
        mode=args.mode,
        output_file=args.output,
        plot_file=args.plot,
        seed=args.seed
    )


if __name__ == "__main__":
    main()
