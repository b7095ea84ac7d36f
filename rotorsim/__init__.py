"""
Multirotor Flight Simulator

A deterministic, fixed-step flight dynamics and control core for
multirotor training: rigid-body integration, motor mixing, battery
discharge, terrain collision and cascaded-PID flight modes.
"""

__version__ = "0.3.0"

# Core simulation modules
from .aircraft import AircraftConfiguration, FrameType
from .environment import EnvironmentConfiguration
from .terrain import FlatTerrain, HeightmapTerrain
from .noise import PerlinNoise
from .state import RigidBodyState, BatteryState, ControlVector, SimulationSnapshot
from .dynamics import FlightDynamics, SimulationConfig
from .flight_modes import FlightMode, FlightModeController
from .autopilot import PIDController, CascadedController
from .trim import compute_hover_throttle, compute_hover_trim

# Analysis modules
from .data_export import (
    FlightRecorder,
    history_to_dataframe,
    export_flight_csv,
    export_json
)

from .missions import Mission, MissionManager
