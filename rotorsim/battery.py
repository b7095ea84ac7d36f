"""
Battery Model

Tracks charge consumption, terminal voltage and pack temperature from the
per-motor speed commands.

    I     = sum((V * kv / 1000) * u_i * 0.5)
    used += I * dt / 3600
    %     = 100 * (1 - used / capacity)
    V     = V_full - (V_full - V_empty) * used / capacity - I * R_int
"""

import logging
import numpy as np
from dataclasses import dataclass

from .aircraft import AircraftConfiguration
from .state import BatteryState


logger = logging.getLogger(__name__)

INTERNAL_RESISTANCE_PER_CELL = 0.02   # Ohm
LOW_BATTERY_CUTOFF = 10.0             # percent
HEATING_CURRENT_SCALE = 20.0          # A per °C/s
COOLING_RATE = 1.0                    # °C/s
MAX_TEMPERATURE = 100.0               # °C


@dataclass
class BatteryUpdate:
    """Outcome of one battery tick."""
    current: float
    cutoff: bool


class BatteryModel:
    """Discharge model for one battery pack."""

    def __init__(self, aircraft: AircraftConfiguration, ambient_temperature: float = 20.0):
        props = aircraft.derived
        self.kv = aircraft.motor.kv_rating
        self.cell_count = aircraft.battery.cell_count
        self.capacity_ah = max(props.capacity_ah, 1e-6)
        self.full_voltage = props.full_voltage
        self.empty_voltage = props.empty_voltage
        self.internal_resistance = INTERNAL_RESISTANCE_PER_CELL * self.cell_count
        self.ambient_temperature = ambient_temperature

    def initial_state(self) -> BatteryState:
        """Fully charged pack at ambient temperature."""
        return BatteryState(
            used_capacity_ah=0.0,
            voltage=self.full_voltage,
            percentage=100.0,
            current_draw=0.0,
            temperature=self.ambient_temperature
        )

    def current_draw(self, motor_speeds: np.ndarray, voltage: float) -> float:
        """Total current (A) drawn for the given motor commands."""
        per_motor = (voltage * self.kv / 1000.0) * np.asarray(motor_speeds) * 0.5
        return float(np.sum(per_motor))

    def update(self, battery: BatteryState, motor_speeds: np.ndarray,
               armed: bool, dt: float) -> BatteryUpdate:
        """
        Advance the battery state one tick (in place).

        Args:
            battery: Battery state to update
            motor_speeds: Motor speeds for this tick
            armed: Whether the aircraft is armed
            dt: Time step (s)

        Returns:
            BatteryUpdate; cutoff is True when charge is below the
            low-battery threshold and the aircraft must be disarmed
        """
        current = self.current_draw(motor_speeds, battery.voltage)
        battery.current_draw = current

        battery.used_capacity_ah += current * dt / 3600.0
        battery.percentage = max(0.0, 100.0 * (1.0 - battery.used_capacity_ah / self.capacity_ah))

        discharged = min(battery.used_capacity_ah / self.capacity_ah, 1.0)
        v_drop = (self.full_voltage - self.empty_voltage) * discharged
        battery.voltage = max(0.0, self.full_voltage - v_drop - current * self.internal_resistance)

        if armed:
            heating = current / HEATING_CURRENT_SCALE
            battery.temperature = min(MAX_TEMPERATURE, battery.temperature + heating * dt)
        else:
            battery.temperature = max(self.ambient_temperature,
                                      battery.temperature - COOLING_RATE * dt)

        cutoff = armed and battery.percentage < LOW_BATTERY_CUTOFF
        if cutoff:
            logger.warning("Battery at %.1f%%, forcing disarm", battery.percentage)

        return BatteryUpdate(current=current, cutoff=cutoff)
