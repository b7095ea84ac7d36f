"""
Tests for the battery model.
"""

import numpy as np
import pytest
from rotorsim.aircraft import AircraftConfiguration, BatterySpec
from rotorsim.battery import BatteryModel, LOW_BATTERY_CUTOFF


DT = 1.0 / 120.0


@pytest.fixture
def model():
    return BatteryModel(AircraftConfiguration())


class TestBatteryModel:

    def test_initial_state_full(self, model):
        battery = model.initial_state()
        assert battery.percentage == 100.0
        assert battery.voltage == pytest.approx(6 * 4.2)
        assert battery.used_capacity_ah == 0.0

    def test_current_draw_formula(self, model):
        current = model.current_draw(np.full(4, 0.5), 25.2)
        expected = 4 * (25.2 * 2300 / 1000) * 0.5 * 0.5
        assert current == pytest.approx(expected)

    def test_idle_draws_nothing(self, model):
        battery = model.initial_state()
        result = model.update(battery, np.zeros(4), armed=False, dt=DT)
        assert result.current == 0.0
        assert battery.percentage == 100.0
        assert not result.cutoff

    def test_percentage_non_increasing_under_load(self, model):
        battery = model.initial_state()
        last = battery.percentage
        for _ in range(500):
            model.update(battery, np.full(4, 0.6), armed=True, dt=DT)
            assert battery.percentage <= last
            assert battery.percentage >= 0.0
            last = battery.percentage
        assert battery.percentage < 100.0

    def test_voltage_sags_under_load(self, model):
        battery = model.initial_state()
        model.update(battery, np.full(4, 0.8), armed=True, dt=DT)
        assert battery.voltage < model.full_voltage

    def test_percentage_floored_at_zero(self):
        model = BatteryModel(AircraftConfiguration(battery=BatterySpec(capacity_mah=10.0)))
        battery = model.initial_state()
        for _ in range(2000):
            model.update(battery, np.ones(4), armed=True, dt=DT)
        assert battery.percentage == 0.0
        assert battery.voltage >= 0.0

    def test_cutoff_below_threshold(self):
        model = BatteryModel(AircraftConfiguration(battery=BatterySpec(capacity_mah=100.0)))
        battery = model.initial_state()

        cutoff = False
        while not cutoff:
            cutoff = model.update(battery, np.ones(4), armed=True, dt=DT).cutoff
        assert battery.percentage < LOW_BATTERY_CUTOFF

    def test_no_cutoff_while_disarmed(self, model):
        battery = model.initial_state()
        battery.used_capacity_ah = 0.99 * model.capacity_ah
        result = model.update(battery, np.zeros(4), armed=False, dt=DT)
        assert not result.cutoff

    def test_temperature(self, model):
        battery = model.initial_state()
        for _ in range(120):
            model.update(battery, np.ones(4), armed=True, dt=DT)
        hot = battery.temperature
        assert hot > model.ambient_temperature

        for _ in range(120):
            model.update(battery, np.zeros(4), armed=False, dt=DT)
        assert model.ambient_temperature <= battery.temperature < hot
