"""
Tests for the PID primitive and the cascaded controller.
"""

import numpy as np
import pytest
from rotorsim.autopilot import PIDController, CascadedController


DT = 1.0 / 120.0


class TestPIDController:

    def test_first_call_returns_zero(self):
        """No derivative without a prior sample: first call only records."""
        pid = PIDController(kp=5.0, ki=1.0, kd=1.0)
        assert pid.update(10.0, 0.0, DT) == 0.0
        assert pid.primed
        assert pid.integral == 0.0
        assert pid.last_error == 10.0

    def test_proportional_only(self):
        pid = PIDController(kp=2.0)
        pid.update(1.0, 0.0, DT)
        assert pid.update(1.0, 0.0, DT) == pytest.approx(2.0)

    def test_integral_accumulates(self):
        pid = PIDController(kp=0.0, ki=1.0)
        pid.update(1.0, 0.0, DT)
        for _ in range(10):
            out = pid.update(1.0, 0.0, DT)
        assert pid.integral == pytest.approx(10 * DT)
        assert out == pytest.approx(10 * DT)

    def test_derivative_of_error(self):
        pid = PIDController(kp=0.0, kd=1.0)
        pid.update(0.0, 0.0, 0.1)
        # Error goes 0 -> -1 over 0.1 s
        assert pid.update(0.0, 1.0, 0.1) == pytest.approx(-10.0)

    def test_output_clamped(self):
        pid = PIDController(kp=100.0, min_output=-1.0, max_output=1.0)
        pid.update(1.0, 0.0, DT)
        assert pid.update(1.0, 0.0, DT) == 1.0
        assert pid.update(-1.0, 0.0, DT) == -1.0

    def test_non_positive_dt_returns_zero(self):
        pid = PIDController(kp=1.0, ki=1.0)
        pid.update(1.0, 0.0, DT)
        pid.update(1.0, 0.0, DT)
        integral = pid.integral

        assert pid.update(1.0, 0.0, 0.0) == 0.0
        assert pid.update(1.0, 0.0, -DT) == 0.0
        assert pid.integral == integral

    def test_anti_windup_holds_while_saturated(self):
        """100 saturated steps: the integral cannot grow."""
        pid = PIDController(kp=1.0, ki=0.5, kd=0.0, min_output=-1.0, max_output=1.0)
        pid.update(10.0, 0.0, DT)

        for _ in range(100):
            out = pid.update(10.0, 0.0, DT)
            assert out == 1.0

        # Integral needed to reach the bound on its own
        bound_integral = pid.max_output / pid.ki
        assert abs(pid.integral) <= bound_integral
        assert pid.integral == pytest.approx(0.0)

    def test_recovers_quickly_after_saturation(self):
        pid = PIDController(kp=1.0, ki=0.5, min_output=-1.0, max_output=1.0)
        pid.update(10.0, 0.0, DT)
        for _ in range(100):
            pid.update(10.0, 0.0, DT)

        # Error flips sign: no stored integral holds the output high
        assert pid.update(0.0, 0.5, DT) < 0.0

    def test_reset_clears_memory(self):
        pid = PIDController(kp=1.0, ki=1.0, kd=1.0)
        pid.update(1.0, 0.0, DT)
        pid.update(1.0, 0.0, DT)
        pid.reset()

        assert pid.integral == 0.0
        assert pid.last_error is None
        assert not pid.primed
        assert pid.update(1.0, 0.0, DT) == 0.0

    def test_set_gains_keeps_memory(self):
        pid = PIDController(kp=1.0, ki=1.0)
        pid.update(1.0, 0.0, DT)
        pid.update(1.0, 0.0, DT)
        integral = pid.integral

        pid.set_gains(2.0, 0.5, 0.1)
        assert (pid.kp, pid.ki, pid.kd) == (2.0, 0.5, 0.1)
        assert pid.integral == integral

    def test_set_output_limits(self):
        pid = PIDController()
        pid.set_output_limits(-0.5, 0.5)
        assert (pid.min_output, pid.max_output) == (-0.5, 0.5)
        with pytest.raises(ValueError):
            pid.set_output_limits(1.0, -1.0)


class TestCascadedController:

    @pytest.fixture
    def controller(self):
        return CascadedController()

    def test_default_gains(self, controller):
        assert (controller.roll_pid.kp, controller.roll_pid.ki, controller.roll_pid.kd) == (4.0, 0.05, 1.2)
        assert (controller.yaw_pid.kp, controller.yaw_pid.ki, controller.yaw_pid.kd) == (3.0, 0.01, 0.5)
        assert (controller.altitude_pid.kp, controller.altitude_pid.kd) == (2.0, 1.5)
        assert controller.position_x_pid.max_output == 0.5
        assert controller.position_z_pid.min_output == -0.5

    def test_loops_are_independent(self, controller):
        controller.update_attitude((0.1, 0.0, 0.0), (0.0, 0.0, 0.0), DT)
        roll, pitch, yaw = controller.update_attitude((0.1, 0.0, 0.0), (0.0, 0.0, 0.0), DT)
        assert roll > 0.0
        assert pitch == 0.0
        assert yaw == 0.0
        assert not controller.altitude_pid.primed

    def test_position_outputs_bounded(self, controller):
        controller.update_position((100.0, -100.0), (0.0, 0.0), DT)
        x, z = controller.update_position((100.0, -100.0), (0.0, 0.0), DT)
        assert x == 0.5
        assert z == -0.5

    def test_altitude_output_bounded(self, controller):
        controller.update_altitude(50.0, 0.0, DT)
        assert controller.update_altitude(50.0, 0.0, DT) == 1.0

    def test_reset_resets_all_six(self, controller):
        controller.update_attitude((0.1, 0.1, 0.1), (0.0, 0.0, 0.0), DT)
        controller.update_altitude(1.0, 0.0, DT)
        controller.update_position((1.0, 1.0), (0.0, 0.0), DT)
        assert all(pid.primed for pid in controller.all_pids())

        controller.reset()
        assert len(controller.all_pids()) == 6
        assert not any(pid.primed for pid in controller.all_pids())
