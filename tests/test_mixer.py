"""
Tests for the motor mixer.
"""

import numpy as np
import pytest
from rotorsim.mixer import mix, apply_motor_lag, MotorMixer, QUAD_X_MIX
from rotorsim.state import ControlVector


FRONT_RIGHT, BACK_LEFT, FRONT_LEFT, BACK_RIGHT = range(4)


class TestQuadMix:

    def test_pure_throttle_is_uniform(self):
        speeds = mix(ControlVector(throttle=0.5), 4)
        np.testing.assert_array_almost_equal(speeds, [0.5] * 4)

    def test_sign_patterns_are_unique(self):
        rows = {tuple(row) for row in QUAD_X_MIX}
        assert len(rows) == 4

    def test_positive_pitch_speeds_up_rear_motors(self):
        speeds = mix(ControlVector(throttle=0.5, pitch=0.1), 4)
        assert speeds[BACK_LEFT] > speeds[FRONT_LEFT]
        assert speeds[BACK_RIGHT] > speeds[FRONT_RIGHT]

    def test_positive_roll_speeds_up_left_motors(self):
        speeds = mix(ControlVector(throttle=0.5, roll=0.1), 4)
        assert speeds[FRONT_LEFT] > speeds[FRONT_RIGHT]
        assert speeds[BACK_LEFT] > speeds[BACK_RIGHT]

    def test_yaw_is_differential_between_diagonals(self):
        speeds = mix(ControlVector(throttle=0.5, yaw=0.1), 4)
        assert speeds[FRONT_LEFT] == pytest.approx(speeds[BACK_RIGHT])
        assert speeds[FRONT_RIGHT] == pytest.approx(speeds[BACK_LEFT])
        assert speeds[FRONT_LEFT] > speeds[FRONT_RIGHT]

    def test_attitude_terms_cancel_in_total(self):
        speeds = mix(ControlVector(throttle=0.5, pitch=0.1, roll=-0.2, yaw=0.05), 4)
        assert speeds.sum() == pytest.approx(2.0)

    def test_outputs_clamped(self):
        speeds = mix(ControlVector(throttle=1.0, pitch=1.0, roll=1.0, yaw=1.0), 4)
        assert np.all(speeds >= 0.0)
        assert np.all(speeds <= 1.0)

    def test_out_of_range_input_is_clamped(self):
        speeds = mix(ControlVector(throttle=5.0, pitch=float('nan')), 4)
        np.testing.assert_array_equal(speeds, [1.0] * 4)


class TestUniformMix:

    @pytest.mark.parametrize("motor_count", [6, 8])
    def test_throttle_only(self, motor_count):
        speeds = mix(ControlVector(throttle=0.4, pitch=0.5, roll=-0.5, yaw=1.0), motor_count)
        assert len(speeds) == motor_count
        np.testing.assert_array_almost_equal(speeds, [0.4] * motor_count)


class TestMotorLag:

    def test_moves_toward_target(self):
        current = np.zeros(4)
        target = np.ones(4)
        updated = apply_motor_lag(current, target, 1.0 / 120.0, 20.0)
        np.testing.assert_array_almost_equal(updated, [20.0 / 120.0] * 4)

    def test_large_step_snaps_to_target(self):
        updated = apply_motor_lag(np.zeros(4), np.full(4, 0.7), 1.0, 20.0)
        np.testing.assert_array_almost_equal(updated, [0.7] * 4)

    def test_converges(self):
        speeds = np.zeros(4)
        target = np.full(4, 0.6)
        for _ in range(120):
            speeds = apply_motor_lag(speeds, target, 1.0 / 120.0)
        np.testing.assert_allclose(speeds, target, atol=1e-6)


class TestMotorMixer:

    def test_unsupported_motor_count(self):
        with pytest.raises(ValueError):
            MotorMixer(5)

    def test_update_applies_lag(self):
        mixer = MotorMixer(4)
        speeds = mixer.update(ControlVector(throttle=1.0), np.zeros(4), 1.0 / 120.0)
        assert np.all(speeds > 0.0)
        assert np.all(speeds < 1.0)

    def test_stop(self):
        np.testing.assert_array_equal(MotorMixer(6).stop(), np.zeros(6))
