"""
Tests for post-flight plots (rendered off-screen).
"""

import matplotlib
matplotlib.use('Agg')

import matplotlib.pyplot as plt
import pandas as pd
import pytest
from rotorsim.data_export import history_to_dataframe
from rotorsim.dynamics import FlightDynamics
from rotorsim.plotting import plot_flight_history, plot_ground_track, DEFAULT_VARIABLES
from rotorsim.state import ControlVector


@pytest.fixture(scope="module")
def flight_log():
    sim = FlightDynamics()
    sim.arm()
    history = sim.run(0.5, lambda state, t: ControlVector(throttle=0.6, pitch=0.2))
    sim.disarm()
    return history_to_dataframe(history)


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close('all')


class TestFlightHistory:

    def test_one_axis_per_variable(self, flight_log):
        fig = plot_flight_history(flight_log)
        assert len(fig.axes) == len(DEFAULT_VARIABLES)

    def test_unknown_columns_skipped(self, flight_log):
        fig = plot_flight_history(flight_log, variables=['altitude_m', 'not_a_column'])
        assert len(fig.axes) == 1

    def test_saves_png(self, flight_log, tmp_path):
        path = tmp_path / "history.png"
        plot_flight_history(flight_log, save_path=str(path))
        assert path.stat().st_size > 0

    def test_empty_log_rejected(self):
        with pytest.raises(ValueError):
            plot_flight_history(pd.DataFrame())

    def test_no_plottable_columns(self, flight_log):
        with pytest.raises(ValueError):
            plot_flight_history(flight_log, variables=['nope'])


class TestGroundTrack:

    def test_track_with_home(self, flight_log, tmp_path):
        path = tmp_path / "track.png"
        fig = plot_ground_track(flight_log, home_position=(0.0, 2.0, 0.0), save_path=str(path))
        labels = [t.get_text() for t in fig.axes[0].get_legend().get_texts()]
        assert labels == ['Track', 'Start', 'End', 'Home']
        assert path.exists()
