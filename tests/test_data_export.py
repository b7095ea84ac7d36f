"""
Tests for the flight recorder and exporters.
"""

import json
import numpy as np
import pandas as pd
import pytest
from rotorsim.data_export import (
    FlightRecorder,
    snapshot_to_row,
    history_to_dataframe,
    export_flight_csv,
    export_json,
)
from rotorsim.dynamics import FlightDynamics
from rotorsim.state import ControlVector
from rotorsim.trim import compute_hover_trim


@pytest.fixture(scope="module")
def history():
    sim = FlightDynamics()
    trim = compute_hover_trim(sim.aircraft, sim.environment)
    sim.reset(trim.state)
    return sim.run(0.25, lambda state, t: ControlVector(throttle=trim.throttle, yaw=0.2))


class TestRows:

    def test_row_columns(self, history):
        row = snapshot_to_row(history[0])
        for column in ('time_s', 'x_m', 'altitude_m', 'z_m', 'roll_deg', 'battery_pct',
                       'throttle', 'mode', 'armed', 'collided'):
            assert column in row

    def test_row_values(self, history):
        snap = history[-1]
        row = snapshot_to_row(snap)
        assert row['time_s'] == snap.time
        assert row['altitude_m'] == snap.body.position[1]
        assert row['yaw_deg'] == pytest.approx(np.degrees(snap.body.yaw))
        assert row['mode'] == 'stabilize'
        assert row['armed'] is True

    def test_history_to_dataframe(self, history):
        df = history_to_dataframe(history)
        assert len(df) == len(history) == 30
        assert df['time_s'].is_monotonic_increasing


class TestRecorder:

    def test_ignores_snapshots_until_started(self, history):
        recorder = FlightRecorder()
        recorder.record(history[0])
        assert len(recorder) == 0

        recorder.start()
        for snap in history[:5]:
            recorder.record(snap)
        recorder.stop()
        recorder.record(history[5])
        assert len(recorder) == 5

    def test_toggle(self, history):
        recorder = FlightRecorder()
        recorder.toggle()
        assert recorder.is_recording
        recorder.record(history[0])
        recorder.toggle()
        assert not recorder.is_recording

        # Starting again clears the previous take
        recorder.toggle()
        assert len(recorder) == 0

    def test_to_dataframe(self, history):
        recorder = FlightRecorder()
        recorder.start()
        for snap in history:
            recorder.record(snap)
        df = recorder.to_dataframe()
        assert isinstance(df, pd.DataFrame)
        assert len(df) == len(history)


class TestCsvExport:

    def test_writes_header_and_rows(self, history, tmp_path):
        path = tmp_path / "flight.csv"
        export_flight_csv(history, str(path), metadata={'aircraft': 'Test Quad', 'seed': 3})

        text = path.read_text()
        assert text.startswith("# Multirotor Flight Log")
        assert "# aircraft: Test Quad" in text
        assert "# seed: 3" in text

        df = pd.read_csv(path, comment='#')
        assert len(df) == len(history)
        assert df['altitude_m'].iloc[0] == pytest.approx(history[0].body.position[1])

    def test_accepts_recorder(self, history, tmp_path):
        recorder = FlightRecorder()
        recorder.start()
        recorder.record(history[0])
        path = tmp_path / "one.csv"
        export_flight_csv(recorder, str(path))
        assert len(pd.read_csv(path, comment='#')) == 1

    def test_empty_log_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            export_flight_csv(FlightRecorder(), str(tmp_path / "empty.csv"))
        assert not (tmp_path / "empty.csv").exists()


class TestJsonExport:

    def test_writes_records(self, history, tmp_path):
        path = tmp_path / "flight.json"
        export_json(history_to_dataframe(history), str(path), metadata={'mode': 'stabilize'})

        data = json.loads(path.read_text())
        assert data['metadata'] == {'mode': 'stabilize'}
        assert data['n_points'] == len(history)
        assert data['data'][0]['mode'] == 'stabilize'

    def test_empty_log_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            export_json([], str(tmp_path / "empty.json"))
