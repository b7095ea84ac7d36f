"""
Flight Recorder and Data Export

Records published simulation snapshots and exports them for analysis:
- pandas DataFrame for in-process analysis and plotting
- CSV with a commented metadata header
- JSON for web tools
"""

import json
import logging
import numpy as np
import pandas as pd
from datetime import datetime
from typing import Any, Dict, List, Optional

from .state import SimulationSnapshot


logger = logging.getLogger(__name__)


def snapshot_to_row(snapshot: SimulationSnapshot) -> Dict[str, Any]:
    """Flatten a snapshot into one telemetry row."""
    body = snapshot.body
    roll, pitch, yaw = np.degrees(body.euler_angles)

    return {
        'time_s': body.timestamp,
        'x_m': body.position[0],
        'altitude_m': body.position[1],
        'z_m': body.position[2],
        'speed_m_s': body.speed,
        'climb_rate_m_s': body.climb_rate,
        'roll_deg': roll,
        'pitch_deg': pitch,
        'yaw_deg': yaw,
        'battery_pct': snapshot.battery.percentage,
        'voltage_v': snapshot.battery.voltage,
        'current_a': snapshot.battery.current_draw,
        'throttle': snapshot.controls.throttle,
        'pitch_cmd': snapshot.controls.pitch,
        'roll_cmd': snapshot.controls.roll,
        'yaw_cmd': snapshot.controls.yaw,
        'mode': snapshot.mode,
        'armed': snapshot.armed,
        'collided': snapshot.collided,
    }


class FlightRecorder:
    """Collects telemetry rows while recording is on."""

    def __init__(self):
        self.is_recording = False
        self.rows: List[Dict[str, Any]] = []

    def start(self):
        """Start a fresh recording."""
        self.is_recording = True
        self.rows = []
        logger.info("Flight recorder started")

    def stop(self):
        if not self.is_recording:
            return
        self.is_recording = False
        logger.info("Flight recorder stopped (%d rows)", len(self.rows))

    def toggle(self):
        if self.is_recording:
            self.stop()
        else:
            self.start()

    def record(self, snapshot: SimulationSnapshot):
        """Append one snapshot; ignored while not recording."""
        if not self.is_recording:
            return
        self.rows.append(snapshot_to_row(snapshot))

    def __len__(self) -> int:
        return len(self.rows)

    def to_dataframe(self) -> pd.DataFrame:
        """Recorded rows as a DataFrame (one row per snapshot)."""
        return pd.DataFrame(self.rows)


def history_to_dataframe(history: List[SimulationSnapshot]) -> pd.DataFrame:
    """Convert a FlightDynamics.run() history to a DataFrame."""
    return pd.DataFrame([snapshot_to_row(s) for s in history])


def export_flight_csv(
    data,
    filename: str,
    metadata: Optional[Dict[str, Any]] = None
) -> None:
    """
    Export a flight log to CSV.

    Args:
        data: FlightRecorder, DataFrame or list of snapshots
        filename: Output filename
        metadata: Optional metadata dictionary for header
    """
    if isinstance(data, FlightRecorder):
        df = data.to_dataframe()
    elif isinstance(data, pd.DataFrame):
        df = data
    else:
        df = history_to_dataframe(list(data))

    if df.empty:
        raise ValueError("Flight log is empty")

    with open(filename, 'w') as f:
        f.write("# Multirotor Flight Log\n")
        f.write(f"# Generated: {datetime.now().isoformat()}\n")

        if metadata:
            for key, value in metadata.items():
                f.write(f"# {key}: {value}\n")

        f.write("#\n")
        f.write("# Units: m, s, m/s, deg, %, V, A\n")
        f.write("# World frame: Y up; altitude_m is world Y\n")
        f.write("# Commands: throttle [0, 1]; pitch/roll/yaw [-1, 1]\n")
        f.write("#\n")

        df.to_csv(f, index=False)

    logger.info("Exported %d records to %s", len(df), filename)


def export_json(
    data,
    filename: str,
    metadata: Optional[Dict[str, Any]] = None
) -> None:
    """
    Export to JSON for web visualization or further processing.

    Args:
        data: FlightRecorder, DataFrame or list of snapshots
        filename: Output filename
        metadata: Optional metadata
    """
    if isinstance(data, FlightRecorder):
        records = data.rows
    elif isinstance(data, pd.DataFrame):
        records = data.to_dict(orient='records')
    else:
        records = [snapshot_to_row(s) for s in data]

    if not records:
        raise ValueError("Flight log is empty")

    output = {
        'metadata': metadata or {},
        'generated': datetime.now().isoformat(),
        'n_points': len(records),
        'data': records
    }

    with open(filename, 'w') as f:
        json.dump(output, f, indent=2,
                  default=lambda x: x.tolist() if isinstance(x, np.ndarray) else
                  x.item() if isinstance(x, np.generic) else str(x))

    logger.info("Exported %d records to %s", len(records), filename)
