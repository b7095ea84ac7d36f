"""
Plotting Module

Post-flight plots from recorded telemetry:
- Time histories (altitude, attitude, commands, battery)
- Ground track with the home position

Takes the DataFrames produced by data_export.
"""

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from typing import List, Optional, Sequence


PLOT_STYLE = {
    'figure.figsize': (10, 6),
    'figure.dpi': 100,
    'font.size': 10,
    'axes.labelsize': 11,
    'axes.titlesize': 12,
    'legend.fontsize': 9,
    'lines.linewidth': 1.5,
    'grid.alpha': 0.3
}

VARIABLE_LABELS = {
    'altitude_m': 'Altitude (m)',
    'speed_m_s': 'Speed (m/s)',
    'climb_rate_m_s': 'Climb rate (m/s)',
    'roll_deg': 'Roll (deg)',
    'pitch_deg': 'Pitch (deg)',
    'yaw_deg': 'Yaw (deg)',
    'battery_pct': 'Battery (%)',
    'voltage_v': 'Voltage (V)',
    'current_a': 'Current (A)',
    'throttle': 'Throttle',
    'pitch_cmd': 'Pitch cmd',
    'roll_cmd': 'Roll cmd',
    'yaw_cmd': 'Yaw cmd',
}

DEFAULT_VARIABLES = ['altitude_m', 'roll_deg', 'pitch_deg', 'throttle', 'battery_pct']


def setup_plot_style():
    plt.rcParams.update(PLOT_STYLE)


def plot_flight_history(
    df: pd.DataFrame,
    variables: Optional[List[str]] = None,
    title: str = "Flight Time History",
    save_path: Optional[str] = None
) -> plt.Figure:
    """
    Plot time history of flight variables.

    Args:
        df: Telemetry DataFrame (see data_export.snapshot_to_row)
        variables: Columns to plot, one subplot each
        title: Plot title
        save_path: Optional save path

    Returns:
        Figure
    """
    if df.empty:
        raise ValueError("Nothing to plot: flight log is empty")

    setup_plot_style()
    variables = [v for v in (variables or DEFAULT_VARIABLES) if v in df.columns]
    if not variables:
        raise ValueError("None of the requested variables are in the flight log")

    n_vars = len(variables)
    fig, axes = plt.subplots(n_vars, 1, figsize=(10, 2.2 * n_vars), sharex=True)
    axes = np.atleast_1d(axes)

    time = df['time_s'].values
    for ax, var in zip(axes, variables):
        ax.plot(time, df[var].values, 'b-')
        ax.set_ylabel(VARIABLE_LABELS.get(var, var))
        ax.grid(True)

    # Shade disarmed stretches
    if 'armed' in df.columns:
        disarmed = ~df['armed'].astype(bool).values
        if disarmed.any():
            for ax in axes:
                ax.fill_between(time, 0, 1, where=disarmed, color='gray', alpha=0.15,
                                transform=ax.get_xaxis_transform())

    axes[-1].set_xlabel('Time (s)')
    fig.suptitle(title)
    fig.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig


def plot_ground_track(
    df: pd.DataFrame,
    home_position: Optional[Sequence[float]] = None,
    title: str = "Ground Track",
    save_path: Optional[str] = None
) -> plt.Figure:
    """
    Plot the horizontal path (x against z) with start, end and home.
    """
    if df.empty:
        raise ValueError("Nothing to plot: flight log is empty")

    setup_plot_style()
    fig, ax = plt.subplots(figsize=(7, 7))

    x = df['x_m'].values
    z = df['z_m'].values
    ax.plot(x, z, 'b-', label='Track')
    ax.plot(x[0], z[0], 'go', label='Start')
    ax.plot(x[-1], z[-1], 'rs', label='End')

    if home_position is not None:
        ax.plot(home_position[0], home_position[2], 'k*', markersize=12, label='Home')

    ax.set_xlabel('X (m)')
    ax.set_ylabel('Z (m)')
    ax.set_aspect('equal', adjustable='datalim')
    ax.grid(True)
    ax.legend()
    ax.set_title(title)
    fig.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig
