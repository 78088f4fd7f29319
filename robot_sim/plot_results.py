#!/usr/bin/env python3
"""
Standalone script to visualize recorded autonomous runs.

This script loads the pose, power, PID and state CSVs from a run directory
and plots the field trajectory, heading, motor powers and PID errors, with
strategy state transitions marked on the time axes.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, Optional

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.axes import Axes
from matplotlib.figure import Figure

from .config import LINE_WIDTH, LINE_Y, TERM_BLUE, TERM_RESET, WALL_Y
from .plot_styles import (
    PLOT_BLUE,
    PLOT_ORANGE,
    PLOT_TAUPE,
    PLOT_YELLOW_ORANGE,
    add_legend,
    create_figure,
    load_csv_to_dict,
    save_figure,
    style_axis,
)

RunData = Dict[str, Dict[str, np.ndarray]]


def load_run_data(run_dir: Path) -> RunData:
    """Load every CSV of a run.

    Args:
        run_dir: Run directory written by DataCollector.

    Returns:
        Dictionary with 'pose', 'power', 'pid' and 'state' tables.

    Raises:
        FileNotFoundError: If the pose CSV is missing.
    """
    data: RunData = {"pose": load_csv_to_dict(run_dir / "pose_data.csv")}
    optional = {
        "power": ("power_data.csv", ()),
        "pid": ("pid_data.csv", ("controller",)),
        "state": ("state_data.csv", ("strategy", "state")),
    }
    for key, (filename, text_columns) in optional.items():
        path = run_dir / filename
        if path.exists():
            data[key] = load_csv_to_dict(path, text_columns)
    return data


def mark_state_transitions(ax: Axes, data: RunData, t0: float) -> None:
    """Draw a vertical line at every strategy state change."""
    if "state" not in data:
        return
    state = data["state"]
    for timestamp, name in zip(state["timestamp"], state["state"]):
        ax.axvline(timestamp - t0, color=PLOT_YELLOW_ORANGE, linestyle=":", linewidth=1.0, alpha=0.8)
        ax.annotate(
            name,
            xy=(timestamp - t0, 1.0),
            xycoords=("data", "axes fraction"),
            rotation=90,
            fontsize=7,
            va="top",
            color=PLOT_TAUPE,
        )


def plot_trajectory(ax: Axes, data: RunData) -> None:
    """Plot the true field path with the line and wall."""
    pose = data["pose"]
    ax.axhspan(LINE_Y - LINE_WIDTH / 2.0, LINE_Y + LINE_WIDTH / 2.0, color=PLOT_TAUPE, alpha=0.3, label="Line")
    ax.axhline(WALL_Y, color="k", linewidth=3, label="Wall")
    ax.plot(pose["field_x"], pose["field_y"], color=PLOT_ORANGE, linewidth=2, label="Robot")
    if len(pose["field_x"]):
        ax.plot(pose["field_x"][0], pose["field_y"][0], "go", markersize=8, label="Start")
        ax.plot(pose["field_x"][-1], pose["field_y"][-1], "r*", markersize=12, label="End")
    ax.set_aspect("equal", adjustable="datalim")
    style_axis(ax, title="Field Trajectory", xlabel="X (in)", ylabel="Y (in)")
    add_legend(ax)


def plot_heading(ax: Axes, data: RunData, t0: float) -> None:
    """Plot gyro heading against the true heading."""
    pose = data["pose"]
    t = pose["timestamp"] - t0
    ax.plot(t, pose["field_heading"], color=PLOT_BLUE, linewidth=2, label="True")
    ax.plot(t, pose["heading"], color=PLOT_ORANGE, linestyle="--", linewidth=1.5, label="Gyro")
    mark_state_transitions(ax, data, t0)
    style_axis(ax, title="Heading", xlabel="Time (s)", ylabel="Heading (deg)")
    add_legend(ax)


def plot_powers(ax: Axes, data: RunData, t0: float) -> None:
    """Plot drive and arm powers over time."""
    if "power" not in data:
        ax.set_visible(False)
        return
    power = data["power"]
    t = power["timestamp"] - t0
    ax.plot(t, power["left_power"], color=PLOT_ORANGE, label="Left")
    ax.plot(t, power["right_power"], color=PLOT_BLUE, label="Right")
    ax.plot(t, power["arm_power"], color=PLOT_TAUPE, label="Arm")
    ax.set_ylim(-1.1, 1.1)
    mark_state_transitions(ax, data, t0)
    style_axis(ax, title="Motor Powers", xlabel="Time (s)", ylabel="Power")
    add_legend(ax)


def plot_pid_errors(ax: Axes, data: RunData, t0: float) -> None:
    """Plot each controller's error while it was running."""
    if "pid" not in data:
        ax.set_visible(False)
        return
    pid = data["pid"]
    colors = [PLOT_ORANGE, PLOT_BLUE, PLOT_TAUPE, PLOT_YELLOW_ORANGE]
    for i, name in enumerate(sorted(set(pid["controller"]))):
        mask = pid["controller"] == name
        ax.plot(
            pid["timestamp"][mask] - t0,
            pid["error"][mask],
            ".",
            markersize=3,
            color=colors[i % len(colors)],
            label=name,
        )
    mark_state_transitions(ax, data, t0)
    style_axis(ax, title="PID Errors", xlabel="Time (s)", ylabel="Error")
    add_legend(ax)


def plot_run_summary(run_dir: Path, save_plots: bool = False, show_plots: bool = True) -> Optional[Figure]:
    """Plot a four-panel summary of a run.

    Args:
        run_dir: Run directory.
        save_plots: Save the figure as run_summary.png in the run directory.
        show_plots: Display the figure interactively.

    Returns:
        The figure, unless it was shown and closed.
    """
    data = load_run_data(run_dir)
    t0 = data["pose"]["timestamp"][0] if len(data["pose"]["timestamp"]) else 0.0

    fig, axes = create_figure(2, 2, figsize=(14, 10), title=f"Run Summary: {run_dir.name}")
    plot_trajectory(axes[0, 0], data)
    plot_heading(axes[0, 1], data, t0)
    plot_powers(axes[1, 0], data, t0)
    plot_pid_errors(axes[1, 1], data, t0)
    fig.tight_layout()

    if save_plots:
        save_figure(fig, run_dir / "run_summary.png")
    if show_plots:
        plt.show()
        return None
    return fig


def find_latest_run(results_dir: Path) -> Path:
    """Find the most recent run directory.

    Args:
        results_dir: Path to the results directory.

    Returns:
        Path to the most recent run directory.

    Raises:
        FileNotFoundError: If no run directories are found.
    """
    if not results_dir.exists():
        raise FileNotFoundError(f"Results directory not found: {results_dir}")

    run_dirs = sorted(
        [d for d in results_dir.iterdir() if d.is_dir() and d.name.startswith("run_")]
    )

    if not run_dirs:
        raise FileNotFoundError(f"No run directories found in {results_dir}")

    return run_dirs[-1]


def list_available_runs(results_dir: Path) -> None:
    """List all available run directories.

    Args:
        results_dir: Path to the results directory.
    """
    if not results_dir.exists():
        logging.error(f"Results directory not found: {results_dir}")
        return

    run_dirs = sorted(
        [d for d in results_dir.iterdir() if d.is_dir() and d.name.startswith("run_")]
    )

    if not run_dirs:
        logging.info(f"No run directories found in {results_dir}")
        return

    logging.info("Available runs:")
    for i, run_dir in enumerate(run_dirs, 1):
        logging.info(f"  {i}. {run_dir.name}")


def main() -> None:
    """Main entry point for the plotting script."""
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    parser = argparse.ArgumentParser(
        description="Visualize recorded autonomous runs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Plot the most recent run
  python -m robot_sim.plot_results

  # Plot a specific run by name
  python -m robot_sim.plot_results --run run_20261018_101500

  # Save the summary without opening a window
  python -m robot_sim.plot_results --save --no-show

  # List all available runs
  python -m robot_sim.plot_results --list
        """,
    )

    parser.add_argument(
        "--run",
        type=str,
        default=None,
        help="Name of the run directory to plot. If not specified, plots the most recent run.",
    )
    parser.add_argument(
        "--results-dir",
        type=str,
        default="results",
        help="Path to the results directory (default: results)",
    )
    parser.add_argument(
        "--save", action="store_true", help="Save the summary as PNG in the run directory"
    )
    parser.add_argument(
        "--no-show",
        action="store_true",
        help="Do not display plots interactively (useful with --save)",
    )
    parser.add_argument("--list", action="store_true", help="List all available runs and exit")

    args = parser.parse_args()

    results_dir = Path(args.results_dir)

    if args.list:
        list_available_runs(results_dir)
        return

    if args.run:
        run_dir = results_dir / args.run
        if not run_dir.exists():
            logging.error(f"Error: Run directory not found: {run_dir}")
            logging.info("\nAvailable runs:")
            list_available_runs(results_dir)
            sys.exit(1)
    else:
        try:
            run_dir = find_latest_run(results_dir)
            logging.info(f"{TERM_BLUE}Plotting most recent run: {run_dir}{TERM_RESET}")
        except FileNotFoundError as e:
            logging.error(f"Error: {e}")
            sys.exit(1)

    try:
        plot_run_summary(run_dir=run_dir, save_plots=args.save, show_plots=not args.no_show)
    except FileNotFoundError as e:
        logging.error(f"Error: {e}")
        logging.info(f"Make sure {run_dir} contains pose_data.csv")
        sys.exit(1)
    except Exception as e:
        logging.error(f"Error generating plots: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
