"""Data collection and CSV logging for simulated autonomous runs.

This module provides CSV data logging for:
- Pose (odometry estimate and true field pose)
- Wheel and arm powers
- PID diagnostics (setpoint, error, integral, output) per controller
- Strategy state transitions
"""

import csv
import os
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, TextIO

from .config import TERM_BLUE, TERM_RESET


class DataCollector:
    """Manages CSV file creation and logging for a simulated run.

    Attributes:
        run_dir: Directory path for this run's output files.
        pose_output_path: Path of the pose CSV.
        power_output_path: Path of the wheel/arm power CSV.
        pid_output_path: Path of the PID diagnostics CSV.
        state_output_path: Path of the strategy state CSV.
    """

    def __init__(self, output_dir: str = ".", run_dir: Optional[str] = None) -> None:
        """Initialize the data collector.

        Args:
            output_dir: Base directory for output files (default: current directory).
            run_dir: Optional specific run directory. If None, creates timestamped
                directory. Can also be set via RUN_DIR environment variable.

        Raises:
            ValueError: If output_dir is not a valid directory.
        """
        output_path = Path(output_dir)
        if output_path.exists() and not output_path.is_dir():
            raise ValueError(f"Output path exists but is not a directory: {output_dir}")

        self.pose_csv_file: Optional[TextIO] = None
        self.pose_csv_writer: Any = None
        self.power_csv_file: Optional[TextIO] = None
        self.power_csv_writer: Any = None
        self.pid_csv_file: Optional[TextIO] = None
        self.pid_csv_writer: Any = None
        self.state_csv_file: Optional[TextIO] = None
        self.state_csv_writer: Any = None

        if run_dir:
            self.run_dir: Path = Path(run_dir)
        elif env_run_dir := os.environ.get("RUN_DIR"):
            self.run_dir = Path(env_run_dir)
        else:
            # Create timestamped directory: results/run_YYYYMMDD_HHMMSS/
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.run_dir = output_path / "results" / f"run_{timestamp}"

        self.run_dir.mkdir(parents=True, exist_ok=True)

        self.pose_output_path: Path = self.run_dir / "pose_data.csv"
        self.power_output_path: Path = self.run_dir / "power_data.csv"
        self.pid_output_path: Path = self.run_dir / "pid_data.csv"
        self.state_output_path: Path = self.run_dir / "state_data.csv"

    def setup(self) -> None:
        """Initialize CSV files with headers.

        Must be called before writing data.
        """
        self.pose_csv_file = open(self.pose_output_path, "w", newline="")
        self.pose_csv_writer = csv.writer(self.pose_csv_file)
        self.pose_csv_writer.writerow(
            ["timestamp", "x", "y", "heading", "field_x", "field_y", "field_heading"]
        )

        self.power_csv_file = open(self.power_output_path, "w", newline="")
        self.power_csv_writer = csv.writer(self.power_csv_file)
        self.power_csv_writer.writerow(["timestamp", "left_power", "right_power", "arm_power"])

        self.pid_csv_file = open(self.pid_output_path, "w", newline="")
        self.pid_csv_writer = csv.writer(self.pid_csv_file)
        self.pid_csv_writer.writerow(
            ["timestamp", "controller", "setpoint", "error", "integral", "output", "on_target"]
        )

        self.state_csv_file = open(self.state_output_path, "w", newline="")
        self.state_csv_writer = csv.writer(self.state_csv_file)
        self.state_csv_writer.writerow(["timestamp", "elapsed_time", "strategy", "state"])

        print(f"{TERM_BLUE}✓ Initialized data collection to {self.run_dir}/{TERM_RESET}")

    def log_pose(
        self,
        timestamp: float,
        x: float,
        y: float,
        heading: float,
        field_x: float,
        field_y: float,
        field_heading: float,
    ) -> None:
        """Log odometry and true pose to CSV.

        Args:
            timestamp: Current time (seconds).
            x: Odometry strafe distance (inches).
            y: Odometry forward distance (inches).
            heading: Gyro heading (degrees).
            field_x: True field x (inches).
            field_y: True field y (inches).
            field_heading: True heading (degrees).
        """
        self.pose_csv_writer.writerow([timestamp, x, y, heading, field_x, field_y, field_heading])

    def log_wheel_powers(self, timestamp: float, wheel_powers: Sequence[float], arm_power: float) -> None:
        """Log drive and arm powers to CSV.

        Args:
            timestamp: Current time (seconds).
            wheel_powers: (left, right) powers; on a four-motor base the
                front wheels are logged.
            arm_power: Arm motor power.
        """
        self.power_csv_writer.writerow([timestamp, wheel_powers[0], wheel_powers[1], arm_power])

    def log_pid(self, timestamp: float, controller: str, diagnostics: Dict[str, float]) -> None:
        """Log one controller's diagnostics to CSV.

        Args:
            timestamp: Current time (seconds).
            controller: Controller name.
            diagnostics: Dictionary from PidController.get_diagnostics() with keys:
                'setpoint', 'error', 'integral', 'output', 'on_target'
        """
        self.pid_csv_writer.writerow(
            [
                timestamp,
                controller,
                diagnostics["setpoint"],
                diagnostics["error"],
                diagnostics["integral"],
                diagnostics["output"],
                diagnostics["on_target"],
            ]
        )

    def log_state_transition(
        self, timestamp: float, elapsed_time: float, strategy: str, state: Optional[Enum]
    ) -> None:
        """Log a strategy state change to CSV.

        Args:
            timestamp: Current time (seconds).
            elapsed_time: Seconds since the run started.
            strategy: Strategy name.
            state: New state, or None once the strategy has stopped.
        """
        state_name = state.value if state is not None else "stopped"
        self.state_csv_writer.writerow([timestamp, elapsed_time, strategy, state_name])
        if self.state_csv_file:
            self.state_csv_file.flush()

    def cleanup(self) -> None:
        """Close all CSV files and log final output location."""
        for csv_file in (self.pose_csv_file, self.power_csv_file, self.pid_csv_file, self.state_csv_file):
            if csv_file:
                csv_file.close()

        print(f"{TERM_BLUE}✓ Saved run data to {self.run_dir}/{TERM_RESET}")

    def __enter__(self) -> "DataCollector":
        """Context manager entry point.

        Returns:
            Self reference for use in with statement.
        """
        self.setup()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit point - ensures cleanup is called."""
        self.cleanup()
