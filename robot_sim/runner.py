#!/usr/bin/env python3
"""
Autonomous Runner for the Simulated Robot

This module builds the simulated robot, runs one autonomous strategy under
the mode host (in simulated time by default, or paced in real time), and
optionally records the run to CSV files for plotting.
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Any, Dict, List, Optional

from motion_core.clock import Clock, SimulatedClock
from motion_core.host import ModeRunner
from motion_core.scheduler import RunMode, Scheduler

from .config import TERM_BLUE, TERM_RESET
from .data_collector import DataCollector
from .robot import SimRobot
from .run_options import RunOptions, parse_run_options
from .strategies import AutonomousMode, create_strategy


class CustomFormatter(logging.Formatter):
    """Custom logging formatter that removes timestamps from INFO messages.

    INFO lines print bare for clean console output; WARNING, ERROR and DEBUG
    lines keep their timestamp and level.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record based on its level.

        Args:
            record: The log record to format.

        Returns:
            Formatted log message string.
        """
        if record.levelno == logging.INFO:
            return record.getMessage()
        return f"{self.formatTime(record, self.datefmt)} - {record.levelname} - {record.getMessage()}"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbose: If True, show all levels with timestamps. If False, show INFO
                 without timestamps and WARNING/ERROR with timestamps.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        handler = logging.StreamHandler()
        formatter = CustomFormatter(datefmt="%Y-%m-%d %H:%M:%S")
        handler.setFormatter(formatter)
        logger = logging.getLogger()
        logger.setLevel(logging.INFO)
        logger.addHandler(handler)


async def run_realtime(runner: ModeRunner, duration: float, until) -> int:
    """Run the mode on the wall clock until done, timed out or interrupted."""
    loop = asyncio.get_running_loop()

    def signal_handler() -> None:
        """Handle shutdown signals (SIGINT, SIGTERM)."""
        logging.info("\nShutdown signal received...")
        runner.request_stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    return await runner.run(duration, until=until)


def run_autonomous(options: RunOptions) -> Dict[str, Any]:
    """Build the robot, run one strategy and summarize the result.

    Args:
        options: Run configuration.

    Returns:
        Summary with the strategy outcome, run time and final poses.
    """
    clock = Clock() if options.realtime else SimulatedClock()
    scheduler = Scheduler(clock)
    robot = SimRobot(scheduler, seed=options.seed, sonar_dropout=options.sonar_dropout)
    strategy = create_strategy(options.strategy, robot, options.delay)
    collector = DataCollector(options.output_dir) if options.save_data else None
    mode = AutonomousMode(robot, strategy, collector)
    runner = ModeRunner(scheduler, mode, RunMode.AUTO, dashboard=robot.dashboard)

    logging.info(f"{TERM_BLUE}Run configuration: {options}{TERM_RESET}")

    try:
        if collector is not None:
            collector.setup()
        if options.realtime:
            periods = asyncio.run(run_realtime(runner, options.duration, strategy.is_done))
        else:
            periods = runner.run_simulated(options.duration, until=strategy.is_done)
    finally:
        if collector is not None:
            collector.cleanup()

    summary = {
        "strategy": options.strategy,
        "completed": strategy.is_done(),
        "periods": periods,
        "run_time": periods * runner.period,
        "odometry": (
            robot.drive_base.get_x_position(),
            robot.drive_base.get_y_position(),
            robot.drive_base.get_heading(),
        ),
        "field_pose": (
            robot.drivetrain.field_x,
            robot.drivetrain.field_y,
            robot.drivetrain.field_heading,
        ),
        "arm_position": robot.arm.get_position(),
        "sonar_dropouts": robot.sonar_dropouts,
    }

    status = "completed" if summary["completed"] else "did not complete"
    logging.info(f"{TERM_BLUE}\033[1m→ {options.strategy} {status} in {summary['run_time']:.2f}s{TERM_RESET}")
    x, y, heading = summary["field_pose"]
    logging.info(f"  Field pose: x={x:.1f}in y={y:.1f}in heading={heading:.1f}°")
    logging.info(f"  Arm: {summary['arm_position']:.1f}°  Sonar dropouts filtered: {robot.sonar_dropouts}")
    return summary


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line entry point.

    Returns:
        Process exit code: 0 if the strategy completed (or the run was
        interrupted), 1 if it ran out of time, 2 if the options were invalid.
    """
    try:
        options, remaining_args = parse_run_options(argv)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    parser = argparse.ArgumentParser(
        description="Run an autonomous strategy on the simulated robot"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging with timestamps"
    )
    args = parser.parse_args(remaining_args)

    setup_logging(args.verbose)

    try:
        summary = run_autonomous(options)
    except KeyboardInterrupt:
        logging.info("\nExiting...")
        return 0
    return 0 if summary["completed"] else 1


if __name__ == "__main__":
    sys.exit(main())
