"""
Run options for the simulated autonomous runner.

This module defines which strategy runs, for how long, and how the run is
clocked and recorded, parsed from command-line flags.
"""

import argparse
import sys
from dataclasses import dataclass
from typing import Optional

from .config import RUN_DURATION, SONAR_DROPOUT_PROBABILITY
from .strategies import STRATEGIES


@dataclass
class RunOptions:
    """Configuration for one autonomous run."""

    strategy: str = "park"  # Strategy name (see strategies.STRATEGIES)
    duration: float = RUN_DURATION  # Maximum run length (seconds)
    delay: float = 0.0  # Delay before the first move (seconds)
    seed: Optional[int] = None  # Sensor noise seed; None is nondeterministic
    sonar_dropout: float = SONAR_DROPOUT_PROBABILITY  # Probability of a zero sonar sample
    realtime: bool = False  # If True, pace the loop on the wall clock
    save_data: bool = False  # If True, write CSVs to output_dir/results/
    output_dir: str = "."

    def __post_init__(self):
        if self.strategy not in STRATEGIES:
            raise ValueError(f"Unknown strategy {self.strategy!r}, choose from {sorted(STRATEGIES)}")
        if self.duration <= 0.0:
            raise ValueError(f"Run duration must be positive, got {self.duration}")
        if self.delay < 0.0:
            raise ValueError(f"Start delay must not be negative, got {self.delay}")
        if not 0.0 <= self.sonar_dropout < 1.0:
            raise ValueError(f"Sonar dropout probability must be in [0, 1), got {self.sonar_dropout}")

    def __str__(self):
        """Human-readable description of the run."""
        parts = [f"{self.strategy} ({self.duration:.0f}s max)"]
        if self.delay > 0.0:
            parts.append(f"delay {self.delay:.1f}s")
        parts.append("real time" if self.realtime else "simulated time")
        if self.seed is not None:
            parts.append(f"seed {self.seed}")
        if self.save_data:
            parts.append("recording")
        return " → ".join(parts)

    def to_dict(self):
        """Convert to dictionary for logging."""
        return {
            'strategy': self.strategy,
            'duration': self.duration,
            'delay': self.delay,
            'seed': self.seed,
            'sonar_dropout': self.sonar_dropout,
            'realtime': self.realtime,
            'save_data': self.save_data,
            'output_dir': self.output_dir,
        }


def parse_run_options(args=None):
    """
    Parse command-line flags into run options.

    Args:
        args: List of command-line arguments (default: sys.argv[1:])

    Returns:
        tuple: (RunOptions, remaining_args)
            - RunOptions with the requested settings
            - List of remaining arguments not consumed

    Raises:
        ValueError: If a flag value is out of range.
    """
    parser = argparse.ArgumentParser(add_help=False)

    parser.add_argument('--strategy', choices=sorted(STRATEGIES), default='park',
                        help='Autonomous strategy to run')
    parser.add_argument('--duration', type=float, default=RUN_DURATION,
                        help='Maximum run length in seconds')
    parser.add_argument('--delay', type=float, default=0.0,
                        help='Delay before the first move in seconds')
    parser.add_argument('--seed', type=int, default=None,
                        help='Seed for sensor noise and sonar dropouts')
    parser.add_argument('--sonar-dropout', type=float, default=SONAR_DROPOUT_PROBABILITY,
                        help='Probability that a sonar sample reads zero')
    parser.add_argument('--realtime', action='store_true',
                        help='Pace the control loop on the wall clock instead of simulated time')
    parser.add_argument('--save', action='store_true',
                        help='Record pose, power, PID and state CSVs')
    parser.add_argument('--output-dir', type=str, default='.',
                        help='Base directory for recorded runs (default: current directory)')

    if args is None:
        args = sys.argv[1:]

    known_args, remaining_args = parser.parse_known_args(args)

    options = RunOptions(
        strategy=known_args.strategy,
        duration=known_args.duration,
        delay=known_args.delay,
        seed=known_args.seed,
        sonar_dropout=known_args.sonar_dropout,
        realtime=known_args.realtime,
        save_data=known_args.save,
        output_dir=known_args.output_dir,
    )

    return options, remaining_args
