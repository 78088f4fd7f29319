"""Monotonic time sources.

Every time-dependent component (timers, settling checks, move timeouts,
state machine timeouts) reads the same clock, which is handed to it at
construction. `SimulatedClock` lets a host or a test step time explicitly.
"""

import time


class Clock:
    """Monotonic wall-clock time source."""

    def now(self) -> float:
        """Return the current time in seconds."""
        return time.monotonic()

    def now_millis(self) -> int:
        """Return the current time in milliseconds."""
        return int(self.now() * 1000)


class SimulatedClock(Clock):
    """Clock whose time only moves when told to.

    Attributes:
        current_time: Current simulated time (seconds).
    """

    def __init__(self, start: float = 0.0) -> None:
        """Initialize the simulated clock.

        Args:
            start: Initial time (seconds). Default: 0.0
        """
        self.current_time: float = start

    def now(self) -> float:
        return self.current_time

    def advance(self, dt: float) -> float:
        """Move time forward.

        Args:
            dt: Time step (seconds). Must not be negative.

        Returns:
            The new current time.

        Raises:
            ValueError: If dt is negative.
        """
        if dt < 0.0:
            raise ValueError(f"Cannot move a monotonic clock backwards (dt={dt})")
        self.current_time += dt
        return self.current_time

    def set_time(self, t: float) -> None:
        """Jump to an absolute time no earlier than the current one."""
        if t < self.current_time:
            raise ValueError(f"Cannot move a monotonic clock backwards ({t} < {self.current_time})")
        self.current_time = t
