"""Mode host: calls the scheduler once per fixed period.

A robot program is a RobotMode. The ModeRunner starts it, then every period
dispatches the phases around the mode's own logic:

    PRE_PERIODIC -> run_periodic -> POST_PERIODIC ->
    PRE_CONTINUOUS -> run_continuous -> POST_CONTINUOUS

and finally stops it. `run` paces periods in real time with asyncio;
`run_simulated` steps a SimulatedClock instead, so a whole autonomous run
completes instantly and deterministically.
"""

import asyncio
import logging
from typing import Callable, Optional

from .clock import SimulatedClock
from .config import LOOP_PERIOD
from .dashboard import Dashboard
from .scheduler import Phase, RunMode, Scheduler


class RobotMode:
    """Base class for robot programs run by a ModeRunner.

    Subclasses override whichever hooks they need; the defaults do nothing.
    """

    def start_mode(self, run_mode: RunMode) -> None:
        """Called once before the first period."""

    def stop_mode(self, run_mode: RunMode) -> None:
        """Called once after the last period."""

    def run_periodic(self, elapsed_time: float) -> None:
        """Bounded per-period logic, e.g. reading driver input."""

    def run_continuous(self, elapsed_time: float) -> None:
        """Per-period logic such as stepping an autonomous sequence."""


class ModeRunner:
    """Runs one RobotMode against a Scheduler.

    Attributes:
        scheduler: Scheduler whose phases are dispatched.
        mode: Robot program.
        run_mode: Run mode passed to every scheduled callback.
        period: Loop period in seconds.
        dashboard: Optional dashboard refreshed once per period.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        mode: RobotMode,
        run_mode: RunMode = RunMode.AUTO,
        period: float = LOOP_PERIOD,
        dashboard: Optional[Dashboard] = None,
    ):
        if period <= 0.0:
            raise ValueError(f"Loop period must be positive, got {period}")
        self.scheduler = scheduler
        self.clock = scheduler.clock
        self.mode = mode
        self.run_mode = run_mode
        self.period = period
        self.dashboard = dashboard
        self.start_time = 0.0
        self.period_count = 0
        self.running = False
        self.should_stop = False

    def elapsed_time(self) -> float:
        """Seconds since `start`, on the scheduler's clock."""
        return self.clock.now() - self.start_time if self.running else 0.0

    def start(self) -> None:
        """Start the mode and run the START phase."""
        self.start_time = self.clock.now()
        self.period_count = 0
        self.running = True
        self.should_stop = False
        logging.info(f"Starting {type(self.mode).__name__} in {self.run_mode.value} mode")
        self.mode.start_mode(self.run_mode)
        self.scheduler.run_phase(Phase.START, self.run_mode)

    def stop(self) -> None:
        """Run the STOP phase and stop the mode."""
        if not self.running:
            return
        self.scheduler.run_phase(Phase.STOP, self.run_mode)
        self.mode.stop_mode(self.run_mode)
        logging.info(
            f"Stopped {type(self.mode).__name__} after {self.elapsed_time():.2f}s "
            f"({self.period_count} periods)"
        )
        self.running = False

    def request_stop(self) -> None:
        """Ask a running loop to finish after the current period."""
        self.should_stop = True

    def run_period(self) -> None:
        """Dispatch one period's phases around the mode's logic."""
        elapsed = self.elapsed_time()

        self.scheduler.run_phase(Phase.PRE_PERIODIC, self.run_mode)
        self._run_mode_hook(self.mode.run_periodic, elapsed)
        self.scheduler.run_phase(Phase.POST_PERIODIC, self.run_mode)

        self.scheduler.run_phase(Phase.PRE_CONTINUOUS, self.run_mode)
        self._run_mode_hook(self.mode.run_continuous, elapsed)
        self.scheduler.run_phase(Phase.POST_CONTINUOUS, self.run_mode)

        if self.dashboard is not None:
            self.dashboard.refresh_display()
        self.period_count += 1

    def run_simulated(self, duration: float, until: Optional[Callable[[], bool]] = None) -> int:
        """Run start, periods and stop on a simulated clock.

        Args:
            duration: Seconds of simulated time to run for.
            until: Optional predicate checked after each period; the run
                ends early once it returns True.

        Returns:
            Number of periods run.

        Raises:
            ValueError: If the scheduler's clock is not a SimulatedClock.
        """
        if not isinstance(self.clock, SimulatedClock):
            raise ValueError("run_simulated needs a scheduler built on a SimulatedClock")

        self.start()
        try:
            while not self.should_stop and self.elapsed_time() < duration:
                self.run_period()
                if until is not None and until():
                    break
                self.clock.advance(self.period)
        finally:
            self.stop()
        return self.period_count

    async def run(self, duration: float = 0.0, until: Optional[Callable[[], bool]] = None) -> int:
        """Run start, periods and stop, paced in real time.

        Args:
            duration: Seconds to run for. Zero runs until `request_stop`.
            until: Optional predicate checked after each period; the run
                ends early once it returns True.

        Returns:
            Number of periods run.
        """
        self.start()
        try:
            next_time = self.clock.now()
            while not self.should_stop and (duration <= 0.0 or self.elapsed_time() < duration):
                self.run_period()
                if until is not None and until():
                    break

                next_time += self.period
                delay = next_time - self.clock.now()
                if delay > 0.0:
                    await asyncio.sleep(delay)
                else:
                    logging.debug(f"Period {self.period_count} overran by {-delay * 1000:.1f}ms")
                    next_time = self.clock.now()
        finally:
            self.stop()
        return self.period_count

    def _run_mode_hook(self, hook: Callable[[float], None], elapsed: float) -> None:
        try:
            hook(elapsed)
        except Exception as e:
            logging.error(f"{type(self.mode).__name__}.{hook.__name__} failed: {e}", exc_info=True)
