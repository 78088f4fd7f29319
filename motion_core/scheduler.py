"""Cooperative phase scheduler.

The host calls the scheduler once per phase every fixed period; the scheduler
never drives its own timing. Each phase holds an ordered list of callbacks:

    START            once, before a mode begins
    PRE_PERIODIC     every period, before the host's periodic robot logic
    POST_PERIODIC    every period, after the host's periodic robot logic
    PRE_CONTINUOUS   every period, before the host's continuous robot logic
    POST_CONTINUOUS  every period, after the host's continuous robot logic
    STOP             once, after a mode ends

Everything runs on one thread. A callback must return promptly: a blocking
callback stalls every mechanism sharing the loop.
"""

import logging
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from .clock import Clock


class RunMode(Enum):
    """Robot run mode passed to every scheduled callback."""

    DISABLED = "disabled"
    AUTO = "auto"
    TELEOP = "teleop"
    TEST = "test"


class Phase(Enum):
    """Scheduler phases, listed in dispatch order."""

    START = "start"
    PRE_PERIODIC = "pre_periodic"
    POST_PERIODIC = "post_periodic"
    PRE_CONTINUOUS = "pre_continuous"
    POST_CONTINUOUS = "post_continuous"
    STOP = "stop"


TaskCallback = Callable[[RunMode], None]
"""Signature of a scheduled callback: receives the current run mode."""


class Scheduler:
    """Registry of callbacks bucketed into ordered phases.

    Attributes:
        clock: Time source shared by every component registered here.
    """

    def __init__(self, clock: Optional[Clock] = None) -> None:
        """Initialize an empty scheduler.

        Args:
            clock: Time source for timers, settling checks and timeouts.
                If None, uses a monotonic wall clock.
        """
        self.clock = clock if clock is not None else Clock()
        self._tasks: Dict[Phase, List[Tuple[str, TaskCallback]]] = {phase: [] for phase in Phase}

    def register(self, name: str, callback: TaskCallback, phase: Phase) -> None:
        """Register a callback for a phase.

        Registering a callback that is already registered for the phase is a
        no-op, so the original position in the dispatch order is kept.

        Args:
            name: Task name used in logs.
            callback: Callable invoked with the run mode.
            phase: Phase to run the callback in.
        """
        if self.is_registered(callback, phase):
            return
        self._tasks[phase].append((name, callback))
        logging.debug(f"Registered task {name} for {phase.value}")

    def unregister(self, callback: TaskCallback, phase: Phase) -> None:
        """Remove a callback from a phase. Unknown callbacks are ignored."""
        tasks = self._tasks[phase]
        for i, (name, registered) in enumerate(tasks):
            if registered == callback:
                del tasks[i]
                logging.debug(f"Unregistered task {name} from {phase.value}")
                return

    def is_registered(self, callback: TaskCallback, phase: Phase) -> bool:
        # Bound methods compare equal (not identical) across attribute lookups.
        return any(registered == callback for _, registered in self._tasks[phase])

    def task_names(self, phase: Phase) -> List[str]:
        """Return the names of the tasks registered for a phase, in order."""
        return [name for name, _ in self._tasks[phase]]

    def run_phase(self, phase: Phase, run_mode: RunMode) -> None:
        """Invoke every callback registered for a phase, in registration order.

        Dispatch iterates over a snapshot, so callbacks may register or
        unregister tasks (including themselves) without disturbing the
        current pass. A task added during the pass first runs on the next
        dispatch; a task removed during the pass is skipped if not yet run.
        An exception escaping a callback is logged and the remaining
        callbacks still run.

        Args:
            phase: Phase to dispatch.
            run_mode: Current robot run mode, forwarded to each callback.
        """
        for name, callback in list(self._tasks[phase]):
            if not self.is_registered(callback, phase):
                continue
            try:
                callback(run_mode)
            except Exception as e:
                logging.error(f"Task {name} failed during {phase.value}: {e}", exc_info=True)
