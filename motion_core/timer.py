"""Deadline timer that signals an Event once its duration has elapsed."""

import logging
from typing import Optional

from .event import Event
from .scheduler import Phase, RunMode, Scheduler


class Timer:
    """Arms an Event to fire after a duration, checked once per tick.

    The timer owns at most one pending (deadline, event) pair. While armed it
    polls itself from the PRE_CONTINUOUS phase and unregisters as soon as it
    fires or is canceled.

    Re-arming while a pair is pending silently replaces it: the old event is
    never signaled by this timer, and anything still waiting on it stalls.
    Cancel the first arm before reusing its event elsewhere.
    """

    def __init__(self, name: str, scheduler: Scheduler) -> None:
        self.name = name
        self.scheduler = scheduler
        self.deadline: float = 0.0
        self.event: Optional[Event] = None
        self._active: bool = False
        self._expired: bool = False

    def __repr__(self) -> str:
        return f"Timer({self.name!r})"

    def arm(self, duration: float, event: Optional[Event] = None) -> None:
        """Set the timer to expire duration seconds from now.

        Args:
            duration: Delay in seconds, relative to the current time.
            event: Event to signal on expiry. It is cleared here so a stale
                signal from an earlier use cannot satisfy a new wait.
        """
        if self._active and self.event is not None and self.event is not event:
            logging.debug(f"Timer {self.name}: re-armed, abandoning {self.event.name}")
        self.deadline = self.scheduler.clock.now() + duration
        if event is not None:
            event.clear()
        self.event = event
        self._expired = False
        self._set_active(True)

    def cancel(self) -> None:
        """Discard the pending pair without signaling its event."""
        if self._active:
            self._set_active(False)
            self.deadline = 0.0
            self.event = None

    def is_active(self) -> bool:
        return self._active

    def is_expired(self) -> bool:
        """Return True if the last arm ran to expiry."""
        return self._expired

    def poll(self, run_mode: Optional[RunMode] = None) -> None:
        """Signal the pending event once the deadline has passed."""
        if not self._active or self.scheduler.clock.now() < self.deadline:
            return

        self._set_active(False)
        self._expired = True
        self.deadline = 0.0
        if self.event is not None:
            logging.debug(f"Timer {self.name}: expired, signaling {self.event.name}")
            self.event.signal()
            self.event = None

    def _set_active(self, active: bool) -> None:
        if active:
            self.scheduler.register(self.name, self.poll, Phase.PRE_CONTINUOUS)
        else:
            self.scheduler.unregister(self.poll, Phase.PRE_CONTINUOUS)
        self._active = active
