"""Event-gated state machine used to sequence autonomous moves.

States are opaque tokens (typically members of an Enum owned by the
sequence). A sequence polls `is_ready()` once per tick and only runs the
current state's body when it returns True. A state body usually issues a
move and gates on its completion in the same tick:

    if sm.is_ready():
        state = sm.get_state()
        if state is State.FORWARD:
            pid_drive.set_target(24.0, 0.0, event=event)
            sm.add_event(event)
            sm.wait_for_events(State.TURN)
"""

import logging
from typing import Hashable, List, Optional

from .clock import Clock
from .event import Event


class StateMachine:
    """Generic sequencer over opaque state tokens.

    While events are awaited the machine stays on its current state; once the
    wait is satisfied it clears the awaited events and adopts the declared
    next state.

    Attributes:
        name: Machine name used in logs.
        clock: Time source for wait timeouts.
    """

    def __init__(self, name: str, clock: Optional[Clock] = None) -> None:
        self.name = name
        self.clock = clock if clock is not None else Clock()
        self._events: List[Event] = []
        self._current_state: Optional[Hashable] = None
        self._next_state: Optional[Hashable] = None
        self._enabled = False
        self._ready = False
        self._timed_out = False
        self._expired_time = 0.0
        self._wait_for_all = True

    def __repr__(self) -> str:
        return f"StateMachine({self.name!r}, state={self._current_state!r})"

    def start(self, initial_state: Hashable) -> None:
        """Enable the machine at the given state with nothing awaited."""
        self._events.clear()
        self._current_state = initial_state
        self._next_state = initial_state
        self._enabled = True
        self._ready = True
        self._timed_out = False
        self._expired_time = 0.0
        self._wait_for_all = True
        logging.debug(f"{self.name}: started at {initial_state}")

    def stop(self) -> None:
        """Disable the machine. It stays stopped until `start` is called again."""
        self._events.clear()
        self._current_state = None
        self._next_state = None
        self._enabled = False
        self._ready = False
        self._timed_out = False
        self._expired_time = 0.0
        logging.debug(f"{self.name}: stopped")

    def is_enabled(self) -> bool:
        return self._enabled

    def get_state(self) -> Optional[Hashable]:
        return self._current_state

    def set_state(self, state: Hashable) -> None:
        """Transition immediately, without waiting on any event."""
        self._current_state = state

    def add_event(self, event: Event) -> None:
        """Add an event to the awaited set. Duplicates are ignored."""
        if not any(e is event for e in self._events):
            self._events.append(event)

    def wait_for_events(
        self,
        next_state: Hashable,
        timeout: float = 0.0,
        wait_for_all: bool = True,
    ) -> None:
        """Gate the machine on the awaited events.

        The machine stays on its current state until the awaited events fire,
        then moves to next_state. Events can be added before or after this
        call within the same state body.

        Args:
            next_state: State to adopt once the wait is satisfied.
            timeout: Seconds after which the machine goes ready even if the
                events have not fired (`is_timed_out()` then reports True).
                Zero means no timeout.
            wait_for_all: If True, every awaited event must fire. If False,
                any one of them is enough.
        """
        self._next_state = next_state
        self._expired_time = self.clock.now() + timeout if timeout > 0.0 else 0.0
        self._wait_for_all = wait_for_all
        self._timed_out = False
        self._ready = False

    def is_timed_out(self) -> bool:
        """Return True if the last wait ended by timeout."""
        return self._timed_out

    def is_ready(self) -> bool:
        """Check whether the current state's body may run this tick.

        If a wait is pending and is now satisfied (or timed out), the awaited
        events are consumed and the machine advances to the declared next
        state before this returns True. A canceled event counts as fired.

        Returns:
            True if the machine is enabled and not waiting.
        """
        if self._enabled and not self._ready:
            if self._expired_time > 0.0 and self.clock.now() >= self._expired_time:
                self._expired_time = 0.0
                self._timed_out = True
                self._ready = True
                logging.debug(f"{self.name}: wait timed out")
            else:
                fired = sum(1 for e in self._events if e.is_signaled() or e.is_canceled())
                if self._wait_for_all:
                    self._ready = fired == len(self._events)
                else:
                    self._ready = fired > 0

            if self._ready:
                for event in self._events:
                    event.clear()
                self._events.clear()
                logging.debug(f"{self.name}: {self._current_state} -> {self._next_state}")
                self._current_state = self._next_state

        return self._enabled and self._ready
