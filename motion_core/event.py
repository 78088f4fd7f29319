"""One-shot completion signal.

An Event is set exactly once by the operation that owns it (a timer firing,
a PID move finishing, or a cancel) and stays signaled until the caller clears
it. Reading it never clears it.
"""

import logging


class Event:
    """Binary completion signal with an optional cancel marker.

    Attributes:
        name: Tag identifying the event in logs.
    """

    def __init__(self, name: str, signaled: bool = False) -> None:
        self.name = name
        self._signaled = signaled
        self._canceled = False

    def __repr__(self) -> str:
        return f"Event({self.name!r}, signaled={self._signaled}, canceled={self._canceled})"

    def signal(self) -> None:
        """Mark the event as signaled."""
        self._signaled = True

    def cancel(self) -> None:
        """Signal the event on behalf of an aborted operation.

        Waiters resume exactly as they would on normal completion and can use
        `is_canceled()` to tell the two apart. Does nothing if the event has
        already been signaled.
        """
        if not self._signaled:
            logging.debug(f"Event {self.name} canceled")
            self._canceled = True
            self._signaled = True

    def clear(self) -> None:
        """Reset the event so it can be reused for the next operation."""
        self._signaled = False
        self._canceled = False

    def is_signaled(self) -> bool:
        return self._signaled

    def is_canceled(self) -> bool:
        return self._canceled
