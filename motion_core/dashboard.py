"""Telemetry sink holding a fixed number of human-readable status lines.

Components write formatted lines by index; the host calls
`refresh_display()` once per loop to push changed lines to the log.
"""

import logging
from typing import List

from .config import DASHBOARD_NUM_LINES


class Dashboard:
    """Line-addressed status display.

    Attributes:
        num_lines: Number of addressable lines.
    """

    def __init__(self, num_lines: int = DASHBOARD_NUM_LINES) -> None:
        if num_lines <= 0:
            raise ValueError(f"Dashboard needs at least one line, got {num_lines}")
        self.num_lines = num_lines
        self._lines: List[str] = [""] * num_lines
        self._published: List[str] = [""] * num_lines

    def display_printf(self, line_num: int, fmt: str, *args: object) -> None:
        """Format a status line in place.

        Out-of-range line numbers are dropped with a warning rather than
        raising, since this is called from inside scheduled tasks.
        """
        if not 0 <= line_num < self.num_lines:
            logging.warning(f"Dashboard line {line_num} out of range [0, {self.num_lines})")
            return
        self._lines[line_num] = fmt % args if args else fmt

    def get_line(self, line_num: int) -> str:
        return self._lines[line_num]

    def clear_display(self) -> None:
        self._lines = [""] * self.num_lines

    def refresh_display(self) -> List[str]:
        """Log lines that changed since the last refresh.

        Returns:
            The lines that were published.
        """
        changed = []
        for i, text in enumerate(self._lines):
            if text != self._published[i]:
                self._published[i] = text
                if text:
                    logging.debug(f"[{i:2d}] {text}")
                changed.append(text)
        return changed
