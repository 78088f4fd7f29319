"""Closed-loop drive moves on a shared DriveBase.

A PidDrive combines up to three PID loops: x (strafe, mecanum only), y
(forward distance, or any forward process variable such as a rangefinder)
and turn (heading, or any steering process variable such as a line sensor
offset). Moves run from the POST_CONTINUOUS phase; completion is reported
through the caller's Event.
"""

import logging
from typing import Optional

from .dashboard import Dashboard
from .drive_base import DriveBase
from .event import Event
from .pid_controller import PidController
from .scheduler import Phase, RunMode, Scheduler


class PidDrive:
    """Runs x/y/turn PID loops against a DriveBase until on target.

    Termination, checked every tick after the loops are computed:
        timed out                              -> finish
        turn on target and (turn-only move or
        x and y on target), not holding        -> finish
        canceled (trigger, manual drive, new
        owner of the drive base)               -> cancel

    Finishing zeroes the drive and signals the event. Canceling zeroes the
    drive and cancels the event, which also signals it, so a waiting state
    machine resumes either way and can tell them apart via `is_canceled()`.

    Attributes:
        name: Drive name.
        drive_base: Shared drive base (driven, not owned).
        x_pid: Strafe loop, or None.
        y_pid: Forward loop, or None.
        turn_pid: Turn loop, or None.
    """

    def __init__(
        self,
        name: str,
        scheduler: Scheduler,
        drive_base: DriveBase,
        x_pid: Optional[PidController] = None,
        y_pid: Optional[PidController] = None,
        turn_pid: Optional[PidController] = None,
    ):
        """Initialize the drive (idle).

        Raises:
            ValueError: If no controller is given, or an x controller is
                given for a two-motor drive base.
        """
        if x_pid is None and y_pid is None and turn_pid is None:
            raise ValueError(f"{name}: at least one PID controller is required")
        if x_pid is not None and not drive_base.four_motors:
            raise ValueError(f"{name}: an x controller needs a four-motor (mecanum) drive base")

        self.name = name
        self.scheduler = scheduler
        self.clock = scheduler.clock
        self.drive_base = drive_base
        self.x_pid = x_pid
        self.y_pid = y_pid
        self.turn_pid = turn_pid

        self.event: Optional[Event] = None
        self.expired_time = 0.0
        self.hold_target = False
        self.turn_only = False
        self._manual_heading = False
        self._manual_x_power = 0.0
        self._manual_y_power = 0.0
        self._active = False
        self._canceled = False

    def __repr__(self) -> str:
        return f"PidDrive({self.name!r})"

    def is_active(self) -> bool:
        return self._active

    def is_canceled(self) -> bool:
        """Return True if the last move was canceled rather than finished."""
        return self._canceled

    def set_target(
        self,
        y_target: float,
        turn_target: float = 0.0,
        hold_target: bool = False,
        event: Optional[Event] = None,
        timeout: float = 0.0,
        x_target: float = 0.0,
        relative: Optional[bool] = None,
    ) -> None:
        """Start a closed-loop move.

        A move already in progress is replaced (last writer wins): its event
        is canceled and the new targets take effect on the next tick.

        Args:
            y_target: Forward target.
            turn_target: Turn target. A non-zero turn with zero x and y
                targets is a turn-only move: the distance loops are ignored.
            hold_target: If True, keep holding the target after reaching it
                instead of finishing.
            event: Signaled once when the move ends.
            timeout: Seconds after which the move finishes anyway. Zero
                means no timeout.
            x_target: Strafe target (mecanum only).
            relative: Override each controller's setpoint mode.
        """
        if self._active:
            if self.event is not None and self.event is not event:
                self.event.cancel()
            self._stop(stop_drive=False)

        if self.x_pid is not None:
            self.x_pid.set_target(x_target, relative)
        if self.y_pid is not None:
            self.y_pid.set_target(y_target, relative)
        if self.turn_pid is not None:
            self.turn_pid.set_target(turn_target, relative)

        self.turn_only = (
            self.turn_pid is not None and x_target == 0.0 and y_target == 0.0 and turn_target != 0.0
        )
        self.hold_target = hold_target
        self.event = event
        if event is not None:
            event.clear()
        self.expired_time = self.clock.now() + timeout if timeout > 0.0 else 0.0
        self._manual_heading = False
        self._canceled = False

        self.drive_base.claim(self)
        self._set_active(True)
        logging.debug(
            f"{self.name}: target x={x_target:.2f} y={y_target:.2f} turn={turn_target:.2f}"
            f"{' (turn only)' if self.turn_only else ''}"
        )

    def set_heading_target(self, x_power: float, y_power: float, heading: float) -> None:
        """Translate at fixed power while the turn loop holds a heading.

        Runs until canceled; there is no completion event.

        Raises:
            ValueError: If there is no turn controller.
        """
        if self.turn_pid is None:
            raise ValueError(f"{self.name}: heading control needs a turn controller")

        if not self._manual_heading or self.turn_pid.get_target() != heading:
            if self._active and not self._manual_heading:
                self.cancel()
            self.turn_pid.set_target(heading, relative=False)
            self._manual_heading = True
            self._canceled = False
            self.hold_target = True
            self.drive_base.claim(self)
            self._set_active(True)

        self._manual_x_power = x_power
        self._manual_y_power = y_power

    def cancel(self) -> None:
        """Abort the move in progress: zero the drive and cancel its event."""
        if self._active:
            self._stop(stop_drive=True)
            self._canceled = True
            if self.event is not None:
                self.event.cancel()
                self.event = None
            logging.debug(f"{self.name}: move canceled")

    def tank_drive(self, left_power: float, right_power: float, inverted: bool = False) -> None:
        self.cancel()
        self.drive_base.tank_drive(left_power, right_power, inverted)

    def arcade_drive(self, drive_power: float, turn_power: float, inverted: bool = False) -> None:
        self.cancel()
        self.drive_base.arcade_drive(drive_power, turn_power, inverted)

    def mecanum_drive(self, x_power: float, y_power: float, rotation: float, gyro_angle: float = 0.0) -> None:
        self.cancel()
        self.drive_base.mecanum_drive(x_power, y_power, rotation, gyro_angle)

    def display_pid_info(self, dashboard: Dashboard, line_num: int) -> int:
        """Write two lines per controller, starting at line_num.

        Returns:
            The next free line number.
        """
        for pid in (self.x_pid, self.y_pid, self.turn_pid):
            if pid is not None:
                pid.display_pid_info(dashboard, line_num)
                line_num += 2
        return line_num

    def _stop(self, stop_drive: bool) -> None:
        self._set_active(False)
        self._manual_heading = False
        if stop_drive:
            self.drive_base.stop(owner=self)
        self.drive_base.release(self)
        for pid in (self.x_pid, self.y_pid, self.turn_pid):
            if pid is not None:
                pid.reset()

    def _finish(self) -> None:
        self._stop(stop_drive=True)
        if self.event is not None:
            self.event.signal()
            self.event = None

    def _set_active(self, active: bool) -> None:
        if active:
            self.scheduler.register(self.name, self._drive_task, Phase.POST_CONTINUOUS)
            self.scheduler.register(f"{self.name}.stop", self._stop_task, Phase.STOP)
        else:
            self.scheduler.unregister(self._drive_task, Phase.POST_CONTINUOUS)
            self.scheduler.unregister(self._stop_task, Phase.STOP)
        self._active = active

    def _drive(self, x_power: float, y_power: float, turn_power: float) -> None:
        if self.x_pid is not None:
            self.drive_base.mecanum_drive(x_power, y_power, turn_power, owner=self)
        else:
            self.drive_base.arcade_drive(y_power, turn_power, owner=self)

    def _drive_task(self, run_mode: RunMode) -> None:
        if self._manual_heading:
            self._drive(self._manual_x_power, self._manual_y_power, self.turn_pid.compute())
            return

        use_distance = not self.turn_only
        x_power = self.x_pid.compute() if self.x_pid is not None and use_distance else 0.0
        y_power = self.y_pid.compute() if self.y_pid is not None and use_distance else 0.0
        turn_power = self.turn_pid.compute() if self.turn_pid is not None else 0.0

        expired = self.expired_time > 0.0 and self.clock.now() >= self.expired_time
        turn_on_target = self.turn_pid is None or self.turn_pid.is_on_target()
        if self.turn_only:
            on_target = turn_on_target
        else:
            x_on_target = self.x_pid is None or self.x_pid.is_on_target()
            y_on_target = self.y_pid is None or self.y_pid.is_on_target()
            on_target = turn_on_target and x_on_target and y_on_target

        if expired:
            logging.warning(f"{self.name}: timed out before reaching target")
            self._finish()
        elif on_target and not self.hold_target:
            logging.debug(f"{self.name}: on target")
            self._finish()
        elif on_target:
            self.drive_base.stop(owner=self)
        else:
            self._drive(x_power, y_power, turn_power)

    def _stop_task(self, run_mode: RunMode) -> None:
        self.cancel()
