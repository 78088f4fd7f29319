"""Closed-loop single-axis position control for an arm, lift or similar mechanism.

A PidMotor couples one PidController to one motor (or a synchronized pair)
and runs moves asynchronously: `set_target` returns at once, the move runs
from the POST_CONTINUOUS phase, and completion is reported by signaling the
caller's Event.
"""

import logging
from typing import Optional, Tuple

from .event import Event
from .hardware import MotorController
from .pid_controller import PidController
from .scheduler import Phase, RunMode, Scheduler
from .utils import clamp


class PidMotor:
    """PID position loop around one motor, or two motors kept in sync.

    Lifecycle of a move: IDLE -> ACTIVE -> (on target | timed out | canceled |
    limit reached) -> IDLE. On every terminal condition the motor is zeroed
    and the completion event, if any, is signaled exactly once.

    Attributes:
        name: Mechanism name.
        pid_ctrl: Position controller. Its input accessor should return this
            mechanism's position (see `get_position`).
        motor1: Primary motor.
        motor2: Optional second motor driven in sync with the first.
        sync_gain: Correction per unit of encoder difference between the
            two motors.
        position_scale: Position units per raw encoder count.
        limit_reached: True if the last move ended on a limit switch.
    """

    def __init__(
        self,
        name: str,
        scheduler: Scheduler,
        pid_ctrl: PidController,
        motor1: MotorController,
        motor2: Optional[MotorController] = None,
        sync_gain: float = 0.0,
        position_scale: float = 1.0,
    ):
        """Initialize the mechanism (idle).

        Raises:
            ValueError: If the motor or controller is missing, or
                position_scale is zero.
        """
        if motor1 is None:
            raise ValueError(f"{name}: motor1 is required")
        if pid_ctrl is None:
            raise ValueError(f"{name}: a PID controller is required")
        if position_scale == 0.0:
            raise ValueError(f"{name}: position_scale must be non-zero")

        self.name = name
        self.scheduler = scheduler
        self.clock = scheduler.clock
        self.pid_ctrl = pid_ctrl
        self.motor1 = motor1
        self.motor2 = motor2
        self.sync_gain = sync_gain
        self.position_scale = position_scale

        self.event: Optional[Event] = None
        self.expired_time = 0.0
        self.hold_target = False
        self.limit_reached = False
        self.motor_power = 0.0
        self._active = False
        self._calibrating = False
        self._calibration_power = 0.0
        self._saved_output_range: Optional[Tuple[float, float]] = None

        # Stall protection (disabled while stall_timeout == 0)
        self.stall_min_power = 0.0
        self.stall_timeout = 0.0
        self.reset_timeout = 0.0
        self._stalled = False
        self._prev_position = 0.0
        self._prev_time = 0.0

    def __repr__(self) -> str:
        return f"PidMotor({self.name!r})"

    def is_active(self) -> bool:
        return self._active

    def is_calibrating(self) -> bool:
        return self._calibrating

    def is_stalled(self) -> bool:
        return self._stalled

    def get_position(self) -> float:
        """Return the mechanism position in scaled units.

        With two motors this is the average of both encoders.
        """
        position = self.motor1.get_position()
        if self.motor2 is not None:
            position = (position + self.motor2.get_position()) / 2.0
        return position * self.position_scale

    def get_power(self) -> float:
        return self.motor_power

    def set_stall_protection(self, min_power: float, stall_timeout: float, reset_timeout: float) -> None:
        """Cut power when the motor is driven but does not move.

        Args:
            min_power: Powers below this magnitude never count as stalling.
            stall_timeout: Seconds without movement before the motor is
                considered stalled. Zero disables stall protection.
            reset_timeout: Seconds of zero power that clear a stall. Zero
                means a stall only clears on the next move.
        """
        self.stall_min_power = abs(min_power)
        self.stall_timeout = stall_timeout
        self.reset_timeout = reset_timeout
        self._stalled = False

    def set_target(
        self,
        target: float,
        hold_target: bool = False,
        event: Optional[Event] = None,
        timeout: float = 0.0,
        relative: Optional[bool] = None,
    ) -> None:
        """Start a closed-loop move.

        A move already in progress is replaced: its event is canceled (so
        any waiter resumes) and the new move takes over on the next tick.

        Args:
            target: Target position. Relative unless the controller is
                configured for absolute setpoints (see `relative`).
            hold_target: If True, keep holding position after reaching
                target instead of finishing the move.
            event: Signaled once when the move finishes.
            timeout: Seconds after which the move finishes anyway. Zero
                means no timeout.
            relative: Override the controller's setpoint mode.
        """
        if self._active:
            if self.event is not None and self.event is not event:
                self.event.cancel()
            self._stop(stop_motor=False)
        if self._calibrating:
            self._calibrating = False

        self.pid_ctrl.set_target(target, relative)
        self.hold_target = hold_target
        self.event = event
        if event is not None:
            event.clear()
        self.expired_time = self.clock.now() + timeout if timeout > 0.0 else 0.0
        self.limit_reached = False
        self._stalled = False
        self._prev_time = self.clock.now()
        self._prev_position = self.get_position()
        self._set_active(True)

    def set_pid_power(self, power: float, min_pos: float, max_pos: float, hold_target: bool = False) -> None:
        """Drive toward min_pos or max_pos at up to |power|, under PID control.

        Intended for joystick control of a mechanism with soft limits: the
        sign of power picks the end to head for, its magnitude caps the
        output, and the loop slows the mechanism down as it nears the end.
        Zero power stops, or holds the current position if hold_target.
        """
        power = clamp(power)
        if power != 0.0:
            target = max_pos if power > 0.0 else min_pos
            if not self._active or self.pid_ctrl.get_target() != target:
                self.set_target(target, hold_target=hold_target, relative=False)
            if self._saved_output_range is None:
                self._saved_output_range = (self.pid_ctrl.output_min, self.pid_ctrl.output_max)
            self.pid_ctrl.set_output_range(-abs(power), abs(power))
        elif hold_target:
            # Still heading for an end: hold where we are instead
            if not self._active or self._saved_output_range is not None:
                self._restore_output_range()
                self.set_target(self.get_position(), hold_target=True, relative=False)
        else:
            self.cancel()

    def set_power(self, power: float) -> None:
        """Drive the motor open loop.

        Any closed-loop move in progress is canceled first.
        """
        if self._active:
            self.cancel()
        self._calibrating = False
        self._set_motor_power(clamp(power))

    def cancel(self) -> None:
        """Abort the move in progress and cancel its event."""
        if self._active:
            self._stop(stop_motor=True)
            if self.event is not None:
                self.event.cancel()
                self.event = None
            logging.debug(f"{self.name}: move canceled")

    def zero_calibrate(self, power: float) -> None:
        """Run toward the reverse limit switch and zero the encoders there.

        Args:
            power: Calibration power magnitude; the motor runs in reverse.
        """
        self.cancel()
        self._calibrating = True
        self._calibration_power = -abs(power)
        self._set_active(True)

    def _stop(self, stop_motor: bool) -> None:
        self._set_active(False)
        self._restore_output_range()
        if stop_motor:
            self._set_motor_power(0.0)
        self.pid_ctrl.reset()

    def _finish(self) -> None:
        """End the move and signal its event."""
        self._stop(stop_motor=True)
        if self.event is not None:
            self.event.signal()
            self.event = None

    def _restore_output_range(self) -> None:
        if self._saved_output_range is not None:
            self.pid_ctrl.set_output_range(*self._saved_output_range)
            self._saved_output_range = None

    def _set_active(self, active: bool) -> None:
        if active:
            self.scheduler.register(self.name, self._pid_task, Phase.POST_CONTINUOUS)
            self.scheduler.register(f"{self.name}.stop", self._stop_task, Phase.STOP)
        else:
            self.scheduler.unregister(self._pid_task, Phase.POST_CONTINUOUS)
            self.scheduler.unregister(self._stop_task, Phase.STOP)
        self._active = active

    def _limit_switch_hit(self, power: float) -> bool:
        motors = (self.motor1,) if self.motor2 is None else (self.motor1, self.motor2)
        if power > 0.0:
            return any(m.is_fwd_limit_switch_active() for m in motors)
        if power < 0.0:
            return any(m.is_rev_limit_switch_active() for m in motors)
        return False

    def _calibrate_step(self) -> None:
        if self._limit_switch_hit(self._calibration_power):
            self._set_motor_power(0.0)
            self.motor1.reset_position()
            if self.motor2 is not None:
                self.motor2.reset_position()
            self._calibrating = False
            self._set_active(False)
            logging.info(f"{self.name}: zero calibration complete")
        else:
            self._set_motor_power(self._calibration_power)

    def _pid_task(self, run_mode: RunMode) -> None:
        if self._calibrating:
            self._calibrate_step()
            return

        power = self.pid_ctrl.compute()
        on_target = self.pid_ctrl.is_on_target()
        expired = self.expired_time > 0.0 and self.clock.now() >= self.expired_time

        if self._limit_switch_hit(power):
            logging.warning(f"{self.name}: limit switch reached at {self.get_position():.2f}")
            self.limit_reached = True
            self._finish()
        elif expired:
            logging.warning(
                f"{self.name}: timed out at {self.get_position():.2f} "
                f"(target {self.pid_ctrl.get_target():.2f})"
            )
            self._finish()
        elif on_target and not self.hold_target:
            logging.debug(f"{self.name}: on target at {self.get_position():.2f}")
            self._finish()
        else:
            self._set_motor_power(power)

    def _stop_task(self, run_mode: RunMode) -> None:
        self.cancel()
        self._calibrating = False
        self._set_active(False)
        self._set_motor_power(0.0)

    def _set_motor_power(self, power: float) -> None:
        if self.stall_timeout > 0.0:
            power = self._apply_stall_protection(power)

        self.motor_power = power
        if self.motor2 is None:
            self.motor1.set_power(power)
            return

        power1 = power
        power2 = power
        if self.sync_gain != 0.0 and power != 0.0:
            # Slow the leading motor and speed up the trailing one
            diff = self.motor1.get_position() - self.motor2.get_position()
            correction = self.sync_gain * diff
            power1 = clamp(power - correction)
            power2 = clamp(power + correction)
        self.motor1.set_power(power1)
        self.motor2.set_power(power2)

    def _apply_stall_protection(self, power: float) -> float:
        now = self.clock.now()
        position = self.get_position()

        if self._stalled:
            if power != 0.0:
                self._prev_time = now
            elif self.reset_timeout > 0.0 and now - self._prev_time >= self.reset_timeout:
                self._stalled = False
                self._prev_time = now
                self._prev_position = position
                logging.info(f"{self.name}: stall cleared")
            return 0.0

        if abs(power) < self.stall_min_power or position != self._prev_position:
            self._prev_time = now
            self._prev_position = position
        elif now - self._prev_time >= self.stall_timeout:
            self._stalled = True
            self._prev_time = now
            logging.warning(f"{self.name}: stalled at {position:.2f}, cutting power")
            return 0.0
        return power
