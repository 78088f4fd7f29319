"""Single closed-loop PID controller.

This module provides the feedback loop shared by PidMotor and PidDrive. The
owner calls `compute()` once per tick; the controller reads its process
variable through an injected accessor, so it never needs to know which
mechanism it belongs to.
"""

import logging
import math
from typing import Callable, Dict, Optional

from .clock import Clock
from .config import (
    PID_DEFAULT_OUTPUT_MAX,
    PID_DEFAULT_OUTPUT_MIN,
    PID_DEFAULT_SETTLING_TIME,
    PID_DEFAULT_TOLERANCE,
)
from .dashboard import Dashboard
from .utils import clamp, sign


class PidController:
    """PID feedback controller with directional feedforward and settling check.

    Control law (per tick, dt = time since the previous compute):
        error     = setpoint - input            (negated when inverted)
        integral += error * dt                  (clamped so Ki*integral stays in the output range)
        output    = Kp*error + Ki*integral + Kd*d(error)/dt + Kf*sign(error)
        output    = clamp(output, output_min, output_max)

    The feedforward term is a constant bias in the direction of travel, not a
    term scaled by the error.

    A relative setpoint is added to the process variable at the moment the
    target is issued, so the error is the distance still to go from where the
    move started.

    Attributes:
        name: Controller name used in logs and diagnostics.
        kp: Proportional gain.
        ki: Integral gain.
        kd: Derivative gain.
        kf: Feedforward (directional bias) gain.
        tolerance: Band around the setpoint that counts as on target.
        settling_time: Seconds the error must stay inside the band.
        absolute_setpoint: If False, targets are relative to the input.
        inverted: If True, the error sign is flipped.
        no_oscillation: If True, on target as soon as inside the band.
    """

    def __init__(
        self,
        name: str,
        pid_input: Callable[[], float],
        kp: float,
        ki: float = 0.0,
        kd: float = 0.0,
        kf: float = 0.0,
        tolerance: float = PID_DEFAULT_TOLERANCE,
        settling_time: float = PID_DEFAULT_SETTLING_TIME,
        clock: Optional[Clock] = None,
        absolute_setpoint: bool = False,
        inverted: bool = False,
        output_min: float = PID_DEFAULT_OUTPUT_MIN,
        output_max: float = PID_DEFAULT_OUTPUT_MAX,
    ):
        """Initialize the controller.

        Args:
            name: Controller name.
            pid_input: Accessor returning the current process variable.
            kp: Proportional gain.
            ki: Integral gain. Default: 0.0 (no integral action)
            kd: Derivative gain. Default: 0.0 (no derivative action)
            kf: Feedforward gain, applied as Kf * sign(error). Default: 0.0
            tolerance: On-target band half-width (process-variable units).
                Must be >= 0.
            settling_time: Seconds the error must remain inside the band
                before the controller is on target. Must be >= 0.
            clock: Time source for dt and settling. Should be the same clock
                the owning scheduler uses. Default: monotonic wall clock.
            absolute_setpoint: If True, targets are absolute positions.
                Default: False (targets are relative to the current input)
            inverted: If True, the error sign is flipped. Default: False
            output_min: Lower output clamp. Default: -1.0
            output_max: Upper output clamp. Default: 1.0

        Raises:
            ValueError: If tolerance or settling_time is negative, or the
                output range is not increasing.
        """
        if tolerance < 0.0:
            raise ValueError(f"{name}: tolerance must be >= 0, got {tolerance}")
        if settling_time < 0.0:
            raise ValueError(f"{name}: settling_time must be >= 0, got {settling_time}")
        if pid_input is None:
            raise ValueError(f"{name}: a process-variable accessor is required")

        self.name = name
        self.pid_input = pid_input
        self.kp = kp
        self.ki = ki
        self.kd = kd
        self.kf = kf
        self.tolerance = tolerance
        self.settling_time = settling_time
        self.clock = clock if clock is not None else Clock()
        self.absolute_setpoint = absolute_setpoint
        self.inverted = inverted
        self.no_oscillation = False

        self.output_min = PID_DEFAULT_OUTPUT_MIN
        self.output_max = PID_DEFAULT_OUTPUT_MAX
        self.set_output_range(output_min, output_max)

        # Optional setpoint clamp (disabled while min == max)
        self.input_min: float = 0.0
        self.input_max: float = 0.0

        self.setpoint: float = 0.0
        self.output: float = 0.0
        self.integral: float = 0.0
        self.prev_error: float = 0.0
        self.prev_time: Optional[float] = None
        self.settling_start: Optional[float] = None

    def __repr__(self) -> str:
        return f"PidController({self.name!r})"

    def set_pid(self, kp: float, ki: float, kd: float, kf: float) -> None:
        """Replace all four gains."""
        self.kp = kp
        self.ki = ki
        self.kd = kd
        self.kf = kf

    def set_output_range(self, output_min: float, output_max: float) -> None:
        """Restrict the controller's authority without touching its gains.

        Args:
            output_min: Lower output clamp.
            output_max: Upper output clamp.

        Raises:
            ValueError: If output_min >= output_max.
        """
        if output_min >= output_max:
            raise ValueError(
                f"{self.name}: output range must be increasing, got [{output_min}, {output_max}]"
            )
        self.output_min = output_min
        self.output_max = output_max

    def set_input_range(self, input_min: float, input_max: float) -> None:
        """Clamp future setpoints into [input_min, input_max].

        Passing equal bounds disables the clamp.

        Raises:
            ValueError: If input_min > input_max.
        """
        if input_min > input_max:
            raise ValueError(
                f"{self.name}: input range must not be decreasing, got [{input_min}, {input_max}]"
            )
        self.input_min = input_min
        self.input_max = input_max

    def get_target(self) -> float:
        return self.setpoint

    def get_error(self) -> float:
        """Return the error seen by the last compute (or set_target)."""
        return self.prev_error

    def get_output(self) -> float:
        """Return the output produced by the last compute."""
        return self.output

    def set_target(self, target: float, relative: Optional[bool] = None) -> None:
        """Issue a new setpoint and clear the convergence history.

        Args:
            target: New target. Relative targets are added to the current
                process variable.
            relative: Override the configured setpoint mode for this target.
                None uses `absolute_setpoint`.
        """
        pv = self.pid_input()
        absolute = self.absolute_setpoint if relative is None else not relative

        setpoint = target if absolute else pv + target
        if self.input_max > self.input_min:
            setpoint = clamp(setpoint, self.input_min, self.input_max)
        self.setpoint = setpoint

        error = setpoint - pv
        self.prev_error = -error if self.inverted else error
        self.integral = 0.0
        now = self.clock.now()
        self.prev_time = now
        self.settling_start = None
        self._update_settling(now)

        logging.debug(f"{self.name}: target={target:.3f} setpoint={setpoint:.3f} input={pv:.3f}")

    def reset(self) -> None:
        """Zero the setpoint, output and accumulated state."""
        self.setpoint = 0.0
        self.output = 0.0
        self.integral = 0.0
        self.prev_error = 0.0
        self.prev_time = None
        self.settling_start = None

    def compute(self) -> float:
        """Run one tick of the control law.

        Returns:
            Controller output, always within [output_min, output_max].
        """
        now = self.clock.now()
        dt = now - self.prev_time if self.prev_time is not None else 0.0
        self.prev_time = now

        pv = self.pid_input()
        error = self.setpoint - pv
        if self.inverted:
            error = -error

        if math.isnan(error):
            logging.warning(f"{self.name}: input is NaN, holding zero")
            self.output = 0.0
            self.prev_error = error
            self._update_settling(now)
            return self.output

        if dt > 0.0:
            if self.ki != 0.0:
                # Anti-windup: keep Ki*integral inside the output range
                bounds = (self.output_min / self.ki, self.output_max / self.ki)
                self.integral = clamp(self.integral + error * dt, min(bounds), max(bounds))
            # No derivative kick on the first good sample after a NaN
            derivative = 0.0 if math.isnan(self.prev_error) else (error - self.prev_error) / dt
        else:
            derivative = 0.0

        output = (
            self.kp * error
            + self.ki * self.integral
            + self.kd * derivative
            + self.kf * sign(error)
        )
        if math.isnan(output):
            logging.warning(f"{self.name}: output is NaN (input={pv}), holding zero")
            output = 0.0
        self.output = clamp(output, self.output_min, self.output_max)

        self.prev_error = error
        self._update_settling(now)
        return self.output

    def is_on_target(self) -> bool:
        """Check the convergence predicate.

        True only once |error| <= tolerance has held continuously for
        settling_time seconds. Leaving the band restarts the settling window.
        """
        if not abs(self.prev_error) <= self.tolerance:
            self.settling_start = None
            return False
        if self.no_oscillation:
            return True

        now = self.clock.now()
        if self.settling_start is None:
            self.settling_start = now
        return now - self.settling_start >= self.settling_time

    def _update_settling(self, now: float) -> None:
        if not abs(self.prev_error) <= self.tolerance:
            self.settling_start = None
        elif self.settling_start is None:
            self.settling_start = now

    def display_pid_info(self, dashboard: Dashboard, line_num: int) -> None:
        """Write two status lines describing the loop to a dashboard."""
        dashboard.display_printf(
            line_num,
            "Target=%.1f, Input=%.1f, Error=%.1f",
            self.setpoint, self.pid_input(), self.prev_error,
        )
        dashboard.display_printf(
            line_num + 1,
            "minOutput=%.1f, Output=%.1f, maxOutput=%.1f",
            self.output_min, self.output, self.output_max,
        )

    def get_diagnostics(self) -> Dict[str, float]:
        """Get diagnostic information for logging and debugging.

        Returns:
            Dictionary containing the loop's current values
        """
        return {
            "setpoint": self.setpoint,
            "error": self.prev_error,
            "integral": self.integral,
            "output": self.output,
            "on_target": float(
                abs(self.prev_error) <= self.tolerance and self.settling_start is not None
            ),
        }
