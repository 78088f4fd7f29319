"""Drive base kinematic model: drive intents to wheel powers, wheel deltas to pose.

Supports a two-motor differential base and a four-motor mecanum base. Wheel
order everywhere in this module is (left_front, right_front, left_rear,
right_rear) for four motors and (left, right) for two.

Conventions:
    x        strafe distance, positive to the right (mecanum only)
    y        forward distance
    heading  degrees, positive clockwise
    turn     positive turns clockwise (left side faster)

The pose is accumulated in the robot frame: y is distance driven along the
robot's own forward axis, not a field coordinate. That keeps a relative
distance move meaningful after any number of turns.
"""

import logging
import math
from typing import Callable, Optional, Tuple

import numpy as np

from .hardware import MotorController
from .scheduler import Phase, RunMode, Scheduler
from .utils import clamp

# Rows give (x, y, rotation) deltas from the four wheel deltas.
MECANUM_ODOMETRY = np.array(
    [
        [1.0, -1.0, -1.0, 1.0],
        [1.0, 1.0, 1.0, 1.0],
        [1.0, -1.0, 1.0, -1.0],
    ]
) / 4.0

# Rows give (x, y, rotation) deltas from the (left, right) wheel deltas.
DIFFERENTIAL_ODOMETRY = np.array(
    [
        [0.0, 0.0],
        [0.5, 0.5],
        [0.5, -0.5],
    ]
)


class DriveBase:
    """Shared drive base driven by PidDrive or by manual calls.

    Every drive call takes an optional owner. A PidDrive claims the base
    while it runs a move; a drive call from anyone else (including a plain
    manual call with no owner) cancels the claimant first, so the PID loop
    never fights manual input on the next tick.

    Attributes:
        name: Drive base name.
        scheduler: Scheduler the odometry runs from.
        motors: Tuple of wheel motors in the module's wheel order.
        x_scale: Strafe distance per raw x unit.
        y_scale: Forward distance per raw y unit.
        rotation_scale: Degrees per raw rotation unit.
    """

    def __init__(
        self,
        name: str,
        scheduler: Scheduler,
        left_front: MotorController,
        right_front: MotorController,
        left_rear: Optional[MotorController] = None,
        right_rear: Optional[MotorController] = None,
        heading_source: Optional[Callable[[], float]] = None,
        x_scale: float = 1.0,
        y_scale: float = 1.0,
        rotation_scale: float = 1.0,
    ):
        """Initialize the drive base and register its odometry task.

        Args:
            name: Drive base name.
            scheduler: Scheduler whose clock and phases the base uses.
            left_front: Left motor (front left on a four-motor base).
            right_front: Right motor (front right on a four-motor base).
            left_rear: Rear left motor, four-motor bases only.
            right_rear: Rear right motor, four-motor bases only.
            heading_source: Accessor returning the gyro heading in degrees.
                If None, heading is derived from the wheel rotation position.
            x_scale: Strafe distance per raw x unit. Default: 1.0
            y_scale: Forward distance per raw y unit. Default: 1.0
            rotation_scale: Degrees per raw rotation unit. Default: 1.0

        Raises:
            ValueError: If a front motor is missing or only one rear motor
                is supplied.
        """
        if left_front is None or right_front is None:
            raise ValueError(f"{name}: both left and right motors are required")
        if (left_rear is None) != (right_rear is None):
            raise ValueError(f"{name}: supply both rear motors or neither")

        self.name = name
        self.scheduler = scheduler
        self.clock = scheduler.clock
        self.four_motors = left_rear is not None
        if self.four_motors:
            self.motors: Tuple[MotorController, ...] = (left_front, right_front, left_rear, right_rear)
            self._odometry = MECANUM_ODOMETRY
        else:
            self.motors = (left_front, right_front)
            self._odometry = DIFFERENTIAL_ODOMETRY
        self.heading_source = heading_source
        self.x_scale = x_scale
        self.y_scale = y_scale
        self.rotation_scale = rotation_scale
        self._scales = np.array([x_scale, y_scale, rotation_scale])

        self.wheel_powers = np.zeros(len(self.motors))
        self._owner = None

        self.x_pos = 0.0
        self.y_pos = 0.0
        self.rot_pos = 0.0
        self.heading = 0.0
        self.x_speed = 0.0
        self.y_speed = 0.0
        self.turn_speed = 0.0
        self._heading_offset = 0.0
        self._encoder_snapshot = np.zeros(len(self.motors))
        self._last_time = self.clock.now()
        self.reset_position()

        scheduler.register(f"{name}.start", self._start_task, Phase.START)
        scheduler.register(f"{name}.stop", self._stop_task, Phase.STOP)
        scheduler.register(f"{name}.odometry", self.update_odometry, Phase.PRE_CONTINUOUS)

    def __repr__(self) -> str:
        return f"DriveBase({self.name!r}, motors={len(self.motors)})"

    def get_num_motors(self) -> int:
        return len(self.motors)

    def get_x_position(self) -> float:
        return self.x_pos

    def get_y_position(self) -> float:
        return self.y_pos

    def get_rotation_position(self) -> float:
        """Return the rotation derived from wheel deltas, in degrees."""
        return self.rot_pos

    def get_heading(self) -> float:
        """Return the heading in degrees, positive clockwise."""
        return self.heading

    def get_x_speed(self) -> float:
        return self.x_speed

    def get_y_speed(self) -> float:
        return self.y_speed

    def get_turn_speed(self) -> float:
        return self.turn_speed

    def get_wheel_powers(self) -> Tuple[float, ...]:
        """Return the last powers written to the wheels, in wheel order."""
        return tuple(float(p) for p in self.wheel_powers)

    def reset_position(self) -> None:
        """Zero the pose and re-snapshot the encoders together.

        The next odometry update measures its deltas from here, so stale
        encoder counts never leak into the new pose.
        """
        for motor in self.motors:
            motor.reset_position()
        self._encoder_snapshot = self._read_encoders()
        self._heading_offset = self.heading_source() if self.heading_source is not None else 0.0
        self._last_time = self.clock.now()

        self.x_pos = 0.0
        self.y_pos = 0.0
        self.rot_pos = 0.0
        self.heading = 0.0
        self.x_speed = 0.0
        self.y_speed = 0.0
        self.turn_speed = 0.0

    def update_odometry(self, run_mode: Optional[RunMode] = None) -> None:
        """Accumulate the pose from the wheel deltas since the last update.

        Heading comes straight from the heading source when there is one;
        wheel rotation is only a fallback since it compounds wheel slip.
        """
        encoders = self._read_encoders()
        deltas = encoders - self._encoder_snapshot
        self._encoder_snapshot = encoders

        x_delta, y_delta, rot_delta = (self._odometry @ deltas) * self._scales
        self.x_pos += x_delta
        self.y_pos += y_delta
        self.rot_pos += rot_delta

        now = self.clock.now()
        dt = now - self._last_time
        self._last_time = now
        if dt > 0.0:
            self.x_speed = x_delta / dt
            self.y_speed = y_delta / dt
            self.turn_speed = rot_delta / dt

        if self.heading_source is not None:
            self.heading = self.heading_source() - self._heading_offset
        else:
            self.heading = self.rot_pos

    def claim(self, owner) -> None:
        """Make owner the active claimant, canceling any other claimant.

        Args:
            owner: Object with a `cancel()` method, typically a PidDrive.
        """
        if self._owner is not None and self._owner is not owner:
            self._preempt()
        self._owner = owner

    def release(self, owner) -> None:
        """Drop the claim if owner holds it."""
        if self._owner is owner:
            self._owner = None

    def get_owner(self):
        return self._owner

    def stop(self, owner=None) -> None:
        """Zero every wheel."""
        self._check_owner(owner)
        self._write(np.zeros(len(self.motors)))

    def tank_drive(self, left_power: float, right_power: float, inverted: bool = False, owner=None) -> None:
        """Drive the left and right sides independently.

        Args:
            left_power: Left side power, clamped to [-1, 1].
            right_power: Right side power, clamped to [-1, 1].
            inverted: If True, drive as if the robot were turned around.
            owner: Caller identity for ownership checks. None is manual.
        """
        self._check_owner(owner)
        self._tank(clamp(left_power), clamp(right_power), inverted)

    def arcade_drive(self, drive_power: float, turn_power: float, inverted: bool = False, owner=None) -> None:
        """Drive with a forward power and a turn power.

        The mix saturates instead of scaling: the faster side takes the larger
        of the two magnitudes and the slower side takes their difference, so
        both sides always stay within [-1, 1].

        Args:
            drive_power: Forward power, clamped to [-1, 1].
            turn_power: Clockwise turn power, clamped to [-1, 1].
            inverted: If True, forward and backward are swapped.
            owner: Caller identity for ownership checks. None is manual.
        """
        self._check_owner(owner)
        drive = clamp(drive_power)
        turn = clamp(turn_power)
        if inverted:
            drive = -drive

        if drive >= 0.0:
            if turn >= 0.0:
                left, right = max(drive, turn), drive - turn
            else:
                left, right = drive + turn, max(drive, -turn)
        else:
            if turn >= 0.0:
                left, right = drive + turn, -max(-drive, turn)
            else:
                left, right = -max(-drive, -turn), drive - turn

        self._tank(left, right, False)

    def mecanum_drive(
        self,
        x_power: float,
        y_power: float,
        rotation: float,
        gyro_angle: float = 0.0,
        inverted: bool = False,
        owner=None,
    ) -> None:
        """Drive a mecanum base in any direction while rotating.

        For field-centric control pass the current heading as gyro_angle;
        the (x, y) request is rotated into the robot frame before mixing.
        Wheel speeds are normalized together by the largest magnitude, so
        their ratios survive saturation.

        Args:
            x_power: Strafe power, positive right.
            y_power: Forward power.
            rotation: Clockwise rotation power.
            gyro_angle: Heading in degrees to rotate the request by.
            inverted: If True, forward and right are swapped with back and left.
            owner: Caller identity for ownership checks. None is manual.

        Raises:
            ValueError: If the base does not have four motors.
        """
        if not self.four_motors:
            raise ValueError(f"{self.name}: mecanum drive requires four motors")

        self._check_owner(owner)
        x = clamp(x_power)
        y = clamp(y_power)
        rotation = clamp(rotation)
        if inverted:
            x, y = -x, -y

        if gyro_angle != 0.0:
            theta = math.radians(gyro_angle)
            cos_a = math.cos(theta)
            sin_a = math.sin(theta)
            x, y = x * cos_a - y * sin_a, x * sin_a + y * cos_a

        wheels = np.array(
            [
                x + y + rotation,
                -x + y - rotation,
                -x + y + rotation,
                x + y - rotation,
            ]
        )
        max_magnitude = np.max(np.abs(wheels))
        if max_magnitude > 1.0:
            wheels = wheels / max_magnitude

        self._write(wheels)

    def _tank(self, left: float, right: float, inverted: bool) -> None:
        if inverted:
            left, right = -right, -left
        if self.four_motors:
            self._write(np.array([left, right, left, right]))
        else:
            self._write(np.array([left, right]))

    def _write(self, powers: np.ndarray) -> None:
        powers = np.clip(powers, -1.0, 1.0)
        for motor, power in zip(self.motors, powers):
            motor.set_power(float(power))
        self.wheel_powers = powers

    def _read_encoders(self) -> np.ndarray:
        return np.array([motor.get_position() for motor in self.motors], dtype=float)

    def _check_owner(self, owner) -> None:
        if self._owner is not None and owner is not self._owner:
            self._preempt()

    def _preempt(self) -> None:
        previous = self._owner
        self._owner = None
        logging.debug(f"{self.name}: preempting {previous}")
        previous.cancel()

    def _start_task(self, run_mode: RunMode) -> None:
        self.reset_position()

    def _stop_task(self, run_mode: RunMode) -> None:
        self.stop()
