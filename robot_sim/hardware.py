"""Simulated motors, drive train plant and sensors.

The plant is stepped once per tick from the PRE_PERIODIC phase, before any
control code reads a sensor, so every component sees the state reached at
the start of the tick.
"""

import math
from typing import Optional, Sequence

import numpy as np

from motion_core.clock import Clock
from motion_core.drive_base import DIFFERENTIAL_ODOMETRY, MECANUM_ODOMETRY
from motion_core.hardware import MotorController
from motion_core.scheduler import RunMode
from motion_core.utils import clamp

from .config import (
    BUMPER_CONTACT_DISTANCE,
    COUNTS_PER_INCH,
    LIGHT_FLOOR_VALUE,
    LIGHT_LINE_VALUE,
    LIGHT_NOISE,
    LINE_WIDTH,
    LINE_Y,
    SONAR_DROPOUT_PROBABILITY,
    SONAR_MAX_RANGE,
    SONAR_NOISE,
    TRACK_WIDTH,
    WALL_Y,
)


class SimulatedMotor(MotorController):
    """DC motor with first-order speed lag and an incremental encoder.

    Attributes:
        max_speed: Speed at full power (counts/s).
        time_constant: Speed lag (seconds). Zero means instant response.
        position: Physical position (counts), independent of encoder resets.
        speed: Current speed (counts/s).
        jammed: If True the shaft cannot turn (used to simulate a stall).
    """

    def __init__(
        self,
        name: str,
        max_speed: float,
        time_constant: float = 0.0,
        position: float = 0.0,
        min_position: Optional[float] = None,
        max_position: Optional[float] = None,
    ):
        """Initialize the motor at rest.

        Args:
            name: Motor name.
            max_speed: Speed at full power (counts/s).
            time_constant: Speed lag (seconds).
            position: Initial physical position (counts).
            min_position: Reverse hard stop with a limit switch, or None.
            max_position: Forward hard stop with a limit switch, or None.
        """
        super().__init__(name)
        self.max_speed = max_speed
        self.time_constant = time_constant
        self.position = position
        self.min_position = min_position
        self.max_position = max_position
        self.speed = 0.0
        self.power = 0.0
        self.jammed = False
        self._encoder_offset = 0.0

    def set_power(self, power: float) -> None:
        self.power = clamp(power)

    def get_power(self) -> float:
        return self.power

    def get_position(self) -> float:
        return self.position - self._encoder_offset

    def reset_position(self) -> None:
        self._encoder_offset = self.position

    def get_speed(self) -> float:
        return self.speed

    def is_fwd_limit_switch_active(self) -> bool:
        return self.max_position is not None and self.position >= self.max_position

    def is_rev_limit_switch_active(self) -> bool:
        return self.min_position is not None and self.position <= self.min_position

    def update(self, dt: float) -> float:
        """Advance the motor by dt seconds.

        Returns:
            Distance turned during the step (counts).
        """
        if dt <= 0.0:
            return 0.0
        if self.jammed:
            self.speed = 0.0
            return 0.0

        target_speed = self.power * self.max_speed
        if self.time_constant > 0.0:
            self.speed += (target_speed - self.speed) * min(1.0, dt / self.time_constant)
        else:
            self.speed = target_speed

        start = self.position
        self.position += self.speed * dt
        if self.max_position is not None and self.position > self.max_position:
            self.position = self.max_position
            self.speed = 0.0
        if self.min_position is not None and self.position < self.min_position:
            self.position = self.min_position
            self.speed = 0.0
        return self.position - start


class SimulatedDrivetrain:
    """Drive train plant: integrates wheel motion into the true field pose.

    The field pose is ground truth for the sensor models. It is kept apart
    from the DriveBase odometry, which only ever sees encoder counts and the
    gyro.

    Attributes:
        motors: Wheel motors in DriveBase wheel order.
        field_x: True field x (inches, positive right).
        field_y: True field y (inches, positive away from the start wall).
        field_heading: True heading (degrees, positive clockwise).
    """

    def __init__(
        self,
        motors: Sequence[SimulatedMotor],
        clock: Clock,
        counts_per_inch: float = COUNTS_PER_INCH,
        track_width: float = TRACK_WIDTH,
    ):
        if len(motors) not in (2, 4):
            raise ValueError(f"Drive train needs 2 or 4 motors, got {len(motors)}")
        self.motors = list(motors)
        self.clock = clock
        self.counts_per_inch = counts_per_inch
        self.track_width = track_width
        self._odometry = MECANUM_ODOMETRY if len(motors) == 4 else DIFFERENTIAL_ODOMETRY
        self.field_x = 0.0
        self.field_y = 0.0
        self.field_heading = 0.0
        self._last_time = clock.now()

    def update(self, run_mode: Optional[RunMode] = None) -> None:
        """Step every motor to the current time and move the robot."""
        now = self.clock.now()
        dt = now - self._last_time
        self._last_time = now
        if dt <= 0.0:
            return

        deltas = np.array([motor.update(dt) for motor in self.motors])
        x_counts, y_counts, rot_counts = self._odometry @ deltas
        strafe = x_counts / self.counts_per_inch
        forward = y_counts / self.counts_per_inch
        turn = math.degrees(2.0 * rot_counts / (self.counts_per_inch * self.track_width))

        # Integrate along the mid-step heading
        theta = math.radians(self.field_heading + turn / 2.0)
        self.field_x += forward * math.sin(theta) + strafe * math.cos(theta)
        self.field_y += forward * math.cos(theta) - strafe * math.sin(theta)
        self.field_heading += turn


class SimulatedGyro:
    """Heading sensor reading the plant's true heading."""

    def __init__(self, drivetrain: SimulatedDrivetrain) -> None:
        self.drivetrain = drivetrain

    def get_heading(self) -> float:
        return self.drivetrain.field_heading


class SimulatedLightSensor:
    """Downward light sensor over a tape line running across the field."""

    def __init__(self, drivetrain: SimulatedDrivetrain, rng: np.random.Generator) -> None:
        self.drivetrain = drivetrain
        self.rng = rng

    def get_value(self) -> float:
        on_line = abs(self.drivetrain.field_y - LINE_Y) <= LINE_WIDTH / 2.0
        value = LIGHT_LINE_VALUE if on_line else LIGHT_FLOOR_VALUE
        return float(value + self.rng.normal(0.0, LIGHT_NOISE))


class SimulatedRangefinder:
    """Forward ultrasonic rangefinder facing the wall.

    Occasionally returns 0.0 (a dropout), like a real sonar missing its echo.
    """

    def __init__(
        self,
        drivetrain: SimulatedDrivetrain,
        rng: np.random.Generator,
        dropout_probability: float = SONAR_DROPOUT_PROBABILITY,
    ):
        self.drivetrain = drivetrain
        self.rng = rng
        self.dropout_probability = dropout_probability

    def true_distance(self) -> float:
        """Return the noiseless range to the wall along the heading."""
        cos_h = math.cos(math.radians(self.drivetrain.field_heading))
        if cos_h <= 0.1:
            return SONAR_MAX_RANGE
        distance = (WALL_Y - self.drivetrain.field_y) / cos_h
        return clamp(distance, 0.0, SONAR_MAX_RANGE)

    def get_distance(self) -> float:
        if self.rng.random() < self.dropout_probability:
            return 0.0
        return float(max(0.0, self.true_distance() + self.rng.normal(0.0, SONAR_NOISE)))


class SimulatedBumpSwitch:
    """Front touch sensor that closes on contact with the wall."""

    def __init__(self, rangefinder: SimulatedRangefinder) -> None:
        self.rangefinder = rangefinder

    def is_pressed(self) -> bool:
        return self.rangefinder.true_distance() <= BUMPER_CONTACT_DISTANCE
