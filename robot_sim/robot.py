"""Simulated robot wiring: hardware, drive base, PID drives and triggers.

SimRobot builds the same object graph a real robot would, with simulated
hardware behind the accessors. Autonomous strategies drive it only through
the public operations of the motion_core components it exposes.
"""

import logging
from typing import Optional

import numpy as np

from motion_core.dashboard import Dashboard
from motion_core.drive_base import DriveBase
from motion_core.pid_controller import PidController
from motion_core.pid_drive import PidDrive
from motion_core.pid_motor import PidMotor
from motion_core.scheduler import Phase, RunMode, Scheduler
from motion_core.trigger import AnalogTrigger, DigitalTrigger, Trigger

from .config import (
    ARM_DEGREES_PER_COUNT,
    ARM_KD,
    ARM_KI,
    ARM_KP,
    ARM_MAX_COUNTS,
    ARM_MOTOR_MAX_SPEED,
    ARM_MOTOR_TIME_CONSTANT,
    ARM_SETTLING_TIME,
    ARM_START_COUNTS,
    ARM_TOLERANCE,
    DRIVE_KD,
    DRIVE_KF,
    DRIVE_KI,
    DRIVE_KP,
    DRIVE_MOTOR_MAX_SPEED,
    DRIVE_MOTOR_TIME_CONSTANT,
    DRIVE_ROTATION_SCALE,
    DRIVE_SETTLING_TIME,
    DRIVE_TOLERANCE,
    DRIVE_X_SCALE,
    DRIVE_Y_SCALE,
    LIGHT_ZONE_THRESHOLDS,
    SONAR_DROPOUT_PROBABILITY,
    SONAR_KD,
    SONAR_KP,
    SONAR_SETTLING_TIME,
    SONAR_TOLERANCE,
    TURN_KD,
    TURN_KF,
    TURN_KI,
    TURN_KP,
    TURN_SETTLING_TIME,
    TURN_TOLERANCE,
)
from .hardware import (
    SimulatedBumpSwitch,
    SimulatedDrivetrain,
    SimulatedGyro,
    SimulatedLightSensor,
    SimulatedMotor,
    SimulatedRangefinder,
)


class SimRobot:
    """Two-wheel differential robot with an arm, a light sensor, a sonar and a bumper.

    Closed loops:
        pid_drive     encoder distance + gyro heading (relative targets)
        sonar_drive   sonar range + gyro heading hold (absolute targets)
        arm           arm position (absolute targets, limit switches)

    Triggers (disabled until a strategy enables them):
        light_trigger cancels the active drive when the line is found
        bump_trigger  cancels the active drive on wall contact

    Attributes:
        scheduler: Scheduler every component registers with.
        drivetrain: Plant holding the true field pose.
        drive_base: Shared drive base.
        dashboard: Status display.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        seed: Optional[int] = None,
        sonar_dropout: float = SONAR_DROPOUT_PROBABILITY,
        dashboard: Optional[Dashboard] = None,
    ):
        """Build and wire the robot.

        Args:
            scheduler: Scheduler to register with.
            seed: Seed for sensor noise and dropouts. None is nondeterministic.
            sonar_dropout: Probability of a zero sonar sample.
            dashboard: Status display. A new one is created if None.
        """
        self.scheduler = scheduler
        self.clock = scheduler.clock
        self.dashboard = dashboard if dashboard is not None else Dashboard()
        rng = np.random.default_rng(seed)

        # Hardware
        self.left_motor = SimulatedMotor("leftMotor", DRIVE_MOTOR_MAX_SPEED, DRIVE_MOTOR_TIME_CONSTANT)
        self.right_motor = SimulatedMotor("rightMotor", DRIVE_MOTOR_MAX_SPEED, DRIVE_MOTOR_TIME_CONSTANT)
        self.arm_motor = SimulatedMotor(
            "armMotor",
            ARM_MOTOR_MAX_SPEED,
            ARM_MOTOR_TIME_CONSTANT,
            position=ARM_START_COUNTS,
            min_position=0.0,
            max_position=ARM_MAX_COUNTS,
        )
        self.drivetrain = SimulatedDrivetrain([self.left_motor, self.right_motor], self.clock)
        self.gyro = SimulatedGyro(self.drivetrain)
        self.light_sensor = SimulatedLightSensor(self.drivetrain, rng)
        self.sonar = SimulatedRangefinder(self.drivetrain, rng, sonar_dropout)
        self.bumper = SimulatedBumpSwitch(self.sonar)
        self.prev_sonar_distance = 0.0
        self.sonar_dropouts = 0

        # The plant must step before anything reads a sensor
        self._last_physics_time = self.clock.now()
        scheduler.register("physics", self._physics_task, Phase.PRE_PERIODIC)

        # Drive base
        self.drive_base = DriveBase(
            "driveBase",
            scheduler,
            self.left_motor,
            self.right_motor,
            heading_source=self.gyro.get_heading,
            x_scale=DRIVE_X_SCALE,
            y_scale=DRIVE_Y_SCALE,
            rotation_scale=DRIVE_ROTATION_SCALE,
        )

        # Encoder distance + gyro heading
        self.encoder_y_pid = PidController(
            "encoderY",
            self.drive_base.get_y_position,
            DRIVE_KP, DRIVE_KI, DRIVE_KD, DRIVE_KF,
            DRIVE_TOLERANCE, DRIVE_SETTLING_TIME,
            clock=self.clock,
        )
        self.gyro_pid = PidController(
            "gyroTurn",
            self.drive_base.get_heading,
            TURN_KP, TURN_KI, TURN_KD, TURN_KF,
            TURN_TOLERANCE, TURN_SETTLING_TIME,
            clock=self.clock,
        )
        self.pid_drive = PidDrive(
            "pidDrive", scheduler, self.drive_base, y_pid=self.encoder_y_pid, turn_pid=self.gyro_pid
        )

        # Sonar range + heading hold. Range shrinks as the robot drives
        # forward, so the loop is inverted.
        self.sonar_pid = PidController(
            "sonarY",
            self.get_sonar_distance,
            SONAR_KP, 0.0, SONAR_KD, 0.0,
            SONAR_TOLERANCE, SONAR_SETTLING_TIME,
            clock=self.clock,
            absolute_setpoint=True,
            inverted=True,
        )
        self.heading_hold_pid = PidController(
            "headingHold",
            self.drive_base.get_heading,
            TURN_KP, TURN_KI, TURN_KD, 0.0,
            TURN_TOLERANCE, TURN_SETTLING_TIME,
            clock=self.clock,
            absolute_setpoint=True,
        )
        self.sonar_drive = PidDrive(
            "sonarDrive", scheduler, self.drive_base, y_pid=self.sonar_pid, turn_pid=self.heading_hold_pid
        )

        # Arm
        self.arm_pid = PidController(
            "armPid",
            lambda: self.arm.get_position(),
            ARM_KP, ARM_KI, ARM_KD, 0.0,
            ARM_TOLERANCE, ARM_SETTLING_TIME,
            clock=self.clock,
            absolute_setpoint=True,
        )
        self.arm = PidMotor(
            "arm", scheduler, self.arm_pid, self.arm_motor, position_scale=ARM_DEGREES_PER_COUNT
        )

        # Triggers
        self.light_trigger = AnalogTrigger(
            "lightTrigger", scheduler, self.get_light_value, LIGHT_ZONE_THRESHOLDS, self._on_line_zone
        )
        self.bump_trigger = DigitalTrigger("bumpTrigger", scheduler, self.bumper.is_pressed, self._on_bump)

    def get_sonar_distance(self) -> float:
        """Return the sonar range, substituting the last good value for a dropout."""
        distance = self.sonar.get_distance()
        if distance == 0.0:
            self.sonar_dropouts += 1
            return self.prev_sonar_distance
        self.prev_sonar_distance = distance
        return distance

    def get_light_value(self) -> float:
        return self.light_sensor.get_value()

    def active_drive(self) -> Optional[PidDrive]:
        """Return the PID drive currently running a move, if any."""
        for drive in (self.pid_drive, self.sonar_drive):
            if drive.is_active():
                return drive
        return None

    def cancel_all(self) -> None:
        """Cancel every closed-loop move and stop the drive."""
        self.pid_drive.cancel()
        self.sonar_drive.cancel()
        self.arm.cancel()
        self.drive_base.stop()

    def update_dashboard(self) -> None:
        self.dashboard.display_printf(
            1,
            "Pose: x=%.1f y=%.1f heading=%.1f",
            self.drive_base.get_x_position(), self.drive_base.get_y_position(), self.drive_base.get_heading(),
        )
        self.dashboard.display_printf(2, "Arm: %.1f deg", self.arm.get_position())
        drive = self.active_drive()
        if drive is not None:
            drive.display_pid_info(self.dashboard, 3)

    def _physics_task(self, run_mode: RunMode) -> None:
        now = self.clock.now()
        dt = now - self._last_physics_time
        self._last_physics_time = now
        self.drivetrain.update(run_mode)
        self.arm_motor.update(dt)

    def _on_line_zone(self, trigger: Trigger, zone: int, value: float) -> None:
        drive = self.active_drive()
        if zone > 0 and drive is not None:
            logging.info(f"Line detected (light={value:.2f}, zone={zone}), stopping {drive.name}")
            drive.cancel()

    def _on_bump(self, trigger: Trigger, zone: int, value: float) -> None:
        if zone == DigitalTrigger.PRESSED:
            drive = self.active_drive()
            logging.warning("Bump switch closed")
            if drive is not None:
                drive.cancel()
