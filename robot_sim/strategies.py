"""Autonomous strategies for the simulated robot.

Each strategy is a sequence of moves built from a StateMachine, a Timer and
the robot's PID drives. Every state body follows the same shape: issue a
move with a completion event, add the event to the machine, declare the next
state, and return. The machine holds the sequence until the event fires.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, Optional, Type

from motion_core.event import Event
from motion_core.host import RobotMode
from motion_core.scheduler import RunMode
from motion_core.state_machine import StateMachine
from motion_core.timer import Timer

from .config import (
    ARM_CALIBRATION_POWER,
    BEACON_ARM_ANGLE,
    BEACON_SEARCH_DISTANCE,
    BEACON_WALL_DISTANCE,
    MOVE_TIMEOUT,
    PARK_FINAL_DISTANCE,
    PARK_FORWARD_DISTANCE,
    PARK_TURN_ANGLE,
)
from .data_collector import DataCollector
from .robot import SimRobot


class AutonomousStrategy(ABC):
    """Base class for a move sequence run once per tick.

    Attributes:
        robot: Robot the strategy drives.
        sm: State machine sequencing the moves.
        event: Completion event reused by every move.
        timer: Delay timer.
        done: True once the sequence has finished.
    """

    name = "strategy"

    def __init__(self, robot: SimRobot, delay: float = 0.0) -> None:
        self.robot = robot
        self.delay = delay
        self.sm = StateMachine(self.name, robot.clock)
        self.event = Event(f"{self.name}.event")
        self.timer = Timer(f"{self.name}.timer", robot.scheduler)
        self.done = False

    @abstractmethod
    def start(self) -> None:
        """Arm the state machine at the first state."""

    @abstractmethod
    def step(self, elapsed_time: float) -> None:
        """Run the current state's body if the machine is ready."""

    def is_done(self) -> bool:
        return self.done

    def get_state(self) -> Optional[Enum]:
        return self.sm.get_state()

    def stop(self) -> None:
        self.timer.cancel()
        self.sm.stop()

    def _wait_then(self, next_state: Enum, timeout: float = 0.0) -> None:
        self.sm.add_event(self.event)
        self.sm.wait_for_events(next_state, timeout)

    def _finish(self, elapsed_time: float) -> None:
        logging.info(f"{self.name}: done at {elapsed_time:.2f}s")
        self.done = True
        self.sm.stop()


class ParkState(Enum):
    DELAY = "delay"
    FORWARD = "forward"
    TURN = "turn"
    FINAL = "final"
    DONE = "done"


class ParkStrategy(AutonomousStrategy):
    """Wait, drive forward, turn right and park."""

    name = "park"

    def start(self) -> None:
        self.done = False
        self.sm.start(ParkState.DELAY)

    def step(self, elapsed_time: float) -> None:
        if not self.sm.is_ready():
            return

        state = self.sm.get_state()
        pid_drive = self.robot.pid_drive

        if state is ParkState.DELAY:
            if self.delay == 0.0:
                self.sm.set_state(ParkState.FORWARD)
            else:
                self.timer.arm(self.delay, self.event)
                self._wait_then(ParkState.FORWARD)

        elif state is ParkState.FORWARD:
            pid_drive.set_target(PARK_FORWARD_DISTANCE, 0.0, event=self.event, timeout=MOVE_TIMEOUT)
            self._wait_then(ParkState.TURN)

        elif state is ParkState.TURN:
            pid_drive.set_target(0.0, PARK_TURN_ANGLE, event=self.event, timeout=MOVE_TIMEOUT)
            self._wait_then(ParkState.FINAL)

        elif state is ParkState.FINAL:
            pid_drive.set_target(PARK_FINAL_DISTANCE, 0.0, event=self.event, timeout=MOVE_TIMEOUT)
            self._wait_then(ParkState.DONE)

        else:
            self._finish(elapsed_time)


class BeaconState(Enum):
    FIND_LINE = "find_line"
    APPROACH_WALL = "approach_wall"
    PRESS_BEACON = "press_beacon"
    DONE = "done"


class BeaconStrategy(AutonomousStrategy):
    """Drive until the line is found, close in on the wall by sonar, raise the arm.

    The line search is a long fixed-distance move that the light trigger
    cancels when the line passes under the sensor. If the move ends without
    being canceled, the line was missed.

    Attributes:
        line_found: True if the light trigger ended the line search.
    """

    name = "beacon"

    def __init__(self, robot: SimRobot, delay: float = 0.0) -> None:
        super().__init__(robot, delay)
        self.line_found = False

    def start(self) -> None:
        self.done = False
        self.line_found = False
        self.sm.start(BeaconState.FIND_LINE)

    def stop(self) -> None:
        super().stop()
        self.robot.light_trigger.set_enabled(False)
        self.robot.bump_trigger.set_enabled(False)

    def step(self, elapsed_time: float) -> None:
        if not self.sm.is_ready():
            return

        state = self.sm.get_state()
        robot = self.robot

        if state is BeaconState.FIND_LINE:
            robot.arm.zero_calibrate(ARM_CALIBRATION_POWER)
            robot.light_trigger.set_enabled(True)
            robot.pid_drive.set_target(BEACON_SEARCH_DISTANCE, 0.0, event=self.event, timeout=MOVE_TIMEOUT)
            self._wait_then(BeaconState.APPROACH_WALL)

        elif state is BeaconState.APPROACH_WALL:
            robot.light_trigger.set_enabled(False)
            self.line_found = robot.pid_drive.is_canceled()
            if self.line_found:
                logging.info(f"{self.name}: line found at y={robot.drive_base.get_y_position():.1f}")
            else:
                logging.warning(f"{self.name}: line not found, approaching the wall anyway")

            robot.bump_trigger.set_enabled(True)
            robot.sonar_drive.set_target(BEACON_WALL_DISTANCE, 0.0, event=self.event, timeout=MOVE_TIMEOUT)
            self._wait_then(BeaconState.PRESS_BEACON)

        elif state is BeaconState.PRESS_BEACON:
            robot.bump_trigger.set_enabled(False)
            robot.arm.set_target(BEACON_ARM_ANGLE, event=self.event, timeout=MOVE_TIMEOUT)
            self._wait_then(BeaconState.DONE)

        else:
            self._finish(elapsed_time)


STRATEGIES: Dict[str, Type[AutonomousStrategy]] = {
    ParkStrategy.name: ParkStrategy,
    BeaconStrategy.name: BeaconStrategy,
}
"""Strategies selectable by name from the command line."""


def create_strategy(name: str, robot: SimRobot, delay: float = 0.0) -> AutonomousStrategy:
    """Build a strategy by name.

    Raises:
        ValueError: If the name is unknown.
    """
    try:
        strategy_cls = STRATEGIES[name]
    except KeyError:
        raise ValueError(f"Unknown strategy {name!r}, choose from {sorted(STRATEGIES)}") from None
    return strategy_cls(robot, delay)


class AutonomousMode(RobotMode):
    """Robot mode that runs one strategy and records the run.

    Attributes:
        robot: Robot being driven.
        strategy: Strategy stepped once per period.
        data_collector: Optional CSV recorder.
    """

    def __init__(
        self,
        robot: SimRobot,
        strategy: AutonomousStrategy,
        data_collector: Optional[DataCollector] = None,
    ):
        self.robot = robot
        self.strategy = strategy
        self.data_collector = data_collector
        self._last_state: Optional[Enum] = None
        self._start_time = 0.0

    def start_mode(self, run_mode: RunMode) -> None:
        self._start_time = self.robot.clock.now()
        self._last_state = None
        self.strategy.start()

    def stop_mode(self, run_mode: RunMode) -> None:
        self.strategy.stop()
        self.robot.cancel_all()
        if self.data_collector is not None:
            now = self.robot.clock.now()
            self._record_state(now, now - self._start_time)

    def run_periodic(self, elapsed_time: float) -> None:
        self.robot.update_dashboard()

    def run_continuous(self, elapsed_time: float) -> None:
        if self.data_collector is not None:
            self._record(elapsed_time)
        self.strategy.step(elapsed_time)

    def _record(self, elapsed_time: float) -> None:
        robot = self.robot
        collector = self.data_collector
        timestamp = robot.clock.now()

        collector.log_pose(
            timestamp,
            robot.drive_base.get_x_position(),
            robot.drive_base.get_y_position(),
            robot.drive_base.get_heading(),
            robot.drivetrain.field_x,
            robot.drivetrain.field_y,
            robot.drivetrain.field_heading,
        )
        collector.log_wheel_powers(timestamp, robot.drive_base.get_wheel_powers(), robot.arm.get_power())

        drive = robot.active_drive()
        if drive is not None:
            for pid in (drive.x_pid, drive.y_pid, drive.turn_pid):
                if pid is not None:
                    collector.log_pid(timestamp, pid.name, pid.get_diagnostics())
        if robot.arm.is_active():
            collector.log_pid(timestamp, robot.arm_pid.name, robot.arm_pid.get_diagnostics())

        self._record_state(timestamp, elapsed_time)

    def _record_state(self, timestamp: float, elapsed_time: float) -> None:
        state = self.strategy.get_state()
        if state != self._last_state:
            self.data_collector.log_state_transition(timestamp, elapsed_time, self.strategy.name, state)
            self._last_state = state
