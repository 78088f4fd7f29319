"""Actuator sink interface used by DriveBase and PidMotor.

Real robots subclass MotorController around their motor driver; the
simulator in `robot_sim.hardware` provides a plant model.
"""

from abc import ABC, abstractmethod


class MotorController(ABC):
    """A motor that accepts a power in [-1, 1] and reports a cumulative position.

    Subclasses must implement `set_power`, `get_power`, `get_position`
    and `reset_position`. Speed and limit switches are optional.

    Attributes:
        name: Motor name used in logs.
    """

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"

    @abstractmethod
    def set_power(self, power: float) -> None:
        """Command motor power in [-1, 1]."""

    @abstractmethod
    def get_position(self) -> float:
        """Return the cumulative encoder position (raw counts)."""

    @abstractmethod
    def reset_position(self) -> None:
        """Zero the encoder position."""

    @abstractmethod
    def get_power(self) -> float:
        """Return the last commanded power."""

    def get_speed(self) -> float:
        """Return encoder speed in counts per second, if the driver knows it."""
        return 0.0

    def is_fwd_limit_switch_active(self) -> bool:
        return False

    def is_rev_limit_switch_active(self) -> bool:
        return False
