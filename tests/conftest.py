"""Shared fixtures: a simulated clock, a scheduler on it, and fake hardware."""

import matplotlib

matplotlib.use("Agg")

import pytest

from motion_core.clock import SimulatedClock
from motion_core.config import LOOP_PERIOD
from motion_core.hardware import MotorController
from motion_core.scheduler import Phase, RunMode, Scheduler


class FakeMotor(MotorController):
    """Motor whose encoder the test moves by hand."""

    def __init__(self, name="motor"):
        super().__init__(name)
        self.power = 0.0
        self.position = 0.0
        self.fwd_limit = False
        self.rev_limit = False
        self.power_history = []

    def set_power(self, power):
        self.power = power
        self.power_history.append(power)

    def get_power(self):
        return self.power

    def get_position(self):
        return self.position

    def reset_position(self):
        self.position = 0.0

    def is_fwd_limit_switch_active(self):
        return self.fwd_limit

    def is_rev_limit_switch_active(self):
        return self.rev_limit


@pytest.fixture
def clock():
    return SimulatedClock()


@pytest.fixture
def scheduler(clock):
    return Scheduler(clock)


@pytest.fixture
def make_motor():
    return FakeMotor


@pytest.fixture
def tick(scheduler, clock):
    """Run one full period of phases, then advance the clock.

    Returns a function tick(n=1, body=None); body(elapsed) runs where the
    host's continuous logic would.
    """

    def _tick(n=1, body=None, run_mode=RunMode.AUTO):
        for _ in range(n):
            scheduler.run_phase(Phase.PRE_PERIODIC, run_mode)
            scheduler.run_phase(Phase.POST_PERIODIC, run_mode)
            scheduler.run_phase(Phase.PRE_CONTINUOUS, run_mode)
            if body is not None:
                body(clock.now())
            scheduler.run_phase(Phase.POST_CONTINUOUS, run_mode)
            clock.advance(LOOP_PERIOD)

    return _tick
