"""Tests for PidMotor moves, cancellation, limits and calibration."""

import logging

import pytest

from motion_core.event import Event
from motion_core.pid_controller import PidController
from motion_core.pid_motor import PidMotor
from motion_core.scheduler import Phase, RunMode


class CountingEvent(Event):
    def __init__(self, name):
        super().__init__(name)
        self.signal_count = 0

    def signal(self):
        self.signal_count += 1
        super().signal()


class ArmRig:
    """A PidMotor on a fake motor that moves 20 counts per tick at full power."""

    def __init__(self, scheduler, clock, motor):
        self.motor = motor
        self.jammed = False
        self.fwd_stop = None
        self.rev_stop = None
        self.pid = PidController(
            "arm",
            lambda: self.pid_motor.get_position(),
            kp=0.02,
            tolerance=0.5,
            settling_time=0.1,
            clock=clock,
            absolute_setpoint=True,
        )
        self.pid_motor = PidMotor("arm", scheduler, self.pid, motor)
        scheduler.register("plant", self.step, Phase.PRE_PERIODIC)

    def step(self, run_mode):
        if not self.jammed:
            self.motor.position += self.motor.power * 20.0
        if self.fwd_stop is not None:
            self.motor.fwd_limit = self.motor.position >= self.fwd_stop
        if self.rev_stop is not None:
            self.motor.rev_limit = self.motor.position <= self.rev_stop


@pytest.fixture
def rig(scheduler, clock, make_motor):
    return ArmRig(scheduler, clock, make_motor("arm"))


def tick_until(tick, predicate, max_ticks=200):
    for _ in range(max_ticks):
        if predicate():
            return True
        tick()
    return predicate()


def test_move_reaches_target_and_signals_once(rig, tick, scheduler):
    event = CountingEvent("arm")
    rig.pid_motor.set_target(50.0, event=event)
    assert rig.pid_motor.is_active()

    assert tick_until(tick, event.is_signaled)
    assert rig.motor.position == pytest.approx(50.0, abs=0.5)
    assert rig.motor.power == 0.0
    assert not rig.pid_motor.is_active()
    assert not event.is_canceled()

    tick(20)
    assert event.signal_count == 1
    assert "arm" not in scheduler.task_names(Phase.POST_CONTINUOUS)


def test_move_without_event(rig, tick):
    rig.pid_motor.set_target(30.0)
    assert tick_until(tick, lambda: not rig.pid_motor.is_active())
    assert rig.motor.position == pytest.approx(30.0, abs=0.5)


def test_timeout_finishes_move(rig, tick, caplog):
    rig.jammed = True
    event = Event("arm")
    rig.pid_motor.set_target(50.0, event=event, timeout=1.0)

    with caplog.at_level(logging.WARNING):
        assert tick_until(tick, event.is_signaled, max_ticks=40)
    assert not event.is_canceled()
    assert rig.motor.power == 0.0
    assert "timed out" in caplog.text


def test_limit_switch_ends_move(rig, tick):
    rig.fwd_stop = 30.0
    event = Event("arm")
    rig.pid_motor.set_target(50.0, event=event)

    assert tick_until(tick, event.is_signaled)
    assert rig.pid_motor.limit_reached
    assert rig.motor.power == 0.0
    assert rig.motor.position < 50.0


def test_limit_switch_only_blocks_its_direction(rig, tick):
    rig.motor.position = 40.0
    rig.motor.fwd_limit = True
    rig.pid_motor.set_target(10.0)
    tick()
    assert rig.pid_motor.is_active()
    assert rig.motor.power < 0.0


def test_hold_target_keeps_running(rig, tick):
    event = Event("arm")
    rig.pid_motor.set_target(50.0, hold_target=True, event=event)
    tick(100)
    assert rig.pid_motor.is_active()
    assert not event.is_signaled()
    assert rig.motor.position == pytest.approx(50.0, abs=0.5)

    rig.motor.position = 40.0
    tick(50)
    assert rig.motor.position == pytest.approx(50.0, abs=0.5)

    rig.pid_motor.cancel()
    assert event.is_canceled()
    assert not rig.pid_motor.is_active()


def test_new_target_cancels_previous_event(rig, tick):
    first = Event("first")
    second = Event("second")
    rig.pid_motor.set_target(50.0, event=first)
    tick(3)

    rig.pid_motor.set_target(0.0, event=second)
    assert first.is_canceled()
    assert not second.is_signaled()

    assert tick_until(tick, second.is_signaled)
    assert not second.is_canceled()
    assert rig.motor.position == pytest.approx(0.0, abs=0.5)


def test_set_power_cancels_move(rig, tick):
    event = Event("arm")
    rig.pid_motor.set_target(50.0, event=event)
    tick(2)

    rig.pid_motor.set_power(0.3)
    assert event.is_canceled()
    assert not rig.pid_motor.is_active()
    assert rig.motor.power == 0.3

    tick(5)
    assert rig.motor.power == 0.3


def test_cancel_when_idle_is_noop(rig):
    rig.pid_motor.cancel()
    assert not rig.pid_motor.is_active()


def test_zero_calibrate(rig, tick):
    rig.motor.position = 37.0
    rig.rev_stop = 0.0
    rig.pid_motor.zero_calibrate(0.3)
    assert rig.pid_motor.is_calibrating()

    tick()
    assert rig.motor.power == pytest.approx(-0.3)

    assert tick_until(tick, lambda: not rig.pid_motor.is_calibrating())
    assert rig.motor.position == 0.0
    assert rig.motor.power == 0.0
    assert not rig.pid_motor.is_active()


def test_set_target_ends_calibration(rig):
    rig.pid_motor.zero_calibrate(0.3)
    rig.pid_motor.set_target(10.0)
    assert not rig.pid_motor.is_calibrating()


def test_stall_protection_cuts_power(rig, tick, caplog):
    rig.jammed = True
    rig.pid_motor.set_stall_protection(0.1, 0.5, 0.5)
    rig.pid_motor.set_target(50.0)

    with caplog.at_level(logging.WARNING):
        tick(20)
    assert rig.pid_motor.is_stalled()
    assert rig.motor.power == 0.0
    assert "stalled" in caplog.text

    rig.pid_motor.cancel()
    rig.jammed = False
    rig.pid_motor.set_target(50.0)
    assert not rig.pid_motor.is_stalled()


def test_set_pid_power_limits_output(rig, tick):
    rig.pid_motor.set_pid_power(0.5, 0.0, 100.0)
    assert rig.pid_motor.is_active()
    assert rig.pid.get_target() == 100.0
    assert (rig.pid.output_min, rig.pid.output_max) == (-0.5, 0.5)

    tick()
    assert rig.motor.power == pytest.approx(0.5)

    rig.pid_motor.set_pid_power(0.0, 0.0, 100.0)
    assert not rig.pid_motor.is_active()
    assert (rig.pid.output_min, rig.pid.output_max) == (-1.0, 1.0)


def test_set_pid_power_release_holds_position(rig, tick):
    rig.pid_motor.set_pid_power(-0.4, -100.0, 100.0)
    tick(3)
    position = rig.pid_motor.get_position()

    rig.pid_motor.set_pid_power(0.0, -100.0, 100.0, hold_target=True)
    assert rig.pid_motor.is_active()
    assert rig.pid.get_target() == pytest.approx(position)
    assert (rig.pid.output_min, rig.pid.output_max) == (-1.0, 1.0)


def test_synchronized_pair(scheduler, clock, make_motor, tick):
    left, right = make_motor("left"), make_motor("right")
    holder = {}
    pid = PidController(
        "lift", lambda: holder["lift"].get_position(), kp=0.02, clock=clock, absolute_setpoint=True
    )
    lift = PidMotor("lift", scheduler, pid, left, right, sync_gain=0.01)
    holder["lift"] = lift

    left.position = 10.0
    assert lift.get_position() == 5.0

    lift.set_target(100.0)
    tick()
    assert left.power == pytest.approx(0.9)
    assert right.power == 1.0


def test_position_scale(scheduler, clock, make_motor):
    motor = make_motor("arm")
    pid = PidController("arm", lambda: 0.0, kp=0.1, clock=clock)
    arm = PidMotor("arm", scheduler, pid, motor, position_scale=0.1)
    motor.position = 250.0
    assert arm.get_position() == pytest.approx(25.0)


def test_stop_phase_cancels_move(rig, scheduler):
    event = Event("arm")
    rig.pid_motor.set_target(50.0, event=event)
    scheduler.run_phase(Phase.STOP, RunMode.AUTO)
    assert event.is_canceled()
    assert not rig.pid_motor.is_active()


def test_invalid_construction_raises(scheduler, clock, make_motor):
    pid = PidController("arm", lambda: 0.0, kp=0.1, clock=clock)
    with pytest.raises(ValueError):
        PidMotor("arm", scheduler, pid, None)
    with pytest.raises(ValueError):
        PidMotor("arm", scheduler, None, make_motor())
    with pytest.raises(ValueError):
        PidMotor("arm", scheduler, pid, make_motor(), position_scale=0.0)
