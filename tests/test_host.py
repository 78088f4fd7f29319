"""Tests for the mode host, the dashboard and the clocks."""

import asyncio
import logging

import pytest

from motion_core.clock import Clock, SimulatedClock
from motion_core.dashboard import Dashboard
from motion_core.host import ModeRunner, RobotMode
from motion_core.scheduler import Phase, RunMode, Scheduler


class RecordingMode(RobotMode):
    def __init__(self, calls):
        self.calls = calls

    def start_mode(self, run_mode):
        self.calls.append("start_mode")

    def stop_mode(self, run_mode):
        self.calls.append("stop_mode")

    def run_periodic(self, elapsed_time):
        self.calls.append("run_periodic")

    def run_continuous(self, elapsed_time):
        self.calls.append("run_continuous")


def record_phases(scheduler, calls):
    for phase in Phase:
        scheduler.register(phase.name, lambda mode, name=phase.name: calls.append(name), phase)


def test_period_phase_order(scheduler):
    calls = []
    record_phases(scheduler, calls)
    runner = ModeRunner(scheduler, RecordingMode(calls))

    runner.start()
    runner.run_period()
    runner.stop()

    assert calls == [
        "start_mode",
        "START",
        "PRE_PERIODIC",
        "run_periodic",
        "POST_PERIODIC",
        "PRE_CONTINUOUS",
        "run_continuous",
        "POST_CONTINUOUS",
        "STOP",
        "stop_mode",
    ]


def test_callbacks_receive_runner_mode(scheduler):
    modes = []
    scheduler.register("task", modes.append, Phase.PRE_PERIODIC)
    runner = ModeRunner(scheduler, RobotMode(), run_mode=RunMode.TELEOP)
    runner.start()
    runner.run_period()
    assert modes == [RunMode.TELEOP]


def test_run_simulated_advances_clock(scheduler, clock):
    runner = ModeRunner(scheduler, RobotMode(), period=0.25)
    periods = runner.run_simulated(1.0)

    assert periods == 4
    assert clock.now() == pytest.approx(1.0)
    assert not runner.running


def test_run_simulated_until(scheduler):
    elapsed = []

    class Counting(RobotMode):
        def run_continuous(self, elapsed_time):
            elapsed.append(elapsed_time)

    runner = ModeRunner(scheduler, Counting(), period=0.25)
    periods = runner.run_simulated(10.0, until=lambda: len(elapsed) >= 3)

    assert periods == 3
    assert elapsed == [0.0, 0.25, 0.5]


def test_run_simulated_requires_simulated_clock():
    runner = ModeRunner(Scheduler(Clock()), RobotMode())
    with pytest.raises(ValueError):
        runner.run_simulated(1.0)


def test_invalid_period_raises(scheduler):
    with pytest.raises(ValueError):
        ModeRunner(scheduler, RobotMode(), period=0.0)


def test_failing_mode_hook_is_logged(scheduler, caplog):
    calls = []
    scheduler.register("after", lambda mode: calls.append("after"), Phase.POST_CONTINUOUS)

    class Broken(RobotMode):
        def run_continuous(self, elapsed_time):
            raise RuntimeError("bad sequence")

    runner = ModeRunner(scheduler, Broken(), period=0.25)
    with caplog.at_level(logging.ERROR):
        runner.run_simulated(0.5)

    assert calls == ["after", "after"]
    assert "bad sequence" in caplog.text


def test_stop_runs_once(scheduler):
    calls = []
    record_phases(scheduler, calls)
    runner = ModeRunner(scheduler, RecordingMode(calls))
    runner.start()
    runner.stop()
    runner.stop()
    assert calls.count("STOP") == 1


def test_request_stop_ends_run(scheduler):
    runner = ModeRunner(scheduler, RobotMode(), period=0.25)

    class Stopper(RobotMode):
        def run_continuous(self, elapsed_time):
            runner.request_stop()

    runner.mode = Stopper()
    assert runner.run_simulated(10.0) == 1


def test_dashboard_refreshed_each_period(scheduler):
    dashboard = Dashboard(2)
    published = []

    class Writer(RobotMode):
        def run_periodic(self, elapsed_time):
            dashboard.display_printf(0, "t=%.2f", elapsed_time)

    runner = ModeRunner(scheduler, Writer(), period=0.25, dashboard=dashboard)
    runner.start()
    for _ in range(2):
        runner.run_period()
        published.append(dashboard.get_line(0))
        scheduler.clock.advance(0.25)
    assert published == ["t=0.00", "t=0.25"]


def test_async_run_paces_on_wall_clock():
    scheduler = Scheduler(Clock())
    calls = []
    record_phases(scheduler, calls)
    runner = ModeRunner(scheduler, RecordingMode(calls), period=0.01)

    periods = asyncio.run(runner.run(duration=0.05))

    assert periods >= 1
    assert calls[0] == "start_mode"
    assert calls[-1] == "stop_mode"
    assert not runner.running


def test_async_run_until():
    scheduler = Scheduler(Clock())
    runner = ModeRunner(scheduler, RobotMode(), period=0.01)
    assert asyncio.run(runner.run(until=lambda: True)) == 1


def test_dashboard_lines():
    dashboard = Dashboard(3)
    dashboard.display_printf(0, "Arm=%.1f", 12.345)
    dashboard.display_printf(1, "plain text")
    assert dashboard.get_line(0) == "Arm=12.3"
    assert dashboard.get_line(1) == "plain text"

    assert dashboard.refresh_display() == ["Arm=12.3", "plain text"]
    assert dashboard.refresh_display() == []

    dashboard.clear_display()
    assert dashboard.get_line(0) == ""
    assert dashboard.refresh_display() == ["", ""]


def test_dashboard_out_of_range_line_warns(caplog):
    dashboard = Dashboard(2)
    dashboard.display_printf(5, "lost")
    assert "out of range" in caplog.text


def test_simulated_clock():
    clock = SimulatedClock(2.0)
    clock.advance(0.5)
    assert clock.now() == 2.5
    assert clock.now_millis() == 2500
    clock.set_time(10.0)
    assert clock.now() == 10.0
