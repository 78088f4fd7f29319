"""Tests for the event-gated state machine."""

from enum import Enum, auto

import pytest

from motion_core.event import Event
from motion_core.state_machine import StateMachine


class State(Enum):
    FIRST = auto()
    SECOND = auto()
    THIRD = auto()


@pytest.fixture
def sm(clock):
    machine = StateMachine("test", clock)
    machine.start(State.FIRST)
    return machine


def test_new_machine_is_disabled(clock):
    machine = StateMachine("idle", clock)
    assert not machine.is_enabled()
    assert not machine.is_ready()
    assert machine.get_state() is None


def test_started_machine_is_ready_with_nothing_awaited(sm):
    assert sm.is_enabled()
    assert sm.is_ready()
    assert sm.get_state() is State.FIRST


def test_waits_for_all_events_in_any_order(sm):
    a = Event("a")
    b = Event("b")
    sm.add_event(a)
    sm.add_event(b)
    sm.wait_for_events(State.SECOND)

    b.signal()
    for _ in range(20):
        assert not sm.is_ready()
        assert sm.get_state() is State.FIRST

    a.signal()
    assert sm.is_ready()
    assert sm.get_state() is State.SECOND


def test_events_may_be_added_after_wait(sm):
    sm.wait_for_events(State.SECOND)
    event = Event("late")
    sm.add_event(event)
    assert not sm.is_ready()

    event.signal()
    assert sm.is_ready()
    assert sm.get_state() is State.SECOND


def test_wait_for_any_event(sm):
    a = Event("a")
    b = Event("b")
    sm.add_event(a)
    sm.add_event(b)
    sm.wait_for_events(State.SECOND, wait_for_all=False)

    assert not sm.is_ready()
    b.signal()
    assert sm.is_ready()
    assert sm.get_state() is State.SECOND


def test_consumed_events_are_cleared(sm):
    event = Event("move")
    sm.add_event(event)
    sm.wait_for_events(State.SECOND)
    event.signal()

    assert sm.is_ready()
    assert not event.is_signaled()

    # Reusing the same event in the next state waits afresh
    sm.add_event(event)
    sm.wait_for_events(State.THIRD)
    assert not sm.is_ready()
    assert sm.get_state() is State.SECOND


def test_duplicate_event_is_awaited_once(sm):
    event = Event("move")
    sm.add_event(event)
    sm.add_event(event)
    sm.wait_for_events(State.SECOND)

    event.signal()
    assert sm.is_ready()


def test_canceled_event_counts_as_fired(sm):
    event = Event("move")
    sm.add_event(event)
    sm.wait_for_events(State.SECOND)

    event.cancel()
    assert sm.is_ready()
    assert sm.get_state() is State.SECOND


def test_wait_timeout(sm, clock):
    event = Event("never")
    sm.add_event(event)
    sm.wait_for_events(State.SECOND, timeout=1.0)

    clock.set_time(0.5)
    assert not sm.is_ready()
    assert not sm.is_timed_out()

    clock.set_time(1.0)
    assert sm.is_ready()
    assert sm.is_timed_out()
    assert sm.get_state() is State.SECOND


def test_event_before_timeout_is_not_timed_out(sm, clock):
    event = Event("move")
    sm.add_event(event)
    sm.wait_for_events(State.SECOND, timeout=1.0)

    clock.set_time(0.3)
    event.signal()
    assert sm.is_ready()
    assert not sm.is_timed_out()


def test_set_state_transitions_immediately(sm):
    sm.set_state(State.THIRD)
    assert sm.is_ready()
    assert sm.get_state() is State.THIRD


def test_stop_is_terminal_until_restarted(sm):
    event = Event("move")
    sm.add_event(event)
    sm.wait_for_events(State.SECOND)
    sm.stop()

    event.signal()
    assert not sm.is_enabled()
    assert not sm.is_ready()
    assert sm.get_state() is None

    sm.start(State.SECOND)
    assert sm.is_ready()
    assert sm.get_state() is State.SECOND


def test_issue_and_wait_in_same_body(sm, clock):
    """The usual sequence idiom: one body issues a wait, later ticks poll it."""
    event = Event("move")
    visited = []

    for step in range(10):
        clock.set_time(step * 0.1)
        if step == 4:
            event.signal()
        if sm.is_ready():
            state = sm.get_state()
            visited.append(state)
            if state is State.FIRST:
                sm.add_event(event)
                sm.wait_for_events(State.SECOND)
            elif state is State.SECOND:
                sm.stop()

    assert visited == [State.FIRST, State.SECOND]
