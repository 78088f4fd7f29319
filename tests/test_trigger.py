"""Tests for AnalogTrigger and DigitalTrigger."""

import numpy as np
import pytest

from motion_core.scheduler import Phase, RunMode
from motion_core.trigger import AnalogTrigger, DigitalTrigger, Trigger


class Sensor:
    def __init__(self, value=0.0):
        self.value = value

    def read(self):
        return self.value


class Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, trigger, zone, value):
        self.calls.append((zone, value))

    @property
    def zones(self):
        return [zone for zone, _ in self.calls]


def poll(scheduler):
    scheduler.run_phase(Phase.PRE_CONTINUOUS, RunMode.AUTO)


@pytest.fixture
def sensor():
    return Sensor()


@pytest.fixture
def recorder():
    return Recorder()


def test_ramp_fires_once_per_crossing(scheduler, sensor, recorder):
    trigger = AnalogTrigger("ramp", scheduler, sensor.read, [1.0, 2.0, 3.0], recorder)
    trigger.set_enabled(True)

    for value in np.linspace(0.0, 4.0, 41):
        sensor.value = value
        poll(scheduler)

    assert recorder.zones == [1, 2, 3]
    assert trigger.get_zone() == 3


def test_fires_on_falling_crossings(scheduler, sensor, recorder):
    trigger = AnalogTrigger("ramp", scheduler, sensor.read, [1.0, 2.0], recorder)
    trigger.set_enabled(True)
    sensor.value = 2.5
    poll(scheduler)

    sensor.value = 0.2
    poll(scheduler)
    assert recorder.zones == [0]


def test_value_on_threshold_belongs_to_lower_zone(scheduler, sensor, recorder):
    trigger = AnalogTrigger("edge", scheduler, sensor.read, [1.0], recorder)
    trigger.set_enabled(True)
    poll(scheduler)

    sensor.value = 1.0
    poll(scheduler)
    assert recorder.calls == []

    sensor.value = 1.01
    poll(scheduler)
    assert recorder.calls == [(1, 1.01)]


def test_first_sample_is_silent(scheduler, sensor, recorder):
    trigger = AnalogTrigger("line", scheduler, sensor.read, [0.5], recorder)
    sensor.value = 0.9
    trigger.set_enabled(True)

    poll(scheduler)
    assert recorder.calls == []
    assert trigger.get_zone() == 1


def test_staying_in_zone_does_not_fire(scheduler, sensor, recorder):
    trigger = AnalogTrigger("line", scheduler, sensor.read, [0.5], recorder)
    trigger.set_enabled(True)
    poll(scheduler)

    sensor.value = 0.8
    for _ in range(10):
        poll(scheduler)
    assert recorder.zones == [1]


def test_disabled_trigger_is_not_polled(scheduler, sensor, recorder):
    trigger = AnalogTrigger("line", scheduler, sensor.read, [0.5], recorder)
    assert scheduler.task_names(Phase.PRE_CONTINUOUS) == []

    trigger.set_enabled(True)
    assert scheduler.task_names(Phase.PRE_CONTINUOUS) == ["line"]
    poll(scheduler)

    trigger.set_enabled(False)
    assert scheduler.task_names(Phase.PRE_CONTINUOUS) == []
    assert trigger.get_zone() is None

    sensor.value = 0.9
    poll(scheduler)
    trigger.poll()
    assert recorder.calls == []


def test_reenabling_resamples_silently(scheduler, sensor, recorder):
    trigger = AnalogTrigger("line", scheduler, sensor.read, [0.5], recorder)
    trigger.set_enabled(True)
    poll(scheduler)
    trigger.set_enabled(False)

    sensor.value = 0.9
    trigger.set_enabled(True)
    poll(scheduler)
    assert recorder.calls == []


def test_handler_receives_trigger(scheduler, sensor):
    seen = []
    trigger = AnalogTrigger("line", scheduler, sensor.read, [0.5], lambda t, zone, value: seen.append(t))
    trigger.set_enabled(True)
    poll(scheduler)
    sensor.value = 1.0
    poll(scheduler)
    assert seen == [trigger]
    assert trigger.value == 1.0


@pytest.mark.parametrize("thresholds", [[], [2.0, 1.0], [1.0, 1.0]])
def test_invalid_thresholds_raise(scheduler, sensor, recorder, thresholds):
    with pytest.raises(ValueError):
        AnalogTrigger("bad", scheduler, sensor.read, thresholds, recorder)


def test_set_thresholds_replaces_zones(scheduler, sensor, recorder):
    trigger = AnalogTrigger("line", scheduler, sensor.read, [0.5], recorder)
    trigger.set_thresholds([0.2, 0.4, 0.6])
    trigger.set_enabled(True)
    sensor.value = 0.5
    poll(scheduler)
    assert trigger.get_zone() == 2


def test_missing_handler_raises(scheduler, sensor):
    with pytest.raises(ValueError):
        AnalogTrigger("bad", scheduler, sensor.read, [0.5], None)


def test_digital_press_and_release(scheduler, recorder):
    switch = Sensor(False)
    trigger = DigitalTrigger("bumper", scheduler, switch.read, recorder)
    trigger.set_enabled(True)
    poll(scheduler)
    assert recorder.calls == []

    switch.value = True
    poll(scheduler)
    poll(scheduler)
    switch.value = False
    poll(scheduler)

    assert recorder.zones == [DigitalTrigger.PRESSED, DigitalTrigger.RELEASED]


def test_digital_held_at_enable_fires_on_first_sample(scheduler, recorder):
    switch = Sensor(True)
    trigger = DigitalTrigger("bumper", scheduler, switch.read, recorder)
    trigger.set_enabled(True)
    poll(scheduler)
    assert recorder.zones == [DigitalTrigger.PRESSED]


def test_trigger_without_zone_mapping_cannot_be_built(scheduler):
    class ReadOnly(Trigger):
        def _read(self):
            return 0.0

    with pytest.raises(TypeError):
        ReadOnly("partial", scheduler, lambda trigger, zone, value: None)
