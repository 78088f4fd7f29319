"""Threshold triggers that watch a sensor and fire a handler on zone change.

A trigger is sampled once per tick from the PRE_CONTINUOUS phase while
enabled. Firing is edge-based: the handler runs once per zone crossing, never
once per tick spent inside a zone.

The usual handler cancels an in-flight PidDrive when a "high" zone is entered,
which turns a fixed-distance move into "drive until line (or bump) found".
A handler must not issue a new target from inside the callback; let the
sequence issue it on the next tick once the move's event has fired.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence

import numpy as np

from .scheduler import Phase, RunMode, Scheduler

TriggerHandler = Callable[["Trigger", int, float], None]
"""Handler signature: handler(trigger, new_zone, value)."""


class Trigger(ABC):
    """Common enable/poll machinery for analog and digital triggers.

    Attributes:
        name: Trigger name used as its task name and in logs.
        scheduler: Scheduler the trigger polls itself from.
        handler: Callback invoked on zone change.
    """

    def __init__(self, name: str, scheduler: Scheduler, handler: TriggerHandler) -> None:
        if handler is None:
            raise ValueError(f"Trigger {name}: a handler is required")
        self.name = name
        self.scheduler = scheduler
        self.handler = handler
        self.zone: Optional[int] = None
        self.value: float = 0.0
        self._enabled = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, zone={self.zone})"

    def set_enabled(self, enabled: bool) -> None:
        """Start or stop sampling. Disabling forgets the current zone."""
        if enabled and not self._enabled:
            self.zone = self._initial_zone()
            self.scheduler.register(self.name, self.poll, Phase.PRE_CONTINUOUS)
        elif not enabled and self._enabled:
            self.scheduler.unregister(self.poll, Phase.PRE_CONTINUOUS)
            self.zone = None
        self._enabled = enabled

    def is_enabled(self) -> bool:
        return self._enabled

    def get_zone(self) -> Optional[int]:
        """Return the zone seen by the last sample, or None if not sampled yet."""
        return self.zone

    def poll(self, run_mode: Optional[RunMode] = None) -> None:
        """Sample the sensor and fire the handler if the zone changed."""
        if not self._enabled:
            return

        value = self._read()
        zone = self._zone_of(value)
        self.value = value

        if self.zone is None:
            self.zone = zone
            return

        if zone != self.zone:
            prev_zone = self.zone
            self.zone = zone
            logging.debug(f"Trigger {self.name}: zone {prev_zone} -> {zone} (value={value:.3f})")
            self.handler(self, zone, value)

    def _initial_zone(self) -> Optional[int]:
        return None

    @abstractmethod
    def _read(self) -> float:
        """Sample the sensor."""

    @abstractmethod
    def _zone_of(self, value: float) -> int:
        """Map a sample to its zone index."""


class AnalogTrigger(Trigger):
    """Zone detector over a continuous sensor value.

    N strictly increasing thresholds split the sensor range into N + 1 zones.
    Zone i holds values in (thresholds[i-1], thresholds[i]]; a value equal to
    a threshold belongs to the lower zone.

    The first sample after enabling establishes the starting zone without
    firing, so enabling the trigger while already over a line is not
    mistaken for a crossing.
    """

    def __init__(
        self,
        name: str,
        scheduler: Scheduler,
        sensor: Callable[[], float],
        thresholds: Sequence[float],
        handler: TriggerHandler,
    ) -> None:
        """Initialize the trigger (disabled).

        Args:
            name: Trigger name.
            scheduler: Scheduler to poll from while enabled.
            sensor: Accessor returning the current sensor value.
            thresholds: Zone boundaries, strictly increasing.
            handler: Called as handler(trigger, zone, value) on zone change.

        Raises:
            ValueError: If thresholds is empty or not strictly increasing.
        """
        super().__init__(name, scheduler, handler)
        self.sensor = sensor
        self.thresholds = np.empty(0)
        self.set_thresholds(thresholds)

    def set_thresholds(self, thresholds: Sequence[float]) -> None:
        """Replace the zone boundaries.

        Raises:
            ValueError: If thresholds is empty or not strictly increasing.
        """
        bounds = np.asarray(thresholds, dtype=float)
        if bounds.ndim != 1 or bounds.size == 0:
            raise ValueError(f"Trigger {self.name}: at least one threshold is required")
        if np.any(np.diff(bounds) <= 0.0):
            raise ValueError(
                f"Trigger {self.name}: thresholds must be strictly increasing, got {list(bounds)}"
            )
        self.thresholds = bounds

    def _read(self) -> float:
        return float(self.sensor())

    def _zone_of(self, value: float) -> int:
        return int(np.searchsorted(self.thresholds, value, side="left"))


class DigitalTrigger(Trigger):
    """Two-zone trigger over a boolean sensor: 0 released, 1 pressed.

    The trigger assumes released when enabled, so a switch already held at
    that moment fires on the first sample.
    """

    RELEASED = 0
    PRESSED = 1

    def __init__(
        self,
        name: str,
        scheduler: Scheduler,
        sensor: Callable[[], bool],
        handler: TriggerHandler,
    ) -> None:
        super().__init__(name, scheduler, handler)
        self.sensor = sensor

    def _initial_zone(self) -> Optional[int]:
        return self.RELEASED

    def _read(self) -> float:
        return 1.0 if self.sensor() else 0.0

    def _zone_of(self, value: float) -> int:
        return self.PRESSED if value else self.RELEASED
