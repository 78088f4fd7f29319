"""Motion Core - Cooperative Motion Control for Small Wheeled Robots

A single-threaded control core that runs several closed loops (distance,
heading, line following, mechanism position) against one shared drive base,
with asynchronous completion signaling instead of blocking calls.

## Architecture Overview

Everything runs from one fixed-period loop. Nothing blocks: a move is issued,
the caller returns, and the move's Event is signaled on a later tick.

### Layer 1: Scheduling (scheduler.py, host.py)
The host calls the scheduler once per phase every period (50 ms).
- START / STOP: once per mode
- PRE_PERIODIC -> periodic logic -> POST_PERIODIC
- PRE_CONTINUOUS -> continuous logic -> POST_CONTINUOUS
- Output: deterministic per-tick ordering, registration order kept

### Layer 2: Signaling (event.py, timer.py, state_machine.py)
Completion notification and sequencing.
- Event: one-shot signal, never auto-clears
- Timer: signals an Event after a delay
- StateMachine: "wait for these events, then go to state X"

### Layer 3: Feedback (pid_controller.py, trigger.py)
- PidController: clamped PID with directional feedforward, tolerance and
  settling time
- AnalogTrigger / DigitalTrigger: edge-fired zone detectors that can cancel
  a move in flight

### Layer 4: Mechanisms (drive_base.py, pid_drive.py, pid_motor.py)
- DriveBase: tank, arcade and mecanum mixing; odometry from wheel deltas
- PidDrive: x/y/turn loops driving the DriveBase to a target
- PidMotor: position loop for an arm, lift or similar

## Modules

- `config.py` - Loop period, power limits, PID defaults
- `clock.py` - Monotonic and simulated time sources
- `event.py`, `timer.py` - Completion signaling
- `scheduler.py` - Phase scheduler and run modes
- `state_machine.py` - Event-gated sequencer
- `pid_controller.py` - PID loop
- `trigger.py` - Analog and digital triggers
- `hardware.py` - Motor sink interface
- `drive_base.py` - Drive kinematics and odometry
- `pid_drive.py`, `pid_motor.py` - Closed-loop moves
- `host.py` - Mode runner (real time or simulated)
- `dashboard.py` - Status line telemetry sink

## Quick Start

```python
from motion_core import Event, PidDrive, Scheduler, StateMachine

event = Event("forward")
pid_drive.set_target(24.0, 0.0, event=event, timeout=5.0)
sm.add_event(event)
sm.wait_for_events(State.TURN)
```

See `robot_sim` for a complete simulated robot and two autonomous sequences.
"""

__version__ = "0.1.0"

# Export key classes for convenience
from .clock import Clock, SimulatedClock
from .dashboard import Dashboard
from .drive_base import DriveBase
from .event import Event
from .hardware import MotorController
from .host import ModeRunner, RobotMode
from .pid_controller import PidController
from .pid_drive import PidDrive
from .pid_motor import PidMotor
from .scheduler import Phase, RunMode, Scheduler
from .state_machine import StateMachine
from .timer import Timer
from .trigger import AnalogTrigger, DigitalTrigger, Trigger

__all__ = [
    "Clock",
    "SimulatedClock",
    "Dashboard",
    "DriveBase",
    "Event",
    "MotorController",
    "ModeRunner",
    "RobotMode",
    "PidController",
    "PidDrive",
    "PidMotor",
    "Phase",
    "RunMode",
    "Scheduler",
    "StateMachine",
    "Timer",
    "AnalogTrigger",
    "DigitalTrigger",
    "Trigger",
]
