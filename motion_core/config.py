"""Configuration parameters for the motion-control core.

This module centralizes the constants the core components fall back on:
- Loop timing assumed by PID tuning
- Actuator power limits
- Default PID convergence parameters

Robot-specific gains and geometry belong to the robot wiring (see
`robot_sim.config` for the simulated robot), not here.
"""

# ============================================================================
# Loop Timing
# ============================================================================

LOOP_PERIOD = 0.05
"""Fixed scheduler period (seconds).

The host dispatches every scheduler phase once per period. PID derivative
terms and settling timers are tuned against this rate, so hosts must keep it
consistent (20 Hz).
"""

LOOP_PERIOD_MILLIS = int(LOOP_PERIOD * 1000)
"""Fixed scheduler period (milliseconds)."""


# ============================================================================
# Actuator Limits
# ============================================================================

MOTOR_MIN_POWER = -1.0
"""Minimum normalized motor power. Hardware limit."""

MOTOR_MAX_POWER = 1.0
"""Maximum normalized motor power. Hardware limit."""


# ============================================================================
# PID Defaults
# ============================================================================

PID_DEFAULT_TOLERANCE = 0.0
"""Default on-target tolerance (process-variable units).

Zero means the error must be exactly zero, so every real controller should
pass its own tolerance.
"""

PID_DEFAULT_SETTLING_TIME = 0.0
"""Default settling time (seconds).

Zero means a controller is on target on the first tick the error is within
tolerance.
"""

PID_DEFAULT_OUTPUT_MIN = MOTOR_MIN_POWER
"""Default lower output clamp for a PID controller."""

PID_DEFAULT_OUTPUT_MAX = MOTOR_MAX_POWER
"""Default upper output clamp for a PID controller."""


# ============================================================================
# Dashboard
# ============================================================================

DASHBOARD_NUM_LINES = 16
"""Number of status lines held by the telemetry dashboard."""
