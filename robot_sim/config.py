"""Configuration parameters for the simulated robot.

This module centralizes the parameters of the simulated robot and field:
- Drive train and encoder geometry
- Motor plant dynamics
- PID gains for every closed loop
- Sensor models and trigger zone tables
- Field layout
- Visualization settings

Units: inches, degrees and seconds throughout. Heading is positive clockwise.
"""

import math

# ============================================================================
# Drive Train Geometry
# ============================================================================

COUNTS_PER_INCH = 50.0
"""Drive encoder counts per inch of wheel travel."""

TRACK_WIDTH = 14.0
"""Distance between the left and right wheels (inches).
Sets how far the robot turns for a given wheel speed difference."""

DRIVE_X_SCALE = 1.0 / COUNTS_PER_INCH
"""DriveBase strafe scale (inches per raw x unit)."""

DRIVE_Y_SCALE = 1.0 / COUNTS_PER_INCH
"""DriveBase forward scale (inches per raw y unit)."""

DRIVE_ROTATION_SCALE = math.degrees(2.0 / (COUNTS_PER_INCH * TRACK_WIDTH))
"""DriveBase rotation scale (degrees per raw rotation unit).
A raw rotation unit is half the left/right count difference."""


# ============================================================================
# Motor Plant
# ============================================================================

DRIVE_MOTOR_MAX_SPEED = 1500.0
"""Drive motor speed at full power (counts/s), i.e. 30 in/s."""

DRIVE_MOTOR_TIME_CONSTANT = 0.1
"""First-order lag of the drive motors (seconds).
The motor reaches ~63% of a new commanded speed after this long."""

ARM_MOTOR_MAX_SPEED = 600.0
"""Arm motor speed at full power (counts/s), i.e. 60 deg/s."""

ARM_MOTOR_TIME_CONSTANT = 0.05
"""First-order lag of the arm motor (seconds)."""

ARM_DEGREES_PER_COUNT = 0.1
"""Arm position scale (degrees per encoder count)."""

ARM_MAX_COUNTS = 900.0
"""Arm forward hard stop / limit switch position (counts), i.e. 90 degrees."""

ARM_START_COUNTS = 50.0
"""Arm position at power-up, above the reverse stop so it needs calibrating."""


# ============================================================================
# PID Gains
# ============================================================================

DRIVE_KP = 0.06
"""Distance loop proportional gain (power per inch).
Saturates at full power beyond ~17 inches of error."""

DRIVE_KI = 0.0
"""Distance loop integral gain."""

DRIVE_KD = 0.004
"""Distance loop derivative gain."""

DRIVE_KF = 0.03
"""Distance loop feedforward (minimum power to keep the robot moving)."""

DRIVE_TOLERANCE = 1.0
"""Distance loop on-target tolerance (inches)."""

DRIVE_SETTLING_TIME = 0.2
"""Distance loop settling time (seconds)."""

TURN_KP = 0.01
"""Heading loop proportional gain (power per degree)."""

TURN_KI = 0.0
"""Heading loop integral gain."""

TURN_KD = 0.0005
"""Heading loop derivative gain."""

TURN_KF = 0.02
"""Heading loop feedforward."""

TURN_TOLERANCE = 2.0
"""Heading loop on-target tolerance (degrees)."""

TURN_SETTLING_TIME = 0.2
"""Heading loop settling time (seconds)."""

SONAR_KP = 0.05
"""Rangefinder approach proportional gain (power per inch of range error)."""

SONAR_KD = 0.002
"""Rangefinder approach derivative gain."""

SONAR_TOLERANCE = 1.0
"""Rangefinder approach tolerance (inches)."""

SONAR_SETTLING_TIME = 0.2
"""Rangefinder approach settling time (seconds)."""

ARM_KP = 0.03
"""Arm position proportional gain (power per degree)."""

ARM_KI = 0.0
"""Arm position integral gain."""

ARM_KD = 0.0
"""Arm position derivative gain."""

ARM_TOLERANCE = 2.0
"""Arm on-target tolerance (degrees)."""

ARM_SETTLING_TIME = 0.1
"""Arm settling time (seconds)."""

ARM_CALIBRATION_POWER = 0.3
"""Power used to drive the arm onto its reverse limit switch."""


# ============================================================================
# Sensors and Triggers
# ============================================================================

LIGHT_FLOOR_VALUE = 0.2
"""Light sensor reading over bare floor."""

LIGHT_LINE_VALUE = 0.8
"""Light sensor reading over the tape line."""

LIGHT_NOISE = 0.02
"""Standard deviation of light sensor noise."""

LIGHT_ZONE_THRESHOLDS = (0.35, 0.65)
"""Light trigger zones: 0 floor, 1 line edge, 2 on line.
Entering any zone above 0 counts as finding the line."""

SONAR_NOISE = 0.1
"""Standard deviation of rangefinder noise (inches)."""

SONAR_MAX_RANGE = 120.0
"""Rangefinder maximum range (inches)."""

SONAR_DROPOUT_PROBABILITY = 0.05
"""Probability that a rangefinder sample reads zero (a dropout)."""

BUMPER_CONTACT_DISTANCE = 0.5
"""Wall distance at which the front bump switch closes (inches)."""


# ============================================================================
# Field Layout
# ============================================================================

LINE_Y = 36.0
"""Forward position of the tape line across the field (inches)."""

LINE_WIDTH = 4.0
"""Width of the tape line (inches).
Wider than one tick of travel at full speed so the sensor cannot skip it."""

WALL_Y = 72.0
"""Forward position of the wall facing the robot (inches)."""


# ============================================================================
# Autonomous Strategies
# ============================================================================

PARK_FORWARD_DISTANCE = 24.0
"""First leg of the park sequence (inches)."""

PARK_TURN_ANGLE = 90.0
"""Turn of the park sequence (degrees, clockwise)."""

PARK_FINAL_DISTANCE = 12.0
"""Last leg of the park sequence (inches)."""

BEACON_SEARCH_DISTANCE = 60.0
"""Maximum distance to drive while searching for the line (inches)."""

BEACON_WALL_DISTANCE = 6.0
"""Range to hold from the wall when approaching the beacon (inches)."""

BEACON_ARM_ANGLE = 60.0
"""Arm angle for pressing the beacon (degrees)."""

MOVE_TIMEOUT = 5.0
"""Timeout for each autonomous move (seconds)."""

RUN_DURATION = 30.0
"""Default autonomous run length (seconds)."""


# ============================================================================
# Visualization Colors
# ============================================================================

PLOT_ORANGE = "#f74823"
"""Primary color - measured and actual values."""

PLOT_BLUE = "#2374f7"
"""Secondary color - targets and setpoints."""

PLOT_TAUPE = "#686a5f"
"""Neutral color for guides, field features and secondary elements."""

PLOT_YELLOW_ORANGE = "#ffa726"
"""Accent color for events and state transitions."""

# Terminal color codes (ANSI escape sequences)
TERM_BLUE = "\033[38;2;35;116;247m"
"""Terminal color code for blue (RGB: 35, 116, 247)."""

TERM_RESET = "\033[0m"
"""Terminal color reset code."""
