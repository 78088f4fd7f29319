"""Small numeric helpers shared by the control components."""

from .config import MOTOR_MAX_POWER, MOTOR_MIN_POWER


def clamp(value: float, low: float = MOTOR_MIN_POWER, high: float = MOTOR_MAX_POWER) -> float:
    """Clip a value to the range [low, high].

    Args:
        value: Value to clip.
        low: Lower bound (default: minimum motor power).
        high: Upper bound (default: maximum motor power).

    Returns:
        The clipped value.
    """
    return max(low, min(high, value))


def sign(value: float) -> float:
    """Return -1.0, 0.0 or 1.0 according to the sign of value."""
    if value > 0.0:
        return 1.0
    if value < 0.0:
        return -1.0
    return 0.0


