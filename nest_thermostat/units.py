"""Temperature conversion helpers."""

import math


def celsius_to_fahrenheit(celsius: float) -> float:
    """Convert a Celsius temperature to Fahrenheit."""
    return celsius * 9 / 5 + 32


def fahrenheit_to_celsius(fahrenheit: float) -> float:
    """Convert a Fahrenheit temperature to Celsius."""
    return (fahrenheit - 32) / 1.8


def round_display(value: float) -> float:
    """Round to 2 decimal places, halves away from zero.

    Args:
        value: Temperature to round.

    Returns:
        The rounded temperature.

    """
    scaled = abs(value) * 100
    return math.copysign(math.floor(scaled + 0.5), value) / 100


def truncate_setpoint(value: float) -> int:
    """Drop the fractional part of a setpoint, truncating toward zero."""
    return math.trunc(value)
