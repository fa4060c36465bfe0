# Helper utilities
import math
from datetime import date


def round_half_up(value: float) -> int:
    """Round to nearest integer, halves away from -inf (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def clamp(value, low, high):
    return max(low, min(high, value))


def normalize(value: float, min_input: float, max_input: float) -> float:
    """Map value from [min_input, max_input] onto 0-100, clamped."""
    if max_input == min_input:
        return 100.0
    normalized = ((value - min_input) / (max_input - min_input)) * 100
    return clamp(normalized, 0.0, 100.0)


def classify_band(value, bands):
    for level, (low, high) in bands.items():
        if low <= value < high:
            return level
    return None


def days_between(earlier: date, later: date) -> int:
    return (later - earlier).days
