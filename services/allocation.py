"""
Redistribution algorithms for percentage ranges.

Pure functions over sequences of floats. RangeSet wraps them with labels.

  - proportional excess: after an edit pushes the total above 100, every
    other range gives up part of the overflow in proportion to its share
  - proportional absorption: after a delete, the survivors soak up the
    removed value in proportion to their share
"""

import math

TOTAL = 100.0
TOLERANCE = 1e-6


def clamp_percentage(value: float) -> float:
    """Return value limited to [0, 100]. NaN is rejected."""
    value = float(value)
    if math.isnan(value):
        raise ValueError("Percentage must be a number")
    return max(0.0, min(TOTAL, value))


def remainder(values) -> float:
    """Unassigned percentage (100 - sum). Negative when over-allocated."""
    return TOTAL - math.fsum(values)


def is_complete(values, tolerance: float = TOLERANCE) -> bool:
    return abs(math.fsum(values) - TOTAL) <= tolerance


def apply_proportional_excess(values, index: int, new_value: float) -> list[float]:
    """
    Set values[index] to new_value and shrink the others to absorb any excess.

    Single pass: a range is floored at 0 and never refilled, so when the
    others are too small to absorb the overflow the total stays above 100.

    Returns:
        A new list; the input is left untouched.
    """
    updated = [float(v) for v in values]
    updated[index] = new_value

    total = math.fsum(updated)
    if total <= TOTAL:
        return updated

    excess = total - TOTAL
    others_total = total - new_value
    if others_total <= 0:
        return updated

    for j, value in enumerate(updated):
        if j == index:
            continue
        updated[j] = max(0.0, value - excess * (value / others_total))
    return updated


def apply_proportional_absorption(values, index: int) -> list[float]:
    """
    Remove values[index] and hand its weight to the survivors by share.

    When the survivors sum to 0 (or none are left) the removed value is
    simply dropped.
    """
    removed = float(values[index])
    survivors = [float(v) for j, v in enumerate(values) if j != index]

    survivors_total = math.fsum(survivors)
    if survivors_total <= 0:
        return survivors

    return [v + removed * (v / survivors_total) for v in survivors]
