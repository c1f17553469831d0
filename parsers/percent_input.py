"""
Parse percentages typed into a range's numeric input.

Accepts things like "40", "40%" or " 12.5 % ". Commas are thousands
separators and are dropped, so "1,5" reads as 15. An empty field counts as
0. Clamping to [0, 100] is left to the engine.
"""

import math
import re


def parse_percent_input(raw) -> float:
    """Return the number in raw, raising ValueError if there isn't one."""
    if raw is None:
        return 0.0
    if isinstance(raw, bool):
        raise ValueError("Percentage must be a number")
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        text = re.sub(r"[%,\s]", "", str(raw))
        if not text:
            return 0.0
        try:
            value = float(text)
        except ValueError:
            raise ValueError(f"Could not read a percentage from {raw!r}") from None

    if not math.isfinite(value):
        raise ValueError(f"Percentage must be a finite number, got {raw!r}")
    return value
