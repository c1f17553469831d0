"""
Labelled percentage ranges for one demographic chart.

A RangeSet is immutable: every mutation returns a new RangeSet and leaves
the original alone, so an edit session can hold the current version and
throw it away on discard.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Iterator

from services.allocation import (
    TOLERANCE,
    apply_proportional_absorption,
    apply_proportional_excess,
    clamp_percentage,
    is_complete,
    remainder,
)
from services.errors import DuplicateLabelError, IndexOutOfRangeError


@dataclass(frozen=True, slots=True)
class Range:
    label: str
    value: float

    def to_dict(self):
        return {"label": self.label, "value": self.value}


@dataclass(frozen=True, slots=True)
class RangeSet:
    """Ordered ranges; the values should sum to 100 once editing is done."""

    ranges: tuple[Range, ...] = ()

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, float]]) -> RangeSet:
        return cls(tuple(Range(label, float(value)) for label, value in pairs))

    @classmethod
    def from_list(cls, items: Iterable[dict]) -> RangeSet:
        """Build from the persisted form: [{"label": ..., "value": ...}]."""
        return cls.from_pairs((item["label"], item.get("value", 0)) for item in items)

    def to_list(self) -> list[dict]:
        return [r.to_dict() for r in self.ranges]

    # ── Read-only views ──────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self.ranges)

    def __iter__(self) -> Iterator[Range]:
        return iter(self.ranges)

    def __getitem__(self, index: int) -> Range:
        return self.ranges[self._check_index(index)]

    @property
    def labels(self) -> list[str]:
        return [r.label for r in self.ranges]

    @property
    def values(self) -> list[float]:
        return [r.value for r in self.ranges]

    def sum(self) -> float:
        return math.fsum(self.values)

    def is_complete(self, tolerance: float = TOLERANCE) -> bool:
        """True when the values add up to 100. An empty set never does."""
        return bool(self.ranges) and is_complete(self.values, tolerance)

    @property
    def remaining(self) -> float:
        """100 - sum, deliberately not clamped so over-allocation shows."""
        return remainder(self.values)

    # ── Mutations (each returns a new RangeSet) ─────────────────────────

    def add_range(self, label: str, value: float) -> RangeSet:
        """
        Append a range. Other values are not touched; callers that want the
        total to stay at 100 pass the current remainder as value.
        """
        if not label:
            raise DuplicateLabelError("Range label must not be empty")
        if label in self.labels:
            raise DuplicateLabelError(f"Range '{label}' already exists")
        value = clamp_percentage(value)
        return RangeSet(self.ranges + (Range(label, value),))

    def update_value(self, index: int, new_value: float) -> RangeSet:
        index = self._check_index(index)
        new_value = clamp_percentage(new_value)
        values = apply_proportional_excess(self.values, index, new_value)
        return self._with_values(self.ranges, values)

    def delete_range(self, index: int) -> RangeSet:
        index = self._check_index(index)
        survivors = self.ranges[:index] + self.ranges[index + 1:]
        values = apply_proportional_absorption(self.values, index)
        return self._with_values(survivors, values)

    # ── Internal helpers ─────────────────────────────────────────────────

    def _check_index(self, index: int) -> int:
        if isinstance(index, bool) or not isinstance(index, int):
            raise IndexOutOfRangeError(f"Range index must be an integer, got {index!r}")
        if index < 0 or index >= len(self.ranges):
            raise IndexOutOfRangeError(
                f"Range index {index} out of range (0..{len(self.ranges) - 1})"
            )
        return index

    @staticmethod
    def _with_values(ranges: tuple[Range, ...], values: list[float]) -> RangeSet:
        return RangeSet(
            tuple(Range(r.label, v) for r, v in zip(ranges, values, strict=True))
        )
