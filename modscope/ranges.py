"""Closed numeric ranges and the Modbus protocol limits."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

Number = Union[int, float]


@dataclass(frozen=True)
class Range:
    """A closed interval; the bounds are put in order on creation."""

    start: Number
    end: Number

    def __post_init__(self) -> None:
        if self.end < self.start:
            low, high = self.end, self.start
            object.__setattr__(self, "start", low)
            object.__setattr__(self, "end", high)

    def contains(self, num: Number) -> bool:
        """Return True if num lies within the bounds, inclusive."""
        return self.start <= num <= self.end

    def __contains__(self, num: Number) -> bool:
        return self.contains(num)


def address_range(zero_based: bool = False) -> Range:
    """Valid point addresses for the given address base."""
    return Range(0 if zero_based else 1, 65535)


def length_range() -> Range:
    """Valid number of points in one scan."""
    return Range(1, 125)


def slave_range() -> Range:
    """Valid device (slave) identifiers."""
    return Range(1, 255)