"""
Closed numeric ranges used to describe declared feature scales.
"""

from typing import NamedTuple, Union

Number = Union[int, float]


class Range(NamedTuple):
    """Immutable closed interval. ``lower <= upper`` is not enforced."""

    lower: Number
    upper: Number

    @property
    def length(self) -> float:
        return self.upper - self.lower

    def contains(self, value: Number) -> bool:
        return self.lower <= value <= self.upper
