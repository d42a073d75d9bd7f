"""
commsnet/network/schema/pin_range.py - Pin Range Schema

A contiguous set of connection pins (fibers, copper pairs, ports)
on one side of a network object.
"""

from dataclasses import dataclass
from typing import Iterator, List, Union
from enum import Enum

from commsnet.errors.exceptions import InvalidPinRangeError

__all__ = ['Side', 'PinRange', 'pin_range_of', 'other_side']


class Side(str, Enum):
    """Side of a network object on which pins sit."""
    IN = "in"
    OUT = "out"

    def other(self) -> "Side":
        return Side.OUT if self is Side.IN else Side.IN


def other_side(side: Union[str, Side]) -> Side:
    """The side opposite 'side'."""
    return Side(side).other()


@dataclass(frozen=True)
class PinRange:
    """
    Contiguous range of pins on a given side of a feature.

    Immutable value type. All operations are total functions over
    the integers.

    Attributes:
        side: Side of the owning object ('in' or 'out')
        low: First pin in range
        high: Last pin in range (>= low)
    """

    side: Side
    low: int
    high: int

    def __init__(self, side: Union[str, Side], low: int, high: int = None):
        if high is None:
            high = low
        if low > high:
            raise InvalidPinRangeError(str(Side(side).value), low, high)

        object.__setattr__(self, 'side', Side(side))
        object.__setattr__(self, 'low', int(low))
        object.__setattr__(self, 'high', int(high))

    def __repr__(self) -> str:
        return f"PinRange({self.spec})"

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def size(self) -> int:
        """Number of pins in range."""
        return self.high - self.low + 1

    @property
    def spec(self) -> str:
        """Canonical string form, usable as an identity key."""
        return f"{self.side.value}:{self.range_spec()}"

    def range_spec(self) -> str:
        """Range part of spec ('low' or 'low:high')."""
        if self.high == self.low:
            return f"{self.low}"
        return f"{self.low}:{self.high}"

    def copy(self) -> "PinRange":
        return PinRange(self.side, self.low, self.high)

    def pins(self) -> Iterator[int]:
        """Pin numbers in range, ascending."""
        return iter(range(self.low, self.high + 1))

    # =========================================================================
    # Interval arithmetic
    # =========================================================================

    def includes_pin(self, pin: int) -> bool:
        """True if self includes 'pin'."""
        return self.low <= pin <= self.high

    def extends(self, other: "PinRange") -> bool:
        """True if self and 'other' form a continuous range."""
        return self.low == other.high + 1 or other.low == self.high + 1

    def subtract(self, other: "PinRange") -> List["PinRange"]:
        """
        The pins of self that are not in 'other'.

        Returns:
            List of zero, one or two disjoint PinRanges
        """
        ranges = []

        if self.low < other.low:
            ranges.append(PinRange(self.side, self.low, min(other.low - 1, self.high)))

        if self.high > other.high:
            ranges.append(PinRange(self.side, max(self.low, other.high + 1), self.high))

        return ranges

    def overlap(self, other: "PinRange") -> bool:
        """True if self and 'other' share at least one pin."""
        if self.low > other.high:
            return False
        if self.high < other.low:
            return False
        return True

    def other_side(self) -> Side:
        """The side opposite self's side."""
        return self.side.other()

    def to_dict(self) -> dict:
        return {'side': self.side.value, 'low': self.low, 'high': self.high}


def pin_range_of(side: Union[str, Side], low: int, high: int = None) -> PinRange:
    """Build a PinRange (high defaults to low)."""
    return PinRange(side, low, high)
