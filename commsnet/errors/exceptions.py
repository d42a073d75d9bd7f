"""
errors/exceptions.py - Exceptions raised by the network model

Programmer errors propagate as exceptions. Overlapping ticks and
zero-length chains are raised inside the reconciler and converted
to a failed result before reaching the caller.
"""

from typing import List, Optional


class NetworkModelError(Exception):
    """Base class for network model exceptions."""
    pass


class InvalidPinRangeError(NetworkModelError, ValueError):
    """Raised when a pin range is built with low > high."""

    def __init__(self, side: str, low: int, high: int):
        self.side = side
        self.low = low
        self.high = high
        super().__init__(
            f"Invalid pin range {side}:{low}:{high} (low must not exceed high)"
        )


class PinRangeMismatchError(NetworkModelError):
    """Raised when mapping pins between ranges of different size."""

    def __init__(self, from_size: int, to_size: int, conn_urn: str = ""):
        self.from_size = from_size
        self.to_size = to_size
        ctx = f" on '{conn_urn}'" if conn_urn else ""
        super().__init__(
            f"Cannot map pins{ctx}: from range has {from_size} pins "
            f"but to range has {to_size}"
        )


class OverlappingTickMarkError(NetworkModelError):
    """Raised when tick marks along a cable are not in order."""

    def __init__(self, ticks: List[int], seg_urn: Optional[str] = None):
        self.ticks = ticks
        self.seg_urn = seg_urn
        super().__init__(f"overlapping_tick_mark: {ticks}")


class ZeroLengthChainError(NetworkModelError):
    """Raised when segments between two ticks have no geometric length."""

    def __init__(self, seg_urns: List[str]):
        self.seg_urns = seg_urns
        super().__init__(
            f"Cannot distribute tick distance over zero length chain: {seg_urns}"
        )
