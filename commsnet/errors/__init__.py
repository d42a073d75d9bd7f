"""
errors/ - Problem Taxonomy and Exceptions

Structured problems for soft failures (unresolved references, broken
segment chains) and hard failures (overlapping ticks, zero length
chains), plus the exceptions reserved for programmer errors.
"""

from .taxonomy import (
    ErrorSeverity,
    ErrorCategory,
    ErrorCode,
    NetworkError,
    create_reference_error,
    create_housing_error,
    create_chain_error,
    create_overlapping_tick_error,
    create_zero_length_error,
    create_transaction_error,
    create_unit_error,
    create_cable_error,
    create_pin_mismatch_error,
)

from .aggregator import (
    ErrorReport,
    ErrorAggregator,
)

from .exceptions import (
    NetworkModelError,
    InvalidPinRangeError,
    PinRangeMismatchError,
    OverlappingTickMarkError,
    ZeroLengthChainError,
)

__all__ = [
    # Taxonomy
    "ErrorSeverity",
    "ErrorCategory",
    "ErrorCode",
    "NetworkError",
    "create_reference_error",
    "create_housing_error",
    "create_chain_error",
    "create_overlapping_tick_error",
    "create_zero_length_error",
    "create_transaction_error",
    "create_unit_error",
    "create_cable_error",
    "create_pin_mismatch_error",
    # Aggregator
    "ErrorReport",
    "ErrorAggregator",
    # Exceptions
    "NetworkModelError",
    "InvalidPinRangeError",
    "PinRangeMismatchError",
    "OverlappingTickMarkError",
    "ZeroLengthChainError",
]
