"""
network/length/ - Measured Length Reconciliation

Tick mark calibration of cable segment lengths.
"""

from .tick_marks import (
    TickMarkReconciler,
    TickMarkResult,
    TICK_FIELDS,
)

__all__ = [
    "TickMarkReconciler",
    "TickMarkResult",
    "TICK_FIELDS",
]
