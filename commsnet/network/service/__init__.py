"""
network/service/ - Network Service Layer

Façade over connections, trace trees, containment trees and tick marks.
"""

from .network_service import (
    NetworkService,
    build_conn,
    build_trace_trees,
    pin_range_of,
)

__all__ = [
    "NetworkService",
    "build_conn",
    "build_trace_trees",
    "pin_range_of",
]
