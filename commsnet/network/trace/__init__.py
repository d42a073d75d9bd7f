"""
network/trace/ - Trace Tree Building

Directed signal flow trees over pin-to-pin connections.
"""

from .trace_tree import (
    PinTree,
    FeatureInfo,
    TraceResult,
    TraceTreeBuilder,
    build_trace_trees,
)

__all__ = [
    "PinTree",
    "FeatureInfo",
    "TraceResult",
    "TraceTreeBuilder",
    "build_trace_trees",
]
