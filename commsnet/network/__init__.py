"""
commsnet/network/__init__.py - Network Model Package

Physical network connectivity and containment.

This module provides:
- Feature schema, PinRange arithmetic and connection records
- Conn, a direction-aware view of a connection record
- Trace trees over pin-to-pin connections
- Containment trees for structures and routes
- Tick mark reconciliation of measured lengths
- NetworkService façade
"""

from .schema import (
    # Enums
    Side,
    EquipmentFunction,
    FanOut,
    # Dataclasses
    PinRange,
    Feature,
    FeatureIndex,
    ConnectionRecord,
    CircuitInfo,
    # Functions
    pin_range_of,
    other_side,
    parse_urn,
    out_pins_for,
)

from .conn import (
    Conn,
    build_conn,
)

from .network_model import NetworkModel

from .trace import (
    PinTree,
    TraceResult,
    TraceTreeBuilder,
    build_trace_trees,
)

from .containment import (
    ContainmentNode,
    ContainmentResult,
    ContainmentContent,
    EquipTree,
    StructContent,
    RouteContent,
    order_seg_nodes,
)

from .length import (
    TickMarkReconciler,
    TickMarkResult,
)

from .service import NetworkService

__all__ = [
    # Schema
    "Side",
    "EquipmentFunction",
    "FanOut",
    "PinRange",
    "Feature",
    "FeatureIndex",
    "ConnectionRecord",
    "CircuitInfo",
    "pin_range_of",
    "other_side",
    "parse_urn",
    "out_pins_for",
    # Connections
    "Conn",
    "build_conn",
    "NetworkModel",
    # Trace
    "PinTree",
    "TraceResult",
    "TraceTreeBuilder",
    "build_trace_trees",
    # Containment
    "ContainmentNode",
    "ContainmentResult",
    "ContainmentContent",
    "EquipTree",
    "StructContent",
    "RouteContent",
    "order_seg_nodes",
    # Length
    "TickMarkReconciler",
    "TickMarkResult",
    # Service
    "NetworkService",
]
