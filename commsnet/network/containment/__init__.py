"""
network/containment/ - Containment Tree Building

Structure and route containment hierarchies, with sibling segments
ordered along their cable.
"""

from .cable_tree import (
    ContainmentNode,
    ContainmentResult,
    order_seg_nodes,
)

from .content import (
    ContainmentContent,
)

from .equip_tree import (
    EquipTree,
    SegSide,
    PinSet,
    EquipPins,
)

from .struct_content import (
    StructContent,
    SegInfo,
    IntSegInfo,
    ConduitInfo,
)

from .route_content import (
    RouteContent,
)

__all__ = [
    # Nodes
    "ContainmentNode",
    "ContainmentResult",
    "order_seg_nodes",
    # Content
    "ContainmentContent",
    # Equipment
    "EquipTree",
    "SegSide",
    "PinSet",
    "EquipPins",
    # Structures
    "StructContent",
    "SegInfo",
    "IntSegInfo",
    "ConduitInfo",
    # Routes
    "RouteContent",
]
