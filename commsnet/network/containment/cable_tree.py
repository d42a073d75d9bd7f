"""
commsnet/network/containment/cable_tree.py - Containment Tree Nodes

Nodes of a containment tree (structure -> conduit/cable -> segment) and
the ordering of sibling segments into a single physical chain.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple
import logging

from commsnet.errors.taxonomy import NetworkError
from commsnet.network.schema.feature import Feature
from commsnet.network.schema.pin_range import PinRange, Side
from commsnet.network.schema.records import CircuitInfo

__all__ = ['ContainmentNode', 'ContainmentResult', 'order_seg_nodes']

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class ContainmentNode:
    """
    A node in a cable containment tree.

    Nodes compare by identity: the same feature can appear more than
    once (e.g. both sides of an internal segment).
    """

    feature: Feature
    children: List["ContainmentNode"] = field(default_factory=list)
    is_internal: bool = False
    node_type: Optional[str] = None

    # Segment nodes
    cable: Optional[Feature] = None
    cable_side: Optional[Side] = None
    side: Optional[Side] = None
    pins: Optional[PinRange] = None
    n_connected: Optional[int] = None
    conns: Optional[List[Any]] = None
    housing: Optional[Feature] = None
    struct: Optional[Feature] = None
    circuits: Optional[List[CircuitInfo]] = None
    slack: Optional[Feature] = None

    # Conduit nodes
    conduit_run: Optional[Feature] = None
    pass_through_conduit: Optional[Feature] = None

    def __repr__(self) -> str:
        return f"ContainmentNode({self.feature.get_urn()}, {len(self.children)} children)"

    # =========================================================================
    # Factories
    # =========================================================================

    @classmethod
    def feature_node(cls, feature: Feature) -> "ContainmentNode":
        return cls(feature=feature)

    @classmethod
    def cable_node(cls, cable: Feature, housing: Feature = None) -> "ContainmentNode":
        return cls(feature=cable, node_type='cable', housing=housing)

    @classmethod
    def seg_node(
        cls,
        seg: Feature,
        cable: Optional[Feature],
        n_pins: Optional[int] = None,
        cable_side: Side = None,
        side: Side = None,
        n_connected: int = None,
        conns: List[Any] = None,
        housing: Feature = None,
        struct: Feature = None,
        circuits: List[CircuitInfo] = None,
    ) -> "ContainmentNode":
        """Node for a cable segment ('n_pins' is the pin count of its cable)."""
        return cls(
            feature=seg,
            cable=cable,
            cable_side=Side(cable_side) if cable_side else None,
            side=Side(side) if side else None,
            pins=PinRange(Side.IN, 1, n_pins) if n_pins else None,
            n_connected=n_connected,
            conns=conns,
            housing=housing,
            struct=struct,
            circuits=circuits,
        )

    # =========================================================================
    # Tree behaviour
    # =========================================================================

    def walk(self) -> Iterator["ContainmentNode"]:
        """Self and all descendants, pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, urn: str) -> Optional["ContainmentNode"]:
        """First node in self's tree for feature 'urn' (if any)."""
        for node in self.walk():
            if node.feature.get_urn() == urn:
                return node
        return None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'feature': self.feature.get_urn(),
            'children': [child.to_dict() for child in self.children],
        }
        if self.is_internal:
            data['is_internal'] = True
        if self.node_type:
            data['node_type'] = self.node_type
        if self.cable is not None:
            data['cable'] = self.cable.get_urn()
        if self.cable_side is not None:
            data['cable_side'] = self.cable_side.value
        if self.side is not None:
            data['side'] = self.side.value
        if self.pins is not None:
            data['pins'] = self.pins.spec
        if self.n_connected is not None:
            data['n_connected'] = self.n_connected
        if self.housing is not None:
            data['housing'] = self.housing.get_urn()
        if self.slack is not None:
            data['slack'] = self.slack.get_urn()
        if self.circuits:
            data['circuits'] = [info.circuit_urn for info in self.circuits]
        if self.conduit_run is not None:
            data['conduit_run'] = self.conduit_run.get_urn()
        if self.pass_through_conduit is not None:
            data['pass_through_conduit'] = self.pass_through_conduit.get_urn()
        return data


@dataclass
class ContainmentResult:
    """Containment tree plus the problems found building it."""
    tree: Optional[ContainmentNode] = None
    problems: List[NetworkError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.problems

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tree': self.tree.to_dict() if self.tree else None,
            'problems': [problem.to_dict() for problem in self.problems],
            'is_valid': self.is_valid,
        }


def order_seg_nodes(seg_nodes: List[ContainmentNode]) -> Tuple[List[ContainmentNode], List[ContainmentNode]]:
    """
    Order sibling segment nodes of one cable along the cable.

    Finds the segment with no predecessor among the siblings and follows
    out_segment links from it. The chain is reversed if it starts on the
    cable's 'out' side.

    Returns:
        (ordered, unchained): nodes on the chain in order, and nodes the
        walk never reached (bad chain data)
    """
    if len(seg_nodes) <= 1:
        return list(seg_nodes), []

    # Mapping seg ID => seg node
    id_map = {node.feature.id: node for node in seg_nodes}

    # Find head segment (the last one with no known incoming segment)
    current = None
    for node in seg_nodes:
        if node.feature.ref_id('in_segment') not in id_map:
            current = node

    # Follow down from head
    ordered = []
    seen = set()
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        ordered.append(current)
        current = id_map.get(current.feature.ref_id('out_segment'))

    # Ensure 'out' side is always listed last
    if ordered and ordered[0].cable_side == Side.OUT:
        ordered.reverse()

    unchained = [node for node in seg_nodes if id(node) not in seen]
    if unchained:
        logger.debug(f"Segments not on chain: {[node.feature.get_urn() for node in unchained]}")

    return ordered, unchained
