"""
commsnet/network/containment/equip_tree.py - Equipment Containment Tree

A node in a structure's equipment containment tree: a structure or an
equipment, the connections on its ports and the splices it houses, the
circuits running on them and the cable segments it contains.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional
import logging

from commsnet.core.config import NetworkConfig
from commsnet.network.conn import Conn
from commsnet.network.schema.feature import Feature
from commsnet.network.schema.pin_range import PinRange, Side
from commsnet.network.schema.records import CircuitInfo
from commsnet.network.trace.trace_tree import TraceResult, TraceTreeBuilder

__all__ = ['EquipTree', 'SegSide', 'PinSet', 'EquipPins', 'CONTAINMENT_TYPES']

logger = logging.getLogger(__name__)

CONTAINMENT_TYPES = ('implicit', 'explicit', 'all')


@dataclass(frozen=True)
class SegSide:
    """A segment end."""
    seg: Feature
    side: Side

    @property
    def id(self) -> str:
        return f"{self.seg.get_urn()}/{Side(self.side).value}"


@dataclass
class PinSet:
    """Pins on one side of an equipment and the connections on them."""
    pins: PinRange
    conns: List[Conn] = field(default_factory=list)
    n_connected: int = 0


@dataclass
class EquipPins:
    """Connections on each side of an equipment, plus the splices it houses."""
    in_pins: Optional[PinSet] = None
    out_pins: Optional[PinSet] = None
    splices: List[Conn] = field(default_factory=list)

    def for_side(self, side: Side) -> Optional[PinSet]:
        return self.in_pins if Side(side) == Side.IN else self.out_pins


class EquipTree:
    """
    A node in a structure containment tree.

    Attributes:
        feature: A struct or equip
        pins: Connections on self's ports and splices housed in self
        circuits: Circuits running on ports of self
        splice_circuits: Circuits running on splices housed in self
        seg_sides: Cable segment ends directly contained in self, keyed
            by containment type ('implicit', 'explicit' or 'all')
        children: Child nodes
    """

    def __init__(
        self,
        feature: Feature,
        pins: EquipPins = None,
        circuits: List[CircuitInfo] = None,
        splice_circuits: List[CircuitInfo] = None,
        struct_segs: Iterable[Feature] = (),
        config: NetworkConfig = None,
    ):
        self.feature = feature
        self.pins = pins or EquipPins()
        self.circuits = list(circuits or [])
        self.splice_circuits = list(splice_circuits or [])
        self.config = config

        self.parent: Optional["EquipTree"] = None
        self.children: List["EquipTree"] = []

        self.seg_sides = self._seg_sides(struct_segs)

    def __repr__(self) -> str:
        return f"EquipTree({self.feature.get_urn()}, {len(self.children)} children)"

    @property
    def urn(self) -> str:
        return self.feature.get_urn()

    # =========================================================================
    # Segment containment
    # =========================================================================

    def _seg_sides(self, struct_segs: Iterable[Feature]) -> Dict[str, List[SegSide]]:
        """Cable segment ends directly contained in self."""
        implicit = self._implicit_seg_sides()
        explicit = self._explicit_seg_sides(struct_segs)

        all_sides = {}
        for seg_side in implicit + explicit:
            all_sides[seg_side.id] = seg_side

        return {'implicit': implicit, 'explicit': explicit, 'all': list(all_sides.values())}

    def _implicit_seg_sides(self) -> List[SegSide]:
        """Segment ends contained in self via connection housing."""
        seg_sides = []
        for conn in self.conns():
            if conn.from_cable is not None:
                seg_sides.append(SegSide(conn.from_feature, conn.from_pins.side))
            if conn.to_cable is not None:
                seg_sides.append(SegSide(conn.to_feature, conn.to_pins.side))
        return seg_sides

    def _explicit_seg_sides(self, struct_segs: Iterable[Feature]) -> List[SegSide]:
        """Segment ends contained in self via equipment/structure fields."""
        housing_urn = self.feature.get_urn()
        seg_sides = []

        for seg in struct_segs:
            in_housing = seg.ref_urn('in_equipment') or seg.ref_urn('in_structure')
            out_housing = seg.ref_urn('out_equipment') or seg.ref_urn('out_structure')

            if in_housing == housing_urn:
                seg_sides.append(SegSide(seg, Side.IN))
            if out_housing == housing_urn:
                seg_sides.append(SegSide(seg, Side.OUT))

        return seg_sides

    # =========================================================================
    # Node behaviour
    # =========================================================================

    def add_child(self, node: "EquipTree") -> None:
        self.children.append(node)
        node.parent = self

    def conns(self) -> List[Conn]:
        """All connections housed in self (marking them as housed here)."""
        conns = []
        if self.pins.in_pins:
            conns.extend(self.pins.in_pins.conns)
        if self.pins.out_pins:
            conns.extend(self.pins.out_pins.conns)
        conns.extend(self.pins.splices)

        for conn in conns:
            conn.equip_node = self

        return conns

    def cables(self, containment: str = 'all') -> List[str]:
        """URNs of cables directly contained in self."""
        cable_urns = {}
        for seg_side in self.seg_sides[containment]:
            cable_urn = seg_side.seg.ref_urn('cable')
            if cable_urn:
                cable_urns[cable_urn] = True
        return list(cable_urns)

    def circuit_urns(self) -> List[str]:
        """URNs of circuits running on self's ports and splices."""
        urns = [info.circuit_urn for info in self.circuits]
        urns += [info.circuit_urn for info in self.splice_circuits]
        return list(dict.fromkeys(urns))

    def circuits_on(self, side: Side, pin: int) -> List[str]:
        """URNs of circuits running on 'pin' of self."""
        circuits = []

        # Port circuits
        for info in self.circuits:
            if info.pins.side == Side(side) and info.pins.includes_pin(pin):
                circuits.append(info.circuit_urn)

        # Splice circuits
        for info in self.splice_circuits:
            if info.pins.includes_pin(pin):
                circuits.append(info.circuit_urn)

        return circuits

    # =========================================================================
    # Tree behaviour
    # =========================================================================

    def subtree_for(self, urn: str) -> Optional["EquipTree"]:
        """Node of self's tree that relates to 'urn' (if any)."""
        if self.urn == urn:
            return self

        for child in self.children:
            node = child.subtree_for(urn)
            if node is not None:
                return node

        return None

    def path(self) -> List["EquipTree"]:
        """Containing nodes, top down (ending with self)."""
        if self.parent is None:
            return [self]
        return self.parent.path() + [self]

    def all_equips(self) -> Dict[str, Feature]:
        """Features of self's subtree (including self), keyed by URN."""
        equips = {self.urn: self.feature}
        for child in self.children:
            equips.update(child.all_equips())
        return equips

    def all_seg_sides(self, containment: str = 'all') -> List[SegSide]:
        """Segment ends contained in self's subtree."""
        seg_sides = {seg_side.id: seg_side for seg_side in self.seg_sides[containment]}
        for child in self.children:
            for seg_side in child.all_seg_sides(containment):
                seg_sides.setdefault(seg_side.id, seg_side)
        return list(seg_sides.values())

    def all_connectable_segs(self, side: Side) -> List[Feature]:
        """Segments in self's subtree that can connect to 'side' of an equipment."""
        cable_side = Side(side).other()

        segs = {}
        for seg_side in self.all_seg_sides('all'):
            seg = seg_side.seg
            if seg_side.side == cable_side or not seg.properties.get('directed'):
                segs.setdefault(seg.get_urn(), seg)

        return list(segs.values())

    def all_conns(self) -> List[Conn]:
        """Connections housed in self's subtree."""
        conns = self.conns()
        for child in self.children:
            conns.extend(child.all_conns())
        return conns

    def all_circuit_urns(self) -> List[str]:
        """URNs of circuits referenced by self's subtree."""
        urns = self.circuit_urns()
        for child in self.children:
            urns.extend(child.all_circuit_urns())
        return list(dict.fromkeys(urns))

    # =========================================================================
    # Trace trees
    # =========================================================================

    def trace_trees(self, config: NetworkConfig = None) -> TraceResult:
        """Trace trees over the connections housed in self's subtree."""
        conns = self.all_conns()

        features = {}
        for conn in conns:
            features.update(conn.features())
        features.update(self.all_equips())

        return TraceTreeBuilder(config or self.config).build(conns, features)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'feature': self.urn,
            'circuits': self.circuit_urns(),
            'cables': self.cables(),
            'n_conns': len(self.conns()),
            'children': [child.to_dict() for child in self.children],
        }
