"""
commsnet/network/containment/struct_content.py - Structure Content

Containment trees for the content of one structure: the cable tree
(structure -> cable -> segment), the conduit tree (structure -> conduit
-> segment) and the equipment tree (structure -> equipment).
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union
import logging

from commsnet.core.config import NetworkConfig
from commsnet.errors.taxonomy import (
    NetworkError,
    create_cable_error,
    create_chain_error,
    create_housing_error,
)
from commsnet.network.conn import Conn
from commsnet.network.network_model import NetworkModel
from commsnet.network.schema.equipment_function import EquipmentFunction
from commsnet.network.schema.feature import Feature
from commsnet.network.schema.pin_range import PinRange, Side
from commsnet.network.schema.records import CircuitInfo, ConnectionRecord

from .cable_tree import ContainmentNode, order_seg_nodes
from .content import ContainmentContent
from .equip_tree import EquipPins, EquipTree, PinSet

__all__ = ['StructContent', 'SegInfo', 'IntSegInfo', 'ConduitInfo', 'STRUCT_SIDES']

logger = logging.getLogger(__name__)

SOURCE = "struct_content"

# Position of a segment relative to a structure
STRUCT_SIDES = ('in', 'int', 'out')


@dataclass
class SegInfo:
    """Pins and connections on one side of a cable segment."""
    feature: Feature
    cable: Optional[Feature]
    cable_side: Side
    pins: Optional[PinRange]
    conns: List[Conn] = field(default_factory=list)
    circuits: List[CircuitInfo] = field(default_factory=list)
    n_connected: int = 0
    housing: Optional[Feature] = None
    slack: Optional[Feature] = None


@dataclass
class IntSegInfo:
    """Both sides of a segment internal to the structure."""
    feature: Feature
    cable: Optional[Feature]
    housing: Optional[Feature]
    in_info: Optional[SegInfo] = None
    out_info: Optional[SegInfo] = None
    slack: Optional[Feature] = None

    def for_side(self, side: Side) -> SegInfo:
        return self.in_info if Side(side) == Side.IN else self.out_info


@dataclass
class ConduitInfo:
    """A conduit at the structure and what it connects to."""
    conduit: Feature
    connected_conduit: Optional[Feature]
    conduit_run: Optional[Feature]
    structure_housing: Feature


class StructContent:
    """
    Containment trees for the content of a structure.

    Unresolved references do not stop tree building: the affected
    features are left out and reported in 'problems'.

    Usage:
        content = StructContent(manhole, query_result, config)
        tree = content.cable_tree()

        if not content.is_valid:
            report(content.problems)
    """

    def __init__(
        self,
        struct: Feature,
        content: Union[ContainmentContent, Mapping[str, Any]],
        config: NetworkConfig = None,
    ):
        self.struct = struct
        self.urn = struct.get_urn()
        self.model = NetworkModel(config)
        self.config = self.model.config

        content = ContainmentContent.coerce(content)
        self.content = content

        self.features: Dict[str, Feature] = {self.urn: struct}
        for ftr in content.all_features():
            self.features[ftr.get_urn()] = ftr

        self.equips = content.equip
        self.conduits = content.conduits
        self.conduit_runs = content.conduit_runs
        self.cables = content.cables
        self.segs = content.cable_segs
        self.conns = content.conns

        self.seg_circuit_infos = content.seg_circuits
        self.equip_circuit_infos = content.port_circuits

        self.problems: List[NetworkError] = []
        self._reported = set()

    @property
    def is_valid(self) -> bool:
        """False if any referenced feature could not be resolved."""
        return not self.problems

    def _report(self, key: str, problem: NetworkError) -> None:
        if key in self._reported:
            return
        self._reported.add(key)
        self.problems.append(problem)

    def _feature(self, feature: Feature, field_name: str) -> Optional[Feature]:
        return self.features.get(feature.ref_urn(field_name) or '')

    # =========================================================================
    # Cable tree
    # =========================================================================

    def cable_tree(self) -> ContainmentNode:
        """Tree of the cables at self's structure and their segments, in cable order."""
        seg_pins = self.seg_pins(undirected_only=False, include_internal=True)

        struct_node = ContainmentNode.feature_node(self.struct)

        cable_nodes: Dict[str, ContainmentNode] = {}
        for cable in self.cables:
            cable_nodes[cable.get_urn()] = ContainmentNode.cable_node(cable)

        # Segment nodes (at sides)
        seg_nodes = []
        for side in (Side.IN, Side.OUT):
            for info in seg_pins[side.value]:
                seg_nodes.append(self._seg_node(info, side))

        # Internal segments: parent node with in and out children
        for int_info in seg_pins['int']:
            int_node = ContainmentNode.feature_node(int_info.feature)
            int_node.is_internal = True
            int_node.cable = int_info.cable
            int_node.slack = int_info.slack
            for side in (Side.IN, Side.OUT):
                int_node.children.append(self._seg_node(int_info.for_side(side), side))
            seg_nodes.append(int_node)

        # Build tree
        struct_node.children.extend(cable_nodes.values())

        for node in seg_nodes:
            cable_urn = node.feature.ref_urn('cable')
            parent = cable_nodes.get(cable_urn)
            if parent is None:
                logger.warning(f"{node.feature.get_urn()}: cannot find cable {cable_urn}")
                continue
            parent.children.append(node)

        # Order each cable node's children
        for cable_node in struct_node.children:
            cable_node.children = self.ordered_seg_nodes(cable_node.children)

        return struct_node

    def _seg_node(self, info: SegInfo, side: Side) -> ContainmentNode:
        node = ContainmentNode.seg_node(
            info.feature,
            info.cable,
            self.model.cable_pin_count(info.cable),
            cable_side=info.cable_side,
            side=side,
            n_connected=info.n_connected,
            conns=info.conns,
            housing=info.housing,
            struct=self.struct,
            circuits=info.circuits,
        )
        node.slack = info.slack
        return node

    def ordered_seg_nodes(self, seg_nodes: List[ContainmentNode]) -> List[ContainmentNode]:
        """
        'seg_nodes' ordered along their cable, 'in' end first.

        Nodes not on the chain (bad data) are appended at the end.
        """
        ordered, unchained = order_seg_nodes(seg_nodes)

        for node in unchained:
            urn = node.feature.get_urn()
            self._report(f"chain:{urn}", create_chain_error(
                f"Segment {urn} is not chained to its siblings",
                SOURCE, urn=urn,
            ))

        return ordered + unchained

    # =========================================================================
    # Conduit tree
    # =========================================================================

    def conduit_tree(self) -> ContainmentNode:
        """Tree of the conduits at self's structure and the segments they house."""
        seg_pins = self.seg_pins(undirected_only=False, include_internal=False)
        conduit_infos = self.conduit_infos()

        nodes: Dict[str, ContainmentNode] = {}
        struct_node = ContainmentNode.feature_node(self.struct)
        nodes[self.urn] = struct_node

        for info in conduit_infos:
            node = ContainmentNode.feature_node(info.conduit)
            node.housing = info.structure_housing
            node.pass_through_conduit = info.connected_conduit
            node.conduit_run = info.conduit_run
            nodes[info.conduit.get_urn()] = node

        seg_nodes = []
        for side in (Side.IN, Side.OUT):
            for info in seg_pins[side.value]:
                seg_nodes.append((info, self._seg_node(info, side)))

        # Create tree
        for info in conduit_infos:
            parent = nodes.get(info.structure_housing.get_urn(), struct_node)
            parent.children.append(nodes[info.conduit.get_urn()])

        for info, node in seg_nodes:
            parent_urn = info.housing.get_urn() if info.housing else None
            parent = nodes.get(parent_urn, struct_node)
            parent.children.append(node)

        # Combine entries for the same cable or pass through conduit
        self._reduce_struct_conduit_tree(struct_node)

        return struct_node

    def _reduce_struct_conduit_tree(self, tree: ContainmentNode) -> ContainmentNode:
        """Merge children that refer to the same feature (recursive)."""
        consolidated: Dict[str, ContainmentNode] = {}

        for child in tree.children:
            key = child.feature.get_urn()
            secondary_key = child.pass_through_conduit.get_urn() if child.pass_through_conduit else None

            existing = consolidated.get(key) or consolidated.get(secondary_key)
            if existing is not None:
                existing.children.extend(child.children)
            else:
                consolidated[key] = child

        tree.children = list(consolidated.values())

        for child in tree.children:
            self._reduce_struct_conduit_tree(child)

        return tree

    def conduit_infos(self) -> List[ConduitInfo]:
        """Info about the conduits at self's structure."""
        infos = []

        for conduit in self.conduits:
            if conduit.ref_urn('in_structure') == self.urn:
                pass_through = self._feature(conduit, 'in_conduit')
            elif conduit.ref_urn('out_structure') == self.urn:
                pass_through = self._feature(conduit, 'out_conduit')
            else:
                pass_through = None

            infos.append(ConduitInfo(
                conduit=conduit,
                connected_conduit=pass_through,
                conduit_run=self._feature(conduit, 'conduit_run'),
                # Consider as housed in the structure
                structure_housing=self._feature(conduit, 'housing') or self.struct,
            ))

        return infos

    # =========================================================================
    # Cable connection points
    # =========================================================================

    def cable_connection_points_for(self, side: Union[str, Side]) -> List[ContainmentNode]:
        """
        Cable segments that can connect on 'side' of the structure.

        Returns:
            One cable node per cable, its children the connectable
            segment sides in cable order
        """
        side = Side(side)
        cable_trees: Dict[str, ContainmentNode] = {}

        for conn_side in (Side.IN, Side.OUT):
            undirected_only = conn_side != side

            pin_sets = self.seg_pins(undirected_only, not undirected_only)

            for info in pin_sets[conn_side.value]:
                tree = self._cable_tree_for(cable_trees, info.cable, info.feature)
                if tree is not None:
                    tree.children.append(self._seg_node(info, conn_side))

            for int_info in pin_sets['int']:
                tree = self._cable_tree_for(cable_trees, int_info.cable, int_info.feature)
                if tree is None:
                    continue
                int_node = ContainmentNode.feature_node(int_info.feature)
                int_node.is_internal = True
                int_node.cable = int_info.cable
                int_node.slack = int_info.slack
                int_node.children = [
                    self._seg_node(int_info.in_info, Side.IN),
                    self._seg_node(int_info.out_info, Side.OUT),
                ]
                tree.children.append(int_node)

        for tree in cable_trees.values():
            tree.children = self.ordered_seg_nodes(tree.children)

        return list(cable_trees.values())

    @staticmethod
    def _cable_tree_for(cable_trees: Dict[str, ContainmentNode], cable: Optional[Feature], seg: Feature) -> Optional[ContainmentNode]:
        if cable is None:
            return None
        tree = cable_trees.get(cable.get_urn())
        if tree is None:
            tree = cable_trees[cable.get_urn()] = ContainmentNode.cable_node(cable)
        return tree

    # =========================================================================
    # Equipment tree
    # =========================================================================

    def equip_tree(self) -> EquipTree:
        """Equipment tree for self's structure (root node is the structure)."""
        housing_conns = self._group_by(self.conns, lambda rec: [rec.housing])
        equip_conns = self._group_by(self.conns, lambda rec: [rec.in_object, rec.out_object])
        equip_circuit_ports = self._group_by(self.equip_circuit_infos, lambda info: [info.equip_urn])
        seg_circuit_segs = self._group_by(self.seg_circuit_infos, lambda info: [info.seg_urn])

        nodes: Dict[str, EquipTree] = {}
        for housing in [self.struct, *self.equips]:
            urn = housing.get_urn()
            pins = self._equip_side_info(housing, housing_conns, equip_conns)
            circuits = equip_circuit_ports.get(urn, [])
            splice_circuits = self._splice_circuits(pins.splices, seg_circuit_segs)

            nodes[urn] = EquipTree(housing, pins, circuits, splice_circuits, self.segs, self.config)

        for equip in self.equips:
            housing_urn = equip.ref_urn('housing')
            parent = nodes.get(housing_urn)

            if parent is not None:
                parent.add_child(nodes[equip.get_urn()])
            else:
                logger.warning(f"{equip.get_urn()}: cannot find housing {housing_urn}")
                self._report(f"housing:{equip.get_urn()}", create_housing_error(
                    f"Cannot find housing {housing_urn} of {equip.get_urn()}",
                    SOURCE, urn=equip.get_urn(), housing_urn=housing_urn,
                ))

        return nodes[self.urn]

    @staticmethod
    def _group_by(items, keys_for) -> Dict[str, List]:
        groups = defaultdict(list)
        for item in items:
            for key in keys_for(item):
                if key and item not in groups[key]:
                    groups[key].append(item)
        return groups

    def _equip_side_info(self, housing: Feature, housing_conns: Dict, equip_conns: Dict) -> EquipPins:
        """Connections on each side of 'housing' and the splices it houses."""
        housing_urn = housing.get_urn()

        pins = EquipPins()
        pins.splices = self._housing_splices(housing_urn, housing_conns.get(housing_urn, []))
        pins.in_pins = self._equip_pin_set(housing, Side.IN, equip_conns)
        pins.out_pins = self._equip_pin_set(housing, Side.OUT, equip_conns)

        return pins

    def ports_field(self, equip: Feature, side: Union[str, Side]) -> Optional[str]:
        """Property of 'equip' holding its port count on 'side' (if any)."""
        side = Side(side)
        for network_type in self.config.network_types.values():
            for field_name in (network_type.equip_pins_field_for(side.value), network_type.equip_n_pins_field):
                if field_name in equip.properties:
                    return field_name
        return None

    def _equip_pin_set(self, equip: Feature, side: Side, equip_conns: Dict) -> Optional[PinSet]:
        """Pins on 'side' of 'equip' and their connections (None if no ports)."""
        ports_field = self.ports_field(equip, side)
        n_ports = equip.properties.get(ports_field) if ports_field else None
        if not n_ports:
            return None

        urn = equip.get_urn()
        conns = self._object_conns(urn, side, equip_conns.get(urn, []))

        return PinSet(
            pins=PinRange(side, 1, n_ports),
            conns=conns,
            n_connected=self.n_connected_pins(conns),
        )

    def _housing_splices(self, housing_urn: str, conn_recs: List[ConnectionRecord]) -> List[Conn]:
        """Conns housed in 'housing_urn' that do not connect to it."""
        return [
            self._conn(rec, True)
            for rec in conn_recs
            if rec.in_object != housing_urn and rec.out_object != housing_urn
        ]

    def _splice_circuits(self, conns: List[Conn], seg_circuit_segs: Dict) -> List[CircuitInfo]:
        """Circuits on the segments spliced by 'conns'."""
        circuits = []

        # Only include segs for one side to avoid double counting
        for seg_urn in dict.fromkeys(conn.from_ref for conn in conns):
            circuits.extend(seg_circuit_segs.get(seg_urn, []))

        return circuits

    # =========================================================================
    # Cable pins
    # =========================================================================

    def seg_pins(self, undirected_only: bool = False, include_internal: bool = True) -> Dict[str, List]:
        """
        Cable connection points in self's structure.

        Returns:
            Dict with keys 'in' and 'out' (lists of SegInfo) and 'int'
            (list of IntSegInfo, empty unless 'include_internal')
        """
        result = {}

        circuits_by_seg = self._group_by(self.seg_circuit_infos, lambda info: [info.seg_urn])
        side_segs = self.segs_by_side()

        for side in (Side.IN, Side.OUT):
            # Segments meet the structure on their far end (in segs on their out pins)
            pins_side = side.other()
            result[side.value] = [
                self._seg_info_for(seg, side, pins_side, circuits_by_seg)
                for seg in side_segs[side.value]
                if not (undirected_only and seg.properties.get('directed'))
            ]

        result['int'] = []
        if include_internal:
            for seg in side_segs['int']:
                if undirected_only and seg.properties.get('directed'):
                    continue
                int_info = IntSegInfo(
                    feature=seg,
                    cable=self._cable_of(seg),
                    housing=self._feature(seg, 'housing'),
                )
                int_info.in_info = self._seg_info_for(seg, Side.IN, Side.IN, circuits_by_seg)
                int_info.out_info = self._seg_info_for(seg, Side.OUT, Side.OUT, circuits_by_seg)
                result['int'].append(int_info)

        # Include slack info
        slacks_by_seg = self.slacks_by_seg()
        for infos in result.values():
            for info in infos:
                info.slack = slacks_by_seg.get(info.feature.get_urn())

        return result

    def _seg_info_for(self, seg: Feature, cable_side: Side, side: Side, circuits_by_seg: Dict) -> SegInfo:
        """SegInfo for 'side' of 'seg'."""
        seg_urn = seg.get_urn()
        cable = self._cable_of(seg)
        count = self.model.cable_pin_count(cable) or 0
        conns = self._object_conns(seg_urn, side, self.conns)

        return SegInfo(
            feature=seg,
            cable=cable,
            cable_side=cable_side,
            pins=PinRange(side, 1, count) if count else None,
            conns=conns,
            circuits=circuits_by_seg.get(seg_urn, []),
            n_connected=self.n_connected_pins(conns),
            housing=self._feature(seg, 'housing'),
        )

    def _cable_of(self, seg: Feature) -> Optional[Feature]:
        cable = self._feature(seg, 'cable')
        if cable is None:
            cable_urn = seg.ref_urn('cable')
            self._report(f"cable:{seg.get_urn()}", create_cable_error(
                f"Segment {seg.get_urn()} references unknown cable {cable_urn}",
                SOURCE, urn=seg.get_urn(), cable_urn=cable_urn,
            ))
        return cable

    def _object_conns(self, urn: str, side: Side, conn_recs: List[ConnectionRecord]) -> List[Conn]:
        """Conns on 'side' of object 'urn', oriented away from it."""
        conns = []
        for rec in conn_recs:
            if rec.in_object == urn and rec.in_side == side:
                conns.append(self._conn(rec, True))
            if rec.out_object == urn and rec.out_side == side:
                conns.append(self._conn(rec, False))
        return conns

    def _conn(self, rec: ConnectionRecord, forward: bool) -> Conn:
        conn = Conn(rec, forward, self.features)
        if not conn.is_valid:
            for problem in conn.problems(SOURCE):
                self._report(f"ref:{conn.urn}:{problem.actual_value}", problem)
        return conn

    # =========================================================================
    # Containment helpers
    # =========================================================================

    def slacks_by_seg(self) -> Dict[str, Feature]:
        """Slack equipment keyed by the URN of the internal segment they own."""
        slacks = {}
        for seg in self.segs:
            if self.side_of(seg) != 'int':
                continue
            housing = self._feature(seg, 'housing')
            if housing is not None and self.model.equipment_function(housing) == EquipmentFunction.SLACK:
                slacks[seg.get_urn()] = housing
        return slacks

    def segs_by_side(self) -> Dict[str, List[Feature]]:
        """Cable segments grouped by orientation relative to the structure ('in', 'int', 'out')."""
        result = {side: [] for side in STRUCT_SIDES}
        for seg in self.segs:
            side = self.side_of(seg)
            if side:
                result[side].append(seg)
        return result

    def side_of(self, seg: Feature) -> Optional[str]:
        """The side of self's structure on which 'seg' sits ('in', 'int', 'out' or None)."""
        in_struct = seg.ref_urn('in_structure')
        out_struct = seg.ref_urn('out_structure')

        if in_struct == self.urn and out_struct == self.urn:
            return 'int'
        if out_struct == self.urn:
            return 'in'
        if in_struct == self.urn:
            return 'out'
        return None

    @staticmethod
    def n_connected_pins(conns: List[Conn]) -> int:
        """Number of pins connected by 'conns' (proposed connections excluded)."""
        return sum(conn.from_pins.size for conn in conns if not conn.is_proposed())
