"""
commsnet/network/trace/trace_tree.py - Trace Tree Builder

Reconstructs directed signal flow trees from a flat set of connections.
Trees are rooted at features with no incoming connection; features only
reachable inside a connectivity cycle get trees of their own, so every
connected feature appears in the result.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Set, Union
import logging

from commsnet.core.config import NetworkConfig
from commsnet.errors.taxonomy import NetworkError, create_cable_error, create_pin_mismatch_error
from commsnet.network.conn import Conn
from commsnet.network.network_model import NetworkModel
from commsnet.network.schema.equipment_function import out_pins_for
from commsnet.network.schema.feature import Feature
from commsnet.network.schema.pin_range import PinRange, Side

__all__ = [
    'PinTree',
    'FeatureInfo',
    'TraceResult',
    'TraceTreeBuilder',
    'build_trace_trees',
]

logger = logging.getLogger(__name__)

SOURCE = "trace_tree"


# =============================================================================
# RESULT STRUCTURES
# =============================================================================

@dataclass
class PinTree:
    """
    A pin of a feature and the objects downstream of it.

    Attributes:
        feature: Pin owner (an equip or segment)
        in_pin: Pin on which the signal enters feature
        out_pin: Pin on which the signal leaves feature (None for terminals)
        conn: Connection from the upstream object
        cable: Cable that owns feature (if segment)
        equip_node: Containment node housing conn (if known)
        housing: Housing to show for this node
        circuits: URNs of circuits running on the pin
        children: Downstream objects
    """

    feature: Feature
    in_pin: Optional[int] = None
    out_pin: Optional[int] = None
    conn: Optional[Conn] = None
    cable: Optional[Feature] = None
    equip_node: Any = None
    housing: Optional[Feature] = None
    circuits: List[str] = field(default_factory=list)
    children: List["PinTree"] = field(default_factory=list)

    def __repr__(self) -> str:
        return f"PinTree({self.feature.get_urn()} {self.in_pin}->{self.out_pin}, {len(self.children)} children)"

    def walk(self) -> Iterator["PinTree"]:
        """Self and all descendants, pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def features(self) -> Dict[str, Feature]:
        """Features in self's tree, keyed by URN."""
        return {node.feature.get_urn(): node.feature for node in self.walk()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'feature': self.feature.get_urn(),
            'in_pin': self.in_pin,
            'out_pin': self.out_pin,
            'conn': self.conn.urn if self.conn else None,
            'cable': self.cable.get_urn() if self.cable else None,
            'housing': self.housing.get_urn() if self.housing else None,
            'circuits': list(self.circuits),
            'children': [child.to_dict() for child in self.children],
        }


@dataclass
class FeatureInfo:
    """Connections on each side of one feature."""
    urn: str
    feature: Feature
    is_seg: bool = False
    cable: Optional[Feature] = None
    out_pins: Optional[PinRange] = None

    # Side -> conn URN -> Conn oriented away from (out) or towards (in) feature
    conns: Dict[Side, Dict[str, Conn]] = field(
        default_factory=lambda: {Side.IN: {}, Side.OUT: {}}
    )

    # Set when feature is first placed in a tree
    pin_tree: Optional[PinTree] = None


@dataclass
class TraceResult:
    """Trace trees plus the problems found building them."""
    trees: List[PinTree] = field(default_factory=list)
    problems: List[NetworkError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.problems

    def to_dict(self) -> Dict[str, Any]:
        return {
            'trees': [tree.to_dict() for tree in self.trees],
            'problems': [problem.to_dict() for problem in self.problems],
            'is_valid': self.is_valid,
        }


# =============================================================================
# BUILDER
# =============================================================================

class TraceTreeBuilder:
    """
    Builds pin trees from connections and features.

    Usage:
        builder = TraceTreeBuilder(config)
        result = builder.build(conns, features)

        for tree in result.trees:
            ...
    """

    def __init__(self, config: NetworkConfig = None):
        self.model = NetworkModel(config)
        self.config = self.model.config

    def build(
        self,
        conns: Iterable[Union[Conn, Any]],
        features: Union[Mapping[str, Feature], Iterable[Feature], None] = None,
    ) -> TraceResult:
        """
        Build trace trees for 'conns'.

        Args:
            conns: Conns (or raw connection records) in the subtree
            features: Features they reference, keyed by URN or as a list

        Returns:
            TraceResult with one tree per root out pin
        """
        result = TraceResult()
        features = self._feature_map(features)

        conns = [c if isinstance(c, Conn) else Conn(c, True, features) for c in conns]
        for conn in conns:
            features.update(conn.features())
        conns = [self._resolved(conn, features) for conn in conns]

        # Get connections on each side of each feature
        feature_infos: Dict[str, FeatureInfo] = {}
        for conn in conns:
            if not conn.is_valid:
                result.problems.extend(conn.problems(SOURCE))
                continue
            if conn.from_pins.size != conn.to_pins.size:
                result.problems.append(self._mismatch_problem(conn))
                continue
            self._add_conn(conn, feature_infos, features, result.problems)

        # Main roots (features with no incoming connections)
        for info in list(feature_infos.values()):
            if not info.conns[Side.IN]:
                result.trees.extend(self._build_pin_trees_for(info, feature_infos))

        # Segments not already found (undirected segments in cycles)
        for info in list(feature_infos.values()):
            if info.pin_tree is None and info.is_seg:
                result.trees.extend(self._build_pin_trees_for(info, feature_infos))

        # Anything left (undirected equipment in cycles)
        for info in list(feature_infos.values()):
            if info.pin_tree is None:
                result.trees.extend(self._build_pin_trees_for(info, feature_infos))

        for tree in result.trees:
            for node in tree.walk():
                node.housing = self.housing_for(node, features)

        logger.debug(
            f"Built {len(result.trees)} trace trees from {len(conns)} conns "
            f"({len(result.problems)} problems)"
        )

        return result

    @staticmethod
    def _mismatch_problem(conn: Conn) -> NetworkError:
        sizes = [conn.from_pins.size, conn.to_pins.size]
        logger.warning(f"{conn.urn}: pin ranges differ in size {sizes}")
        return create_pin_mismatch_error(
            f"Connection {conn.urn} joins {sizes[0]} pins to {sizes[1]} pins",
            SOURCE, urn=conn.urn, sizes=sizes,
        )

    @staticmethod
    def _resolved(conn: Conn, features: Dict[str, Feature]) -> Conn:
        """'conn' with its endpoints resolved against 'features'."""
        if conn.from_feature is not None and conn.to_feature is not None:
            return conn

        resolved = Conn(conn.conn_rec, conn.forward, features)
        resolved.equip_node = conn.equip_node
        return resolved

    @staticmethod
    def _feature_map(features) -> Dict[str, Feature]:
        if features is None:
            return {}
        if isinstance(features, Mapping):
            return dict(features)
        return {ftr.get_urn(): ftr for ftr in features}

    # =========================================================================
    # Feature infos
    # =========================================================================

    def _add_conn(
        self,
        conn: Conn,
        feature_infos: Dict[str, FeatureInfo],
        features: Dict[str, Feature],
        problems: List[NetworkError],
    ) -> None:
        """Add 'conn' to the sides of the features it connects (handling undirected cables)."""
        from_info = self._ensure_feature_info(conn.from_ref, feature_infos, features, problems)
        if conn.logical_from_side() == Side.OUT:
            from_info.conns[Side.OUT][conn.urn] = conn
        else:
            from_info.conns[Side.IN][conn.urn] = self._reversed(conn)

        to_info = self._ensure_feature_info(conn.to_ref, feature_infos, features, problems)
        if conn.logical_to_side() == Side.IN:
            to_info.conns[Side.IN][conn.urn] = conn
        else:
            to_info.conns[Side.OUT][conn.urn] = self._reversed(conn)

    @staticmethod
    def _reversed(conn: Conn) -> Conn:
        side_conn = conn.reversed()
        side_conn.equip_node = conn.equip_node
        return side_conn

    def _ensure_feature_info(
        self,
        urn: str,
        feature_infos: Dict[str, FeatureInfo],
        features: Dict[str, Feature],
        problems: List[NetworkError],
    ) -> FeatureInfo:
        """Entry for 'urn' in 'feature_infos' (created if necessary)."""
        info = feature_infos.get(urn)
        if info is not None:
            return info

        ftr = features[urn]
        info = FeatureInfo(urn=urn, feature=ftr, is_seg=self.model.is_segment(urn))

        if info.is_seg:
            cable_urn = ftr.ref_urn('cable')
            info.cable = features.get(cable_urn) if cable_urn else None
            n_pins = self.model.cable_pin_count(info.cable)
            if info.cable is None:
                problems.append(create_cable_error(
                    f"Segment {urn} references unknown cable {cable_urn}",
                    SOURCE, urn=urn, cable_urn=cable_urn,
                ))
        else:
            n_pins = self.model.equip_out_pin_count(ftr)

        # No out pins: terminating feature
        if n_pins:
            info.out_pins = PinRange(Side.OUT, 1, n_pins)

        feature_infos[urn] = info
        return info

    # =========================================================================
    # Tree building
    # =========================================================================

    def _build_pin_trees_for(self, info: FeatureInfo, feature_infos: Dict[str, FeatureInfo]) -> List[PinTree]:
        """Pin tree for each out pin of 'info'."""
        if info.out_pins is None:
            return []

        return [
            self._build_pin_tree(info, None, pin, None, feature_infos, set())
            for pin in info.out_pins.pins()
        ]

    def _build_pin_tree(
        self,
        info: FeatureInfo,
        in_pin: Optional[int],
        out_pin: Optional[int],
        conn: Optional[Conn],
        feature_infos: Dict[str, FeatureInfo],
        active: Set[str],
    ) -> PinTree:
        """
        Tree of objects downstream of 'out_pin' of 'info' (recursive).

        'active' holds the URNs of the features on the current recursion
        path; reaching one of them again ends the branch.
        """
        pin_tree = PinTree(
            feature=info.feature,
            in_pin=in_pin,
            out_pin=out_pin,
            conn=conn,
            cable=info.cable,
        )
        info.pin_tree = pin_tree

        if conn is not None and conn.equip_node is not None and out_pin is not None:
            circuit_pin = conn.from_pin_for(out_pin) if info.cable is not None else out_pin
            pin_tree.circuits = list(conn.equip_node.circuits_on(Side.OUT, circuit_pin))

        # Avoid infinite recursion
        if info.urn in active:
            logger.debug(f"Cycle detected at {info.urn} ({in_pin} -> {out_pin})")
            return pin_tree

        if out_pin is None:
            return pin_tree

        active.add(info.urn)
        try:
            for child_conn in info.conns[Side.OUT].values():
                if child_conn.from_pins.includes_pin(out_pin):
                    pin_tree.children.extend(
                        self._children_for(child_conn, out_pin, feature_infos, active)
                    )
        finally:
            active.discard(info.urn)

        return pin_tree

    def _children_for(
        self,
        child_conn: Conn,
        out_pin: int,
        feature_infos: Dict[str, FeatureInfo],
        active: Set[str],
    ) -> List[PinTree]:
        """Downstream nodes reached from 'out_pin' through 'child_conn'."""
        child_info = feature_infos[child_conn.to_ref]
        child_in_pin = child_conn.to_pin_for(out_pin)

        # Segments pass a single pin straight through
        if child_conn.to_cable is not None:
            return [self._build_pin_tree(child_info, child_in_pin, child_in_pin, child_conn, feature_infos, active)]

        equip = child_conn.to_feature
        child_out_pins = out_pins_for(
            self.model.equipment_function(equip),
            child_in_pin,
            self.model.equip_fan_out_count(equip),
        )

        if child_out_pins is None:
            child = self._build_pin_tree(child_info, child_in_pin, None, child_conn, feature_infos, active)
            child.equip_node = child_conn.equip_node

            # Terminals can still root trees for their own out pins
            child_info.pin_tree = None
            return [child]

        children = []
        for child_out_pin in child_out_pins.pins():
            child = self._build_pin_tree(child_info, child_in_pin, child_out_pin, child_conn, feature_infos, active)
            child.equip_node = child_conn.equip_node
            children.append(child)
        return children

    # =========================================================================
    # Housings
    # =========================================================================

    def housing_for(self, pin_tree: PinTree, features: Mapping[str, Feature]) -> Optional[Feature]:
        """
        The housing to show for 'pin_tree' (if any).

        For a cable this is the housing of the connection to the first
        downstream object, or that housing's own housing when the
        downstream object is equipment.
        """
        if pin_tree.cable is None:
            return features.get(pin_tree.feature.ref_urn('housing') or '')

        if not pin_tree.children:
            return None

        conn = pin_tree.children[0].conn
        housing = conn.housing_feature if conn is not None else None
        if housing is None:
            return None

        # Case cable -> cable: Use immediate housing
        if conn.to_cable is not None:
            return housing

        # Case cable -> equip: Use equipment housing
        return features.get(housing.ref_urn('housing') or '')


def build_trace_trees(
    conns: Iterable[Union[Conn, Any]],
    features: Union[Mapping[str, Feature], Iterable[Feature], None] = None,
    config: NetworkConfig = None,
) -> TraceResult:
    """Build trace trees for 'conns' (pure function)."""
    return TraceTreeBuilder(config).build(conns, features)
