"""
commsnet/network/service/network_service.py - Network Service Façade

Entry point for presentation and service layers: builds connections,
trace trees and containment trees from a feature source, and reconciles
tick marks. Problems from every call are collected in one aggregator.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
import logging

from commsnet.contracts.protocols import FeatureSource
from commsnet.core.config import NetworkConfig, DEFAULT_CONFIG
from commsnet.errors.aggregator import ErrorAggregator
from commsnet.network.conn import Conn, RecordLike, as_connection_record, build_conn
from commsnet.network.containment.cable_tree import ContainmentResult
from commsnet.network.containment.content import ContainmentContent
from commsnet.network.containment.route_content import RouteContent
from commsnet.network.containment.struct_content import StructContent
from commsnet.network.length.tick_marks import TickMarkReconciler, TickMarkResult
from commsnet.network.network_model import NetworkModel
from commsnet.network.schema.feature import Feature
from commsnet.network.schema.pin_range import PinRange, Side, pin_range_of
from commsnet.network.schema.records import CircuitInfo
from commsnet.network.trace.trace_tree import TraceResult, build_trace_trees
from commsnet.transactions.manager import TransactionManager

__all__ = ['NetworkService', 'pin_range_of', 'build_conn', 'build_trace_trees']

logger = logging.getLogger(__name__)


class NetworkService:
    """
    Network model service façade.

    Usage:
        service = NetworkService(FeatureIndex(features), config)

        result = service.build_trace_trees(conn_records)
        if not result.is_valid:
            warn(result.problems)

        result = service.reconcile_tick_mark(seg, 120, 'in_tick', 1.0, 'm')
    """

    def __init__(
        self,
        source: FeatureSource,
        config: NetworkConfig = None,
        tx_manager: TransactionManager = None,
    ):
        """
        Initialize network service.

        Args:
            source: Datasource snapshot to resolve references from
            config: Network configuration (default configuration if omitted)
            tx_manager: Transaction manager for tick mark writes
        """
        self.source = source
        self.config = config or DEFAULT_CONFIG
        self.model = NetworkModel(self.config)
        self.tx_manager = tx_manager or TransactionManager()
        self.reconciler = TickMarkReconciler(source, self.config, self.tx_manager)
        self.errors = ErrorAggregator()

    def reset_errors(self) -> None:
        """Forget the problems collected by earlier calls."""
        self.errors.clear()

    # =========================================================================
    # Pins and connections
    # =========================================================================

    @staticmethod
    def pin_range_of(side: Union[str, Side], low: int, high: int = None) -> PinRange:
        return pin_range_of(side, low, high)

    def build_conn(
        self,
        record: RecordLike,
        forward: bool = True,
        features: Optional[Mapping[str, Feature]] = None,
    ) -> Conn:
        """
        Build a Conn from a raw connection record.

        Referenced features are fetched from the source unless given.
        """
        record = as_connection_record(record)
        if features is None:
            features = self.features_for([record])

        conn = Conn(record, forward, features)
        self.errors.add_all(conn.problems("network_service"))
        return conn

    def features_for(self, records: Iterable[RecordLike]) -> Dict[str, Feature]:
        """
        Features referenced by connection 'records', keyed by URN.

        Includes the endpoints, their cables, the connection housings
        and the housings of those.
        """
        records = [as_connection_record(rec) for rec in records]

        urns = set()
        for rec in records:
            urns.update(urn for urn in (rec.in_object, rec.out_object, rec.housing) if urn)
        features = self.source.get_features_by_urn(sorted(urns))

        # Owning cables and outer housings
        extra = set()
        for ftr in features.values():
            for field_name in ('cable', 'housing'):
                urn = ftr.ref_urn(field_name)
                if urn and urn not in features:
                    extra.add(urn)
        features.update(self.source.get_features_by_urn(sorted(extra)))

        return features

    # =========================================================================
    # Length reconciliation
    # =========================================================================

    def reconcile_tick_mark(
        self,
        segment: Feature,
        tick_mark: Optional[int],
        field_name: str,
        spacing: float,
        unit: str,
    ) -> TickMarkResult:
        """
        Set a tick mark on 'segment' and rescale measured lengths.

        Returns:
            TickMarkResult listing the segments to persist; on failure no
            segment is changed
        """
        result = self.reconciler.set_tick_mark(segment, tick_mark, field_name, spacing, unit)
        self.errors.add_all(result.errors)

        if result.success:
            logger.info(
                f"Tick mark {field_name}={tick_mark} set on {segment.get_urn()}: "
                f"{len(result.updated_segments)} segments updated"
            )
        return result

    # =========================================================================
    # Trace trees
    # =========================================================================

    def build_trace_trees(
        self,
        conns: Iterable[Union[Conn, RecordLike]],
        features: Optional[Mapping[str, Feature]] = None,
    ) -> TraceResult:
        """
        Build trace trees for 'conns'.

        Referenced features are fetched from the source unless given.
        """
        conns = list(conns)
        if features is None:
            records = [c.conn_rec if isinstance(c, Conn) else c for c in conns]
            features = self.features_for(records)

        result = build_trace_trees(conns, features, self.config)
        self.errors.add_all(result.problems)
        return result

    # =========================================================================
    # Containment trees
    # =========================================================================

    def build_containment_tree(
        self,
        root: Feature,
        segments: Iterable[Feature],
        equipment: Iterable[Feature] = (),
        conduits: Iterable[Feature] = (),
        cables: Iterable[Feature] = (),
        conns: Iterable[RecordLike] = (),
        conduit_runs: Iterable[Feature] = (),
        circuits: Iterable[CircuitInfo] = (),
    ) -> ContainmentResult:
        """
        Build the containment tree of 'root' (a structure or a route).

        Routes give route -> conduit -> segment trees; structures give
        structure -> cable -> segment trees with segments in cable order.
        """
        content = ContainmentContent(
            equip=list(equipment),
            conduits=list(conduits),
            conduit_runs=list(conduit_runs),
            cables=list(cables),
            cable_segs=list(segments),
            conns=list(conns),
            seg_circuits=list(circuits),
        )

        if self.model.is_route(root):
            builder = RouteContent(root, content, self.config)
        else:
            builder = StructContent(root, content, self.config)

        tree = builder.cable_tree()
        result = ContainmentResult(tree=tree, problems=list(builder.problems))
        self.errors.add_all(result.problems)
        return result

    def struct_content(self, struct: Feature, content: Union[ContainmentContent, Mapping[str, Any]]) -> StructContent:
        """StructContent for 'struct' (for conduit and equipment trees)."""
        return StructContent(struct, content, self.config)

    # =========================================================================
    # Pin state
    # =========================================================================

    def _cable_lookup(self, feature: Feature) -> Dict[str, Feature]:
        cable = self.source.follow_reference(feature, 'cable')
        return {cable.get_urn(): cable} if cable is not None else {}

    def pin_count_for(self, feature: Feature, side: Optional[str] = None) -> Optional[int]:
        """Number of pins on 'side' of 'feature' (if known)."""
        return self.model.pin_count_for(feature, side, self._cable_lookup(feature))

    def pin_state_for(self, feature: Feature, side: str, conns: Iterable[Conn]) -> Dict[int, bool]:
        """State of pins on 'side' of 'feature' (True means free)."""
        return self.model.pin_state_for(feature, side, list(conns), self._cable_lookup(feature))

    def high_pin_used_on(self, feature: Feature, side: str, conns: Iterable[Conn]) -> Optional[int]:
        """Highest pin in use on 'side' of 'feature' (None if none)."""
        return self.model.high_pin_used_on(feature, side, list(conns), self._cable_lookup(feature))

    def is_internal_cable(self, cable: Feature, segs: Iterable[Feature] = None) -> bool:
        """True if all segments of 'cable' start and end in the same structure."""
        if segs is None:
            seg_type = self.model.segment_type_for_cable(cable)
            if seg_type is None:
                return False
            segs = self.source.get_features(seg_type, {'cable': cable.get_urn()})
        return self.model.is_internal_cable(cable, segs)
