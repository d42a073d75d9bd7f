"""
commsnet/network/conn.py - Connection Between Pin Ranges

Direction-aware view of a connection record. Deals with the business of
reversing the connection when looking upstream and of deriving the
logical side of undirected cables.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
import logging

from commsnet.errors.exceptions import PinRangeMismatchError
from commsnet.errors.taxonomy import NetworkError, create_reference_error
from commsnet.network.schema.feature import Feature
from commsnet.network.schema.pin_range import PinRange, Side
from commsnet.network.schema.records import ConnectionRecord

__all__ = ['Conn', 'build_conn', 'as_connection_record']

logger = logging.getLogger(__name__)

RecordLike = Union[ConnectionRecord, Feature, Dict[str, Any]]


def as_connection_record(record: RecordLike) -> ConnectionRecord:
    """Coerce a raw record (model, connection feature or dict) to a ConnectionRecord."""
    if isinstance(record, ConnectionRecord):
        return record
    if isinstance(record, Feature):
        return ConnectionRecord.from_feature(record)
    return ConnectionRecord.model_validate(record)


class Conn:
    """
    A connection from one set of pins to another.

    Attributes:
        conn_rec: Underlying connection record
        forward: False if self is the reverse of conn_rec
        from_ref, to_ref: URNs of the endpoints
        from_pins, to_pins: PinRanges of the endpoints
        from_feature, to_feature: Resolved endpoints (when features supplied)
        from_cable, to_cable: Owning cables of segment endpoints
        housing_feature: Resolved housing of the connection
        is_valid: False if an endpoint could not be resolved
        equip_node: Containment node housing self (set by EquipTree)
    """

    def __init__(
        self,
        conn_rec: RecordLike,
        forward: bool = True,
        features: Optional[Mapping[str, Feature]] = None,
    ):
        conn_rec = as_connection_record(conn_rec)

        self.conn_rec = conn_rec
        self.forward = forward
        self.urn = conn_rec.get_urn()
        self.is_valid = True
        self.missing_refs: List[str] = []

        if forward:
            self.from_ref = conn_rec.in_object
            self.from_pins = conn_rec.in_pins
            self.to_ref = conn_rec.out_object
            self.to_pins = conn_rec.out_pins
        else:
            self.from_ref = conn_rec.out_object
            self.from_pins = conn_rec.out_pins
            self.to_ref = conn_rec.in_object
            self.to_pins = conn_rec.in_pins

        self.from_feature: Optional[Feature] = None
        self.to_feature: Optional[Feature] = None
        self.from_cable: Optional[Feature] = None
        self.to_cable: Optional[Feature] = None
        self.from_cable_side: Optional[Side] = None
        self.to_cable_side: Optional[Side] = None
        self.housing_feature: Optional[Feature] = None
        self.equip_node = None

        if features is not None:
            self._resolve(features)

        self.delta = None
        self.delta_title = None
        if conn_rec.is_proposed():
            self.delta = conn_rec.delta
            self.delta_title = conn_rec.delta_owner_title

    def _resolve(self, features: Mapping[str, Feature]) -> None:
        """Set referenced features from 'features', marking self invalid on a miss."""
        self.from_feature = features.get(self.from_ref)
        if self.from_feature is None:
            self._missing(self.from_ref)
        else:
            cable_urn = self.from_feature.ref_urn('cable')
            if cable_urn:
                self.from_cable = features.get(cable_urn)
                self.from_cable_side = self.from_pins.other_side()

        self.to_feature = features.get(self.to_ref)
        if self.to_feature is None:
            self._missing(self.to_ref)
        else:
            cable_urn = self.to_feature.ref_urn('cable')
            if cable_urn:
                self.to_cable = features.get(cable_urn)
                self.to_cable_side = self.to_pins.other_side()

        if self.conn_rec.housing:
            self.housing_feature = features.get(self.conn_rec.housing)

    def _missing(self, urn: str) -> None:
        self.is_valid = False
        self.missing_refs.append(urn)
        logger.debug(f"{self.urn}: unresolved reference {urn}")

    # =========================================================================
    # Direction
    # =========================================================================

    def reversed(self) -> "Conn":
        """Self with from and to swapped (same record)."""
        return Conn(self.conn_rec, not self.forward, self._feature_map())

    def _feature_map(self) -> Optional[Dict[str, Feature]]:
        # Unresolved refs stay unresolved in the reversed view
        if self.from_feature is None and self.to_feature is None and not self.missing_refs:
            return None
        return self.features()

    def features(self) -> Dict[str, Feature]:
        """Features that self relates to (if known), keyed by URN."""
        features = {}
        for ftr in (self.from_feature, self.from_cable, self.to_feature, self.to_cable, self.housing_feature):
            if ftr is not None:
                features[ftr.get_urn()] = ftr
        return features

    def endpoints(self) -> Tuple[str, PinRange, str, PinRange]:
        """(from_ref, from_pins, to_ref, to_pins)."""
        return (self.from_ref, self.from_pins, self.to_ref, self.to_pins)

    def is_proposed(self) -> bool:
        """True if self relates to a record from another design."""
        return self.conn_rec.is_proposed()

    # =========================================================================
    # Pin mapping
    # =========================================================================

    def _check_sizes(self) -> None:
        if self.from_pins.size != self.to_pins.size:
            raise PinRangeMismatchError(self.from_pins.size, self.to_pins.size, self.urn)

    def to_pin_for(self, from_pin: int) -> int:
        """The outgoing pin for 'from_pin'."""
        self._check_sizes()
        return self.to_pins.low + (from_pin - self.from_pins.low)

    def from_pin_for(self, to_pin: int) -> int:
        """The incoming pin for 'to_pin'."""
        self._check_sizes()
        return self.from_pins.low + (to_pin - self.to_pins.low)

    # =========================================================================
    # Logical sides
    # =========================================================================

    def logical_from_side(self) -> Side:
        """
        The user-level 'from' side of self.

        For undirected cables this is derived from the port it is connected to.
        """
        if self.from_cable is not None and self.to_cable is None:
            if not self.from_cable.properties.get('directed'):
                return self.to_pins.other_side()
        return self.from_pins.side

    def logical_to_side(self) -> Side:
        """
        The user-level 'to' side of self.

        For undirected cables this is derived from the port it is connected to.
        """
        if self.to_cable is not None and self.from_cable is None:
            if not self.to_cable.properties.get('directed'):
                return self.from_pins.other_side()
        return self.to_pins.side

    # =========================================================================
    # Problems
    # =========================================================================

    def problems(self, source: str = "conn") -> List[NetworkError]:
        """Unresolved reference problems for self."""
        return [
            create_reference_error(
                f"Connection {self.urn} references unknown feature {urn}",
                source=source,
                urn=self.urn,
                missing=urn,
            )
            for urn in self.missing_refs
        ]

    def __repr__(self) -> str:
        return (
            f"Conn({self.conn_rec.id}: "
            f"{self.from_ref}#{self.from_pins.spec} -> {self.to_ref}#{self.to_pins.spec})"
        )


def build_conn(
    record: RecordLike,
    forward: bool = True,
    features: Optional[Mapping[str, Feature]] = None,
) -> Conn:
    """Build a Conn from a raw connection record."""
    return Conn(record, forward, features)
