"""
commsnet/network/containment/content.py - Containment Query Content

The features found inside one structure or route, as returned by the
host's containment query. Builders index it by URN and never modify it.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Union

from commsnet.network.conn import as_connection_record
from commsnet.network.schema.feature import Feature
from commsnet.network.schema.records import CircuitInfo, ConnectionRecord

__all__ = ['ContainmentContent']


def _features_from(items: Iterable[Union[Feature, Dict[str, Any]]]) -> List[Feature]:
    return [item if isinstance(item, Feature) else Feature.from_dict(item) for item in items or ()]


def _circuits_from(items: Iterable[Union[CircuitInfo, Dict[str, Any]]]) -> List[CircuitInfo]:
    return [item if isinstance(item, CircuitInfo) else CircuitInfo.model_validate(item) for item in items or ()]


@dataclass
class ContainmentContent:
    """
    Content of a structure or route.

    Attributes:
        equip: Equipment housed in the structure (at any depth)
        conduits: Conduits in or passing through
        conduit_runs: Runs the conduits belong to
        cables: Cables with segments in or passing through
        cable_segs: Cable segments in or passing through
        conns: Connection records housed in the structure
        seg_circuits: Circuits running on segments (splice circuits)
        port_circuits: Circuits running on equipment ports
    """

    equip: List[Feature] = field(default_factory=list)
    conduits: List[Feature] = field(default_factory=list)
    conduit_runs: List[Feature] = field(default_factory=list)
    cables: List[Feature] = field(default_factory=list)
    cable_segs: List[Feature] = field(default_factory=list)
    conns: List[ConnectionRecord] = field(default_factory=list)
    seg_circuits: List[CircuitInfo] = field(default_factory=list)
    port_circuits: List[CircuitInfo] = field(default_factory=list)

    def __post_init__(self):
        self.conns = [as_connection_record(rec) for rec in self.conns]

    def all_features(self) -> List[Feature]:
        """Every feature in self (connections excluded)."""
        return [*self.equip, *self.conduits, *self.conduit_runs, *self.cables, *self.cable_segs]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContainmentContent":
        """Build from a containment query result (unknown keys ignored)."""
        return cls(
            equip=_features_from(data.get('equip')),
            conduits=_features_from(data.get('conduits')),
            conduit_runs=_features_from(data.get('conduit_runs')),
            cables=_features_from(data.get('cables')),
            cable_segs=_features_from(data.get('cable_segs')),
            conns=list(data.get('conns') or ()),
            seg_circuits=_circuits_from(data.get('seg_circuits') or data.get('circuits')),
            port_circuits=_circuits_from(data.get('port_circuits')),
        )

    @classmethod
    def coerce(cls, content: Union["ContainmentContent", Mapping[str, Any]]) -> "ContainmentContent":
        if isinstance(content, cls):
            return content
        return cls.from_dict(content)
