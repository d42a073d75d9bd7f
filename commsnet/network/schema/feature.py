"""
commsnet/network/schema/feature.py - Feature Schema

Minimal view of a feature supplied by the host datasource: a URN, an
open property map and an optional polyline geometry. FeatureIndex is an
in-memory FeatureSource over a fetched snapshot.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union
import logging
import math

from commsnet.contracts.protocols import FeatureSource

__all__ = [
    'Feature',
    'FeatureIndex',
    'parse_urn',
    'polyline_length_meters',
]

logger = logging.getLogger(__name__)


def parse_urn(urn: str) -> Tuple[str, str]:
    """
    Split a URN into (feature_type, record_id).

    Any query part ('?pins=...') is ignored.
    """
    base = urn.split('?', 1)[0]
    feature_type, sep, record_id = base.rpartition('/')
    if not sep:
        return base, ''
    return feature_type, record_id


# =============================================================================
# Geometry
# =============================================================================

def _meters_per_deg_lat(lat_deg: float) -> float:
    lat = math.radians(lat_deg)
    return 111132.92 - 559.82 * math.cos(2 * lat) + 1.175 * math.cos(4 * lat) - 0.0023 * math.cos(6 * lat)


def _meters_per_deg_lon(lat_deg: float) -> float:
    lat = math.radians(lat_deg)
    return 111412.84 * math.cos(lat) - 93.5 * math.cos(3 * lat) + 0.118 * math.cos(5 * lat)


def _distance_meters(p1: Sequence[float], p2: Sequence[float]) -> float:
    lon1, lat1 = p1[0], p1[1]
    lon2, lat2 = p2[0], p2[1]
    lat_mid = (lat1 + lat2) / 2.0
    dx = (lon2 - lon1) * _meters_per_deg_lon(lat_mid)
    dy = (lat2 - lat1) * _meters_per_deg_lat(lat_mid)
    return math.hypot(dx, dy)


def polyline_length_meters(coords: Sequence[Sequence[float]]) -> float:
    """Length in meters of a lon/lat polyline (local flat-earth approximation)."""
    total = 0.0
    for i in range(1, len(coords)):
        total += _distance_meters(coords[i - 1], coords[i])
    return total


# =============================================================================
# Feature
# =============================================================================

@dataclass
class Feature:
    """
    A network object or structure from the host datasource.

    Attributes:
        urn: Globally unique reference ('feature_type/id')
        properties: Open property map (mutable, e.g. length and ticks)
        coordinates: Optional lon/lat polyline
        geom_length: Optional geometric length in meters (overrides coordinates)
    """

    urn: str
    properties: Dict[str, Any] = field(default_factory=dict)
    coordinates: Optional[List[Tuple[float, float]]] = None
    geom_length: Optional[float] = None

    def __hash__(self) -> int:
        return hash(self.urn)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Feature):
            return NotImplemented
        return self.urn == other.urn

    def __repr__(self) -> str:
        return f"Feature({self.urn})"

    def get_urn(self) -> str:
        return self.urn

    def get_type(self) -> str:
        return parse_urn(self.urn)[0]

    @property
    def id(self) -> str:
        """Record id part of the URN."""
        return parse_urn(self.urn)[1]

    def geometry_length(self) -> float:
        """Geometric (digitised) length in meters."""
        if self.geom_length is not None:
            return float(self.geom_length)
        if self.coordinates:
            return polyline_length_meters(self.coordinates)
        return 0.0

    def ref_urn(self, field_name: str) -> Optional[str]:
        """
        URN referenced by property 'field_name' (if any).

        Reference fields hold either a full URN or a bare record id of
        a feature of the same type as self (e.g. in_segment).
        """
        value = self.properties.get(field_name)
        if value is None or value == '':
            return None
        value = str(value)
        if '/' in value:
            return value
        return f"{self.get_type()}/{value}"

    def ref_id(self, field_name: str) -> Optional[str]:
        """Record id referenced by property 'field_name' (if any)."""
        urn = self.ref_urn(field_name)
        return parse_urn(urn)[1] if urn else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'urn': self.urn,
            'properties': dict(self.properties),
            'coordinates': self.coordinates,
            'geom_length': self.geom_length,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Feature":
        return cls(
            urn=data['urn'],
            properties=dict(data.get('properties', {})),
            coordinates=data.get('coordinates'),
            geom_length=data.get('geom_length'),
        )


# =============================================================================
# Feature index
# =============================================================================

FeatureFilter = Union[Dict[str, Any], Callable[[Feature], bool], None]


class FeatureIndex(FeatureSource):
    """
    In-memory lookup of features keyed by URN.

    Implements the FeatureSource contract over a fetched snapshot.
    """

    def __init__(self, features: Iterable[Feature] = ()):
        self._features: Dict[str, Feature] = {}
        self.add_all(features)

    def __len__(self) -> int:
        return len(self._features)

    def __contains__(self, urn: str) -> bool:
        return urn in self._features

    def __iter__(self):
        return iter(self._features.values())

    def add(self, feature: Feature) -> Feature:
        self._features[feature.get_urn()] = feature
        return feature

    def add_all(self, features: Iterable[Feature]) -> List[Feature]:
        return [self.add(ftr) for ftr in features]

    def as_dict(self) -> Dict[str, Feature]:
        """Copy of the URN -> feature map."""
        return dict(self._features)

    def get_feature_by_urn(self, urn: Optional[str]) -> Optional[Feature]:
        if not urn:
            return None
        return self._features.get(urn)

    def get_features_by_urn(self, urns: Iterable[str]) -> Dict[str, Feature]:
        """Features for 'urns' that are known, keyed by URN."""
        result = {}
        for urn in urns:
            ftr = self._features.get(urn)
            if ftr is not None:
                result[urn] = ftr
            else:
                logger.debug(f"Unknown feature: {urn}")
        return result

    def get_features(self, feature_type: str, filter: FeatureFilter = None) -> List[Feature]:
        """
        Features of 'feature_type' matching 'filter'.

        Args:
            feature_type: Feature type to select
            filter: Property values to match, or a predicate
        """
        result = []
        for ftr in self._features.values():
            if ftr.get_type() != feature_type:
                continue
            if callable(filter):
                if not filter(ftr):
                    continue
            elif filter:
                if any(ftr.properties.get(k) != v for k, v in filter.items()):
                    continue
            result.append(ftr)
        return result
