"""
network/schema/ - Network Data Model

Pin ranges, features, raw records and equipment functions.
"""

from .pin_range import (
    Side,
    PinRange,
    pin_range_of,
    other_side,
)

from .feature import (
    Feature,
    FeatureIndex,
    parse_urn,
    polyline_length_meters,
)

from .records import (
    ConnectionRecord,
    CircuitInfo,
)

from .equipment_function import (
    EquipmentFunction,
    FanOut,
    FAN_OUT_POLICY,
    out_pins_for,
)

__all__ = [
    # Pin ranges
    "Side",
    "PinRange",
    "pin_range_of",
    "other_side",
    # Features
    "Feature",
    "FeatureIndex",
    "parse_urn",
    "polyline_length_meters",
    # Records
    "ConnectionRecord",
    "CircuitInfo",
    # Equipment
    "EquipmentFunction",
    "FanOut",
    "FAN_OUT_POLICY",
    "out_pins_for",
]
