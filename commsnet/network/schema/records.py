"""
commsnet/network/schema/records.py - Raw Record Models

Validated models for the raw connection and circuit records returned
by the host datasource.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from .pin_range import PinRange, Side
from .feature import Feature

__all__ = ['ConnectionRecord', 'CircuitInfo']


class ConnectionRecord(BaseModel):
    """
    A raw connection between two pin ranges.

    'in' fields describe the upstream end of the stored record and
    'out' fields the downstream end; Conn decides which is 'from'.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    urn: str
    in_object: str
    in_side: Side
    in_low: int
    in_high: int
    out_object: str
    out_side: Side
    out_low: int
    out_high: int
    housing: Optional[str] = None
    root_housing: Optional[str] = None
    proposed: bool = False
    delta: Optional[str] = None
    delta_owner_title: Optional[str] = None

    @field_validator('in_low', 'in_high', 'out_low', 'out_high')
    @classmethod
    def validate_pin(cls, v):
        if v < 1:
            raise ValueError(f'Pin numbers start at 1, got {v}')
        return v

    @model_validator(mode='after')
    def validate_ranges(self):
        if self.in_low > self.in_high:
            raise ValueError(f'in range {self.in_low}:{self.in_high} is inverted')
        if self.out_low > self.out_high:
            raise ValueError(f'out range {self.out_low}:{self.out_high} is inverted')
        return self

    def get_urn(self) -> str:
        return self.urn

    @property
    def id(self) -> str:
        return self.urn.rpartition('/')[2]

    def is_proposed(self) -> bool:
        """True if self comes from another design (not yet in master)."""
        return self.proposed

    @property
    def in_pins(self) -> PinRange:
        return PinRange(self.in_side, self.in_low, self.in_high)

    @property
    def out_pins(self) -> PinRange:
        return PinRange(self.out_side, self.out_low, self.out_high)

    @classmethod
    def from_feature(cls, feature: Feature) -> "ConnectionRecord":
        """Build from a connection feature whose properties hold the record fields."""
        data = {k: v for k, v in feature.properties.items() if k in cls.model_fields}
        data['urn'] = feature.get_urn()
        return cls.model_validate(data)


class CircuitInfo(BaseModel):
    """
    A circuit running over a range of pins of a segment or equipment.

    Exactly one of 'seg_urn' (splice circuits) or 'equip_urn' (port
    circuits) is normally set.
    """

    model_config = ConfigDict(frozen=True)

    circuit_urn: str
    urn: Optional[str] = None
    seg_urn: Optional[str] = None
    equip_urn: Optional[str] = None
    side: Side = Side.IN
    low: int
    high: int

    @model_validator(mode='after')
    def validate_range(self):
        if self.low > self.high:
            raise ValueError(f'circuit range {self.low}:{self.high} is inverted')
        return self

    @property
    def pins(self) -> PinRange:
        return PinRange(self.side, self.low, self.high)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode='json')
