"""
commsnet/network/schema/equipment_function.py - Equipment Function Schema

Declared function of a piece of equipment and the port fan-out
policy used when tracing through it.
"""

from typing import Dict, Optional
from enum import Enum

from .pin_range import PinRange, Side

__all__ = ['EquipmentFunction', 'FanOut', 'FAN_OUT_POLICY', 'out_pins_for']


class EquipmentFunction(Enum):
    """Function of an equipment, as declared by configuration."""
    MUX = "mux"                 # Many-to-one combining
    SPLITTER = "splitter"       # One-to-many fan-out
    CONNECTOR = "connector"     # 1:1 pass-through
    SLACK = "slack"             # Cable slack coil (containment only)
    TERMINAL = "terminal"       # Signal stops here

    @classmethod
    def parse(cls, value: Optional[str]) -> "EquipmentFunction":
        """Function for 'value', TERMINAL when unknown or missing."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.TERMINAL


class FanOut(Enum):
    """How in pins of an equipment map to its out pins."""
    SINGLE = "single"           # Always out pin 1
    ALL = "all"                 # Every configured out pin
    SAME = "same"               # Out pin with the same number
    NONE = "none"               # No out pins


FAN_OUT_POLICY: Dict[EquipmentFunction, FanOut] = {
    EquipmentFunction.MUX: FanOut.SINGLE,
    EquipmentFunction.SPLITTER: FanOut.ALL,
    EquipmentFunction.CONNECTOR: FanOut.SAME,
    EquipmentFunction.SLACK: FanOut.NONE,
    EquipmentFunction.TERMINAL: FanOut.NONE,
}


def out_pins_for(
    function: EquipmentFunction,
    in_pin: int,
    n_out_pins: Optional[int],
) -> Optional[PinRange]:
    """
    Out pins of an equipment reachable from 'in_pin'.

    Args:
        function: Declared function of the equipment
        in_pin: Pin entering the equipment
        n_out_pins: Number of out ports configured on the equipment

    Returns:
        PinRange of reachable out pins, or None for terminal equipment
    """
    policy = FAN_OUT_POLICY.get(function, FanOut.NONE)

    if policy is FanOut.SINGLE:
        return PinRange(Side.OUT, 1)

    if policy is FanOut.ALL:
        if not n_out_pins:
            return None
        return PinRange(Side.OUT, 1, n_out_pins)

    if policy is FanOut.SAME:
        return PinRange(Side.OUT, in_pin)

    return None
