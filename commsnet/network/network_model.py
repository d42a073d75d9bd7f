"""
commsnet/network/network_model.py - Network Model Helpers

Configuration-driven queries on features: which features are segments
and cables, how many pins they have, what function an equipment has
and which of its pins are in use.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Union
import logging

from commsnet.core.config import NetworkConfig, DEFAULT_CONFIG
from commsnet.network.schema.equipment_function import EquipmentFunction
from commsnet.network.schema.feature import Feature, parse_urn
from commsnet.network.schema.pin_range import PinRange, Side

__all__ = ['NetworkModel']

logger = logging.getLogger(__name__)

FeatureLookup = Mapping[str, Feature]


class NetworkModel:
    """
    Feature type and pin queries for one network configuration.

    Usage:
        model = NetworkModel(config)
        if model.is_segment(urn):
            n_pins = model.pin_count_for(seg, features=features)
    """

    def __init__(self, config: NetworkConfig = None):
        self.config = config or DEFAULT_CONFIG

    # =========================================================================
    # Feature types
    # =========================================================================

    def is_segment(self, urn_or_feature: Union[str, Feature]) -> bool:
        """True if 'urn_or_feature' is a cable segment."""
        if isinstance(urn_or_feature, Feature):
            feature_type = urn_or_feature.get_type()
        else:
            feature_type = parse_urn(urn_or_feature)[0]
        return feature_type in self.config.segment_types

    def is_cable(self, feature: Optional[Feature]) -> bool:
        """True if 'feature' is a cable."""
        return feature is not None and feature.get_type() in self.config.cable_types

    def is_route(self, feature: Feature) -> bool:
        return feature.get_type() in self.config.route_types

    def is_conduit(self, feature: Feature) -> bool:
        return feature.get_type() in self.config.conduit_types

    def segment_type_for_cable(self, cable: Feature) -> Optional[str]:
        network_type = self.config.network_type_for_cable(cable.get_type())
        return network_type.segment_type if network_type else None

    def slack_type_for_cable(self, cable: Feature) -> Optional[str]:
        network_type = self.config.network_type_for_cable(cable.get_type())
        return network_type.slack_type if network_type else None

    def slack_type_for_segment(self, segment: Feature) -> Optional[str]:
        network_type = self.config.network_type_for_segment(segment.get_type())
        return network_type.slack_type if network_type else None

    def equipment_function(self, equip: Feature) -> EquipmentFunction:
        """Declared function of 'equip' (TERMINAL when not configured)."""
        func = self.config.equipment_function_for(equip.get_type(), equip.properties)
        return EquipmentFunction.parse(func)

    # =========================================================================
    # Pin counts
    # =========================================================================

    def cable_pin_count(self, cable: Optional[Feature]) -> Optional[int]:
        """Number of pins (fibers, pairs) in 'cable'."""
        if cable is None:
            return None

        network_type = self.config.network_type_for_cable(cable.get_type())
        if network_type is not None:
            return cable.properties.get(network_type.cable_n_pins_field)

        # Unknown cable type: first count field present
        for network_type in self.config.network_types.values():
            count = cable.properties.get(network_type.cable_n_pins_field)
            if count:
                return count
        return None

    def equip_out_pin_count(self, equip: Feature) -> Optional[int]:
        """Number of out ports of 'equip' (falling back to its shared port count)."""
        for network_type in self.config.network_types.values():
            count = equip.properties.get(network_type.equip_n_out_pins_field)
            count = count or equip.properties.get(network_type.equip_n_pins_field)
            if count:
                return count
        return None

    def equip_fan_out_count(self, equip: Feature) -> Optional[int]:
        """Number of out ports a splitter fans out to."""
        for network_type in self.config.network_types.values():
            count = equip.properties.get(network_type.equip_n_out_pins_field)
            if count:
                return count
        return None

    def pin_count_for(
        self,
        feature: Feature,
        side: Optional[str] = None,
        features: Optional[FeatureLookup] = None,
    ) -> Optional[int]:
        """
        Number of pins on 'side' of 'feature' (if known).

        Segments take their count from their owning cable, which is
        looked up in 'features'. Equipment use their shared port count,
        or the side specific one when 'side' is given.
        """
        network_type = self.config.network_type_for_segment(feature.get_type())
        if network_type is not None:
            cable = (features or {}).get(feature.ref_urn('cable') or '')
            if cable is None:
                logger.debug(f"{feature.get_urn()}: cable not found")
                return None
            return cable.properties.get(network_type.cable_n_pins_field)

        for network_type in self.config.network_types.values():
            field_name = network_type.equip_n_pins_field
            if field_name in feature.properties:
                return feature.properties[field_name]
            side_field = network_type.equip_pins_field_for(side)
            if side_field and side_field in feature.properties:
                return feature.properties[side_field]

        return None

    def pin_state_for(
        self,
        feature: Feature,
        side: str,
        conns: Iterable,
        features: Optional[FeatureLookup] = None,
    ) -> Dict[int, bool]:
        """
        State of the pins on 'side' of 'feature'.

        Returns:
            Dict of pin number -> True if free, False if connected
        """
        side = Side(side)
        pin_count = self.pin_count_for(feature, side.value, features) or 0
        pins = {pin: True for pin in range(1, pin_count + 1)}

        for pins_used in self._pins_used_on(feature.get_urn(), side, conns):
            for pin in pins_used.pins():
                pins[pin] = False

        return pins

    def free_pins_on(self, feature: Feature, side: str, conns: Iterable, features: Optional[FeatureLookup] = None) -> List[int]:
        return [pin for pin, free in self.pin_state_for(feature, side, conns, features).items() if free]

    def used_pins_on(self, feature: Feature, side: str, conns: Iterable, features: Optional[FeatureLookup] = None) -> List[int]:
        return [pin for pin, free in self.pin_state_for(feature, side, conns, features).items() if not free]

    def high_pin_used_on(self, feature: Feature, side: str, conns: Iterable, features: Optional[FeatureLookup] = None) -> Optional[int]:
        """Highest pin in use on 'side' of 'feature' (None if none)."""
        used = self.used_pins_on(feature, side, conns, features)
        return max(used) if used else None

    @staticmethod
    def _pins_used_on(urn: str, side: Side, conns: Iterable) -> List[PinRange]:
        ranges = []
        for conn in conns:
            if conn.from_ref == urn and conn.from_pins.side == side:
                ranges.append(conn.from_pins)
            if conn.to_ref == urn and conn.to_pins.side == side:
                ranges.append(conn.to_pins)
        return ranges

    # =========================================================================
    # Cables
    # =========================================================================

    def is_internal_cable(self, cable: Feature, segs: Iterable[Feature]) -> bool:
        """
        True if all segments of 'cable' start and end in the same structure.

        A cable with no segments (detached) is not internal.
        """
        cable_urn = cable.get_urn()
        cable_segs = [seg for seg in segs if seg.ref_urn('cable') == cable_urn]
        if not cable_segs:
            return False

        for seg in cable_segs:
            if seg.ref_urn('in_structure') != seg.ref_urn('out_structure'):
                return False
        return True
