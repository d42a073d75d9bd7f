"""
config.py - Network model configuration

Configuration dataclass describing the feature types of each network
technology. Passed explicitly into builders instead of being read from
a global registry.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any, FrozenSet
import logging

__all__ = [
    'NetworkType',
    'NetworkConfig',
    'DEFAULT_CONFIG',
]

logger = logging.getLogger(__name__)


# =============================================================================
# NETWORK TYPE
# =============================================================================

@dataclass(frozen=True)
class NetworkType:
    """
    Feature types and pin count fields for one network technology.

    Attributes:
        tech: Technology name ('fiber', 'copper', 'coax')
        segment_type: Feature type of cable segments
        slack_type: Feature type of slack (coil) equipment
        connection_type: Feature type of connection records
        cable_n_pins_field: Cable property holding its pin count
        equip_n_pins_field: Equipment property holding a shared port count
        equip_n_in_pins_field: Equipment property holding its in port count
        equip_n_out_pins_field: Equipment property holding its out port count
    """

    tech: str
    segment_type: str
    slack_type: str
    connection_type: str
    cable_n_pins_field: str
    equip_n_pins_field: str
    equip_n_in_pins_field: str
    equip_n_out_pins_field: str

    def equip_pins_field_for(self, side: Optional[str]) -> Optional[str]:
        """Side specific port count field (None when no side given)."""
        if side == 'in':
            return self.equip_n_in_pins_field
        if side == 'out':
            return self.equip_n_out_pins_field
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            'tech': self.tech,
            'segment_type': self.segment_type,
            'slack_type': self.slack_type,
            'connection_type': self.connection_type,
            'cable_n_pins_field': self.cable_n_pins_field,
            'equip_n_pins_field': self.equip_n_pins_field,
            'equip_n_in_pins_field': self.equip_n_in_pins_field,
            'equip_n_out_pins_field': self.equip_n_out_pins_field,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NetworkType":
        """Deserialize from dictionary."""
        return cls(**data)

    @classmethod
    def for_tech(cls, tech: str) -> "NetworkType":
        """Network type using the conventional names for 'tech'."""
        return cls(
            tech=tech,
            segment_type=f'{tech}_segment',
            slack_type=f'{tech}_slack',
            connection_type=f'{tech}_connection',
            cable_n_pins_field=f'{tech}_count',
            equip_n_pins_field=f'n_{tech}_ports',
            equip_n_in_pins_field=f'n_{tech}_in_ports',
            equip_n_out_pins_field=f'n_{tech}_out_ports',
        )


def _default_network_types() -> Dict[str, NetworkType]:
    return {tech: NetworkType.for_tech(tech) for tech in ('fiber', 'copper', 'coax')}


# =============================================================================
# NETWORK CONFIGURATION
# =============================================================================

@dataclass
class NetworkConfig:
    """
    Configuration for the network model.

    Controls which feature types are segments, cables, connections,
    routes and conduits, and which function each equipment type has.
    """

    # =========================================================================
    # NETWORK TECHNOLOGIES
    # =========================================================================

    # Technology name -> feature types for that technology
    network_types: Dict[str, NetworkType] = field(default_factory=_default_network_types)

    # Cable feature type -> technology
    cable_types: Dict[str, str] = field(default_factory=lambda: {
        'fiber_cable': 'fiber',
        'copper_cable': 'copper',
        'coax_cable': 'coax',
    })

    # =========================================================================
    # EQUIPMENT
    # =========================================================================

    # Equipment feature type -> declared function (mux, splitter, connector, slack)
    equipment_functions: Dict[str, str] = field(default_factory=lambda: {
        'fiber_mux': 'mux',
        'fiber_splitter': 'splitter',
        'fiber_patch_panel': 'connector',
        'copper_connector': 'connector',
        'fiber_slack': 'slack',
        'copper_slack': 'slack',
        'coax_slack': 'slack',
    })

    # Property that overrides the function of an individual equipment
    function_field: str = 'function'

    # =========================================================================
    # STRUCTURES
    # =========================================================================

    # Linear features housing cables directly (containment root is a route)
    route_types: FrozenSet[str] = field(default_factory=lambda: frozenset({
        'ug_route',
        'oh_route',
    }))

    # Conduit feature types
    conduit_types: FrozenSet[str] = field(default_factory=lambda: frozenset({
        'conduit',
        'blown_fiber_tube',
    }))

    # =========================================================================
    # UNITS
    # =========================================================================

    # Unit that stored lengths and tick spacings are held in
    length_unit: str = 'm'

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    @property
    def segment_types(self) -> List[str]:
        """Segment feature types for all technologies."""
        return [nt.segment_type for nt in self.network_types.values()]

    @property
    def connection_types(self) -> List[str]:
        """Connection feature types for all technologies."""
        return [nt.connection_type for nt in self.network_types.values()]

    @property
    def slack_types(self) -> List[str]:
        """Slack feature types for all technologies."""
        return [nt.slack_type for nt in self.network_types.values()]

    def network_type_for_segment(self, feature_type: str) -> Optional[NetworkType]:
        """Network type whose segments are of 'feature_type' (if any)."""
        for network_type in self.network_types.values():
            if network_type.segment_type == feature_type:
                return network_type
        return None

    def network_type_for_cable(self, feature_type: str) -> Optional[NetworkType]:
        """Network type of cables of 'feature_type' (if any)."""
        tech = self.cable_types.get(feature_type)
        if tech is None:
            return None
        return self.network_types.get(tech)

    def equipment_function_for(self, feature_type: str, properties: Dict[str, Any] = None) -> Optional[str]:
        """Declared function of an equipment (property override first)."""
        if properties:
            func = properties.get(self.function_field)
            if func:
                return func
        return self.equipment_functions.get(feature_type)

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            'network_types': {
                tech: nt.to_dict() for tech, nt in self.network_types.items()
            },
            'cable_types': dict(self.cable_types),
            'equipment_functions': dict(self.equipment_functions),
            'function_field': self.function_field,
            'route_types': sorted(self.route_types),
            'conduit_types': sorted(self.conduit_types),
            'length_unit': self.length_unit,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NetworkConfig":
        """Deserialize from dictionary."""
        data = dict(data)

        network_types = data.get('network_types')
        if network_types is not None:
            data['network_types'] = {
                tech: nt if isinstance(nt, NetworkType) else NetworkType.from_dict({'tech': tech, **nt})
                for tech, nt in network_types.items()
            }

        for key in ('route_types', 'conduit_types'):
            if data.get(key) is not None:
                data[key] = frozenset(data[key])

        # Filter to known fields
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        unknown = set(data) - known_fields
        if unknown:
            logger.debug(f"Ignoring unknown config keys: {sorted(unknown)}")
        filtered = {k: v for k, v in data.items() if k in known_fields}

        return cls(**filtered)


# =============================================================================
# DEFAULT CONFIGURATION
# =============================================================================

DEFAULT_CONFIG = NetworkConfig()
