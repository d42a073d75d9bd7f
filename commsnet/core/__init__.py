"""
core/ - Configuration and Units

Explicit network configuration passed to every builder, and
deterministic length unit conversion.
"""

from .config import (
    NetworkType,
    NetworkConfig,
    DEFAULT_CONFIG,
)

from .unit_converter import (
    UnitConverter,
    UnitConversionError,
    METERS_PER_UNIT,
)

__all__ = [
    # Config
    "NetworkType",
    "NetworkConfig",
    "DEFAULT_CONFIG",
    # Units
    "UnitConverter",
    "UnitConversionError",
    "METERS_PER_UNIT",
]
