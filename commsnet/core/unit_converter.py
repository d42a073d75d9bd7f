"""
commsnet Unit Converter

Deterministic length unit conversion for tick-mark spacing and
measured lengths. All conversions go through meters.
"""

from typing import Set


class UnitConversionError(Exception):
    """Raised when a unit conversion is not supported."""
    pass


# Length of one unit in meters
# value_in_m = value_in_unit * METERS_PER_UNIT[unit]
METERS_PER_UNIT = {
    "m": 1.0,
    "km": 1000.0,
    "cm": 0.01,
    "mm": 0.001,
    "ft": 0.3048,
    "in": 0.0254,
    "yd": 0.9144,
    "mi": 1609.344,
}


class UnitConverter:
    """
    Deterministic length unit converter.

    All conversions use explicit factors. No implicit conversions.
    """

    @staticmethod
    def _factor(unit: str) -> float:
        key = unit.strip()
        if key in METERS_PER_UNIT:
            return METERS_PER_UNIT[key]

        # Try case-insensitive lookup
        if key.lower() in METERS_PER_UNIT:
            return METERS_PER_UNIT[key.lower()]

        raise UnitConversionError(
            f"Unknown unit: {unit}. "
            f"Supported units: {sorted(METERS_PER_UNIT)}"
        )

    @staticmethod
    def normalize(value: float, from_unit: str, to_unit: str) -> float:
        """
        Convert value from one length unit to another.

        Args:
            value: The numeric value to convert
            from_unit: Source unit (e.g., "ft")
            to_unit: Target unit (e.g., "m")

        Returns:
            Converted value

        Raises:
            UnitConversionError: If either unit is not supported
        """
        if from_unit == to_unit:
            return value

        meters = value * UnitConverter._factor(from_unit)
        return meters / UnitConverter._factor(to_unit)

    @staticmethod
    def can_convert(from_unit: str, to_unit: str) -> bool:
        """
        Check if a conversion is supported.

        Args:
            from_unit: Source unit
            to_unit: Target unit

        Returns:
            True if conversion is supported
        """
        if from_unit == to_unit:
            return True

        try:
            UnitConverter._factor(from_unit)
            UnitConverter._factor(to_unit)
        except UnitConversionError:
            return False
        return True

    @staticmethod
    def get_supported_units() -> Set[str]:
        """
        Get all supported unit names.

        Returns:
            Set of unit strings
        """
        return set(METERS_PER_UNIT)
