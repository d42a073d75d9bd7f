"""
errors/taxonomy.py - Problem classification system

Structured problems returned by the builders and the tick-mark
reconciler, attributable to the record that caused them.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from datetime import datetime
from enum import Enum
import uuid

class ErrorSeverity(Enum):
    """Error severity levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

class ErrorCategory(Enum):
    """Error categories."""
    # Reference errors (1xxx)
    REFERENCE = "reference"

    # Topology errors (2xxx)
    TOPOLOGY = "topology"

    # Measurement errors (3xxx)
    MEASUREMENT = "measurement"

    # State errors (5xxx)
    STATE = "state"

class ErrorCode(Enum):
    """Specific error codes."""

    # Reference (1xxx)
    REF_UNRESOLVED = 1001
    REF_HOUSING_UNRESOLVED = 1002
    REF_CABLE_UNRESOLVED = 1003

    # Topology (2xxx)
    TOP_BROKEN_CHAIN = 2001
    TOP_PIN_MISMATCH = 2002

    # Measurement (3xxx)
    MEA_OVERLAPPING_TICK = 3001
    MEA_ZERO_LENGTH = 3002
    MEA_UNIT = 3003

    # State (5xxx)
    STA_TRANSACTION = 5005

@dataclass
class NetworkError:
    """Structured problem representation."""

    error_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    code: ErrorCode = ErrorCode.REF_UNRESOLVED
    category: ErrorCategory = ErrorCategory.REFERENCE
    severity: ErrorSeverity = ErrorSeverity.ERROR

    message: str = ""
    detail: str = ""

    # Context
    source: str = ""  # Builder that reported it
    urn: Optional[str] = None  # Record the problem is attributed to

    # Values
    actual_value: Any = None
    expected_value: Any = None

    recoverable: bool = True

    created_at: datetime = field(default_factory=datetime.utcnow)

    transaction_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_id": self.error_id,
            "code": self.code.value,
            "category": self.category.value,
            "severity": self.severity.value,
            "message": self.message,
            "source": self.source,
            "urn": self.urn,
            "recoverable": self.recoverable,
            "transaction_id": self.transaction_id,
        }

def create_reference_error(
    message: str,
    source: str,
    urn: str = None,
    missing: str = None,
) -> NetworkError:
    """Factory for unresolved reference problems (soft failure)."""
    return NetworkError(
        code=ErrorCode.REF_UNRESOLVED,
        category=ErrorCategory.REFERENCE,
        severity=ErrorSeverity.WARNING,
        message=message,
        source=source,
        urn=urn,
        actual_value=missing,
    )

def create_housing_error(
    message: str,
    source: str,
    urn: str,
    housing_urn: str = None,
) -> NetworkError:
    """Factory for features whose housing cannot be found."""
    return NetworkError(
        code=ErrorCode.REF_HOUSING_UNRESOLVED,
        category=ErrorCategory.REFERENCE,
        severity=ErrorSeverity.WARNING,
        message=message,
        source=source,
        urn=urn,
        actual_value=housing_urn,
    )

def create_chain_error(
    message: str,
    source: str,
    urn: str = None,
) -> NetworkError:
    """Factory for segment chains that cannot be fully ordered."""
    return NetworkError(
        code=ErrorCode.TOP_BROKEN_CHAIN,
        category=ErrorCategory.TOPOLOGY,
        severity=ErrorSeverity.INFO,
        message=message,
        source=source,
        urn=urn,
    )

def create_overlapping_tick_error(
    message: str,
    source: str,
    urn: str = None,
    ticks: List[int] = None,
    transaction_id: str = None,
) -> NetworkError:
    """Factory for tick marks out of order along a cable."""
    return NetworkError(
        code=ErrorCode.MEA_OVERLAPPING_TICK,
        category=ErrorCategory.MEASUREMENT,
        severity=ErrorSeverity.ERROR,
        message=message,
        source=source,
        urn=urn,
        actual_value=ticks,
        expected_value="monotonic",
        recoverable=False,
        transaction_id=transaction_id,
    )

def create_zero_length_error(
    message: str,
    source: str,
    urn: str = None,
    transaction_id: str = None,
) -> NetworkError:
    """Factory for segment chains with no geometric length."""
    return NetworkError(
        code=ErrorCode.MEA_ZERO_LENGTH,
        category=ErrorCategory.MEASUREMENT,
        severity=ErrorSeverity.ERROR,
        message=message,
        source=source,
        urn=urn,
        actual_value=0.0,
        recoverable=False,
        transaction_id=transaction_id,
    )

def create_transaction_error(
    message: str,
    transaction_id: str,
    source: str = "transaction_manager",
) -> NetworkError:
    """Factory for transaction errors."""
    return NetworkError(
        code=ErrorCode.STA_TRANSACTION,
        category=ErrorCategory.STATE,
        severity=ErrorSeverity.ERROR,
        message=message,
        source=source,
        transaction_id=transaction_id,
    )


def create_unit_error(
    message: str,
    source: str,
    unit: str = None,
) -> NetworkError:
    """Factory for unsupported length units."""
    return NetworkError(
        code=ErrorCode.MEA_UNIT,
        category=ErrorCategory.MEASUREMENT,
        severity=ErrorSeverity.ERROR,
        message=message,
        source=source,
        actual_value=unit,
        recoverable=False,
    )


def create_cable_error(
    message: str,
    source: str,
    urn: str,
    cable_urn: str = None,
) -> NetworkError:
    """Factory for segments whose owning cable cannot be found."""
    return NetworkError(
        code=ErrorCode.REF_CABLE_UNRESOLVED,
        category=ErrorCategory.REFERENCE,
        severity=ErrorSeverity.WARNING,
        message=message,
        source=source,
        urn=urn,
        actual_value=cable_urn,
    )


def create_pin_mismatch_error(
    message: str,
    source: str,
    urn: str,
    sizes: List[int] = None,
) -> NetworkError:
    """Factory for connections whose two pin ranges differ in size."""
    return NetworkError(
        code=ErrorCode.TOP_PIN_MISMATCH,
        category=ErrorCategory.TOPOLOGY,
        severity=ErrorSeverity.WARNING,
        message=message,
        source=source,
        urn=urn,
        actual_value=sizes,
        expected_value="equal sizes",
    )
