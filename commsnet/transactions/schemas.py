"""
transactions/schemas.py - Transaction data structures

Records of the property writes made to features during one
reconciliation, so they can be committed or rolled back together.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TYPE_CHECKING
from datetime import datetime
from enum import Enum
import uuid

if TYPE_CHECKING:
    from commsnet.network.schema.feature import Feature


class TransactionStatus(Enum):
    """Transaction status."""
    PENDING = "pending"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass
class FieldChange:
    """Record of a single property write on a feature."""

    change_id: str = ""
    transaction_id: str = ""

    feature: Optional["Feature"] = field(default=None, repr=False)
    field_name: str = ""
    old_value: Any = None
    new_value: Any = None

    # False when the property did not exist before the write
    had_value: bool = True

    source: str = ""
    timestamp: datetime = field(default_factory=datetime.utcnow)

    @property
    def urn(self) -> Optional[str]:
        return self.feature.get_urn() if self.feature is not None else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "change_id": self.change_id,
            "transaction_id": self.transaction_id,
            "urn": self.urn,
            "field": self.field_name,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "source": self.source,
        }


@dataclass
class Transaction:
    """Complete transaction record."""

    transaction_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    status: TransactionStatus = TransactionStatus.PENDING

    started_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None

    # Parent transaction (for nesting)
    parent_transaction_id: Optional[str] = None

    changes: List[FieldChange] = field(default_factory=list)

    # Metadata
    source: str = ""
    description: str = ""

    def updated_features(self) -> List["Feature"]:
        """Features written by self, in first-write order (no duplicates)."""
        features = {}
        for change in self.changes:
            features.setdefault(change.urn, change.feature)
        return list(features.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transaction_id": self.transaction_id,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "num_changes": len(self.changes),
        }
