"""
transactions/ - Transaction Model

Atomic grouping of feature property writes with commit/rollback
semantics.
"""

from .schemas import (
    TransactionStatus,
    FieldChange,
    Transaction,
)

from .manager import (
    TransactionManager,
)

__all__ = [
    # Schemas
    "TransactionStatus",
    "FieldChange",
    "Transaction",
    # Manager
    "TransactionManager",
]
