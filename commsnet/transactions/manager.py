"""
transactions/manager.py - Transaction management

Groups the property writes of one operation so that either all of
them stay applied or none do.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, TYPE_CHECKING
from datetime import datetime
from contextlib import contextmanager
import logging
import uuid

from .schemas import Transaction, TransactionStatus, FieldChange

if TYPE_CHECKING:
    from commsnet.network.schema.feature import Feature

_MISSING = object()


class TransactionManager:
    """
    Manages transactions over in-memory feature property writes.

    Writes go straight to the feature; rollback restores the recorded
    old values in reverse order.
    """

    def __init__(self):
        self.logger = logging.getLogger("transactions")

        # Active transactions
        self._transactions: Dict[str, Transaction] = {}

        # Transaction stack (for nesting)
        self._stack: List[str] = []

        # Completed transactions (for audit)
        self._history: List[Transaction] = []
        self._max_history = 100

    @property
    def active_transaction(self) -> Optional[Transaction]:
        """Get current active transaction."""
        if self._stack:
            return self._transactions.get(self._stack[-1])
        return None

    @property
    def active_transaction_id(self) -> Optional[str]:
        """Get current active transaction ID."""
        return self._stack[-1] if self._stack else None

    def begin(
        self,
        transaction_id: str = None,
        source: str = "",
        description: str = "",
    ) -> Transaction:
        """Begin a new transaction."""
        tx_id = transaction_id or str(uuid.uuid4())[:8]

        tx = Transaction(
            transaction_id=tx_id,
            status=TransactionStatus.ACTIVE,
            source=source,
            description=description,
        )

        # Set parent if nested
        if self._stack:
            tx.parent_transaction_id = self._stack[-1]

        self._transactions[tx_id] = tx
        self._stack.append(tx_id)

        self.logger.debug(f"Transaction {tx_id} started")

        return tx

    def set_property(
        self,
        feature: "Feature",
        field_name: str,
        value: Any,
        source: str = "",
    ) -> FieldChange:
        """Write 'value' to 'field_name' of 'feature', recording the old value."""
        tx = self.active_transaction
        if tx is None:
            raise RuntimeError(
                f"Cannot set {field_name} on {feature.get_urn()}: no active transaction"
            )

        old_value = feature.properties.get(field_name, _MISSING)

        change = FieldChange(
            change_id=str(uuid.uuid4())[:8],
            transaction_id=tx.transaction_id,
            feature=feature,
            field_name=field_name,
            old_value=None if old_value is _MISSING else old_value,
            new_value=value,
            had_value=old_value is not _MISSING,
            source=source,
        )

        feature.properties[field_name] = value
        tx.changes.append(change)

        return change

    def commit(self, transaction_id: str = None) -> bool:
        """Commit a transaction."""
        tx_id = transaction_id or self.active_transaction_id

        if not tx_id or tx_id not in self._transactions:
            self.logger.error(f"Cannot commit: transaction {tx_id} not found")
            return False

        tx = self._transactions[tx_id]

        if tx.status != TransactionStatus.ACTIVE:
            self.logger.error(f"Cannot commit: transaction {tx_id} is {tx.status.value}")
            return False

        # Nested commits hand their changes up to the parent
        parent = self._transactions.get(tx.parent_transaction_id) if tx.parent_transaction_id else None
        if parent is not None:
            parent.changes.extend(tx.changes)

        tx.status = TransactionStatus.COMMITTED
        tx.completed_at = datetime.utcnow()

        self._finish(tx)

        self.logger.info(f"Transaction {tx_id} committed ({len(tx.changes)} changes)")

        return True

    def rollback(self, transaction_id: str = None) -> bool:
        """Rollback a transaction, restoring every recorded write."""
        tx_id = transaction_id or self.active_transaction_id

        if not tx_id or tx_id not in self._transactions:
            self.logger.error(f"Cannot rollback: transaction {tx_id} not found")
            return False

        tx = self._transactions[tx_id]

        if tx.status != TransactionStatus.ACTIVE:
            self.logger.error(f"Cannot rollback: transaction {tx_id} is {tx.status.value}")
            return False

        for change in reversed(tx.changes):
            if change.had_value:
                change.feature.properties[change.field_name] = change.old_value
            else:
                change.feature.properties.pop(change.field_name, None)

        tx.status = TransactionStatus.ROLLED_BACK
        tx.completed_at = datetime.utcnow()

        self._finish(tx)

        self.logger.info(f"Transaction {tx_id} rolled back ({len(tx.changes)} changes)")

        return True

    @contextmanager
    def transaction(
        self,
        source: str = "",
        description: str = "",
    ):
        """Context manager for transactions."""
        tx = self.begin(source=source, description=description)
        try:
            yield tx
            self.commit(tx.transaction_id)
        except Exception:
            self.rollback(tx.transaction_id)
            raise

    def _finish(self, tx: Transaction) -> None:
        if tx.transaction_id in self._stack:
            self._stack.remove(tx.transaction_id)

        self._add_to_history(tx)
        del self._transactions[tx.transaction_id]

    def _add_to_history(self, tx: Transaction) -> None:
        """Add transaction to history."""
        self._history.append(tx)

        # Trim history
        if len(self._history) > self._max_history:
            self._history = self._history[-self._max_history:]

    def get_history(self, limit: int = 20) -> List[Transaction]:
        """Get transaction history."""
        return self._history[-limit:]
