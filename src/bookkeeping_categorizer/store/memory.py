import threading
from typing import Any

from bookkeeping_categorizer.models import CategorizationCount, Transaction

from .base import TransactionStore, group_counts, select_for_client


class InMemoryTransactionStore(TransactionStore):
    def __init__(self) -> None:
        self._transactions: dict[str, Transaction] = {}
        self._lock = threading.Lock()

    def get(self, transaction_id: str) -> Transaction | None:
        with self._lock:
            transaction = self._transactions.get(transaction_id)
            return transaction.model_copy() if transaction else None

    def add(self, transaction: Transaction) -> None:
        with self._lock:
            self._transactions[transaction.id] = transaction.model_copy()

    def update(self, transaction_id: str, **fields: Any) -> Transaction | None:
        with self._lock:
            current = self._transactions.get(transaction_id)
            if current is None:
                return None
            updated = current.model_copy(update=fields)
            self._transactions[transaction_id] = updated
            return updated.model_copy()

    def list_for_client(
        self,
        client_id: str,
        *,
        category: str | None = None,
        is_reviewed: bool | None = None,
        limit: int | None = None,
    ) -> list[Transaction]:
        with self._lock:
            return select_for_client(
                self._transactions.values(),
                client_id,
                category=category,
                is_reviewed=is_reviewed,
                limit=limit,
            )

    def count_by_categorization(self, client_id: str) -> list[CategorizationCount]:
        with self._lock:
            return group_counts(self._transactions.values(), client_id)

    def clear(self) -> None:
        with self._lock:
            self._transactions = {}
