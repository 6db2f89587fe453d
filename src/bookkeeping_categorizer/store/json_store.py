import json
import os
import threading
from typing import Any

from pydantic import ValidationError

from bookkeeping_categorizer.errors import StorageUnavailableError
from bookkeeping_categorizer.logger import get_logger
from bookkeeping_categorizer.models import CategorizationCount, Transaction

from .base import TransactionStore, group_counts, select_for_client

logger = get_logger(__name__)


class JsonTransactionStore(TransactionStore):
    """Transactions persisted as a single JSON document keyed by id.

    The file is read once on construction and rewritten after every write.
    """

    def __init__(self, data_path: str = "transactions.json"):
        self.data_path = data_path
        self._transactions: dict[str, Transaction] = {}
        self._lock = threading.Lock()
        self.load()

    def load(self) -> None:
        if not os.path.exists(self.data_path):
            self._transactions = {}
            return
        try:
            with open(self.data_path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            transactions = {
                tx_id: Transaction.model_validate(data) for tx_id, data in raw.items()
            }
        except (OSError, json.JSONDecodeError, AttributeError, ValidationError) as e:
            logger.error("[STORE] Failed to load %s: %s", self.data_path, e)
            raise StorageUnavailableError(
                f"Could not read transaction store: {e}", path=self.data_path
            ) from e
        with self._lock:
            self._transactions = transactions
        logger.debug("[STORE] Loaded %d transactions from %s", len(transactions), self.data_path)

    def save(self) -> None:
        payload = {
            tx_id: t.model_dump(mode="json") for tx_id, t in self._transactions.items()
        }
        tmp_path = f"{self.data_path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            os.replace(tmp_path, self.data_path)
        except OSError as e:
            logger.error("[STORE] Failed to write %s: %s", self.data_path, e)
            raise StorageUnavailableError(
                f"Could not write transaction store: {e}", path=self.data_path
            ) from e

    def get(self, transaction_id: str) -> Transaction | None:
        with self._lock:
            transaction = self._transactions.get(transaction_id)
            return transaction.model_copy() if transaction else None

    def _put(self, transaction: Transaction) -> None:
        previous = self._transactions.get(transaction.id)
        self._transactions[transaction.id] = transaction
        try:
            self.save()
        except StorageUnavailableError:
            # Keep memory consistent with what is on disk.
            if previous is None:
                del self._transactions[transaction.id]
            else:
                self._transactions[transaction.id] = previous
            raise

    def add(self, transaction: Transaction) -> None:
        with self._lock:
            self._put(transaction.model_copy())

    def update(self, transaction_id: str, **fields: Any) -> Transaction | None:
        with self._lock:
            current = self._transactions.get(transaction_id)
            if current is None:
                return None
            updated = current.model_copy(update=fields)
            self._put(updated)
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
