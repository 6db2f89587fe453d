from abc import ABC, abstractmethod
from collections import Counter
from collections.abc import Iterable
from datetime import date
from typing import Any

from bookkeeping_categorizer.models import CategorizationCount, Transaction


class TransactionStore(ABC):
    """Storage collaborator the categorizer reads from and writes back to.

    Lookups of unknown ids return ``None``. Implementations raise
    ``StorageUnavailableError`` when the backing storage itself fails.
    """

    @abstractmethod
    def get(self, transaction_id: str) -> Transaction | None:
        pass

    @abstractmethod
    def add(self, transaction: Transaction) -> None:
        """Insert or replace a transaction."""
        pass

    @abstractmethod
    def update(self, transaction_id: str, **fields: Any) -> Transaction | None:
        """Apply field updates and return the stored transaction, or None if unknown."""
        pass

    @abstractmethod
    def list_for_client(
        self,
        client_id: str,
        *,
        category: str | None = None,
        is_reviewed: bool | None = None,
        limit: int | None = None,
    ) -> list[Transaction]:
        """Return the client's transactions, newest posted date first."""
        pass

    @abstractmethod
    def count_by_categorization(self, client_id: str) -> list[CategorizationCount]:
        """Count the client's transactions grouped by (category, custom_category, is_reviewed)."""
        pass

    def add_many(self, transactions: Iterable[Transaction]) -> None:
        for transaction in transactions:
            self.add(transaction)


def select_for_client(
    transactions: Iterable[Transaction],
    client_id: str,
    *,
    category: str | None = None,
    is_reviewed: bool | None = None,
    limit: int | None = None,
) -> list[Transaction]:
    selected = [
        t for t in transactions
        if t.client_id == client_id
        and (category is None or t.category == category)
        and (is_reviewed is None or t.is_reviewed == is_reviewed)
    ]
    # Undated transactions sort last; the sort is stable so insertion order breaks ties.
    selected.sort(key=lambda t: t.posted_date or date.min, reverse=True)
    if limit is not None:
        selected = selected[:max(limit, 0)]
    return [t.model_copy() for t in selected]


def group_counts(transactions: Iterable[Transaction], client_id: str) -> list[CategorizationCount]:
    counts: Counter[tuple[str, str | None, bool]] = Counter(
        (t.category, t.custom_category, t.is_reviewed)
        for t in transactions
        if t.client_id == client_id
    )
    return [
        CategorizationCount(
            category=category,
            custom_category=custom_category,
            is_reviewed=is_reviewed,
            count=count,
        )
        for (category, custom_category, is_reviewed), count in counts.items()
    ]
