import asyncio

from bookkeeping_categorizer.categorizer import TransactionCategorizer
from bookkeeping_categorizer.core import settings
from bookkeeping_categorizer.errors import InvalidTransactionError
from bookkeeping_categorizer.logger import get_logger
from bookkeeping_categorizer.models import (
    UNCATEGORIZED,
    AutoCategorizeSummary,
    BatchCategorization,
)
from bookkeeping_categorizer.store.base import TransactionStore

logger = get_logger(__name__)


class AutoCategorizationPipeline:
    """Applies categorizer output to a client's uncategorized transactions.

    Only results with confidence strictly above the threshold are written
    back; everything else is left as it was.
    """

    def __init__(
        self,
        categorizer: TransactionCategorizer,
        store: TransactionStore,
        threshold: float | None = None,
    ) -> None:
        self.categorizer = categorizer
        self.store = store
        self.threshold = (
            threshold if threshold is not None else settings.get_auto_categorize_threshold()
        )

    def should_apply(self, categorization: BatchCategorization) -> bool:
        return categorization.confidence > self.threshold

    def auto_categorize_all(self, client_id: str, limit: int | None = None) -> AutoCategorizeSummary:
        if limit is None:
            limit = settings.get_auto_categorize_limit()

        transactions = self.store.list_for_client(
            client_id,
            category=UNCATEGORIZED,
            is_reviewed=False,
            limit=limit,
        )
        if not transactions:
            logger.info("[AUTO] No uncategorized transactions for client %s.", client_id)
            return AutoCategorizeSummary(
                processed=0,
                total=0,
                message="No uncategorized transactions found",
            )

        categorizations: list[BatchCategorization] = []
        skipped = 0
        for transaction in transactions:
            try:
                result = self.categorizer.categorize_transaction(transaction)
            except InvalidTransactionError as e:
                # Left as is; the rest of the run continues.
                logger.warning("[AUTO] Skipping transaction %s: %s", transaction.id, e)
                skipped += 1
                continue
            categorizations.append(
                BatchCategorization(transaction_id=transaction.id, **result.model_dump())
            )

        processed = 0
        for categorization in categorizations:
            if not self.should_apply(categorization):
                logger.debug(
                    "[AUTO] Confidence %.2f not above %.2f for transaction %s; suggested '%s'.",
                    categorization.confidence,
                    self.threshold,
                    categorization.transaction_id,
                    categorization.category,
                )
                continue
            updated = self.store.update(
                categorization.transaction_id,
                category=categorization.category,
                subcategory=categorization.subcategory,
            )
            if updated is not None:
                processed += 1

        logger.info(
            "[AUTO] Client %s: applied %d of %d categorizations, skipped %d (threshold %.2f).",
            client_id,
            processed,
            len(transactions),
            skipped,
            self.threshold,
        )
        return AutoCategorizeSummary(
            processed=processed,
            total=len(transactions),
            skipped=skipped,
            message=f"Processed {processed} transactions",
            categorizations=categorizations,
        )

    async def run(self, client_id: str, limit: int | None = None) -> AutoCategorizeSummary:
        return await asyncio.to_thread(self.auto_categorize_all, client_id, limit)
