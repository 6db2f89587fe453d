import math
from collections.abc import Iterable

from bookkeeping_categorizer.errors import InvalidTransactionError
from bookkeeping_categorizer.logger import get_logger
from bookkeeping_categorizer.models import (
    UNCATEGORIZED,
    BatchCategorization,
    CategorizationResult,
    CategorizationStats,
    Correction,
    Transaction,
)
from bookkeeping_categorizer.rules import (
    DEFAULT_SUBCATEGORY,
    SUBCATEGORY_OVERRIDES,
    CategoryRule,
    RuleSet,
    default_rule_set,
)
from bookkeeping_categorizer.store.base import TransactionStore
from bookkeeping_categorizer.store.corrections import CorrectionLog

logger = get_logger(__name__)

KEYWORD_WEIGHT = 0.3
MERCHANT_WEIGHT = 0.5
INCOME_THRESHOLD = 0.7

OTHER_INCOME = "Other Income"
OTHER_INCOME_CONFIDENCE = 0.3


def combine_text(transaction: Transaction) -> str:
    parts = (transaction.name, transaction.merchant_name, transaction.description)
    return " ".join(part for part in parts if part).lower()


class TransactionCategorizer:
    """Keyword and merchant scorer for bank transactions.

    Scoring is a pure function of the transaction and the rule set. The store
    and correction log are only needed for ``learn_from_correction`` and
    ``get_categorization_stats``.
    """

    def __init__(
        self,
        rules: RuleSet | None = None,
        store: TransactionStore | None = None,
        corrections: CorrectionLog | None = None,
    ):
        self.rules = rules or default_rule_set()
        self.store = store
        self.corrections = corrections

    def categorize_transaction(self, transaction: Transaction) -> CategorizationResult:
        if not math.isfinite(transaction.amount):
            raise InvalidTransactionError(
                f"Transaction amount must be a finite number, got {transaction.amount!r}",
                transaction_id=transaction.id,
            )

        text = combine_text(transaction)
        if transaction.amount > 0:
            result = self._categorize_income(text)
        else:
            result = self._categorize_expense(text, abs(transaction.amount))

        logger.debug(
            "[CATEGORIZE] %s: '%s' -> '%s' (confidence: %.2f)",
            transaction.id,
            text[:50],
            result.category,
            result.confidence,
        )
        return result

    def _categorize_income(self, text: str) -> CategorizationResult:
        # First qualifying rule wins, so table order matters here.
        for category, rule in self.rules.income.items():
            score = self.calculate_score(text, rule)
            if score > INCOME_THRESHOLD:
                return CategorizationResult(
                    category=category,
                    subcategory=self.get_subcategory(category, text),
                    confidence=score,
                    reasoning=self.get_reasoning(text, rule),
                )

        return CategorizationResult(
            category=OTHER_INCOME,
            subcategory=UNCATEGORIZED,
            confidence=OTHER_INCOME_CONFIDENCE,
            reasoning="No specific income pattern matched",
        )

    def _categorize_expense(self, text: str, amount: float) -> CategorizationResult:
        best = CategorizationResult(
            category=UNCATEGORIZED,
            subcategory=UNCATEGORIZED,
            confidence=0.0,
            reasoning="No patterns matched",
        )

        for category, rule in self.rules.expense.items():
            if rule.max_amount is not None and amount > rule.max_amount:
                continue

            score = self.calculate_score(text, rule)
            if score > best.confidence:
                best = CategorizationResult(
                    category=category,
                    subcategory=self.get_subcategory(category, text),
                    confidence=score,
                    reasoning=self.get_reasoning(text, rule),
                )

        return best

    @staticmethod
    def calculate_score(text: str, rule: CategoryRule) -> float:
        score = 0.0
        for keyword in rule.keywords:
            if keyword in text:
                score += KEYWORD_WEIGHT
        for merchant in rule.merchants:
            if merchant in text:
                score += MERCHANT_WEIGHT
        return min(score * rule.confidence, 1.0)

    def get_subcategory(self, category: str, text: str) -> str:
        for markers, subcategory in SUBCATEGORY_OVERRIDES:
            if any(marker in text for marker in markers):
                return subcategory

        options = self.rules.subcategories.get(category)
        return options[0] if options else DEFAULT_SUBCATEGORY

    @staticmethod
    def get_reasoning(text: str, rule: CategoryRule) -> str:
        matched_keywords = [k for k in rule.keywords if k in text]
        matched_merchants = [m for m in rule.merchants if m in text]

        reasons = []
        if matched_keywords:
            reasons.append(f"Keywords: {', '.join(matched_keywords)}")
        if matched_merchants:
            reasons.append(f"Merchants: {', '.join(matched_merchants)}")
        return "; ".join(reasons) or "Pattern matching"

    def batch_categorize(self, transactions: Iterable[Transaction]) -> list[BatchCategorization]:
        results = []
        for transaction in transactions:
            result = self.categorize_transaction(transaction)
            results.append(BatchCategorization(transaction_id=transaction.id, **result.model_dump()))
        return results

    def learn_from_correction(
        self,
        transaction_id: str,
        correct_category: str,
        correct_subcategory: str | None = None,
    ) -> bool:
        """
        Record a bookkeeper's override on a single transaction.

        Returns False when the transaction does not exist. The rule tables are
        left untouched; the correction is appended to the correction log when
        one is configured.
        """
        store = self._require_store()
        transaction = store.get(transaction_id)
        if transaction is None:
            logger.warning("[LEARN] Transaction %s not found; correction ignored.", transaction_id)
            return False

        updated = store.update(
            transaction_id,
            custom_category=correct_category,
            custom_subcategory=correct_subcategory,
            is_reviewed=True,
        )
        if updated is None:
            logger.warning(
                "[LEARN] Transaction %s disappeared before the correction was saved.",
                transaction_id,
            )
            return False

        if self.corrections is not None:
            self.corrections.append(Correction(
                transaction_id=transaction_id,
                client_id=transaction.client_id,
                text=combine_text(transaction),
                amount=transaction.amount,
                previous_category=transaction.category,
                previous_subcategory=transaction.subcategory,
                category=correct_category,
                subcategory=correct_subcategory,
            ))

        logger.info(
            "[LEARN] Correction recorded: '%s' -> %s/%s",
            transaction.name or transaction_id,
            correct_category,
            correct_subcategory or "-",
        )
        return True

    def get_categorization_stats(self, client_id: str) -> CategorizationStats:
        """
        Summarise a client's transactions.

        The three buckets partition ``total``: reviewed rows count only as
        reviewed, whatever their category.
        """
        stats = CategorizationStats()
        for group in self._require_store().count_by_categorization(client_id):
            stats.total += group.count
            if group.is_reviewed:
                stats.reviewed += group.count
            elif group.category == UNCATEGORIZED:
                stats.uncategorized += group.count
            else:
                stats.auto_categorized += group.count

        logger.debug("[STATS] Client %s: %s", client_id, stats.model_dump())
        return stats

    def list_categories(self) -> dict[str, list[str]]:
        return {
            "expenses": list(self.rules.expense),
            "income": list(self.rules.income),
        }

    def _require_store(self) -> TransactionStore:
        if self.store is None:
            raise RuntimeError("TransactionCategorizer was created without a transaction store")
        return self.store
