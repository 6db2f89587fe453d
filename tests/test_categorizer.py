import logging
import math

import pytest

from bookkeeping_categorizer.categorizer import TransactionCategorizer, combine_text
from bookkeeping_categorizer.errors import InvalidTransactionError
from bookkeeping_categorizer.models import Transaction
from bookkeeping_categorizer.rules import (
    EXPENSE_RULES,
    INCOME_RULES,
    CategoryRule,
    RuleSet,
)


@pytest.fixture
def categorizer() -> TransactionCategorizer:
    return TransactionCategorizer()


def _tx(name: str | None, amount: float, tx_id: str = "t1", **kwargs) -> Transaction:
    return Transaction(id=tx_id, name=name, amount=amount, **kwargs)


SAMPLE_TEXTS = [
    "STAPLES OFFICE SUPPLY #402",
    "Uber Trip 8/2",
    "ABC Corp Payment",
    "Bank interest dividend",
    "Amazon refund",
    "Adobe monthly subscription software",
    "Marriott Hotel",
    "Dell laptop",
    "Comcast internet",
    "Starbucks coffee lunch dinner food restaurant cafe",
    "XQZ 9981",
    "",
]
SAMPLE_AMOUNTS = [-50000.0, -2500.0, -45.0, -0.01, 0.0, 0.01, 20.0, 2500.0]


def test_staples_office_supplies(categorizer: TransactionCategorizer) -> None:
    res = categorizer.categorize_transaction(_tx("STAPLES OFFICE SUPPLY #402", -45.00))
    assert res.category == "Office Supplies"
    assert res.subcategory == "Stationery"
    assert res.confidence == pytest.approx(0.72)
    assert res.reasoning == "Keywords: staples; Merchants: staples"


def test_uber_is_travel(categorizer: TransactionCategorizer) -> None:
    res = categorizer.categorize_transaction(_tx("Uber Trip 8/2", -22.50))
    assert res.category == "Travel"
    assert res.subcategory == "Airfare"
    assert res.confidence == pytest.approx(0.76)


def test_customer_payment_is_sales_revenue(categorizer: TransactionCategorizer) -> None:
    res = categorizer.categorize_transaction(_tx("ABC Corp Payment", 2500.00))
    # keyword "payment" + merchant "payment" = 0.8, scaled by 0.9 -> 0.72 > 0.7
    assert res.category == "Sales Revenue"
    assert res.subcategory == "General"
    assert res.confidence == pytest.approx(0.72)


def test_no_match_expense_is_uncategorized(categorizer: TransactionCategorizer) -> None:
    res = categorizer.categorize_transaction(_tx("XQZ 9981", -10.00))
    assert res.category == "Uncategorized"
    assert res.subcategory == "Uncategorized"
    assert res.confidence == 0
    assert res.reasoning == "No patterns matched"


def test_weak_income_falls_back_to_other_income(categorizer: TransactionCategorizer) -> None:
    # "refund" keyword + merchant = 0.8 * 0.8 = 0.64, below the income threshold
    res = categorizer.categorize_transaction(_tx("Amazon refund", 20.0))
    assert res.category == "Other Income"
    assert res.subcategory == "Uncategorized"
    assert res.confidence == 0.3
    assert res.reasoning == "No specific income pattern matched"


def test_income_uses_first_qualifying_rule(categorizer: TransactionCategorizer) -> None:
    # Interest Income would score 0.76 but Sales Revenue (0.72) is declared first.
    res = categorizer.categorize_transaction(_tx("Bank interest payment", 100.0))
    assert res.category == "Sales Revenue"


def test_interest_income(categorizer: TransactionCategorizer) -> None:
    res = categorizer.categorize_transaction(_tx("Bank interest dividend", 12.5))
    assert res.category == "Interest Income"
    assert res.confidence == 1.0


def test_expense_keeps_highest_score(categorizer: TransactionCategorizer) -> None:
    # Rent & Lease scores 0.285; Software & Subscriptions would score 0.27.
    res = categorizer.categorize_transaction(_tx("Monthly rent", -800.0))
    assert res.category == "Rent & Lease"
    assert res.subcategory == "General"


def test_expense_tie_goes_to_first_rule() -> None:
    rules = RuleSet(
        expense={
            "First": CategoryRule(keywords=("alpha",), merchants=(), max_amount=100, confidence=1.0),
            "Second": CategoryRule(keywords=("alpha",), merchants=(), max_amount=100, confidence=1.0),
        },
        income={},
    )
    res = TransactionCategorizer(rules=rules).categorize_transaction(_tx("alpha", -1.0))
    assert res.category == "First"


def test_score_is_clamped(categorizer: TransactionCategorizer) -> None:
    res = categorizer.categorize_transaction(_tx("Adobe monthly subscription software", -30.0))
    assert res.category == "Software & Subscriptions"
    assert res.confidence == 1.0


def test_amount_ceiling_blocks_rule(categorizer: TransactionCategorizer) -> None:
    under = categorizer.categorize_transaction(_tx("Marriott Hotel", -1500.0))
    over = categorizer.categorize_transaction(_tx("Marriott Hotel", -2500.0))
    assert under.category == "Travel"
    assert over.category == "Uncategorized"
    assert over.confidence == 0


def test_amount_ceiling_is_inclusive(categorizer: TransactionCategorizer) -> None:
    res = categorizer.categorize_transaction(_tx("Marriott Hotel", -2000.0))
    assert res.category == "Travel"


def test_zero_amount_uses_expense_rules(categorizer: TransactionCategorizer) -> None:
    res = categorizer.categorize_transaction(_tx("Uber", 0.0))
    assert res.category == "Travel"


@pytest.mark.parametrize(
    ("text", "amount", "subcategory"),
    [
        ("Dell laptop", -1200.0, "Computers"),
        ("Comcast internet", -89.0, "Internet"),
        ("Smith law firm attorney", -500.0, "Legal"),
        ("Staples accounting ledger", -20.0, "Accounting"),
    ],
)
def test_subcategory_overrides(
    categorizer: TransactionCategorizer, text: str, amount: float, subcategory: str
) -> None:
    res = categorizer.categorize_transaction(_tx(text, amount))
    assert res.subcategory == subcategory


def test_subcategory_defaults(categorizer: TransactionCategorizer) -> None:
    assert categorizer.get_subcategory("Travel", "uber") == "Airfare"
    assert categorizer.get_subcategory("Insurance", "geico") == "General"
    assert categorizer.get_subcategory("Travel", "hotel with internet") == "Internet"


def test_reasoning_without_matches() -> None:
    rule = INCOME_RULES["Refunds"]
    assert TransactionCategorizer.get_reasoning("nothing here", rule) == "Pattern matching"


def test_text_fields_are_combined() -> None:
    tx = Transaction(id="t1", amount=-5.0, name="POS 1234", merchant_name=None, description="Starbucks")
    assert combine_text(tx) == "pos 1234 starbucks"

    empty = Transaction(id="t2", amount=-5.0, name="", merchant_name="", description=None)
    assert combine_text(empty) == ""


def test_merchant_name_field_is_scored(categorizer: TransactionCategorizer) -> None:
    tx = Transaction(id="t1", amount=-12.0, name="POS DEBIT 0412", merchant_name="Starbucks")
    res = categorizer.categorize_transaction(tx)
    assert res.category == "Meals & Entertainment"
    assert res.reasoning == "Merchants: starbucks"


@pytest.mark.parametrize("amount", [math.inf, -math.inf, math.nan])
def test_non_finite_amount_rejected(categorizer: TransactionCategorizer, amount: float) -> None:
    with pytest.raises(InvalidTransactionError) as exc_info:
        categorizer.categorize_transaction(_tx("Uber", amount, tx_id="bad"))
    assert exc_info.value.transaction_id == "bad"


@pytest.mark.parametrize("text", SAMPLE_TEXTS)
@pytest.mark.parametrize("amount", SAMPLE_AMOUNTS)
def test_result_invariants(categorizer: TransactionCategorizer, text: str, amount: float) -> None:
    tx = _tx(text, amount)
    res = categorizer.categorize_transaction(tx)

    assert 0.0 <= res.confidence <= 1.0
    if amount > 0:
        assert res.category not in EXPENSE_RULES
    else:
        assert res.category not in INCOME_RULES
        rule = EXPENSE_RULES.get(res.category)
        if rule is not None:
            assert abs(amount) <= rule.max_amount

    assert categorizer.categorize_transaction(tx) == res


def test_batch_preserves_order(categorizer: TransactionCategorizer) -> None:
    transactions = [
        _tx("Uber Trip 8/2", -22.5, tx_id="a"),
        _tx("XQZ 9981", -10.0, tx_id="b"),
        _tx("ABC Corp Payment", 2500.0, tx_id="c"),
    ]
    results = categorizer.batch_categorize(transactions)

    assert [r.transaction_id for r in results] == ["a", "b", "c"]
    assert [r.category for r in results] == ["Travel", "Uncategorized", "Sales Revenue"]
    assert categorizer.batch_categorize([]) == []


def test_list_categories(categorizer: TransactionCategorizer) -> None:
    categories = categorizer.list_categories()
    assert categories["expenses"][0] == "Office Supplies"
    assert len(categories["expenses"]) == 10
    assert categories["income"] == ["Sales Revenue", "Interest Income", "Refunds"]


def test_store_operations_require_store(categorizer: TransactionCategorizer) -> None:
    with pytest.raises(RuntimeError):
        categorizer.get_categorization_stats("client-1")


def test_debug_log_uses_deferred_args(
    categorizer: TransactionCategorizer, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.DEBUG, logger="bookkeeping_categorizer.categorizer"):
        categorizer.categorize_transaction(_tx("Uber Trip 8/2", -22.5))

    [record] = [r for r in caplog.records if r.msg.startswith("[CATEGORIZE]")]
    assert record.args == ("t1", "uber trip 8/2", "Travel", pytest.approx(0.76))
    assert record.getMessage() == "[CATEGORIZE] t1: 'uber trip 8/2' -> 'Travel' (confidence: 0.76)"
