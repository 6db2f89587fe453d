from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


@dataclass(frozen=True)
class CategoryRule:
    keywords: tuple[str, ...]
    merchants: tuple[str, ...]
    confidence: float
    # Absolute-amount ceiling; income rules leave it unset.
    max_amount: float | None = None

    def __post_init__(self) -> None:
        if not 0 < self.confidence <= 1:
            raise ValueError(f"Rule confidence must be in (0, 1], got {self.confidence}")
        # Matching is done against lowercased text.
        object.__setattr__(self, "keywords", tuple(k.lower() for k in self.keywords))
        object.__setattr__(self, "merchants", tuple(m.lower() for m in self.merchants))


def _freeze(mapping: Mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class RuleSet:
    """Read-only rule tables handed to the categorizer at construction.

    Iteration order of ``expense`` and ``income`` is the declaration order and
    is significant: income matching stops at the first qualifying rule and
    expense ties go to the earlier rule.
    """
    expense: Mapping[str, CategoryRule]
    income: Mapping[str, CategoryRule]
    subcategories: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        overlap = set(self.expense) & set(self.income)
        if overlap:
            raise ValueError(f"Categories cannot be both expense and income: {sorted(overlap)}")
        object.__setattr__(self, "expense", _freeze(self.expense))
        object.__setattr__(self, "income", _freeze(self.income))
        object.__setattr__(
            self,
            "subcategories",
            _freeze({name: tuple(options) for name, options in self.subcategories.items()}),
        )


EXPENSE_RULES: dict[str, CategoryRule] = {
    "Office Supplies": CategoryRule(
        keywords=("office depot", "staples", "amazon", "supplies", "paper", "pens", "ink"),
        merchants=("office depot", "staples", "amazon business"),
        max_amount=500,
        confidence=0.9,
    ),
    "Travel": CategoryRule(
        keywords=("hotel", "airline", "uber", "lyft", "taxi", "flight", "travel"),
        merchants=("marriott", "hilton", "delta", "united", "uber", "lyft"),
        max_amount=2000,
        confidence=0.95,
    ),
    "Meals & Entertainment": CategoryRule(
        keywords=("restaurant", "cafe", "coffee", "lunch", "dinner", "food"),
        merchants=("mcdonalds", "starbucks", "subway", "pizza hut"),
        max_amount=200,
        confidence=0.8,
    ),
    "Software & Subscriptions": CategoryRule(
        keywords=("subscription", "software", "saas", "monthly", "annual"),
        merchants=("adobe", "microsoft", "salesforce", "slack", "zoom"),
        max_amount=1000,
        confidence=0.9,
    ),
    "Marketing & Advertising": CategoryRule(
        keywords=("google ads", "facebook ads", "marketing", "advertising", "promotion"),
        merchants=("google", "facebook", "linkedin", "twitter"),
        max_amount=5000,
        confidence=0.85,
    ),
    "Professional Services": CategoryRule(
        keywords=("legal", "accounting", "consulting", "attorney", "lawyer"),
        merchants=("law firm", "accounting firm", "consulting"),
        max_amount=10000,
        confidence=0.8,
    ),
    "Utilities": CategoryRule(
        keywords=("electric", "gas", "water", "internet", "phone", "utility"),
        merchants=("comcast", "verizon", "at&t", "electric company"),
        max_amount=1000,
        confidence=0.9,
    ),
    "Rent & Lease": CategoryRule(
        keywords=("rent", "lease", "office space", "warehouse"),
        merchants=("property management", "landlord"),
        max_amount=50000,
        confidence=0.95,
    ),
    "Insurance": CategoryRule(
        keywords=("insurance", "premium", "coverage"),
        merchants=("state farm", "allstate", "geico", "progressive"),
        max_amount=5000,
        confidence=0.9,
    ),
    "Equipment & Machinery": CategoryRule(
        keywords=("equipment", "machinery", "computer", "laptop", "server"),
        merchants=("dell", "hp", "apple", "lenovo"),
        max_amount=10000,
        confidence=0.8,
    ),
}

INCOME_RULES: dict[str, CategoryRule] = {
    "Sales Revenue": CategoryRule(
        keywords=("payment", "invoice", "sale", "revenue", "income"),
        merchants=("customer", "client", "payment"),
        confidence=0.9,
    ),
    "Interest Income": CategoryRule(
        keywords=("interest", "dividend", "yield"),
        merchants=("bank", "investment"),
        confidence=0.95,
    ),
    "Refunds": CategoryRule(
        keywords=("refund", "return", "credit"),
        merchants=("refund", "return"),
        confidence=0.8,
    ),
}

SUBCATEGORIES: dict[str, tuple[str, ...]] = {
    "Travel": ("Airfare", "Hotel", "Ground Transportation", "Meals"),
    "Meals & Entertainment": ("Business Meals", "Client Entertainment", "Team Building"),
    "Office Supplies": ("Stationery", "Technology", "Furniture"),
    "Software & Subscriptions": ("Productivity", "Communication", "Design", "Analytics"),
    "Marketing & Advertising": ("Digital Ads", "Print Ads", "Events", "Content"),
    "Professional Services": ("Legal", "Accounting", "Consulting", "Other"),
    "Utilities": ("Electric", "Gas", "Water", "Internet", "Phone"),
    "Equipment & Machinery": ("Computers", "Office Equipment", "Manufacturing", "Other"),
}

# Checked in order against the transaction text before the category defaults.
SUBCATEGORY_OVERRIDES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("computer", "laptop"), "Computers"),
    (("phone", "internet"), "Internet"),
    (("legal", "attorney"), "Legal"),
    (("accounting", "bookkeeping"), "Accounting"),
)

DEFAULT_SUBCATEGORY = "General"


def default_rule_set() -> RuleSet:
    return RuleSet(expense=EXPENSE_RULES, income=INCOME_RULES, subcategories=SUBCATEGORIES)
