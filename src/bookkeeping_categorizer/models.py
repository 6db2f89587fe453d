from datetime import date, datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

UNCATEGORIZED = "Uncategorized"


class Transaction(BaseModel):
    id: str
    amount: float
    client_id: str | None = None
    name: str | None = None
    merchant_name: str | None = None
    description: str | None = None
    posted_date: date | None = None
    category: str = UNCATEGORIZED
    subcategory: str = UNCATEGORIZED
    custom_category: str | None = None
    custom_subcategory: str | None = None
    is_reviewed: bool = False


class CategorizationResult(BaseModel):
    category: str
    subcategory: str
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str


class BatchCategorization(CategorizationResult):
    transaction_id: str


class CategorizationCount(BaseModel):
    category: str
    custom_category: str | None = None
    is_reviewed: bool = False
    count: int


class CategorizationStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int = 0
    reviewed: int = 0
    auto_categorized: int = Field(default=0, alias="autoCategorized")
    uncategorized: int = 0


class Correction(BaseModel):
    transaction_id: str
    client_id: str | None = None
    text: str
    amount: float
    previous_category: str
    previous_subcategory: str
    category: str
    subcategory: str | None = None
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AutoCategorizeSummary(BaseModel):
    processed: int
    total: int
    skipped: int = 0
    message: str
    categorizations: list[BatchCategorization] = Field(default_factory=list)
