from pydantic import BaseModel, Field

from bookkeeping_categorizer.core.settings import DEFAULT_AUTO_CATEGORIZE_LIMIT
from bookkeeping_categorizer.models import BatchCategorization, CategorizationResult, CategorizationStats


class CategorizeRequest(BaseModel):
    transaction_id: str
    client_id: str


class BatchCategorizeRequest(BaseModel):
    transaction_ids: list[str] = Field(min_length=1)
    client_id: str


class LearnRequest(BaseModel):
    transaction_id: str
    client_id: str
    correct_category: str = Field(min_length=1)
    correct_subcategory: str | None = None


class AutoCategorizeRequest(BaseModel):
    client_id: str
    limit: int = Field(default=DEFAULT_AUTO_CATEGORIZE_LIMIT, ge=1)


class CategorizeResponse(BaseModel):
    success: bool = True
    categorization: CategorizationResult


class BatchCategorizeResponse(BaseModel):
    success: bool = True
    categorizations: list[BatchCategorization]


class LearnResponse(BaseModel):
    success: bool = True
    message: str


class StatsResponse(BaseModel):
    success: bool = True
    stats: CategorizationStats


class CategoriesResponse(BaseModel):
    success: bool = True
    categories: dict[str, list[str]]


class AutoCategorizeResponse(BaseModel):
    success: bool = True
    message: str
    processed: int
    total: int
    skipped: int = 0
    categorizations: list[BatchCategorization]
