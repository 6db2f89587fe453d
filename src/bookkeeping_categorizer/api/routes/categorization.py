import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from bookkeeping_categorizer.api.dependencies import get_categorizer, get_pipeline, get_store
from bookkeeping_categorizer.api.schemas import (
    AutoCategorizeRequest,
    AutoCategorizeResponse,
    BatchCategorizeRequest,
    BatchCategorizeResponse,
    CategoriesResponse,
    CategorizeRequest,
    CategorizeResponse,
    LearnRequest,
    LearnResponse,
    StatsResponse,
)
from bookkeeping_categorizer.categorizer import TransactionCategorizer
from bookkeeping_categorizer.logger import get_logger
from bookkeeping_categorizer.models import Transaction
from bookkeeping_categorizer.services.auto_categorize import AutoCategorizationPipeline
from bookkeeping_categorizer.store.base import TransactionStore

logger = get_logger(__name__)

router = APIRouter(prefix="/api/categorization", tags=["categorization"])


async def _load_owned_transaction(
    store: TransactionStore,
    transaction_id: str,
    client_id: str,
) -> Transaction:
    transaction = await asyncio.to_thread(store.get, transaction_id)
    if transaction is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    if transaction.client_id != client_id:
        raise HTTPException(status_code=403, detail="Access denied")
    return transaction


@router.post("/categorize", response_model=CategorizeResponse)
async def categorize_transaction(
    req: CategorizeRequest,
    categorizer: Annotated[TransactionCategorizer, Depends(get_categorizer)],
    store: Annotated[TransactionStore, Depends(get_store)],
) -> CategorizeResponse:
    transaction = await _load_owned_transaction(store, req.transaction_id, req.client_id)
    categorization = await asyncio.to_thread(categorizer.categorize_transaction, transaction)
    return CategorizeResponse(categorization=categorization)


@router.post("/batch-categorize", response_model=BatchCategorizeResponse)
async def batch_categorize(
    req: BatchCategorizeRequest,
    categorizer: Annotated[TransactionCategorizer, Depends(get_categorizer)],
    store: Annotated[TransactionStore, Depends(get_store)],
) -> BatchCategorizeResponse:
    transactions = []
    # A repeated id is categorized once, at its first position.
    for transaction_id in dict.fromkeys(req.transaction_ids):
        transaction = await asyncio.to_thread(store.get, transaction_id)
        if transaction is not None and transaction.client_id == req.client_id:
            transactions.append(transaction)

    if not transactions:
        raise HTTPException(status_code=404, detail="No transactions found")

    categorizations = await asyncio.to_thread(categorizer.batch_categorize, transactions)
    return BatchCategorizeResponse(categorizations=categorizations)


@router.post("/learn", response_model=LearnResponse)
async def learn_from_correction(
    req: LearnRequest,
    categorizer: Annotated[TransactionCategorizer, Depends(get_categorizer)],
    store: Annotated[TransactionStore, Depends(get_store)],
) -> LearnResponse:
    await _load_owned_transaction(store, req.transaction_id, req.client_id)

    success = await asyncio.to_thread(
        categorizer.learn_from_correction,
        req.transaction_id,
        req.correct_category,
        req.correct_subcategory,
    )
    if not success:
        # Removed between the ownership check and the update.
        raise HTTPException(status_code=404, detail="Transaction not found")
    return LearnResponse(message="Correction learned successfully")


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    client_id: str,
    categorizer: Annotated[TransactionCategorizer, Depends(get_categorizer)],
) -> StatsResponse:
    stats = await asyncio.to_thread(categorizer.get_categorization_stats, client_id)
    return StatsResponse(stats=stats)


@router.get("/categories", response_model=CategoriesResponse)
async def get_categories(
    categorizer: Annotated[TransactionCategorizer, Depends(get_categorizer)],
) -> CategoriesResponse:
    return CategoriesResponse(categories=categorizer.list_categories())


@router.post("/auto-categorize-all", response_model=AutoCategorizeResponse)
async def auto_categorize_all(
    req: AutoCategorizeRequest,
    pipeline: Annotated[AutoCategorizationPipeline, Depends(get_pipeline)],
) -> AutoCategorizeResponse:
    summary = await pipeline.run(req.client_id, limit=req.limit)
    return AutoCategorizeResponse(
        message=summary.message,
        processed=summary.processed,
        total=summary.total,
        skipped=summary.skipped,
        categorizations=summary.categorizations,
    )
