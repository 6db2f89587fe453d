from fastapi import HTTPException, Request

from bookkeeping_categorizer.categorizer import TransactionCategorizer
from bookkeeping_categorizer.services.auto_categorize import AutoCategorizationPipeline
from bookkeeping_categorizer.store.base import TransactionStore


def get_categorizer(request: Request) -> TransactionCategorizer:
    categorizer = getattr(request.app.state, "categorizer", None)
    if not categorizer:
        raise HTTPException(status_code=500, detail="Categorizer not initialized")
    return categorizer


def get_store(request: Request) -> TransactionStore:
    store = getattr(request.app.state, "store", None)
    if not store:
        raise HTTPException(status_code=500, detail="Transaction store not initialized")
    return store


def get_pipeline(request: Request) -> AutoCategorizationPipeline:
    pipeline = getattr(request.app.state, "pipeline", None)
    if not pipeline:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return pipeline
