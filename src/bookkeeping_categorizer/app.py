from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from bookkeeping_categorizer.api.errors import register_exception_handlers
from bookkeeping_categorizer.api.routes import categorization
from bookkeeping_categorizer.categorizer import TransactionCategorizer
from bookkeeping_categorizer.core import settings
from bookkeeping_categorizer.logger import get_logger, setup_logging
from bookkeeping_categorizer.rules import default_rule_set
from bookkeeping_categorizer.services.auto_categorize import AutoCategorizationPipeline
from bookkeeping_categorizer.store.base import TransactionStore
from bookkeeping_categorizer.store.corrections import CorrectionLog
from bookkeeping_categorizer.store.json_store import JsonTransactionStore
from bookkeeping_categorizer.store.memory import InMemoryTransactionStore

logger = get_logger(__name__)


def build_store() -> TransactionStore:
    backend = settings.get_store_backend()
    if backend == "memory":
        logger.info("[STORE] Using in-memory transaction store.")
        return InMemoryTransactionStore()
    path = settings.data_path(settings.TRANSACTIONS_FILENAME)
    logger.info("[STORE] Using JSON transaction store at %s.", path)
    return JsonTransactionStore(data_path=path)


def create_app() -> FastAPI:
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Initializing services...")
        settings.log_environment()

        store = build_store()
        corrections = CorrectionLog(data_path=settings.data_path(settings.CORRECTIONS_FILENAME))
        categorizer = TransactionCategorizer(
            rules=default_rule_set(),
            store=store,
            corrections=corrections,
        )
        pipeline = AutoCategorizationPipeline(categorizer=categorizer, store=store)

        app.state.store = store
        app.state.categorizer = categorizer
        app.state.pipeline = pipeline

        logger.info(
            "Services initialized: %d expense rules, %d income rules, auto-categorize threshold %.2f.",
            len(categorizer.rules.expense),
            len(categorizer.rules.income),
            pipeline.threshold,
        )
        yield
        logger.info("Service shutting down.")

    app = FastAPI(title="Bookkeeping Categorizer", lifespan=lifespan)
    register_exception_handlers(app)
    app.include_router(categorization.router)

    return app


app = create_app()
