from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from bookkeeping_categorizer.errors import InvalidTransactionError, StorageUnavailableError
from bookkeeping_categorizer.logger import get_logger

logger = get_logger(__name__)


async def handle_storage_unavailable(request: Request, exc: StorageUnavailableError) -> JSONResponse:
    logger.error("[API] Storage unavailable on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"error": "Transaction storage unavailable", "retry_allowed": True},
    )


async def handle_invalid_transaction(request: Request, exc: InvalidTransactionError) -> JSONResponse:
    logger.warning("[API] Invalid transaction %s: %s", exc.transaction_id, exc)
    return JSONResponse(
        status_code=422,
        content={"error": str(exc), "transaction_id": exc.transaction_id},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorageUnavailableError, handle_storage_unavailable)
    app.add_exception_handler(InvalidTransactionError, handle_invalid_transaction)
