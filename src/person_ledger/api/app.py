"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from person_ledger.api.ingestion import router as ingestion_router
from person_ledger.api.ledger import router as ledger_router
from person_ledger.app_logging import configure_logging
from person_ledger.containers import AppContainer
from person_ledger.errors import (
    AuthError,
    LedgerError,
    NotFoundError,
    StoreError,
    UpstreamError,
    ValidationError,
)

_STATUS_CODES: list[tuple[type[LedgerError], int]] = [
    (ValidationError, 400),
    (AuthError, 401),
    (NotFoundError, 404),
    (UpstreamError, 500),
    (StoreError, 500),
]

_SERVER_ERROR_MESSAGES: dict[type[LedgerError], str] = {
    UpstreamError: "Upstream service failed",
    StoreError: "Storage operation failed",
}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(ledger_router)
    app.include_router(ingestion_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.exception_handler(LedgerError)
    async def handle_ledger_error(request: Request, exc: LedgerError) -> JSONResponse:
        status_code = _status_for(exc)
        if status_code < 500:  # noqa: PLR2004
            return JSONResponse(status_code=status_code, content={"error": exc.message})
        logger.error(
            "Request failed",
            exc_info=exc,
            extra={"path": request.url.path, "error_type": type(exc).__name__},
        )
        content = {"error": _server_error_message(exc)}
        if container.settings.environment == "local":
            content["details"] = exc.message
        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.info(
            "Rejected malformed request",
            extra={"path": request.url.path, "error_count": len(exc.errors())},
        )
        return JSONResponse(
            status_code=400, content={"error": "Missing or invalid fields"}
        )

    return app


def _status_for(exc: LedgerError) -> int:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 500


def _server_error_message(exc: LedgerError) -> str:
    for error_type, message in _SERVER_ERROR_MESSAGES.items():
        if isinstance(exc, error_type):
            return message
    return "Request failed"
