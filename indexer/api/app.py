"""FastAPI application factory."""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from api import campaigns, chainhook
from api.deps import InvalidPayload, PayloadTooLarge, UnauthorizedDelivery
from chainhook_indexer.config import Config
from chainhook_indexer.log import get_logger
from db.session import init_db

logger = get_logger(__name__)


def create_app(config: Config) -> FastAPI:
    """Build the indexer API for an already-validated config.

    Args:
        config: Configuration object, kept on app.state for dependencies

    Returns:
        FastAPI application
    """
    init_db(config)

    app = FastAPI(title="Fundraising chainhook indexer", version="0.1.0")
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_allow_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(UnauthorizedDelivery)
    async def unauthorized_handler(request: Request, exc: UnauthorizedDelivery):
        client = request.client.host if request.client else "unknown"
        logger.warning(f"Rejected unauthorized chainhook delivery from {client}")
        return JSONResponse(status_code=401, content={"ok": False, "error": "unauthorized"})

    @app.exception_handler(PayloadTooLarge)
    async def payload_too_large_handler(request: Request, exc: PayloadTooLarge):
        logger.warning(str(exc))
        return JSONResponse(status_code=413, content={"ok": False, "error": "payload too large"})

    @app.exception_handler(InvalidPayload)
    async def invalid_payload_handler(request: Request, exc: InvalidPayload):
        logger.warning(f"Rejected chainhook delivery with invalid JSON: {exc}")
        return JSONResponse(status_code=400, content={"ok": False, "error": "invalid JSON"})

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error(f"Database error on {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "Database error"})

    app.include_router(chainhook.router)
    app.include_router(campaigns.router)

    logger.info(
        f"Indexer API ready (auth={'on' if config.auth_enabled else 'off'}, "
        f"contract={config.expected_contract_identifier or 'any'})"
    )
    return app
