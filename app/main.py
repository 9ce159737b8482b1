"""
DocLedger - Document registration and verification service.

Run with:
    uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import get_settings
from app.core.database import close_db, init_db
from app.core.errors import setup_exception_handlers
from app.core.logging_config import setup_logging
from app.core.logging_middleware import RequestLoggingMiddleware
from app.routers import documents, health, verify

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    await init_db()
    logger.info(
        "%s %s started",
        settings.app_name,
        settings.app_version,
        extra={"blob_backend": settings.blob_backend, "ledger_backend": settings.ledger_backend},
    )
    yield
    await close_db()
    logger.info("%s stopped", settings.app_name)


def create_app() -> FastAPI:
    """Application factory."""
    settings = get_settings()
    setup_logging(level=settings.log_level, json_format=settings.log_json, log_file=settings.log_file)

    app = FastAPI(
        title=settings.app_name,
        description="Register documents by content fingerprint and verify them against a ledger",
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    setup_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(documents.router)
    app.include_router(verify.router)

    @app.get("/")
    async def root():
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs",
            "health": "/healthz",
        }

    return app


app = create_app()
