"""Brokerage Documents API — FastAPI application factory."""


import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.exceptions import register_exception_handlers
from app.db.base import create_local_schema
from app.middleware.audit import AuditMiddleware
from app.schemas.common import HealthResponse
from app.services.upload_queue import UploadQueue

# v1 routers
from app.routers.v1.documents import router as documents_v1_router
from app.routers.v1.payments import router as payments_v1_router
from app.routers.v1.quotes import router as quotes_v1_router
from app.routers.v1.reports import router as reports_v1_router
from app.routers.v1.uploads import router as uploads_v1_router

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    """Set up structured logging for the application."""
    level = logging.DEBUG if settings.app_env == "development" else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("pdfminer").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_local_schema()

    queue: UploadQueue = app.state.upload_queue
    queue.start()
    if not queue.enabled:
        logger.warning("PROPOSAL_WEBHOOK_URL not set; the upload queue is disabled")
    try:
        yield
    finally:
        await queue.stop()


def create_app() -> FastAPI:
    _configure_logging()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url="/docs" if settings.app_env == "development" else None,
        redoc_url="/redoc" if settings.app_env == "development" else None,
        lifespan=lifespan,
    )
    app.state.upload_queue = UploadQueue.from_settings()

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # --- Audit middleware ---
    app.add_middleware(AuditMiddleware)

    # --- Global exception handlers ---
    register_exception_handlers(app)

    # --- v1 API routes (/api/v1/*) ---
    app.include_router(documents_v1_router, prefix="/api/v1")
    app.include_router(payments_v1_router, prefix="/api/v1")
    app.include_router(reports_v1_router, prefix="/api/v1")
    app.include_router(quotes_v1_router, prefix="/api/v1")
    app.include_router(uploads_v1_router, prefix="/api/v1")

    # --- Health check ---
    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health():
        return HealthResponse(
            app=settings.app_name,
            env=settings.app_env,
            uploads_enabled=app.state.upload_queue.enabled,
        )

    return app


app = create_app()
