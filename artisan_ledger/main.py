"""
Main FastAPI application.
- One in-process ledger engine per app, stored on app.state
- Optional SQLAlchemy journal, restored on startup
- Ledger errors mapped to HTTP status codes in one place
"""
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from contextlib import asynccontextmanager
from typing import Optional
import logging

from artisan_ledger.config import Settings, settings as default_settings
from artisan_ledger.crud.journal import LedgerJournal
from artisan_ledger.database import build_engine, init_db, test_connection
from artisan_ledger.engine import LedgerService
from artisan_ledger.exceptions import (
    DuplicateSKUError,
    InsufficientStockError,
    LedgerError,
    LedgerInvariantError,
    LockTimeoutError,
    NotFoundError,
    StaleCountError,
    ValidationError,
)
from artisan_ledger.routers import (
    batches_router,
    dashboard_router,
    items_router,
    purchases_router,
    recipes_router,
    reports_router,
    sales_router,
    spot_checks_router,
    suppliers_router,
)
from artisan_ledger.utils.sample_data import seed_sample_data

# Configure logging
logging.basicConfig(level=default_settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# Most specific first
ERROR_STATUS = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, 422),
    (InsufficientStockError, status.HTTP_409_CONFLICT),
    (StaleCountError, status.HTTP_409_CONFLICT),
    (DuplicateSKUError, status.HTTP_409_CONFLICT),
    (LockTimeoutError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (LedgerInvariantError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_for(exc: LedgerError) -> int:
    for error_class, code in ERROR_STATUS:
        if isinstance(exc, error_class):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings

    engine = None
    journal = None
    if settings.DATABASE_URL:
        engine = build_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)
        journal = LedgerJournal(engine, audit_all=settings.AUDIT_LOG_ALL)
    ledger = LedgerService(settings=settings, journal=journal)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info(f"🚀 Starting {settings.APP_NAME} v{settings.APP_VERSION}")

        if engine is None:
            logger.warning("⚠️ DATABASE_URL is not set. Running memory-only; nothing will survive a restart.")
        else:
            logger.info("Running preflight database test...")
            success, message = test_connection(engine)
            if not success:
                logger.error(f"Preflight test failed: {message}")
                raise RuntimeError(message)
            logger.info(f"Preflight test passed: {message}")

            init_db(engine)
            check = ledger.restore()
            logger.info(
                f"✅ Ledger restored: {check.items_checked} items, "
                f"{check.transactions_checked} transactions verified"
            )

        if settings.SEED_SAMPLE_DATA and ledger.is_empty():
            seed_sample_data(ledger)

        yield

        # Shutdown
        if engine is not None:
            engine.dispose()
        logger.info(f"👋 Shutting down {settings.APP_NAME}")

    app = FastAPI(
        title=settings.APP_NAME,
        description="Inventory ledger and weighted-average costing for artisan production",
        version=settings.APP_VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )
    app.state.ledger = ledger
    app.state.settings = settings

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError):
        code = status_for(exc)
        if code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.code}: {exc}")
        return JSONResponse(status_code=code, content=exc.to_dict())

    @app.exception_handler(SQLAlchemyError)
    async def journal_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error(f"{request.method} {request.url.path} journal failure: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Could not persist the operation; nothing was recorded", "error": "JOURNAL_ERROR"},
        )

    # Include routers
    for router in (
        items_router,
        suppliers_router,
        purchases_router,
        recipes_router,
        batches_router,
        spot_checks_router,
        sales_router,
        dashboard_router,
        reports_router,
    ):
        app.include_router(router, prefix="/api")

    @app.get("/health")
    def health_check():
        """System health check. Reports journal status without failing."""
        if engine is None:
            db_status = "memory-only"
        else:
            success, message = test_connection(engine, attempts=1)
            db_status = "connected" if success else f"error: {message}"
        return {
            "status": "healthy",
            "service": "artisan-ledger",
            "database": db_status,
            "version": settings.APP_VERSION,
        }

    @app.get("/")
    def root():
        return {
            "message": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "description": "Append-only ledger - Weighted-average costing - Atomic batches",
            "endpoints": {
                "docs": "/api/docs",
                "health": "/health",
                "items": "/api/items",
                "dashboard": "/api/dashboard/metrics",
                "api": "/api",
            },
        }

    return app


app = create_app()
