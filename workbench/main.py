"""Main FastAPI application."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models  # noqa: F401  (registers tables on Base.metadata)
from .database import engine, Base, get_db, is_postgresql, DATABASE_URL
from .api import object_routers, collections_router, references_router
from .core.config import settings, ConfigurationError, Environment
from .core.logging_config import redact, setup_logging
from .exceptions import WorkbenchException
from .middleware.exception_handler import (
    database_exception_handler,
    validation_exception_handler,
    workbench_exception_handler,
)
from .middleware.request_context import RequestContextMiddleware

API_VERSION = "1.0.0"

# Setup logging first
setup_logging(log_level=settings.log_level, log_format=settings.log_format)
logger = logging.getLogger(__name__)


def _validate_database_connection() -> None:
    """Test that the database is reachable. Exits with clear message on failure."""
    masked = redact(DATABASE_URL)
    logger.info(f"Connecting to database: {masked}")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection verified")
    except Exception as e:
        if DATABASE_URL.startswith("sqlite"):
            logger.critical(
                f"SQLite database error.\n"
                f"  DATABASE_URL: {masked}\n"
                "  Check that the directory exists and is writable.\n"
                f"  Error: {e}"
            )
        else:
            logger.critical(
                f"Database connection failed.\n"
                f"  DATABASE_URL: {masked}\n"
                f"  Error: {e}"
            )
        raise SystemExit(1)


_validate_database_connection()

# Tables and the (stix_id, modified) unique index are created if missing.
Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle for the Workbench API."""
    logger.info(f"Environment: {settings.environment.value}")
    try:
        settings.validate_production_config()
    except ConfigurationError as e:
        logger.critical(f"STARTUP BLOCKED: {e}")
        raise SystemExit(1) from e

    if settings.environment == Environment.DEVELOPMENT and settings.organization_identity_ref is None:
        logger.warning(
            "ORGANIZATION_IDENTITY_REF is not set. "
            "Objects will be stored without created_by_ref / x_mitre_modified_by_ref."
        )

    yield  # App runs here


# Create FastAPI app
app = FastAPI(
    title="ATT&CK Workbench REST API",
    description=(
        "Versioned store for STIX 2.1 ATT&CK objects. Every object is kept as a chain "
        "of immutable versions addressed by `stix.id` and `stix.modified`; list endpoints "
        "return the latest version of each object."
    ),
    version=API_VERSION,
    lifespan=lifespan,
)

# Middleware stack (outermost first, CORS wraps request context).
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type"],
)
app.add_middleware(RequestContextMiddleware)

# Register exception handlers
app.add_exception_handler(WorkbenchException, workbench_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(SQLAlchemyError, database_exception_handler)

db_type = "PostgreSQL" if is_postgresql() else "SQLite"
logger.info(
    "Workbench API started | env=%s | db=%s | spec=%s | fanout=%d",
    settings.environment.value,
    db_type,
    settings.attack_spec_version,
    settings.content_fanout_width,
)

# Include routers. The collection-specific router goes first so its
# by-id and delete endpoints take precedence.
app.include_router(collections_router)
for router in object_routers:
    app.include_router(router)
app.include_router(references_router)


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "name": "ATT&CK Workbench REST API",
        "version": API_VERSION,
        "status": "running"
    }


_startup_time = time.monotonic()


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Health check endpoint returning database status, uptime, and object count.

    Never raises. Returns degraded status on DB failure so load balancers
    can still probe without receiving 5xx.
    """
    db_status = "ok"
    object_count = 0
    try:
        row = db.execute(text("SELECT COUNT(*) FROM attack_objects")).scalar()
        object_count = row or 0
    except SQLAlchemyError:
        db_status = "error"

    return {
        "status": "healthy" if db_status == "ok" else "degraded",
        "db": db_status,
        "uptime_seconds": round(time.monotonic() - _startup_time),
        "version": API_VERSION,
        "object_count": object_count,
    }
