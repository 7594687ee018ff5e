"""Exception handlers for structured error responses."""

import logging
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from ..core.logging_config import redact
from ..exceptions import DatabaseError, ErrorCode, WorkbenchException

logger = logging.getLogger(__name__)


async def workbench_exception_handler(request: Request, exc: WorkbenchException) -> JSONResponse:
    """
    Handle custom exceptions and return structured JSON responses.

    Logs error details and converts exception to standardized JSON format.

    Args:
        request: FastAPI request object
        exc: WorkbenchException instance

    Returns:
        JSONResponse with error details
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"WorkbenchException: {exc.error_code.value}",
        extra={
            "error_code": exc.error_code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
            "status_code": exc.status_code
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies and query strings as 400 VALIDATION_ERROR."""
    errors = jsonable_encoder(exc.errors())
    logger.warning(
        "Request validation failed",
        extra={"path": request.url.path, "method": request.method, "errors": errors},
    )
    return JSONResponse(
        status_code=400,
        content={
            "error": ErrorCode.VALIDATION_ERROR.value,
            "message": "Request validation failed",
            "details": {"errors": errors},
        },
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Storage failures that were not translated closer to the store are fatal to the request.

    The statement and driver message go to the log only.
    """
    logger.error(
        "Database error",
        exc_info=exc,
        extra={"path": request.url.path, "method": request.method, "db_error": redact(str(exc))},
    )
    error = DatabaseError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())
