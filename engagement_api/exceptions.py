from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import logging

logger = logging.getLogger(__name__)


class EngagementException(Exception):
    """Base exception for the application"""
    pass


class PersistenceError(EngagementException):
    """The event log could not durably record an event."""
    pass


async def persistence_exception_handler(request: Request, exc: PersistenceError):
    """
    The event was not recorded, so the client is told to retry later.
    """
    request_id = getattr(request.state, "request_id", "unknown")

    logger.error(
        "Event persistence failed",
        extra={"request_id": request_id, "path": request.url.path},
        exc_info=exc
    )

    return JSONResponse(
        status_code=503,
        content={
            "error": "Service Unavailable",
            "message": "The event could not be recorded. Please retry later.",
            "request_id": request_id
        },
    )


async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler. Returns 500 JSON response and hides internal error details.
    """
    request_id = getattr(request.state, "request_id", "unknown")

    logger.error(
        "Unhandled exception occurred",
        extra={"request_id": request_id, "path": request.url.path},
        exc_info=exc
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred. Please contact support.",
            "request_id": request_id
        },
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    request_id = getattr(request.state, "request_id", "unknown")

    if exc.status_code >= 500:
        logger.error(f"HTTP {exc.status_code} error", extra={"request_id": request_id, "detail": exc.detail})
    else:
        logger.info(f"HTTP {exc.status_code} error", extra={"request_id": request_id, "detail": exc.detail})

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "request_id": request_id},
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    request_id = getattr(request.state, "request_id", "unknown")
    errors = exc.errors()
    logger.info("Validation error", extra={"request_id": request_id, "errors": errors})

    return JSONResponse(
        status_code=422,
        content={
            "error": "Validation Error",
            "details": [
                {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
                for err in errors
            ],
            "request_id": request_id
        },
    )
