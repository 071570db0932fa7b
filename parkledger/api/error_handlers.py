"""Error Handlers — map ledger errors and bad requests to the JSON error envelope.

Invariants:
    - Every error body has the shape {"error": {"code", "message", "category", "severity", ...}}
    - ParkingError keeps its own http_status (400/401/403/404/409/503)
    - Request validation failures are 400 VALIDATION_ERROR with per-field details
    - Unhandled exceptions become 500 INTERNAL_ERROR without internal details

Design Decisions:
    - Plain handler functions registered with add_exception_handler so they can
      be called directly in tests
    - 4xx logged as warnings, 5xx as errors: a slot conflict is not an outage
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from parkledger.core.errors import ErrorCategory, ErrorSeverity, ParkingError

logger = logging.getLogger(__name__)


def _envelope(code: str, message: str, category: str, severity: str, **extra) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "category": category,
            "severity": severity,
            **extra,
        },
    }


async def handle_parking_error(request: Request, exc: ParkingError) -> JSONResponse:
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        f"{exc.code}: {exc.message}",
        extra={
            "error_code": exc.code,
            "path": request.url.path,
            "session_id": exc.context.session_id,
            "location": exc.context.location,
        },
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def handle_request_validation(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(part) for part in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
    logger.warning(
        f"Rejected request: {len(details)} invalid field(s)",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_envelope(
            "VALIDATION_ERROR", "Invalid request data",
            ErrorCategory.VALIDATION.value, ErrorSeverity.ERROR.value,
            details=details,
        ),
    )


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled {type(exc).__name__}",
        exc_info=exc,
        extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_envelope(
            "INTERNAL_ERROR", "An unexpected error occurred",
            ErrorCategory.INTERNAL.value, ErrorSeverity.CRITICAL.value,
        ),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ParkingError, handle_parking_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected)
