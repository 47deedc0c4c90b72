"""Error Handlers - render lifecycle failures as the registry's JSON error envelope.

Invariants:
    - LostFoundError -> its own http_status with to_response() as body
    - Claim-rule refusals (400), permission (403), lost races (409) log at WARNING;
      only 5xx log at ERROR
    - Log records carry the object_id / user_id of the failed operation
    - CLAIM_NOT_EXPIRED bodies tell the applicant the last blocking day (expires_on)
    - RequestValidationError -> 400 VALIDATION_ERROR with field-level details,
      the same code ObjectValidationError uses for engine-side payload checks
    - Anything else -> opaque 500 INTERNAL_ERROR
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from lostfound.core.errors import ClaimNotExpiredError, ErrorSeverity, LostFoundError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LostFoundError, lostfound_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


async def lostfound_error_handler(request: Request, exc: LostFoundError):
    level = logging.ERROR if exc.http_status >= 500 else logging.WARNING
    logger.log(
        level,
        f"{exc.code} on {request.method} {request.url.path}: {exc.message}",
        extra={
            "error_code": exc.code,
            "path": request.url.path,
            "object_id": exc.context.object_id,
            "user_id": exc.context.user_id,
        },
    )
    body = exc.to_response()
    if isinstance(exc, ClaimNotExpiredError) and exc.expires_on:
        body["error"]["expires_on"] = exc.expires_on
    return JSONResponse(status_code=exc.http_status, content=body)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning(
        f"Validation error on {request.url.path}: {exc.errors()}",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request data",
                "category": "validation",
                "severity": ErrorSeverity.ERROR.value,
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in e["loc"]),
                        "message": e["msg"],
                        "type": e["type"],
                    }
                    for e in exc.errors()
                ],
            },
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    """Catch-all: never leaks internal details."""
    logger.error(
        f"Unhandled exception on {request.url.path}: {exc}",
        exc_info=True,
        extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "category": "internal",
                "severity": ErrorSeverity.CRITICAL.value,
            },
        },
    )
