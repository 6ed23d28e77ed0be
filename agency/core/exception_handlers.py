"""Error responses.

Every engine error leaves as ``{"error", "message", "details"}``. The HTTP
status comes from the error code: lookups miss with 404, input problems are
400, capability refusals 403, state conflicts 409 and store trouble 503.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from agency.core.config import get_settings
from agency.domain.exceptions import AgencyException
from agency.shared.telemetry.tracing import get_trace_id

logger = logging.getLogger(__name__)

_CONFLICT_CODES = (
    "ALREADY_ASSIGNED",
    "DEPENDENCY_NOT_SATISFIED",
    "DUPLICATE_ACTIVE_ASSIGNMENT",
    "INVALID_TRANSITION",
    "VERSION_CONFLICT",
)
_UNAVAILABLE_CODES = ("TRANSIENT_STORE_ERROR", "STORE_UNAVAILABLE")

_ERROR_CODE_STATUS: dict[str, int] = {
    "RESOURCE_NOT_FOUND": 404,
    "VALIDATION_ERROR": 400,
    "PERMISSION_DENIED": 403,
    **{code: 409 for code in _CONFLICT_CODES},
    **{code: 503 for code in _UNAVAILABLE_CODES},
}


def status_for(error_code: str) -> int:
    return _ERROR_CODE_STATUS.get(error_code, 400)


def _agency_exception_handler(request: Request, exc: AgencyException) -> JSONResponse:
    status = status_for(exc.error_code)
    headers = None
    if status == 503:
        logger.warning("%s on %s %s: %s", exc.error_code, request.method, request.url.path, exc.message)
        # Whole seconds, at least one.
        backoff = get_settings().store_retry_backoff_seconds
        headers = {"Retry-After": str(max(1, round(backoff * 10)))}
    elif status == 409:
        logger.info("Conflict %s on %s: %s", exc.error_code, request.url.path, exc.message)
    return JSONResponse(status_code=status, content=exc.to_dict(), headers=headers)


def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and query params: 422, pydantic's error list as details."""
    return JSONResponse(
        status_code=422,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": jsonable_encoder(exc.errors()),
        },
    )


def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "HTTP_ERROR", "message": exc.detail},
    )


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = str(exc) if get_settings().debug else "Internal server error"
    content: dict[str, Any] = {"error": "INTERNAL_ERROR", "message": message}
    trace_id = get_trace_id()
    if trace_id:
        content["details"] = {"trace_id": trace_id}
    return JSONResponse(status_code=500, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AgencyException, _agency_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
