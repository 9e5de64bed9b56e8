from typing import Optional, Tuple

import stripe
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from jose import JWTError, ExpiredSignatureError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.core.cache import CacheInvalidationError
from app.schemas.response import ErrorResponse, ErrorDetail
from datetime import datetime
import logging
import uuid

logger = logging.getLogger(__name__)

# exception types that get their own handler registration in main
HANDLED_EXCEPTIONS = (StarletteHTTPException, IntegrityError, StaleDataError, JWTError, stripe.StripeError, CacheInvalidationError)

def _get_error_code(status_code: int) -> str:
    code_map = {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        409: "CONFLICT",
        422: "VALIDATION_ERROR",
        500: "INTERNAL_SERVER_ERROR",
        501: "NOT_IMPLEMENTED",
        502: "UPSTREAM_FAILURE",
        503: "SERVICE_UNAVAILABLE",
    }
    return code_map.get(status_code, f"HTTP_{status_code}")

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())

def _error_response(request: Request, status_code: int, message: str, code: Optional[str] = None, details: Optional[dict] = None) -> JSONResponse:
    error_response = ErrorResponse(
        message=message,
        error=ErrorDetail(code=code or _get_error_code(status_code), message=message, details=details),
        timestamp=datetime.utcnow().isoformat(),
        path=str(request.url),
        request_id=_request_id(request)
    )
    return JSONResponse(status_code=status_code, content=jsonable_encoder(error_response))

def _classify(exc: Exception) -> Tuple[int, str, Optional[dict]]:
    """Map an exception to (status, message, details)."""
    if isinstance(exc, StarletteHTTPException):
        return exc.status_code, exc.detail if isinstance(exc.detail, str) else str(exc.detail), None
    if isinstance(exc, IntegrityError):
        return 409, "Duplicate entry", None
    if isinstance(exc, StaleDataError):
        return 409, "Course was modified by another request, please retry.", None
    if isinstance(exc, ExpiredSignatureError):
        return 401, "Token has expired", None
    if isinstance(exc, JWTError):
        return 401, "Invalid token", None
    if isinstance(exc, stripe.StripeError):
        return 502, "Payment provider error", {"provider_message": getattr(exc, "user_message", None) or str(exc)}
    if isinstance(exc, CacheInvalidationError):
        return 503, "Changes were saved but the course cache could not be refreshed, please retry.", {"key": exc.key}
    return 500, "An unexpected error occurred", {"error_type": type(exc).__name__}

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    request_id = _request_id(request)
    logger.warning(f"[{request_id}] Validation error: {exc.errors()}", extra={"request_id": request_id})
    return _error_response(
        request, 422, "Request validation failed",
        code="VALIDATION_ERROR", details={"validation_errors": exc.errors()}
    )

async def global_exception_handler(request: Request, exc: Exception):
    request_id = _request_id(request)
    status_code, message, details = _classify(exc)

    if status_code >= 500:
        logger.error(f"[{request_id}] Unhandled exception: {exc}", exc_info=exc, extra={"request_id": request_id})
    else:
        logger.warning(f"[{request_id}] HTTP {status_code}: {message}", extra={"request_id": request_id})

    response = _error_response(request, status_code, message, details=details)
    if isinstance(exc, StarletteHTTPException) and exc.headers:
        response.headers.update(exc.headers)
    return response
