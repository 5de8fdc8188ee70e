from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.schemas.response import ErrorResponse, ErrorDetail
from datetime import datetime, timezone
import logging
import uuid

logger = logging.getLogger(__name__)

ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_SERVER_ERROR",
}

def _get_error_code(status_code: int) -> str:
    return ERROR_CODES.get(status_code, f"HTTP_{status_code}")

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())

def _error_response(request: Request, status_code: int, message: str, code: str = None, details=None, headers=None) -> JSONResponse:
    body = ErrorResponse(
        error=ErrorDetail(code=code or _get_error_code(status_code), message=message, details=details),
        status=status_code,
        timestamp=datetime.now(timezone.utc).isoformat(),
        path=request.url.path,
        request_id=_request_id(request),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = jsonable_encoder(exc.errors())
    logger.warning(f"Validation error on {request.url.path}: {errors}")
    return _error_response(
        request, 422, "Request validation failed", details={"validation_errors": errors}
    )

async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    if exc.status_code >= 500:
        logger.error(f"HTTP {exc.status_code} on {request.url.path}: {message}")
    else:
        logger.info(f"HTTP {exc.status_code} on {request.url.path}: {message}")
    return _error_response(request, exc.status_code, message, headers=getattr(exc, "headers", None))

async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return _error_response(
        request, 500, "An unexpected error occurred", details={"error_type": type(exc).__name__}
    )
