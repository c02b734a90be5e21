import logging
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

# --- ERROR TAXONOMY ---

class AppError(HTTPException):
    """Base class for errors surfaced through the response envelope"""
    code = "INTERNAL"
    http_status = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(status_code=self.http_status, detail=message)
        self.message = message
        self.details = details

class ValidationFailedError(AppError):
    code = "VALIDATION"
    http_status = 400

class AccessDeniedError(AppError):
    code = "ACCESS_DENIED"
    http_status = 403

class NotFoundError(AppError):
    code = "NOT_FOUND"
    http_status = 404

class ConflictError(AppError):
    code = "CONFLICT"
    http_status = 409

class InternalError(AppError):
    code = "INTERNAL"
    http_status = 500

STATUS_CODES = {
    400: "VALIDATION",
    401: "ACCESS_DENIED",
    403: "ACCESS_DENIED",
    404: "NOT_FOUND",
    405: "VALIDATION",
    409: "CONFLICT",
    422: "VALIDATION",
}

# --- RESPONSE ENVELOPE ---

def error_envelope(code: str, message: str, details: Optional[Any] = None) -> dict:
    return {
        "success": False,
        "error": {
            "code": code,
            "message": message,
            "details": details,
        },
    }

async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(exc.code, exc.message, exc.details),
    )

async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg"),
            "type": error.get("type"),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=error_envelope("VALIDATION", "Validation failed", details),
    )

async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = STATUS_CODES.get(exc.status_code, "INTERNAL")
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(code, message),
        headers=getattr(exc, "headers", None),
    )

async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_envelope("INTERNAL", "Internal server error"),
    )

def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
