"""
API error type and the exception handlers that render every failure as
{"success": false, "error": <message>, "code": <CODE>}
"""
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

STATUS_CODES = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_SERVER_ERROR",
}


class ApiError(HTTPException):
    def __init__(self, status_code: int, error: str, code: str = None, headers: dict = None):
        super().__init__(status_code=status_code, detail=error, headers=headers)
        self.code = code or STATUS_CODES.get(status_code, "ERROR")


def unauthorized(error: str = "Authentication required") -> ApiError:
    return ApiError(401, error, "UNAUTHORIZED", headers={"WWW-Authenticate": "Bearer"})


def forbidden(error: str = "Insufficient permissions") -> ApiError:
    return ApiError(403, error, "FORBIDDEN")


def not_found(error: str = "Resource not found") -> ApiError:
    return ApiError(404, error, "NOT_FOUND")


def conflict(error: str) -> ApiError:
    return ApiError(409, error, "CONFLICT")


def validation_error(error: str) -> ApiError:
    return ApiError(400, error, "VALIDATION_ERROR")


def error_response(status_code: int, error: str, code: str, headers: dict = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "code": code},
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    code = getattr(exc, "code", None) or STATUS_CODES.get(exc.status_code, "ERROR")
    error = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return error_response(exc.status_code, error, code, getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{location}: {err.get('msg')}" if location else err.get("msg"))
    return error_response(400, "; ".join(messages) or "Invalid request", "VALIDATION_ERROR")


async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
    return error_response(409, "Operation conflicts with existing data", "CONFLICT")


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(500, "Internal server error", "INTERNAL_SERVER_ERROR")


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
