"""Application error type and the HTTP error envelope."""

from enum import Enum
from typing import Any, Dict, List, Optional
import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from enybot.config import settings

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    INTERNAL = "internal"


STATUS_CODES = {
    ErrorKind.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.METHOD_NOT_ALLOWED: status.HTTP_405_METHOD_NOT_ALLOWED,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.VALIDATION: 422,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class AppError(Exception):
    """Error raised by services and guards; rendered once at the HTTP boundary."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]

    def __repr__(self):
        return f"AppError(kind={self.kind.value}, message={self.message!r})"


def bad_request(message: str, details=None) -> AppError:
    return AppError(ErrorKind.BAD_REQUEST, message, details)


def unauthorized(message: str) -> AppError:
    return AppError(ErrorKind.UNAUTHORIZED, message)


def forbidden(message: str) -> AppError:
    return AppError(ErrorKind.FORBIDDEN, message)


def not_found(message: str) -> AppError:
    return AppError(ErrorKind.NOT_FOUND, message)


def internal(message: str = "Internal server error") -> AppError:
    return AppError(ErrorKind.INTERNAL, message)


def wrap(exc: Exception, fallback: str) -> AppError:
    """Pass AppErrors through; turn anything else into an internal error."""
    if isinstance(exc, AppError):
        return exc
    return internal(str(exc) or fallback)


def error_body(
    status_code: int,
    message: str,
    errors: Optional[List[Dict[str, Any]]] = None,
    exc: Optional[BaseException] = None
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"status": status_code, "message": message}
    if errors:
        body["errors"] = errors
    if exc is not None and settings.is_development:
        body["stack"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    return body


def format_validation_errors(errors) -> List[Dict[str, str]]:
    """Flatten pydantic error entries into {field, message} pairs."""
    formatted = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        formatted.append({
            "field": ".".join(loc) or "field",
            "message": err.get("msg", "Invalid input"),
        })
    return formatted


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, exc.message, exc.details, exc),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = format_validation_errors(exc.errors())
    logger.info(f"Validation failed on {request.method} {request.url.path}: {errors}")
    code = STATUS_CODES[ErrorKind.VALIDATION]
    return JSONResponse(
        status_code=code,
        content=error_body(code, "Validation failed", errors),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        message = f"Route {request.url.path} not found"
    elif exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        message = f"Method {request.method} not allowed on {request.url.path}"
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, message),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    code = STATUS_CODES[ErrorKind.INTERNAL]
    return JSONResponse(
        status_code=code,
        content=error_body(code, str(exc) or "Internal Server Error", exc=exc),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
