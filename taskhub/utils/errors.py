# taskhub/utils/errors.py
# Application errors and the handlers that turn every failure into the
# {success, message, code, errors?} envelope
import logging
import traceback
from typing import Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskhub.config.settings import Settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "SERVER_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        errors: Optional[Dict[str, str]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.errors = errors


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class AccessDenied(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "ACCESS_DENIED"


class DuplicateValue(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "DUPLICATE_VALUE"


class AuthError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "AUTH_FAILED"


class ServerError(AppError):
    pass


def error_body(
    message: str,
    code: str,
    errors: Optional[Dict[str, str]] = None,
    exc: Optional[BaseException] = None,
    settings: Optional[Settings] = None,
) -> dict:
    body = {"success": False, "message": message, "code": code}
    if errors:
        body["errors"] = errors
    # Stack traces only leave the process in development
    if exc is not None and settings is not None and settings.is_development:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return body


def _field_errors(exc: RequestValidationError) -> Dict[str, str]:
    errors = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "request"
        message = error.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.setdefault(field, message)
    return errors


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Attach the envelope-producing handlers to the app"""

    def respond(status_code: int, body: dict, headers: Optional[dict] = None) -> JSONResponse:
        return JSONResponse(status_code=status_code, content=body, headers=headers)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
        else:
            logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
        return respond(
            exc.status_code,
            error_body(exc.message, exc.code, exc.errors, exc, settings),
            headers,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = _field_errors(exc)
        logger.info(f"Validation failed on {request.method} {request.url.path}: {errors}")
        return respond(
            status.HTTP_400_BAD_REQUEST,
            error_body("Validation failed", "VALIDATION_ERROR", errors, exc, settings),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            message, code = f"Route {request.url.path} not found", "ROUTE_NOT_FOUND"
        elif exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            message, code = f"Method {request.method} not allowed on {request.url.path}", "METHOD_NOT_ALLOWED"
        else:
            message, code = str(exc.detail), "HTTP_ERROR"
        return respond(exc.status_code, error_body(message, code), getattr(exc, "headers", None))

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
        text = str(exc.orig).lower()
        if "unique" in text or "duplicate" in text:
            return respond(
                status.HTTP_400_BAD_REQUEST,
                error_body("Duplicate value", "DUPLICATE_VALUE", exc=exc, settings=settings),
            )
        return respond(
            status.HTTP_400_BAD_REQUEST,
            error_body("Invalid reference", "VALIDATION_ERROR", exc=exc, settings=settings),
        )

    @app.exception_handler(OperationalError)
    async def operational_error_handler(request: Request, exc: OperationalError):
        logger.error(f"Database unavailable on {request.method} {request.url.path}: {exc.orig}")
        return respond(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            error_body("Database connection error", "DATABASE_ERROR", exc=exc, settings=settings),
        )

    @app.exception_handler(DBAPIError)
    async def dbapi_error_handler(request: Request, exc: DBAPIError):
        if exc.connection_invalidated:
            logger.error(f"Database connection lost on {request.method} {request.url.path}")
            return respond(
                status.HTTP_503_SERVICE_UNAVAILABLE,
                error_body("Database connection error", "DATABASE_ERROR", exc=exc, settings=settings),
            )
        logger.exception(f"Database error on {request.method} {request.url.path}")
        return respond(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_body("Database error", "SERVER_ERROR", exc=exc, settings=settings),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled error on {request.method} {request.url.path}",
            exc_info=(type(exc), exc, exc.__traceback__),
        )
        return respond(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_body("Internal server error", "SERVER_ERROR", exc=exc, settings=settings),
        )
