"""
Domain-level errors raised by services and the access guard.

Every error carries an HTTP status and a stable machine-readable code.
The handlers registered in main.py render them as {"message", "code"}.
"""

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from eventpass.core.logging import get_logger

logger = get_logger(__name__)


class AppError(Exception):
    """Base exception for all errors surfaced to API clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    message: str = "Server error"

    def __init__(self, message: str | None = None, code: str | None = None):
        self.message = message or self.message
        self.code = code or self.code
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    message = "Invalid request"


class Conflict(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "CONFLICT"
    message = "Resource already exists"


class InvalidCredentials(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_CREDENTIALS"
    message = "Invalid email or password"


class InvalidSignature(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_SIGNATURE"
    message = "Invalid payment signature"


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"
    message = "No token, authorization denied"


class InvalidToken(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_TOKEN"
    message = "Token is not valid"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    message = "Not allowed to access this resource"


class GatewayError(AppError):
    """Raised when the payment gateway fails or is not configured."""

    code = "GATEWAY_ERROR"
    message = "Error creating order"


class DatabaseError(AppError):
    code = "DATABASE_ERROR"
    message = "Database error"


def _error_body(exc: AppError, **extra) -> dict:
    return {"message": exc.message, "code": exc.code, **extra}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc), headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Pydantic request errors become a 400 ValidationError with per-field details."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    error = ValidationError()
    return JSONResponse(
        status_code=error.status_code,
        content=_error_body(error, errors=errors),
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("database_error", error=str(exc), error_type=type(exc).__name__)
    error = DatabaseError()
    return JSONResponse(status_code=error.status_code, content=_error_body(error))
