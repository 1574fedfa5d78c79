"""
Error handler middleware and custom exceptions.

Every error leaves the API as a status code plus a short plain-text message.
Custom exception classes cover the failures the customer endpoints report.
"""
from typing import Optional, Dict, Any
from fastapi import Request, status
from fastapi.responses import PlainTextResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from cleaning_crm.lib.logging import get_logger

logger = get_logger(__name__)


# Custom exception classes
class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class UnauthorizedException(AppException):
    """No principal could be established for the request."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        super().__init__(
            message=f"{resource} not found",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "resource_id": resource_id},
        )


class ValidationException(AppException):
    """Required request fields are missing or empty."""

    def __init__(self, message: str = "Missing required fields", missing: Optional[list] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"missing": missing or []},
        )


class ConflictException(AppException):
    """Write would break a uniqueness rule. Reported as 400 to clients."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details or {},
        )


class PreconditionException(AppException):
    """Operation is blocked by the current state of related records."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details or {},
        )


class InternalErrorException(AppException):
    """Unexpected store or runtime failure, already logged by the raiser."""

    def __init__(self, component: str):
        super().__init__(
            message="Internal error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"component": component},
        )


# Exception handlers
async def app_exception_handler(request: Request, exc: AppException) -> PlainTextResponse:
    """
    Handler for custom application exceptions.
    """
    # 5xx errors were logged with their traceback where they were caught
    if exc.status_code < 500:
        logger.warning(
            f"Application error: {exc.message}",
            extra={
                "status_code": exc.status_code,
                "path": request.url.path,
                "method": request.method,
                "details": exc.details,
            },
        )

    return PlainTextResponse(exc.message, status_code=exc.status_code)


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> PlainTextResponse:
    """
    Handler for request bodies or parameters that FastAPI could not parse.

    A body that is not JSON or carries a field of the wrong type cannot be
    processed; it is answered like any other unexpected failure.
    """
    errors = [
        {
            "loc": list(error["loc"]),
            "msg": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]

    logger.warning(
        "Validation error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "errors": errors,
        },
    )

    return PlainTextResponse(
        "Internal error",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> PlainTextResponse:
    """
    Handler for Starlette HTTP exceptions (unknown routes, wrong methods).
    """
    logger.warning(
        f"HTTP exception: {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method,
        },
    )

    return PlainTextResponse(
        str(exc.detail),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> PlainTextResponse:
    """
    Handler for unhandled exceptions.

    Logs full stack trace and returns generic error message.
    """
    logger.error(
        f"Unhandled exception: {exc}",
        extra={
            "path": request.url.path,
            "method": request.method,
        },
        exc_info=True,
    )

    return PlainTextResponse(
        "Internal error",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
