"""
API middleware module.
"""
from cleaning_crm.api.middleware.error_handler import (
    AppException,
    UnauthorizedException,
    NotFoundException,
    ValidationException,
    ConflictException,
    PreconditionException,
    InternalErrorException,
    app_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    unhandled_exception_handler,
)

__all__ = [
    "AppException",
    "UnauthorizedException",
    "NotFoundException",
    "ValidationException",
    "ConflictException",
    "PreconditionException",
    "InternalErrorException",
    "app_exception_handler",
    "validation_exception_handler",
    "http_exception_handler",
    "unhandled_exception_handler",
]
