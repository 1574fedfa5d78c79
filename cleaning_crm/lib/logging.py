"""
Request-aware logging for the customers API.

Each record is stamped at creation with the correlation id of the request
being served and the principal the auth gate let through, so every line
(ours, uvicorn's, SQLAlchemy's) can be traced back to a caller. In JSON mode
lines also carry the service name and any structured ``extra`` fields.
"""
import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from contextvars import ContextVar

from cleaning_crm.lib.settings import settings


correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)
principal_var: ContextVar[Optional[str]] = ContextVar('principal', default=None)

# Request context attributes stamped onto every record
CONTEXT_ATTRS = ("correlation_id", "principal")

# Attributes every LogRecord carries; anything else came in through ``extra``
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime", "extra_fields"} | set(CONTEXT_ATTRS)

# Loggers that are chatty at INFO; kept at WARNING
QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "httpcore", "multipart")

# Server loggers re-routed through the root handler
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"

_base_record_factory = logging.getLogRecordFactory()


def _request_record_factory(*args, **kwargs) -> logging.LogRecord:
    record = _base_record_factory(*args, **kwargs)
    record.correlation_id = correlation_id_var.get()
    record.principal = principal_var.get()
    return record


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Keys: timestamp, level, logger, message, service, then correlation_id and
    principal when the record was created inside a request, exception text,
    and the caller's structured fields.
    """

    def __init__(self, service: Optional[str] = None):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.service:
            log_data["service"] = self.service

        # Records built outside the factory fall back to the live context
        correlation_id = getattr(record, "correlation_id", None) or correlation_id_var.get()
        if correlation_id:
            log_data["correlation_id"] = correlation_id
        principal = getattr(record, "principal", None) or principal_var.get()
        if principal:
            log_data["principal"] = principal

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    service: Optional[str] = None,
) -> None:
    """
    Configure the root logger for the API process.

    Args:
        level: Root log level name
        json_format: JSON lines when True, human-readable text otherwise
        service: Name written into every JSON line
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.setLogRecordFactory(_request_record_factory)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    if json_format:
        handler.setFormatter(JSONFormatter(service=service))
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    # uvicorn installs its own handlers; one format for the whole process
    for name in SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.propagate = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_correlation_id(correlation_id: Optional[str]) -> None:
    """Bind the request's correlation id to the current context."""
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()


def set_principal(principal: Optional[str]) -> None:
    """Bind the authenticated principal to the current context."""
    principal_var.set(principal)


def get_principal() -> Optional[str]:
    return principal_var.get()


def log_with_context(logger: logging.Logger, level: str, message: str, **extra_fields) -> None:
    """
    Log ``message`` with structured fields.

    Fields travel as one ``extra_fields`` attribute, so names that clash with
    LogRecord attributes (``principal``, ``name``) are safe to use.
    """
    log_func = getattr(logger, level.lower())
    log_func(message, extra={"extra_fields": extra_fields})


setup_logging(
    level="DEBUG" if settings.debug else settings.log_level,
    json_format=settings.log_json,
    service=settings.app_name,
)
