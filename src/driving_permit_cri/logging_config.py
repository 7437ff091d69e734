"""Logging configuration for the driving permit credential issuer.

Standard library loggers carry operational messages; business events
(document check results, retry exhaustion, credential issuance) go through a
``structlog`` logger that renders via the same standard library handlers.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog
from opentelemetry import trace
from pythonjsonlogger.json import JsonFormatter

DEFAULT_LOG_FORMAT = (
    "%(asctime)s - %(levelname)s - [%(service_name)s] - [%(name)s] - "
    "[%(module)s.%(funcName)s:%(lineno)d] - %(message)s"
)

LOG_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}

DEFAULT_LOG_LEVEL = "INFO"
LOG_OFF_LEVEL = "OFF"  # Special string to turn off logging


class ServiceNameFilter(logging.Filter):
    """Filter to inject service name into log records."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = self.service_name
        return True


class TraceContextFilter(logging.Filter):
    """Filter to inject trace context into log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        current_span = trace.get_current_span()
        if current_span and current_span.is_recording():
            span_context = current_span.get_span_context()
            record.trace_id = format(span_context.trace_id, "032x")
            record.span_id = format(span_context.span_id, "016x")
        else:
            record.trace_id = None
            record.span_id = None
        return True


class IssuerJSONFormatter(JsonFormatter):
    """JSON formatter adding level, logger and source location fields."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record.pop("service_name", None)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["service"] = getattr(record, "service_name", "unknown")
        log_record["module"] = record.module
        log_record["function"] = record.funcName
        log_record["line"] = record.lineno
        for field in ("trace_id", "span_id"):
            if log_record.get(field) is None:
                log_record.pop(field, None)


def setup_logging(
    service_name: str = "driving-permit-cri",
    log_level: str | None = None,
    log_format: str | None = None,
    log_level_env_var: str = "LOG_LEVEL",
    log_format_env_var: str = "LOG_FORMAT",
) -> None:
    """
    Configure logging for the application.

    Args:
        service_name: Name of the service for log identification
        log_level: Explicit level; falls back to ``log_level_env_var``
        log_format: ``"json"`` or a %-style format string; falls back to
            ``log_format_env_var``
    """
    log_level_str = (log_level or os.environ.get(log_level_env_var, DEFAULT_LOG_LEVEL)).upper()
    log_format_str = log_format or os.environ.get(log_format_env_var, "json")

    root_logger = logging.getLogger()

    # Remove any existing handlers to prevent duplicate messages
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if log_level_str == LOG_OFF_LEVEL:
        root_logger.setLevel(logging.CRITICAL + 1)
        print(f"Logging is OFF for {service_name}.", file=sys.stderr)
        return

    numeric_log_level = LOG_LEVELS.get(log_level_str, logging.INFO)
    root_logger.setLevel(numeric_log_level)

    console_handler = logging.StreamHandler(sys.stdout)
    if log_format_str.lower() == "json":
        formatter: logging.Formatter = IssuerJSONFormatter("%(asctime)s %(message)s")
    elif log_format_str.lower() == "plain":
        formatter = logging.Formatter(DEFAULT_LOG_FORMAT)
    else:
        formatter = logging.Formatter(log_format_str)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(ServiceNameFilter(service_name))
    console_handler.addFilter(TraceContextFilter())
    root_logger.addHandler(console_handler)

    # Suppress overly verbose third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    _configure_structlog()

    logging.getLogger(__name__).info(
        "Logging configured. Service: %s, Level: %s", service_name, log_level_str
    )


def _configure_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_event_logger(name: str | None = None) -> Any:
    """Return a structlog logger for business events."""
    return structlog.get_logger(name or "driving_permit_cri.events")


class BusinessEventLogger:
    """Logger for document check and credential issuance events.

    Only identifiers and outcomes are logged, never the holder's personal data.
    """

    def __init__(self, logger: Any | None = None) -> None:
        self.logger = logger or get_event_logger()

    def log_verification_result(
        self,
        transaction_id: str | None,
        valid_document: bool,
        attempt_count: int,
        **kwargs: Any,
    ) -> None:
        self.logger.info(
            "document_check_completed",
            transaction_id=transaction_id,
            valid_document=valid_document,
            attempt_count=attempt_count,
            event_type="business",
            **kwargs,
        )

    def log_verification_failed(self, error_code: int, reason: str, **kwargs: Any) -> None:
        self.logger.warning(
            "document_check_failed",
            error_code=error_code,
            reason=reason,
            event_type="business",
            **kwargs,
        )

    def log_credential_issued(self, issuer: str, transaction_id: str | None, expires_at: int) -> None:
        self.logger.info(
            "credential_issued",
            issuer=issuer,
            transaction_id=transaction_id,
            expires_at=expires_at,
            event_type="business",
        )


__all__ = [
    "BusinessEventLogger",
    "IssuerJSONFormatter",
    "ServiceNameFilter",
    "TraceContextFilter",
    "get_event_logger",
    "setup_logging",
]
