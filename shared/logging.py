"""
Shared logging configuration for the enchanted query cache.
"""

import sys
import structlog
import logging
import time
from typing import Any, Dict, Optional
from contextvars import ContextVar

# Context variables for correlation
cache_name_var: ContextVar[Optional[str]] = ContextVar('cache_name', default=None)
operation_var: ContextVar[Optional[str]] = ContextVar('operation', default=None)

_service_name: Optional[str] = None


def configure_logging(service_name: str, log_level: str = "info") -> None:
    """Configure structured logging for a service."""
    global _service_name
    _service_name = service_name

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            add_cache_context,
            add_timestamp,
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )


def add_cache_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add enchanted cache context to log events."""
    if _service_name:
        event_dict["service"] = _service_name

    cache_name = cache_name_var.get()
    if cache_name:
        event_dict["cache_name"] = cache_name

    operation = operation_var.get()
    if operation:
        event_dict["operation"] = operation

    return event_dict


def add_timestamp(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add high-precision timestamp to log events."""
    event_dict["timestamp"] = time.time()
    return event_dict


def set_cache_context(cache_name: Optional[str] = None, operation: Optional[str] = None):
    """Set cache context in logging."""
    if cache_name:
        cache_name_var.set(cache_name)
    if operation:
        operation_var.set(operation)


def clear_context():
    """Clear all context variables."""
    cache_name_var.set(None)
    operation_var.set(None)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
