"""
Shared error handling for the enchanted query cache.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error report format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class CacheSyncException(Exception):
    """Base exception for cache synchronization."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class ConfigurationError(CacheSyncException):
    """Invalid or missing enchanted cache configuration."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class StorageError(CacheSyncException):
    """Durable storage read/write failures."""

    def __init__(self, message: str = "Storage error", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORAGE_ERROR", message, details)


class PropagationError(CacheSyncException):
    """Failure to read or merge a dependent cached query."""

    def __init__(self, query_name: str, message: str = "Propagation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("PROPAGATION_ERROR", f"{query_name}: {message}", details)
