"""
CatalogSync Exception Hierarchy

All errors raised by the catalogue engine derive from CatalogSyncException so
the HTTP layer can render them consistently.

Architecture:
- Base exception classes for common error types
- Supplier exceptions (rate limiting, upstream failures, configuration)
- Persistence exceptions for Catalog Store transaction failures
- Helpers for logging and HTTP status mapping
"""

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


# =============================================================================
# Base Exception Classes
# =============================================================================


class CatalogSyncException(Exception):
    """Base exception for all CatalogSync-related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {"error_code": self.error_code, "message": self.message, "details": self.details}


class ConfigurationError(CatalogSyncException):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_field: Optional[str] = None, config_value: Optional[str] = None):
        super().__init__(message, error_code="CONFIGURATION_ERROR")
        self.config_field = config_field
        self.config_value = config_value

        if config_field or config_value:
            self.details.update({"config_field": config_field, "config_value": config_value})


# =============================================================================
# Supplier Exceptions
# =============================================================================


class SupplierError(CatalogSyncException):
    """Base class for supplier-related errors."""

    def __init__(self, message: str, supplier_name: Optional[str] = None, error_code: Optional[str] = None):
        super().__init__(message, error_code=error_code or "SUPPLIER_ERROR")
        self.supplier_name = supplier_name

        if supplier_name:
            self.details.update({"supplier_name": supplier_name})


class SupplierConfigurationError(ConfigurationError):
    """Raised when a supplier is missing required settings or credentials."""

    def __init__(self, message: str, supplier_name: Optional[str] = None, config_field: Optional[str] = None):
        super().__init__(message, config_field=config_field)
        self.supplier_name = supplier_name

        if supplier_name:
            self.details.update({"supplier_name": supplier_name})


class SupplierRateLimitError(SupplierError):
    """
    Raised when the upstream API keeps throttling us after all retries.

    Callers treat this as a soft failure: searches degrade to an annotated
    empty result and sync runs stop paginating but keep what they collected.
    """

    def __init__(
        self,
        message: str,
        supplier_name: Optional[str] = None,
        status: Optional[int] = None,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message, supplier_name=supplier_name, error_code="SUPPLIER_RATE_LIMITED")
        self.status = status
        self.retry_after = retry_after
        self.details.update({"status": status, "retry_after": retry_after})


class SupplierUpstreamError(SupplierError):
    """Raised for non rate-limit HTTP or transport failures once retries are exhausted."""

    def __init__(
        self,
        message: str,
        supplier_name: Optional[str] = None,
        status: Optional[int] = None,
        body_excerpt: Optional[str] = None,
    ):
        super().__init__(message, supplier_name=supplier_name, error_code="SUPPLIER_UPSTREAM_ERROR")
        self.status = status
        self.body_excerpt = body_excerpt
        self.details.update({"status": status})
        if body_excerpt:
            self.details["body_excerpt"] = body_excerpt


# =============================================================================
# Persistence Exceptions
# =============================================================================


class PersistenceError(CatalogSyncException):
    """Raised when a Catalog Store transaction fails. The transaction is rolled back."""

    def __init__(self, message: str, operation: Optional[str] = None, batch_size: Optional[int] = None):
        super().__init__(message, error_code="PERSISTENCE_ERROR")
        self.operation = operation
        self.batch_size = batch_size

        if operation or batch_size is not None:
            self.details.update({"operation": operation, "batch_size": batch_size})


# =============================================================================
# Exception Logging Helpers
# =============================================================================


def log_exception(exception: Exception, context: str = None, extra_info: Optional[Dict[str, Any]] = None):
    """
    Centralized exception logging with consistent format.

    Args:
        exception: The exception to log
        context: Additional context about where the exception occurred
        extra_info: Additional information to include in the log
    """
    if isinstance(exception, CatalogSyncException):
        log_data = {
            "error_code": exception.error_code,
            "error_message": exception.message,  # LogRecord reserves "message"
            "details": exception.details,
            "context": context,
        }

        if extra_info:
            log_data.update(extra_info)

        logger.error(f"CatalogSync Error: {exception.message}", extra=log_data)
    else:
        log_data = {
            "exception_type": type(exception).__name__,
            "error_message": str(exception),
            "context": context,
        }

        if extra_info:
            log_data.update(extra_info)

        logger.error(f"Unexpected Error: {str(exception)}", extra=log_data)


def get_http_status_code(exception: Exception) -> int:
    """
    Get appropriate HTTP status code for an exception.

    Centralized mapping of exceptions to HTTP status codes for consistent API responses.
    """
    if isinstance(exception, SupplierRateLimitError):
        return 429  # Too Many Requests
    elif isinstance(exception, SupplierUpstreamError):
        return 502  # Bad Gateway
    elif isinstance(exception, (ConfigurationError, PersistenceError)):
        return 500  # Internal Server Error
    elif isinstance(exception, CatalogSyncException):
        return 400  # Bad Request (default for application errors)
    else:
        return 500  # Internal Server Error (unexpected errors)
