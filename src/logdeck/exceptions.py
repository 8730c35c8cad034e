"""
logdeck - Custom Exceptions.

Centralized exception handling with standardized error responses.
"""

from typing import Any
from uuid import UUID


class LogDeckException(Exception):
    """Base exception for logdeck."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
        request_id: UUID | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        self.request_id = request_id
        # Set once an operation metric has counted this error
        self.metrics_recorded = False
        super().__init__(message)


class NotFoundException(LogDeckException):
    """Raised when a resource is not found."""

    def __init__(self, resource_type: str, resource_id: str | UUID):
        super().__init__(
            code="NOT_FOUND",
            message=f"{resource_type} not found: {resource_id}",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": str(resource_id)},
        )


class ValidationException(LogDeckException):
    """Raised for validation errors."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            details={"errors": errors} if errors else None,
        )


class StorageReadException(LogDeckException):
    """Raised when the log file exists but cannot be read or parsed."""

    def __init__(self, path: str, message: str):
        super().__init__(
            code="STORAGE_READ_ERROR",
            message=f"Failed to read database: {message}",
            status_code=500,
            details={"path": path},
        )


class StorageWriteException(LogDeckException):
    """Raised when the log file cannot be written."""

    def __init__(self, path: str, message: str):
        super().__init__(
            code="STORAGE_WRITE_ERROR",
            message=f"Failed to write database: {message}",
            status_code=500,
            details={"path": path},
        )


class FeatureDisabledException(LogDeckException):
    """Raised when a feature flag is disabled."""

    def __init__(self, feature_name: str):
        super().__init__(
            code="FEATURE_DISABLED",
            message=f"Feature '{feature_name}' is currently disabled",
            status_code=503,
            details={"feature": feature_name},
        )
