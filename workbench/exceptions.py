"""Custom exception hierarchy for the ATT&CK Workbench store."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Identity and addressing errors
    MISSING_PARAMETER = "MISSING_PARAMETER"
    BADLY_FORMATTED_PARAMETER = "BADLY_FORMATTED_PARAMETER"
    INVALID_QUERY_PARAMETER = "INVALID_QUERY_PARAMETER"

    # Version chain errors
    DUPLICATE_ID = "DUPLICATE_ID"
    NOT_FOUND = "NOT_FOUND"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"


class WorkbenchException(Exception):
    """
    Base exception for all store errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            status_code: HTTP status code to return
            details: Optional additional context/details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for JSON response.

        Returns:
            Dictionary with error, message, and details fields
        """
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class MissingParameterError(WorkbenchException):
    """A required identifying parameter was absent."""

    def __init__(self, parameter_name: str):
        super().__init__(
            "Missing required parameter",
            ErrorCode.MISSING_PARAMETER,
            status_code=400,
            details={"parameter_name": parameter_name}
        )
        self.parameter_name = parameter_name


class BadlyFormattedParameterError(WorkbenchException):
    """An identifier or timestamp could not be used to address the store."""

    def __init__(self, parameter_name: str, value: Any = None):
        details: Dict[str, Any] = {"parameter_name": parameter_name}
        if value is not None:
            details["value"] = str(value)
        super().__init__(
            "Badly formatted parameter",
            ErrorCode.BADLY_FORMATTED_PARAMETER,
            status_code=400,
            details=details
        )
        self.parameter_name = parameter_name


class InvalidQueryParameterError(WorkbenchException):
    """A selector option carried an unsupported value."""

    def __init__(self, parameter_name: str, value: Any = None):
        details: Dict[str, Any] = {"parameter_name": parameter_name}
        if value is not None:
            details["value"] = str(value)
        super().__init__(
            "Invalid query string parameter",
            ErrorCode.INVALID_QUERY_PARAMETER,
            status_code=400,
            details=details
        )
        self.parameter_name = parameter_name


class DuplicateIdError(WorkbenchException):
    """A uniqueness constraint on the natural key was violated."""

    def __init__(self, key: Dict[str, Any]):
        super().__init__(
            "Duplicate id",
            ErrorCode.DUPLICATE_ID,
            status_code=409,
            details=key
        )


class ObjectNotFoundError(WorkbenchException):
    """Raised by the HTTP layer when a lookup returned nothing."""

    def __init__(self, key: Dict[str, Any]):
        super().__init__(
            "Document not found",
            ErrorCode.NOT_FOUND,
            status_code=404,
            details=key
        )


class ValidationError(WorkbenchException):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class DatabaseError(WorkbenchException):
    """Database operation failed. The driver error is logged, never returned."""

    def __init__(self, message: str = "Database operation failed"):
        super().__init__(
            message,
            ErrorCode.DATABASE_ERROR,
            status_code=500
        )
