"""
Shopfloor Tracker - Custom Exception Hierarchy

Provides structured, typed exceptions with error codes for consistent
error handling across the API layer. The workflow engine itself never raises
these for business-rule violations; it reports them as ``False``/``None``
and the endpoints translate that into one of the errors below.

Usage:
    from shopfloor.exceptions import NotFoundError, InvalidStateError

    raise NotFoundError("Work item", item_id)
    raise InvalidStateError("Item is on hold", current_state="Pending")
"""
from typing import Any, Dict, Optional


class ShopfloorException(Exception):
    """
    Base exception for all Shopfloor Tracker errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code (e.g., "NOT_FOUND", "INVALID_STATE")
        status_code: HTTP status code to return
        details: Additional context for debugging
    """

    error_code: str = "SHOPFLOOR_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response."""
        result = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


# ===================
# 400 Bad Request Errors
# ===================


class ValidationError(ShopfloorException):
    """Raised when input validation fails."""

    error_code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        *,
        field: Optional[str] = None,
        value: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, details=details)


# ===================
# 401 Unauthorized Errors
# ===================


class AuthenticationError(ShopfloorException):
    """Raised when no operator identity accompanies a request."""

    error_code = "AUTHENTICATION_ERROR"
    status_code = 401

    def __init__(
        self,
        message: str = "Operator identity required",
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details=details)


# ===================
# 403 Forbidden Errors
# ===================


class PermissionDeniedError(ShopfloorException):
    """Raised when an operator's role does not cover the claimed station."""

    error_code = "PERMISSION_DENIED"
    status_code = 403

    def __init__(
        self,
        message: str = "Permission denied",
        *,
        role: Optional[str] = None,
        station: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        if role:
            details["role"] = role
        if station:
            details["station"] = station
        super().__init__(message, details=details)


# ===================
# 404 Not Found Errors
# ===================


class NotFoundError(ShopfloorException):
    """Raised when a work item or order is not found."""

    error_code = "NOT_FOUND"
    status_code = 404

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Any = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        details["resource"] = resource
        if resource_id is not None:
            details["resource_id"] = str(resource_id)
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(message, details=details)


# ===================
# 409 Conflict Errors
# ===================


class InvalidStateError(ShopfloorException):
    """Raised when a transition is not allowed for the item's current state."""

    error_code = "INVALID_STATE"
    status_code = 409

    def __init__(
        self,
        message: str = "Operation not allowed in current state",
        *,
        current_state: Optional[Dict[str, Any]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        if current_state:
            details["current_state"] = current_state
        super().__init__(message, details=details)


class StationMismatchError(InvalidStateError):
    """Raised when a station acts on an item that is not physically there."""

    error_code = "STATION_MISMATCH"

    def __init__(
        self,
        item_id: str,
        *,
        station: str,
        current_step: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        details["item_id"] = item_id
        details["station"] = station
        details["current_step"] = current_step
        message = f"Item {item_id} is at {current_step}, not at {station}"
        super().__init__(message, details=details)


class DuplicateError(ShopfloorException):
    """Raised when intake reuses an existing item id."""

    error_code = "DUPLICATE_ERROR"
    status_code = 409

    def __init__(
        self,
        resource: str = "Resource",
        *,
        field: Optional[str] = None,
        value: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        details["resource"] = resource
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        message = f"{resource} already exists"
        if field and value:
            message = f"{resource} with {field}='{value}' already exists"
        super().__init__(message, details=details)


# ===================
# 500 Internal Server Errors
# ===================


class SeedDataError(ShopfloorException):
    """Raised when the bootstrap dataset cannot be loaded."""

    error_code = "SEED_DATA_ERROR"
    status_code = 500

    def __init__(
        self,
        message: str = "Seed data could not be loaded",
        *,
        source: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        if source:
            details["source"] = source
        super().__init__(message, details=details)
