"""
Custom exception hierarchy

Business-layer exceptions, kept apart from framework and driver errors.
Every custom exception derives from StockDashboardError and carries the HTTP
status it maps to, so the handlers in ``web.app`` stay one-liners.
"""

from typing import Any, List, Optional


class StockDashboardError(Exception):
    """
    Base business exception

    Provides a uniform error code, message and JSON body for every
    domain error.
    """

    http_status: int = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None
    ):
        """
        Args:
            message: human readable error message
            code: machine readable error code
            details: extra error details
        """
        self.message = message
        self.code = code or self.__class__.__name__.upper()
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the API error envelope."""
        result: dict[str, Any] = {
            "success": False,
            "error": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


# ==================== Data access ====================

class NotFoundError(StockDashboardError):
    """Requested record does not exist"""

    http_status = 404

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            message=f"{resource} not found",
            code="NOT_FOUND",
            details={"resource": resource, "identifier": str(identifier)}
        )
        self.resource = resource
        self.identifier = identifier


class ConflictError(StockDashboardError):
    """Natural key already taken"""

    http_status = 409

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message=message, code="CONFLICT", details=details)


class DatabaseError(StockDashboardError):
    """Database operation failed"""

    def __init__(self, operation: str, reason: str):
        super().__init__(
            message=f"Database {operation} failed: {reason}",
            code="DATABASE_ERROR",
            details={"operation": operation, "reason": reason}
        )


# ==================== External API ====================

class ExternalAPIError(StockDashboardError):
    """Upstream provider returned an error or an unusable payload"""

    http_status = 502

    def __init__(self, provider: str, details: str, status_code: Optional[int] = None):
        super().__init__(
            message=f"External API error from {provider}: {details}",
            code="EXTERNAL_API_ERROR",
            details={"provider": provider, "status_code": status_code}
        )
        self.provider = provider
        self.status_code = status_code


# ==================== Validation ====================

class ValidationError(StockDashboardError):
    """Payload failed one or more validation rules"""

    http_status = 400

    def __init__(self, errors: List[str]):
        message = errors[0] if len(errors) == 1 else "Validation failed"
        super().__init__(message=message, code="VALIDATION_ERROR")
        self.errors = list(errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": self.message,
            "errors": self.errors,
        }


# ==================== Sync ====================

class SyncError(StockDashboardError):
    """A sync run aborted; wraps the underlying cause"""

    def __init__(self, error: str, reason: str):
        super().__init__(message=error, code="SYNC_ERROR")
        self.reason = reason

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": self.message,
            "message": self.reason,
        }


# ==================== Configuration ====================

class ConfigurationError(StockDashboardError):
    """Configuration error"""

    def __init__(self, key: str, reason: str):
        super().__init__(
            message=f"Configuration error for {key}: {reason}",
            code="CONFIGURATION_ERROR",
            details={"key": key, "reason": reason}
        )


class MissingConfigError(ConfigurationError):
    """Required configuration is absent"""

    def __init__(self, key: str):
        super().__init__(
            key=key,
            reason="Required configuration is missing"
        )
