"""Error Hierarchy — typed, categorized exceptions for every ledger failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are surfaced verbatim; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope used by the global handlers
    - None of these are retried by the core

Design Decisions:
    - Single hierarchy with ParkingError base: FastAPI global handler catches all (uniform error shape)
    - ErrorContext as dataclass: identifiers for observability without coupling to logging
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    CONFLICT = "conflict"
    RESOURCE_NOT_FOUND = "resource_not_found"
    AUTH = "auth"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Identifiers attached to an error for logs and responses."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    session_id: str | None = None
    vehicle_id: str | None = None
    location: str | None = None
    debug_info: dict[str, Any] | None = None


class ParkingError(Exception):
    """Base exception for all ledger errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "session_id": self.context.session_id,
                    "vehicle_id": self.context.vehicle_id,
                    "location": self.context.location,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ValidationError(ParkingError):
    """Malformed or missing input."""
    def __init__(
        self, message: str, field: str | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class ConflictError(ParkingError):
    """State conflict: slot occupied, vehicle parked, session already settled."""
    def __init__(
        self, message: str, code: str = "CONFLICT",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


class NotFoundError(ParkingError):
    """Unknown vehicle, session or location."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class AuthError(ParkingError):
    """Identity resolution failed. Never downgraded to anonymous."""
    def __init__(
        self, message: str = "Invalid or missing credentials",
        code: str = "AUTH_FAILED", http_status: int = 401,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, ErrorCategory.AUTH,
            ErrorSeverity.WARNING, context, http_status,
        )


class PermissionDeniedError(AuthError):
    """Caller is authenticated but lacks the role for the operation."""
    def __init__(self, required_role: str, context: ErrorContext | None = None):
        super().__init__(
            f"Operation requires role '{required_role}'",
            "PERMISSION_DENIED", 403, context,
        )
        self.required_role = required_role


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(ParkingError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
