"""Error Hierarchy — typed, categorized exceptions for all ChargeWatch failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - StorageError is the only class eligible for automatic retry
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with ChargeWatchError base: FastAPI global handler catches all
    - ErrorContext carries the entity ids needed to reconstruct a race from logs
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
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    AUTHENTICATION = "authentication"
    FORBIDDEN = "forbidden"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Entity ids and failed precondition, for logs and error envelopes."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    station_id: str | None = None
    session_id: str | None = None
    user_id: str | None = None
    operation: str | None = None
    precondition: str | None = None
    debug_info: dict[str, Any] | None = None

    def log_extra(self) -> dict:
        """Non-empty fields as logging `extra` (JSON formatter picks them up)."""
        return {
            key: value for key, value in (
                ("station_id", self.station_id),
                ("session_id", self.session_id),
                ("user_id", self.user_id),
                ("operation", self.operation),
                ("precondition", self.precondition),
            ) if value is not None
        }


class ChargeWatchError(Exception):
    """Base exception for all ChargeWatch errors."""

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
                    "station_id": self.context.station_id,
                    "session_id": self.context.session_id,
                    "operation": self.context.operation,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class InputValidationError(ChargeWatchError):
    """Malformed or out-of-range input. Never retried."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.field = field


class ResourceNotFoundError(ChargeWatchError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )


class AuthenticationRequiredError(ChargeWatchError):
    """Caller identity missing on an authenticated route."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Authentication required", "AUTHENTICATION_REQUIRED",
            ErrorCategory.AUTHENTICATION, ErrorSeverity.WARNING, context, 401,
        )


class ForbiddenError(ChargeWatchError):
    """Caller is authenticated but not allowed to perform the action."""
    def __init__(
        self, message: str, code: str = "FORBIDDEN",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, ErrorCategory.FORBIDDEN,
            ErrorSeverity.WARNING, context, 403,
        )


class SessionForbidden(ForbiddenError):
    """Attempt to end another user's charging session."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Cannot end another user's session", "SESSION_FORBIDDEN", context,
        )


class ConflictError(ChargeWatchError):
    """Business-rule violation. Surfaced to caller, never retried."""
    def __init__(
        self, message: str, code: str, context: ErrorContext | None = None,
        http_status: int = 409,
    ):
        super().__init__(
            message, code, ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, http_status,
        )


class SessionConflict(ConflictError):
    """User already has an ACTIVE charging session."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "You already have an active charging session",
            "SESSION_CONFLICT", context,
        )


class NoChargerAvailable(ConflictError):
    """Station has zero available chargers."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "No available chargers", "NO_CHARGER_AVAILABLE", context,
        )


class SessionNotActive(ConflictError):
    """Session was already ended."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Session already ended", "SESSION_NOT_ACTIVE", context,
        )


class AvailabilityExceeded(ConflictError):
    """Manual availability update exceeds the station's charger count."""
    def __init__(
        self, requested: int, charger_count: int,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Available chargers ({requested}) cannot exceed "
            f"total chargers ({charger_count})",
            "AVAILABILITY_EXCEEDED", context, http_status=400,
        )
        self.requested = requested
        self.charger_count = charger_count


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StorageError(ChargeWatchError):
    """Transient storage failure — the only retryable class."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Storage {operation} failed: {message}",
            "STORAGE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
