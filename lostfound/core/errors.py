"""Error Hierarchy - typed, categorized exceptions for all lost-and-found failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are client-addressable precondition failures, never retried
    - Infrastructure errors (500-level) are opaque to the client
    - to_response() produces the REST envelope rendered by api/error_handlers.py

Design Decisions:
    - Single hierarchy with LostFoundError base: one FastAPI handler catches all
    - ErrorContext carries the identifiers the service layer needs to render a response
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
    PERMISSION = "permission"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Identifiers attached to an error for rendering and logging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    object_id: str | None = None
    devolution_code: str | None = None
    user_id: str | None = None
    debug_info: dict[str, Any] | None = None


class LostFoundError(Exception):
    """Base exception for all registry errors."""

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
                    "object_id": self.context.object_id,
                    "devolution_code": self.context.devolution_code,
                    "user_id": self.context.user_id,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class InvalidClaimError(LostFoundError):
    """Applicant already holds the claim on this object."""
    def __init__(self, object_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext(object_id=object_id)
        super().__init__(
            "Object can only be solicited once by the same applicant.",
            "INVALID_CLAIM", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.object_id = object_id


class AlreadyReturnedError(LostFoundError):
    """Object was already devolved to its owner."""
    def __init__(self, object_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext(object_id=object_id)
        super().__init__(
            "Cannot solicit an object that was already returned.",
            "ALREADY_RETURNED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.object_id = object_id


class ClaimNotExpiredError(LostFoundError):
    """Another applicant's solicitation window is still open."""
    def __init__(
        self, object_id: str, expires_on: str | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext(object_id=object_id)
        super().__init__(
            "Cannot claim the object: the current solicitation period has not expired.",
            "CLAIM_NOT_EXPIRED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.object_id = object_id
        self.expires_on = expires_on


class InvalidIdentifierError(LostFoundError):
    """Malformed object identifier."""
    def __init__(self, value: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext(object_id=value)
        super().__init__(
            f"'{value}' is not a valid object identifier",
            "INVALID_IDENTIFIER", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.value = value


class ObjectValidationError(LostFoundError):
    """Object payload or patch is malformed (unknown field, empty field list)."""
    def __init__(self, message: str, field: str | None = None, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class ForbiddenError(LostFoundError):
    """Caller's role lacks the capability for this operation."""
    def __init__(self, capability: str, role: str, context: ErrorContext | None = None):
        super().__init__(
            "Access to the resource was denied.",
            "FORBIDDEN", ErrorCategory.PERMISSION,
            ErrorSeverity.WARNING, context, 403,
        )
        self.capability = capability
        self.role = role


class ResourceNotFoundError(LostFoundError):
    """Requested resource does not exist."""
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


class ConcurrencyError(LostFoundError):
    """Conditional update matched no document: the object changed under us."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONCURRENCY_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(LostFoundError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
