"""Error Hierarchy — typed, categorized exceptions for all marketplace failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - InvalidStateError always reports the status the session was observed in
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with SkillExchangeError base: FastAPI global handler catches all
      (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
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
    """Stable machine-readable error kinds."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    FORBIDDEN = "forbidden"
    RESOURCE_NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    session_id: str | None = None
    account_id: str | None = None
    current_status: str | None = None
    debug_info: dict[str, Any] | None = None


class SkillExchangeError(Exception):
    """Base exception for all marketplace errors."""

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
                    "account_id": self.context.account_id,
                    "current_status": self.context.current_status,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ValidationFailedError(SkillExchangeError):
    """Input missing or malformed — raised before any state is read."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class InvalidRatingError(SkillExchangeError):
    def __init__(self, rating: object, context: ErrorContext | None = None):
        super().__init__(
            f"Rating must be an integer between 1 and 5, got {rating!r}",
            "INVALID_RATING", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class AuthenticationError(SkillExchangeError):
    """Bearer credential missing, malformed, or expired."""
    def __init__(self, message: str = "Invalid or expired token", context: ErrorContext | None = None):
        super().__init__(
            message, "AUTHENTICATION_FAILED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class ForbiddenError(SkillExchangeError):
    """Caller is not a party allowed to perform this operation."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "FORBIDDEN", ErrorCategory.FORBIDDEN,
            ErrorSeverity.WARNING, context, 403,
        )


class ResourceNotFoundError(SkillExchangeError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


class InvalidStateError(SkillExchangeError):
    """Transition precondition on status or per-party flags not met."""
    def __init__(
        self,
        message: str,
        current_status: str,
        code: str = "INVALID_STATE",
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.current_status = current_status
        super().__init__(
            message, code, ErrorCategory.INVALID_STATE,
            ErrorSeverity.ERROR, ctx, 409,
        )
        self.current_status = current_status


class AlreadyConfirmedError(InvalidStateError):
    def __init__(self, current_status: str, context: ErrorContext | None = None):
        super().__init__(
            "You have already confirmed this session",
            current_status, "ALREADY_CONFIRMED", context,
        )


class AlreadyRatedError(InvalidStateError):
    def __init__(self, current_status: str, context: ErrorContext | None = None):
        super().__init__(
            "You have already rated this session",
            current_status, "ALREADY_RATED", context,
        )


class DuplicateSkillError(SkillExchangeError):
    """Skill name already present (case-insensitive) on the account."""
    def __init__(self, name: str, collection: str, context: ErrorContext | None = None):
        super().__init__(
            f"Skill '{name}' already exists in {collection}",
            "DUPLICATE_SKILL", ErrorCategory.INVALID_STATE,
            ErrorSeverity.WARNING, context, 409,
        )


class InsufficientFundsError(SkillExchangeError):
    """Coins or beginner credits exhausted at the authoritative check."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INSUFFICIENT_FUNDS", ErrorCategory.INSUFFICIENT_FUNDS,
            ErrorSeverity.ERROR, context, 400,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(SkillExchangeError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
