"""Error Hierarchy — typed, categorized exceptions for every request-entry failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
      and an HTTP status (>= 100)
    - to_envelope() produces the uniform {"statusCode", "message"} client shape
    - Only the error funnel (api/error_funnel.py) turns these into responses

Design Decisions:
    - Single hierarchy with GatewayError base: one funnel catches all (ADR: uniform error shape)
    - Anything outside the hierarchy is an unexpected fault and is rendered as a generic 500
"""

from enum import Enum


class ErrorSeverity(str, Enum):
    """Error severity for observability."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for log routing."""
    VALIDATION = "validation"
    POLICY = "policy"
    RESOURCE_NOT_FOUND = "resource_not_found"
    APPLICATION = "application"
    DATABASE = "database"
    INTERNAL = "internal"


class GatewayError(Exception):
    """Base exception for all errors with an intended client-visible status."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        status_code: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.status_code = status_code

    def to_envelope(self) -> dict:
        """Convert to the uniform client error envelope."""
        return {"statusCode": self.status_code, "message": self.message}


# ─── Request pipeline conditions (400-level) ────────────────────

class ForbiddenOriginError(GatewayError):
    """Request Origin rejected by the CORS policy."""
    def __init__(self, origin: str):
        super().__init__(
            "Not allowed by CORS", "FORBIDDEN_ORIGIN", ErrorCategory.POLICY,
            ErrorSeverity.WARNING, 403,
        )
        self.origin = origin


class MalformedBodyError(GatewayError):
    """Request body could not be decoded."""
    def __init__(self, reason: str):
        super().__init__(
            f"Malformed request body: {reason}", "MALFORMED_BODY",
            ErrorCategory.VALIDATION, ErrorSeverity.WARNING, 400,
        )


class PayloadTooLargeError(GatewayError):
    """Request body exceeds the configured limit."""
    def __init__(self, limit: int):
        super().__init__(
            f"Request body exceeds {limit} bytes", "PAYLOAD_TOO_LARGE",
            ErrorCategory.VALIDATION, ErrorSeverity.WARNING, 413,
        )
        self.limit = limit


class NotFoundError(GatewayError):
    """No route matched the request."""
    def __init__(self, method: str, path: str):
        super().__init__(
            f"Cannot {method} {path}", "NOT_FOUND",
            ErrorCategory.RESOURCE_NOT_FOUND, ErrorSeverity.INFO, 404,
        )


class ApplicationError(GatewayError):
    """Explicit status + message raised by a route handler.

    >>> raise ApplicationError(403, "nope")
    """
    def __init__(self, status_code: int | None, message: str, code: str = "APPLICATION_ERROR"):
        status = status_code if status_code and status_code >= 100 else 500
        super().__init__(
            message, code, ErrorCategory.APPLICATION,
            ErrorSeverity.ERROR if status >= 500 else ErrorSeverity.WARNING,
            status,
        )


# ─── Infrastructure (500-level) ─────────────────────────────────

class DatabaseError(GatewayError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str):
        super().__init__(
            f"Database {operation} failed: {message}", "DATABASE_ERROR",
            ErrorCategory.DATABASE, ErrorSeverity.CRITICAL, 503,
        )
        self.operation = operation
