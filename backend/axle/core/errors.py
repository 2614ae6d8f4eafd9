"""Error Hierarchy — typed, categorized exceptions for all Axle failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope
    - UpstreamError keeps at most BODY_EXCERPT_CHARS of the upstream body

Design Decisions:
    - Single hierarchy with AxleError base: FastAPI global handler catches all
    - ErrorContext as dataclass: carries task identity without coupling to logging
    - ParseError is raised only inside result interpreters and recovered there
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

BODY_EXCERPT_CHARS = 500


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
    CONFIGURATION = "configuration"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    task_id: str | None = None
    task_kind: str | None = None
    debug_info: dict[str, Any] | None = None


class AxleError(Exception):
    """Base exception for all Axle errors."""

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
                    "task_id": self.context.task_id,
                    "task_kind": self.context.task_kind,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ResourceNotFoundError(AxleError):
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


class TaskConflictError(AxleError):
    """Task status changed underneath a compare-and-set transition."""
    def __init__(
        self,
        task_id: str,
        expected: list[str],
        actual: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Task '{task_id}' is '{actual}', expected one of {expected}",
            "TASK_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )
        self.task_id = task_id
        self.expected = expected
        self.actual = actual


class ParseError(AxleError):
    """Reasoning output was not in the expected structured form."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "PARSE_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 422,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class ConfigurationError(AxleError):
    """A required credential or setting is missing."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONFIGURATION_ERROR", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, context, 500,
        )


class UpstreamError(AxleError):
    """Reasoning service returned a non-success response or was unreachable."""
    def __init__(
        self,
        status_code: int | None,
        body: str = "",
        context: ErrorContext | None = None,
    ):
        excerpt = (body or "")[:BODY_EXCERPT_CHARS]
        label = status_code if status_code is not None else "no response"
        super().__init__(
            f"Reasoning service error ({label}): {excerpt}",
            "UPSTREAM_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 502,
        )
        self.status_code = status_code
        self.body_excerpt = excerpt


class DatabaseError(AxleError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class InvalidTransitionError(AxleError):
    """A transition outside the task state machine was requested."""
    def __init__(self, source: str, target: str, context: ErrorContext | None = None):
        super().__init__(
            f"Illegal task transition {source} -> {target}",
            "INVALID_TRANSITION", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.source = source
        self.target = target
