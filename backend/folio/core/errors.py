"""Error Hierarchy — typed, categorized exceptions for all Folio failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Requestor-caused errors (400-level, including 409 conflicts) expose their
      message to the client
    - Server-caused errors (500-level) never expose their message: to_response()
      always returns the generic INTERNAL_MESSAGE
    - Response envelope is {"error": <message>} (plus "fields" for validation)

Design Decisions:
    - Single hierarchy with FolioError base: one global handler catches all
    - ErrorContext as dataclass: rich log context without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone

INTERNAL_MESSAGE = "Internal server error"


class ErrorSeverity(str, Enum):
    """Error severity for observability."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BAD_REQUEST = "bad_request"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    collection: str | None = None
    document_id: str | None = None
    debug_info: dict[str, Any] | None = None


class FolioError(Exception):
    """Base exception for all Folio errors."""

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

    @property
    def is_client_error(self) -> bool:
        return self.http_status < 500

    def public_message(self) -> str:
        """Message safe to send to the client."""
        return self.message if self.is_client_error else INTERNAL_MESSAGE

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {"error": self.public_message()}


# ─── Requestor Errors (400-level) ───────────────────────────────

class DocumentValidationError(FolioError):
    """A record failed schema validation before persistence."""
    def __init__(
        self,
        model_name: str,
        field_errors: dict[str, str],
        context: ErrorContext | None = None,
    ):
        fields = ", ".join(field_errors) or "document"
        super().__init__(
            f"{model_name} validation failed: {fields}",
            "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.model_name = model_name
        self.field_errors = field_errors

    def to_response(self) -> dict:
        return {"error": self.message, "fields": dict(self.field_errors)}


class InvalidIdError(FolioError):
    """A document id could not be parsed."""
    def __init__(self, value: object, context: ErrorContext | None = None):
        super().__init__(
            f"Invalid document id: '{value}'",
            "INVALID_ID", ErrorCategory.BAD_REQUEST,
            ErrorSeverity.WARNING, context, 400,
        )
        self.value = value


class BadRequestError(FolioError):
    """Request is well-formed but cannot be honoured as asked."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "BAD_REQUEST", ErrorCategory.BAD_REQUEST,
            ErrorSeverity.WARNING, context, 400,
        )


class InvalidQueryError(FolioError):
    """A filter, projection, sort, or populate path is not usable."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_QUERY", ErrorCategory.BAD_REQUEST,
            ErrorSeverity.WARNING, context, 400,
        )


class ResourceNotFoundError(FolioError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class DocumentConflictError(FolioError):
    """Document changed since it was read; the write was not applied."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' was modified concurrently",
            "DOCUMENT_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


# ─── Server Errors (500-level) ──────────────────────────────────

class DatabaseError(FolioError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.operation = operation


class ModelRegistrationError(FolioError):
    """Model name or collection already bound, or unknown model requested."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "MODEL_REGISTRATION", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )


class DocumentStateError(FolioError):
    """Operation not allowed for the document's current state."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "DOCUMENT_STATE", ErrorCategory.INTERNAL,
            ErrorSeverity.ERROR, context, 500,
        )
