"""Error Hierarchy — typed, categorized exceptions for write-path failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Caller bugs (unknown event, invalid action) fail loudly and are never retried
    - Infrastructure errors (cache, audit store) carry enough context for observability
    - to_response() produces REST envelope; no internal details in user-facing messages

Design Decisions:
    - Single hierarchy with WritePathError base: FastAPI global handler catches all
      (ADR: uniform error shape)
    - TransportErrorKind as a closed enum: the transport layer classifies failures once,
      the coordination layer matches on the kind (no status-code sniffing)
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
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    TRANSPORT = "transport"
    INTERNAL = "internal"
    TIMEOUT = "timeout"


class TransportErrorKind(str, Enum):
    """Failure classes reported by the transport layer."""
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    SERVER = "server"
    NETWORK = "network"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    mutation_id: str | None = None
    order_id: str | None = None
    domain_event: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None


class WritePathError(Exception):
    """Base exception for all write-path errors."""

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
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "mutation_id": self.context.mutation_id,
                    "order_id": self.context.order_id,
                    "domain_event": self.context.domain_event,
                },
            }
        }


# ─── Caller Errors (fail loudly) ────────────────────────────────

class UnknownDomainEventError(WritePathError):
    """Resolver was given an event with no invalidation rule."""
    def __init__(self, domain_event: str, context: ErrorContext | None = None):
        super().__init__(
            f"No invalidation rule for domain event '{domain_event}'",
            "UNKNOWN_DOMAIN_EVENT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.domain_event = domain_event


class InvalidActionError(WritePathError):
    """Audit writer was given an action outside the closed taxonomy."""
    def __init__(self, action: str, context: ErrorContext | None = None):
        super().__init__(
            f"'{action}' is not a valid audit action",
            "INVALID_ACTION", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.action = action


# ─── Infrastructure Errors ──────────────────────────────────────

class CacheUnavailableError(WritePathError):
    """Cache backend could not invalidate, refetch or evict."""
    def __init__(
        self, message: str, operation: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Cache {operation} failed: {message}",
            "CACHE_UNAVAILABLE", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, context, 503,
        )
        self.operation = operation


class AuditWriteFailedError(WritePathError):
    """Audit entry could not be persisted."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Audit write failed: {message}",
            "AUDIT_WRITE_FAILED", ErrorCategory.DATABASE,
            ErrorSeverity.ERROR, context, 503,
        )


class DatabaseError(WritePathError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class TransportError(WritePathError):
    """Business write failed in the transport layer, classified by kind."""
    def __init__(
        self,
        kind: TransportErrorKind,
        message: str,
        status_code: int | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, f"TRANSPORT_{kind.name}", ErrorCategory.TRANSPORT,
            ErrorSeverity.ERROR, context, status_code or 502,
        )
        self.kind = kind
        self.status_code = status_code
