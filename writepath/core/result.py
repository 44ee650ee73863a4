"""Mutation Result — explicit Ok | Err returned from an awaited coordinated write.

Invariants:
    - Ok carries the write's value; sync_error is set when the write succeeded
      but the follow-up invalidation failed (caller decides whether to retry)
    - Err carries a TransportErrorKind discriminant and a user-facing message
    - Both are frozen: results are values, not mutable handles

Design Decisions:
    - Result over success/error callbacks: post-processing composes as plain
      sequential code after the await (ADR: no nested hook injection)
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from writepath.core.errors import (
    CacheUnavailableError, TransportError, TransportErrorKind,
)

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    sync_error: CacheUnavailableError | None = None

    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    kind: TransportErrorKind
    message: str
    error: TransportError | None = None

    def is_ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]


# User-facing messages per transport failure kind. Every kind must be present.
USER_MESSAGES: dict[TransportErrorKind, str] = {
    TransportErrorKind.UNAUTHORIZED: "Authentication required. Please log in again.",
    TransportErrorKind.FORBIDDEN: (
        "Access denied. You don't have permission for this action."
    ),
    TransportErrorKind.NOT_FOUND: "The requested record no longer exists.",
    TransportErrorKind.CONFLICT: (
        "This record was changed by someone else. Refresh and try again."
    ),
    TransportErrorKind.VALIDATION: "Some fields are invalid. Please review and try again.",
    TransportErrorKind.SERVER: "Server error. Please try again later.",
    TransportErrorKind.NETWORK: "Network unavailable. Check your connection and try again.",
}


def err_from_transport(error: TransportError) -> Err:
    """Map a classified transport failure to an Err result."""
    return Err(kind=error.kind, message=USER_MESSAGES[error.kind], error=error)
