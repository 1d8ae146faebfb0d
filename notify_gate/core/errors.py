"""Application-level exception types.

Domain errors shared by the admission gate, the notification service and the
HTTP layer, so failures are logged and rendered consistently.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    category: str
    recipient: str
    limit: int
    retry_after: float | None
    channel: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class QuotaExceededError(AppError):
    """Raised when a (category, recipient) pair has no quota left in its window."""


class DeliveryAppError(AppError):
    """Raised when a notifier fails to hand a notification to its transport."""
