"""Admission gate interfaces.

Callers depend on this abstraction (not the concrete implementation) so the
quota table could move to another store without touching the service layer.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass

from notify_gate.core.errors import QuotaExceededError, ValidationAppError

# Quota synthesized for categories that were never registered (fail-open).
DEFAULT_MAX_REQUESTS = 2**32 - 1
DEFAULT_WINDOW_SECONDS = 1.0


@dataclass(frozen=True)
class CategoryPolicy:
    """Quota ceiling and window length for one notification category.

    Attributes:
        max_requests: Requests allowed per recipient within one window.
            Zero means every request is rejected.
        window_seconds: Fixed window length in seconds.
    """

    max_requests: int
    window_seconds: float

    def __post_init__(self) -> None:
        if isinstance(self.max_requests, bool) or not isinstance(self.max_requests, int):
            raise ValidationAppError(
                code="invalid_policy",
                message="max_requests must be an integer",
            )
        if self.max_requests < 0:
            raise ValidationAppError(
                code="invalid_policy",
                message="max_requests must be >= 0",
                details={"hint": "Use 0 to block a category entirely"},
            )
        if isinstance(self.window_seconds, bool) or not isinstance(self.window_seconds, (int, float)):
            raise ValidationAppError(
                code="invalid_policy",
                message="window_seconds must be a number",
            )
        if not math.isfinite(self.window_seconds) or self.window_seconds <= 0:
            raise ValidationAppError(
                code="invalid_policy",
                message="window_seconds must be finite and > 0",
            )
        object.__setattr__(self, "window_seconds", float(self.window_seconds))

    @classmethod
    def unlimited(cls) -> "CategoryPolicy":
        """Return the permissive policy used for unregistered categories."""
        return cls(max_requests=DEFAULT_MAX_REQUESTS, window_seconds=DEFAULT_WINDOW_SECONDS)


@dataclass(frozen=True)
class AdmissionResult:
    """Outcome of a single admission decision.

    Attributes:
        allowed: Whether the notification may be delivered.
        category: Notification category that was evaluated.
        recipient: Recipient that was evaluated.
        limit: Quota ceiling of the category policy.
        remaining: Quota left in the current window after this decision.
        reason: Rejection message, None when allowed.
        retry_after_seconds: Time until the window expires, None when allowed.
    """

    allowed: bool
    category: str
    recipient: str
    limit: int
    remaining: int
    reason: str | None = None
    retry_after_seconds: float | None = None


def rejection_reason(category: str, recipient: str) -> str:
    return f"rate limit exceeded for {category} to {recipient}"


def quota_exceeded_error(result: AdmissionResult) -> QuotaExceededError:
    """Build the error raised for a rejected AdmissionResult."""
    return QuotaExceededError(
        code="rate_limit_exceeded",
        message=result.reason or rejection_reason(result.category, result.recipient),
        details={
            "category": result.category,
            "recipient": result.recipient,
            "limit": result.limit,
            "retry_after": result.retry_after_seconds,
        },
    )


class AbstractAdmissionGate(ABC):
    """Interface for admission gates."""

    @abstractmethod
    def decide(
        self,
        category: str,
        recipient: str,
        *,
        now: float | None = None,
    ) -> AdmissionResult:
        """Evaluate one notification attempt and consume quota when allowed.

        Args:
            category: Notification category (case-sensitive).
            recipient: Recipient identifier (case-sensitive).
            now: Monotonic timestamp; the gate's clock is read when omitted.

        Returns:
            AdmissionResult describing whether the attempt was allowed.
        """
        raise NotImplementedError

    def admit(
        self,
        category: str,
        recipient: str,
        *,
        now: float | None = None,
    ) -> AdmissionResult:
        """Like ``decide`` but raise when the attempt is rejected.

        Raises:
            QuotaExceededError: If the recipient has no quota left.
        """
        result = self.decide(category, recipient, now=now)
        if not result.allowed:
            raise quota_exceeded_error(result)
        return result

    @abstractmethod
    def evict_expired(self, *, now: float | None = None, grace_seconds: float = 0.0) -> int:
        """Drop recipient windows that expired more than ``grace_seconds`` ago.

        Returns:
            Number of windows removed.
        """
        raise NotImplementedError

    @abstractmethod
    def stats(self) -> dict[str, int]:
        """Return gate counters."""
        raise NotImplementedError
