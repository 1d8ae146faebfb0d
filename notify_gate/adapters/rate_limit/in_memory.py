"""In-memory fixed-window admission gate.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: one lock guards the whole policy/window table.
- Windows are anchored at the first request of each (category, recipient)
  pair and reset lazily when a request arrives after they expire.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Mapping

from notify_gate.adapters.rate_limit.base import (
    AbstractAdmissionGate,
    AdmissionResult,
    CategoryPolicy,
    rejection_reason,
)
from notify_gate.core.errors import ValidationAppError

logger = logging.getLogger(__name__)


PolicySpec = CategoryPolicy | tuple[int, float]


@dataclass
class _RecipientWindow:
    remaining_quota: int
    window_start: float


@dataclass
class _CategoryState:
    policy: CategoryPolicy
    windows: dict[str, _RecipientWindow] = field(default_factory=dict)


@dataclass(frozen=True)
class RecipientWindowSnapshot:
    """Read-only view of a recipient window."""

    remaining_quota: int
    window_start: float


def _require_identifier(name: str, value: str) -> None:
    if not isinstance(value, str) or not value:
        raise ValidationAppError(
            code="invalid_identifier",
            message=f"{name} must be a non-empty string",
        )


def _coerce_policy(category: str, spec: PolicySpec) -> CategoryPolicy:
    """Turn a pre-registration entry into a CategoryPolicy.

    Args:
        category: Category the policy is registered for.
        spec: Either a CategoryPolicy or a ``(max_requests, window_seconds)`` pair.

    Returns:
        Validated CategoryPolicy.

    Raises:
        ValidationAppError: If the category name or the policy values are invalid.
    """

    _require_identifier("category", category)
    if isinstance(spec, CategoryPolicy):
        return spec

    try:
        max_requests, window_seconds = spec
    except (TypeError, ValueError) as exc:
        raise ValidationAppError(
            code="invalid_policy",
            message=f"policy for {category!r} must be (max_requests, window_seconds)",
        ) from exc

    return CategoryPolicy(max_requests=max_requests, window_seconds=window_seconds)


class InMemoryAdmissionGate(AbstractAdmissionGate):
    """Admission gate keeping a two-level table: category -> recipient -> window.

    Each recipient of each category gets its own fixed window. Within a window
    at most ``max_requests`` attempts are allowed; the first attempt after the
    window expires opens a new window anchored at that attempt.

    Categories without a pre-registered policy get ``default_policy`` the
    first time they are seen, and keep it for the lifetime of the gate. The
    default is effectively unlimited, so unknown categories fail open.

    Important:
        State lives in process memory and is lost on restart. Recipient
        windows are never dropped unless ``evict_expired`` is called.
    """

    def __init__(
        self,
        policies: Mapping[str, PolicySpec] | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        default_policy: CategoryPolicy | None = None,
        inclusive_boundary: bool = True,
    ) -> None:
        """Initialize the gate.

        Args:
            policies: Optional category -> policy mapping installed up front.
            clock: Monotonic time source returning seconds.
            default_policy: Policy synthesized for unregistered categories.
            inclusive_boundary: Whether ``elapsed == window_seconds`` still
                counts as inside the window.

        Raises:
            ValidationAppError: If any pre-registered policy is invalid.
        """

        self._clock = clock
        self._default_policy = default_policy or CategoryPolicy.unlimited()
        self._inclusive_boundary = inclusive_boundary
        self._lock = threading.RLock()
        self._categories: dict[str, _CategoryState] = {}
        self._allowed = 0
        self._rejected = 0
        self._evictions = 0

        for category, spec in (policies or {}).items():
            self._categories[category] = _CategoryState(policy=_coerce_policy(category, spec))

    def _resolve_category_locked(self, category: str) -> _CategoryState:
        state = self._categories.get(category)
        if state is None:
            state = _CategoryState(policy=self._default_policy)
            self._categories[category] = state
            logger.debug(
                "admission.policy_synthesized",
                extra={
                    "category": category,
                    "limit": self._default_policy.max_requests,
                    "window_s": self._default_policy.window_seconds,
                },
            )
        return state

    def _within_window(self, elapsed: float, window_seconds: float) -> bool:
        if self._inclusive_boundary:
            return elapsed <= window_seconds
        return elapsed < window_seconds

    def _build_allowed_result(
        self, category: str, recipient: str, policy: CategoryPolicy, window: _RecipientWindow
    ) -> AdmissionResult:
        self._allowed += 1
        return AdmissionResult(
            allowed=True,
            category=category,
            recipient=recipient,
            limit=policy.max_requests,
            remaining=window.remaining_quota,
        )

    def _build_rejected_result(
        self,
        category: str,
        recipient: str,
        policy: CategoryPolicy,
        window: _RecipientWindow,
        retry_after: float | None,
    ) -> AdmissionResult:
        self._rejected += 1
        return AdmissionResult(
            allowed=False,
            category=category,
            recipient=recipient,
            limit=policy.max_requests,
            remaining=window.remaining_quota,
            reason=rejection_reason(category, recipient),
            retry_after_seconds=retry_after,
        )

    def decide(
        self,
        category: str,
        recipient: str,
        *,
        now: float | None = None,
    ) -> AdmissionResult:
        """Evaluate one attempt and consume one unit of quota when allowed.

        A rejected attempt leaves the window untouched. A zero-quota policy
        rejects every attempt and reports no retry hint, since waiting for
        the window to end would not help.

        Args:
            category: Notification category (case-sensitive).
            recipient: Recipient identifier (case-sensitive).
            now: Monotonic timestamp; the gate's clock is read when omitted.

        Returns:
            AdmissionResult with the decision and the quota left.

        Raises:
            ValidationAppError: If category or recipient is empty.
        """

        _require_identifier("category", category)
        _require_identifier("recipient", recipient)

        with self._lock:
            if now is None:
                now = self._clock()

            state = self._resolve_category_locked(category)
            policy = state.policy

            window = state.windows.get(recipient)
            if window is None:
                window = _RecipientWindow(remaining_quota=policy.max_requests, window_start=now)
                state.windows[recipient] = window

            if policy.max_requests == 0:
                return self._build_rejected_result(category, recipient, policy, window, None)

            elapsed = now - window.window_start
            if self._within_window(elapsed, policy.window_seconds):
                if window.remaining_quota == 0:
                    retry_after = max(0.0, policy.window_seconds - elapsed)
                    return self._build_rejected_result(
                        category, recipient, policy, window, retry_after
                    )
                window.remaining_quota -= 1
            else:
                # This attempt consumes the first unit of the fresh window.
                window.window_start = now
                window.remaining_quota = policy.max_requests - 1

            return self._build_allowed_result(category, recipient, policy, window)

    def evict_expired(self, *, now: float | None = None, grace_seconds: float = 0.0) -> int:
        """Drop recipient windows that expired more than ``grace_seconds`` ago.

        An evicted window behaves exactly like an expired one on the next
        attempt: a fresh window is opened and one unit consumed.

        Args:
            now: Monotonic timestamp; the gate's clock is read when omitted.
            grace_seconds: Extra time an expired window is kept around.

        Returns:
            Number of windows removed.
        """

        if grace_seconds < 0:
            raise ValidationAppError(
                code="invalid_grace",
                message="grace_seconds must be >= 0",
            )

        removed = 0
        with self._lock:
            if now is None:
                now = self._clock()

            for state in self._categories.values():
                horizon = state.policy.window_seconds + grace_seconds
                stale = [
                    recipient
                    for recipient, window in state.windows.items()
                    if now - window.window_start > horizon
                ]
                for recipient in stale:
                    del state.windows[recipient]
                removed += len(stale)

            self._evictions += removed

        if removed:
            logger.debug("admission.windows_evicted", extra={"evicted": removed})
        return removed

    def policy_for(self, category: str) -> CategoryPolicy | None:
        """Return the policy installed for a category without synthesizing one."""
        with self._lock:
            state = self._categories.get(category)
            return state.policy if state else None

    def window_state(self, category: str, recipient: str) -> RecipientWindowSnapshot | None:
        """Return a snapshot of a recipient window, or None if never observed."""
        with self._lock:
            state = self._categories.get(category)
            if state is None:
                return None
            window = state.windows.get(recipient)
            if window is None:
                return None
            return RecipientWindowSnapshot(
                remaining_quota=window.remaining_quota,
                window_start=window.window_start,
            )

    def stats(self) -> dict[str, int]:
        """Return lightweight counters without exposing recipients."""
        with self._lock:
            return {
                "categories": len(self._categories),
                "windows": sum(len(s.windows) for s in self._categories.values()),
                "allowed": self._allowed,
                "rejected": self._rejected,
                "evictions": self._evictions,
            }
