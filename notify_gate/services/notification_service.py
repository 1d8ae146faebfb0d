"""Notification service: admission first, delivery second.

Every outbound notification goes through the admission gate. Only admitted
notifications reach the notifier; rejected ones raise ``QuotaExceededError``
so the caller can retry later, queue or drop them.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from notify_gate.adapters.delivery.base import AbstractNotifier, DeliveryReceipt, Notification
from notify_gate.adapters.rate_limit.base import (
    AbstractAdmissionGate,
    AdmissionResult,
    quota_exceeded_error,
)
from notify_gate.core.errors import AppError, DeliveryAppError, ValidationAppError
from notify_gate.core.logging import hash_identifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SentNotification:
    """Outcome of a successful send: the admission decision and the receipt."""

    admission: AdmissionResult
    receipt: DeliveryReceipt


class NotificationService:
    """Gate and deliver notifications.

    Attributes:
        gate: Admission gate holding the per-recipient quota state.
        notifier: Transport used for admitted notifications.
    """

    def __init__(
        self,
        gate: AbstractAdmissionGate,
        notifier: AbstractNotifier,
        *,
        sweep_every: int = 0,
        eviction_grace_seconds: float = 0.0,
    ) -> None:
        """Initialize the service.

        Args:
            gate: Admission gate instance.
            notifier: Delivery adapter.
            sweep_every: Evict expired windows every N decisions (0 disables).
            eviction_grace_seconds: Grace period passed to the eviction sweep.
        """
        self.gate = gate
        self.notifier = notifier
        self._sweep_every = sweep_every
        self._eviction_grace_seconds = eviction_grace_seconds
        self._decisions = 0
        self._sweep_lock = threading.Lock()

    def _maybe_sweep(self) -> None:
        if not self._sweep_every:
            return

        with self._sweep_lock:
            self._decisions += 1
            if self._decisions < self._sweep_every:
                return
            self._decisions = 0

        evicted = self.gate.evict_expired(grace_seconds=self._eviction_grace_seconds)
        logger.info("admission.sweep", extra={"evicted": evicted})

    def _log_decision(self, result: AdmissionResult) -> None:
        fields = {
            "category": result.category,
            "recipient_hash": hash_identifier(result.recipient),
            "limit": result.limit,
            "remaining": result.remaining,
        }
        if result.allowed:
            logger.info("admission.allowed", extra=fields)
        else:
            logger.warning(
                "admission.rejected",
                extra={**fields, "retry_after_s": result.retry_after_seconds},
            )

    def check(self, category: str, recipient: str) -> AdmissionResult:
        """Run an admission decision without delivering anything.

        Allowed decisions consume quota exactly like ``send`` does.

        Args:
            category: Notification category.
            recipient: Recipient identifier.

        Returns:
            AdmissionResult from the gate.
        """
        result = self.gate.decide(category, recipient)
        self._log_decision(result)
        self._maybe_sweep()
        return result

    async def send(self, category: str, recipient: str, message: str) -> SentNotification:
        """Admit and deliver a notification.

        Args:
            category: Notification category (e.g. "news", "marketing").
            recipient: Recipient identifier.
            message: Notification body.

        Returns:
            SentNotification with the admission decision and the notifier receipt.

        Raises:
            ValidationAppError: If the message is empty.
            QuotaExceededError: If the recipient has no quota left for the category.
            DeliveryAppError: If the notifier fails.
        """
        if not message or not message.strip():
            raise ValidationAppError(
                code="empty_message",
                message="Notification message must not be empty",
            )

        result = self.check(category, recipient)
        if not result.allowed:
            raise quota_exceeded_error(result)

        notification = Notification(category=category, recipient=recipient, message=message)
        try:
            receipt = await self.notifier.deliver(notification)
        except AppError:
            raise
        except Exception as exc:
            logger.error(
                "notification.delivery_failed",
                extra={
                    "category": category,
                    "recipient_hash": hash_identifier(recipient),
                    "channel": self.notifier.channel,
                    "error_type": type(exc).__name__,
                },
            )
            raise DeliveryAppError(
                code="delivery_failed",
                message="Notification could not be delivered",
                details={"channel": self.notifier.channel},
            ) from exc

        logger.info(
            "notification.delivered",
            extra={
                "category": category,
                "recipient_hash": hash_identifier(recipient),
                "channel": receipt.channel,
                "notification_id": receipt.notification_id,
            },
        )
        return SentNotification(admission=result, receipt=receipt)
