"""Notifier interface.

The gate decides whether a notification may go out; a notifier performs the
actual hand-off (push, email, SMS, ...). Implementations know nothing about
quotas.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True)
class Notification:
    """An outbound notification that passed admission."""

    category: str
    recipient: str
    message: str


@dataclass(frozen=True)
class DeliveryReceipt:
    """Acknowledgement returned by a notifier.

    Attributes:
        notification_id: Identifier assigned by the notifier.
        channel: Name of the transport that accepted the notification.
        accepted_at: UTC time the notifier accepted it.
    """

    notification_id: str
    channel: str
    accepted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class AbstractNotifier(ABC):
    """Interface for delivery transports."""

    channel: str = "abstract"

    @abstractmethod
    async def deliver(self, notification: Notification) -> DeliveryReceipt:
        """Hand a notification to the transport.

        Args:
            notification: Admitted notification to deliver.

        Returns:
            DeliveryReceipt for the accepted notification.

        Raises:
            DeliveryAppError: If the transport refuses or fails.
        """
        ...
