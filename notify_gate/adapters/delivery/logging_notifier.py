"""Notifier that "sends" by writing a log record.

Used as the default transport until a real channel is wired in.
"""

from __future__ import annotations

import logging
import uuid

from notify_gate.adapters.delivery.base import AbstractNotifier, DeliveryReceipt, Notification
from notify_gate.core.logging import hash_identifier

logger = logging.getLogger(__name__)


class LoggingNotifier(AbstractNotifier):
    """Emit one INFO record per delivered notification."""

    channel = "log"

    async def deliver(self, notification: Notification) -> DeliveryReceipt:
        receipt = DeliveryReceipt(notification_id=str(uuid.uuid4()), channel=self.channel)
        logger.info(
            "notification.sent",
            extra={
                "notification_id": receipt.notification_id,
                "category": notification.category,
                "recipient_hash": hash_identifier(notification.recipient),
                "message_body": notification.message,
                "message_chars": len(notification.message),
            },
        )
        return receipt
