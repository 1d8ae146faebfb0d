"""In-memory notifier that keeps an outbox instead of sending."""

from __future__ import annotations

import threading
import uuid

from notify_gate.adapters.delivery.base import AbstractNotifier, DeliveryReceipt, Notification


class RecordingNotifier(AbstractNotifier):
    """Collect delivered notifications for inspection (tests, dry runs)."""

    channel = "memory"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._outbox: list[Notification] = []

    async def deliver(self, notification: Notification) -> DeliveryReceipt:
        with self._lock:
            self._outbox.append(notification)
        return DeliveryReceipt(notification_id=str(uuid.uuid4()), channel=self.channel)

    @property
    def outbox(self) -> list[Notification]:
        with self._lock:
            return list(self._outbox)

    def clear(self) -> None:
        with self._lock:
            self._outbox.clear()
