"""Delivery adapter layer - hands admitted notifications to a transport."""

from notify_gate.adapters.delivery.base import AbstractNotifier, DeliveryReceipt, Notification
from notify_gate.adapters.delivery.factory import create_notifier
from notify_gate.adapters.delivery.logging_notifier import LoggingNotifier
from notify_gate.adapters.delivery.memory import RecordingNotifier

__all__ = [
    "AbstractNotifier",
    "DeliveryReceipt",
    "LoggingNotifier",
    "Notification",
    "RecordingNotifier",
    "create_notifier",
]
