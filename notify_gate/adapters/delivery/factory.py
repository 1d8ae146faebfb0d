"""Factory for creating notifier instances."""

from notify_gate.adapters.delivery.base import AbstractNotifier
from notify_gate.adapters.delivery.logging_notifier import LoggingNotifier
from notify_gate.adapters.delivery.memory import RecordingNotifier
from notify_gate.core.errors import ValidationAppError


def create_notifier(kind: str) -> AbstractNotifier:
    """Instantiate the notifier named by configuration.

    Args:
        kind: Notifier name, e.g. ``settings.app.notifier`` (logging, memory).

    Returns:
        AbstractNotifier: Ready-to-use notifier.

    Raises:
        ValidationAppError: If the notifier kind is unknown.
    """
    name = kind.strip().lower()

    if name == "logging":
        return LoggingNotifier()
    if name == "memory":
        return RecordingNotifier()

    raise ValidationAppError(
        code="unknown_notifier",
        message=f"Unknown notifier: '{kind}'. Supported notifiers: logging, memory",
    )
