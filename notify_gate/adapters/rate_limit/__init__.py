"""Admission gate adapters.

The notification service and the API depend on ``AbstractAdmissionGate``;
the in-memory implementation is the only backend today.
"""

from notify_gate.adapters.rate_limit.base import (
    DEFAULT_MAX_REQUESTS,
    DEFAULT_WINDOW_SECONDS,
    AbstractAdmissionGate,
    AdmissionResult,
    CategoryPolicy,
)
from notify_gate.adapters.rate_limit.in_memory import InMemoryAdmissionGate

__all__ = [
    "DEFAULT_MAX_REQUESTS",
    "DEFAULT_WINDOW_SECONDS",
    "AbstractAdmissionGate",
    "AdmissionResult",
    "CategoryPolicy",
    "InMemoryAdmissionGate",
]
