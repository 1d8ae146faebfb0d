"""Process-wide admission gate built from settings.

The API layer asks ``get_admission_gate()`` for the gate so quota state
survives across requests. Policies come from ``GATE_POLICIES``; changing the
gate settings (primarily in tests) rebuilds the gate with empty state.
"""

from __future__ import annotations

import logging
import threading

from notify_gate.adapters.rate_limit.base import AbstractAdmissionGate, CategoryPolicy
from notify_gate.adapters.rate_limit.in_memory import InMemoryAdmissionGate
from notify_gate.core.config import GateSettings, settings
from notify_gate.core.errors import ValidationAppError

logger = logging.getLogger(__name__)


_gate: AbstractAdmissionGate | None = None
_gate_config: str | None = None
_gate_lock = threading.Lock()


def build_policies(gate_settings: GateSettings) -> dict[str, CategoryPolicy]:
    """Convert configured policies into CategoryPolicy objects.

    Args:
        gate_settings: Gate settings holding the category -> policy mapping.

    Returns:
        dict mapping category name to its policy.

    Raises:
        ValidationAppError: If a category name is blank.
    """

    policies: dict[str, CategoryPolicy] = {}
    for category, policy in gate_settings.policies.items():
        if not category.strip():
            raise ValidationAppError(
                code="invalid_policy",
                message="policy category names must be non-empty",
                details={"hint": "Check the keys of GATE_POLICIES"},
            )
        policies[category] = CategoryPolicy(
            max_requests=policy.max_requests,
            window_seconds=policy.window_seconds,
        )
    return policies


def build_admission_gate(gate_settings: GateSettings) -> InMemoryAdmissionGate:
    """Create a fresh in-memory gate from settings."""

    policies = build_policies(gate_settings)
    gate = InMemoryAdmissionGate(
        policies,
        default_policy=CategoryPolicy(
            max_requests=gate_settings.default_max_requests,
            window_seconds=gate_settings.default_window_seconds,
        ),
        inclusive_boundary=gate_settings.inclusive_boundary,
    )
    logger.info(
        "admission.gate_built",
        extra={
            "categories": sorted(policies),
            "inclusive_boundary": gate_settings.inclusive_boundary,
        },
    )
    return gate


def get_admission_gate() -> AbstractAdmissionGate:
    """Return the process-wide admission gate.

    Returns:
        AbstractAdmissionGate: Gate configured from ``settings.gate``.
    """

    global _gate, _gate_config

    config = settings.gate.model_dump_json()
    with _gate_lock:
        if _gate is None or _gate_config != config:
            _gate = build_admission_gate(settings.gate)
            _gate_config = config
        return _gate


def reset_admission_gate() -> None:
    """Drop the cached gate so the next call starts with empty state."""

    global _gate, _gate_config
    with _gate_lock:
        _gate = None
        _gate_config = None
