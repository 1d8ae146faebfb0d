"""Notification and admission endpoints."""

from __future__ import annotations

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, status

from notify_gate.adapters.delivery.factory import create_notifier
from notify_gate.core.config import settings
from notify_gate.core.gate import get_admission_gate
from notify_gate.schemas.notification import (
    AdmissionRequest,
    AdmissionResponse,
    GateStatsResponse,
    SendNotificationRequest,
    SendNotificationResponse,
)
from notify_gate.services.notification_service import NotificationService

router = APIRouter(tags=["Notifications"])

_notifier = create_notifier(settings.app.notifier)
_service: NotificationService | None = None


def get_notification_service() -> NotificationService:
    """Return the service bound to the current process-wide gate.

    The service is rebuilt whenever the gate is (settings changed), so it
    never points at a stale quota table.
    """

    global _service

    gate = get_admission_gate()
    if _service is None or _service.gate is not gate:
        _service = NotificationService(
            gate,
            _notifier,
            sweep_every=settings.gate.sweep_every,
            eviction_grace_seconds=settings.gate.eviction_grace_seconds,
        )
    return _service


ServiceDep = Annotated[NotificationService, Depends(get_notification_service)]


@router.post(
    "/notifications",
    response_model=SendNotificationResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def send_notification(
    payload: SendNotificationRequest,
    service: ServiceDep,
) -> SendNotificationResponse:
    """Gate a notification and hand it to the notifier.

    Returns 429 (via the global handler) when the recipient exhausted its
    quota for the category.
    """
    sent = await service.send(payload.category, payload.recipient, payload.message)
    return SendNotificationResponse(
        notification_id=sent.receipt.notification_id,
        channel=sent.receipt.channel,
        accepted_at=sent.receipt.accepted_at,
        remaining=sent.admission.remaining,
    )


@router.post("/admissions", response_model=AdmissionResponse)
def check_admission(payload: AdmissionRequest, service: ServiceDep) -> AdmissionResponse:
    """Evaluate (and consume) quota without delivering anything.

    Always answers 200; ``allowed`` tells the caller whether to proceed.
    """
    result = service.check(payload.category, payload.recipient)
    return AdmissionResponse(**asdict(result))


@router.get("/admissions/stats", response_model=GateStatsResponse)
def admission_stats(service: ServiceDep) -> GateStatsResponse:
    return GateStatsResponse(**service.gate.stats())
