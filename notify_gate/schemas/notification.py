"""Pydantic schemas for notification and admission endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class AdmissionRequest(BaseModel):
    """Identify the (category, recipient) pair to evaluate."""

    category: str = Field(
        ...,
        min_length=1,
        description="Notification category, compared case-sensitively (e.g. 'news').",
    )
    recipient: str = Field(
        ...,
        min_length=1,
        description="Recipient identifier, compared case-sensitively.",
    )


class SendNotificationRequest(AdmissionRequest):
    """Notification to gate and deliver."""

    message: str = Field(..., min_length=1, description="Notification body.")


class AdmissionResponse(BaseModel):
    """Decision returned by the admission gate."""

    allowed: bool = Field(..., description="Whether the attempt was admitted.")
    category: str
    recipient: str
    limit: int = Field(..., description="Quota ceiling of the category policy.")
    remaining: int = Field(..., description="Quota left in the current window.")
    reason: str | None = Field(None, description="Rejection reason, null when allowed.")
    retry_after_seconds: float | None = Field(
        None, description="Seconds until the current window ends, null when allowed."
    )


class SendNotificationResponse(BaseModel):
    """Receipt for an admitted and delivered notification."""

    notification_id: str
    channel: str
    accepted_at: datetime
    remaining: int = Field(..., description="Quota left for this recipient after sending.")


class GateStatsResponse(BaseModel):
    """Admission gate counters."""

    categories: int
    windows: int
    allowed: int
    rejected: int
    evictions: int
