"""Tests for NotificationService (admission + delivery orchestration)."""

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from notify_gate.adapters.delivery.base import AbstractNotifier, DeliveryReceipt, Notification
from notify_gate.adapters.delivery.memory import RecordingNotifier
from notify_gate.adapters.rate_limit.in_memory import InMemoryAdmissionGate
from notify_gate.core.errors import DeliveryAppError, QuotaExceededError, ValidationAppError
from notify_gate.services.notification_service import NotificationService


class FakeClock:
    def __init__(self) -> None:
        self.current = 0.0

    def __call__(self) -> float:
        return self.current


class ExplodingNotifier(AbstractNotifier):
    channel = "broken"

    async def deliver(self, notification: Notification) -> DeliveryReceipt:
        raise ConnectionError("smtp relay unreachable")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def service(clock: FakeClock, notifier: RecordingNotifier) -> NotificationService:
    gate = InMemoryAdmissionGate(
        {"news": (1, 86400), "marketing": (3, 3600)},
        clock=clock,
    )
    return NotificationService(gate, notifier)


class TestSend:
    @pytest.mark.asyncio
    async def test_admitted_notification_is_delivered(
        self, service: NotificationService, notifier: RecordingNotifier
    ) -> None:
        sent = await service.send("news", "user 1", "This is a news update")

        assert sent.receipt.channel == "memory"
        assert sent.admission.allowed is True
        assert sent.admission.remaining == 0
        assert notifier.outbox == [
            Notification(category="news", recipient="user 1", message="This is a news update")
        ]

    @pytest.mark.asyncio
    async def test_rejected_notification_is_not_delivered(
        self, service: NotificationService, notifier: RecordingNotifier
    ) -> None:
        await service.send("news", "user 1", "first")

        with pytest.raises(QuotaExceededError) as exc_info:
            await service.send("news", "user 1", "second")

        assert exc_info.value.message == "rate limit exceeded for news to user 1"
        assert len(notifier.outbox) == 1

    @pytest.mark.asyncio
    async def test_other_recipient_still_delivered(
        self, service: NotificationService, notifier: RecordingNotifier
    ) -> None:
        await service.send("news", "user 1", "a")
        with pytest.raises(QuotaExceededError):
            await service.send("news", "user 1", "b")

        await service.send("news", "user 2", "c")

        assert [n.recipient for n in notifier.outbox] == ["user 1", "user 2"]

    @pytest.mark.asyncio
    async def test_empty_message_rejected_before_consuming_quota(
        self, service: NotificationService
    ) -> None:
        with pytest.raises(ValidationAppError):
            await service.send("news", "user 1", "   ")

        assert service.gate.stats()["allowed"] == 0

    @pytest.mark.asyncio
    async def test_delivery_failure_is_wrapped(self, clock: FakeClock) -> None:
        gate = InMemoryAdmissionGate({"news": (1, 86400)}, clock=clock)
        service = NotificationService(gate, ExplodingNotifier())

        with pytest.raises(DeliveryAppError) as exc_info:
            await service.send("news", "user 1", "hello")

        assert exc_info.value.code == "delivery_failed"
        assert exc_info.value.details == {"channel": "broken"}
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    @pytest.mark.asyncio
    async def test_app_errors_from_notifier_propagate_unchanged(self, clock: FakeClock) -> None:
        gate = InMemoryAdmissionGate(clock=clock)
        notifier = MagicMock(spec=AbstractNotifier)
        notifier.channel = "mock"
        original = DeliveryAppError(code="recipient_unknown", message="no such device")
        notifier.deliver = AsyncMock(side_effect=original)
        service = NotificationService(gate, notifier)

        with pytest.raises(DeliveryAppError) as exc_info:
            await service.send("alerts", "user 1", "hello")

        assert exc_info.value is original


class TestCheck:
    def test_check_consumes_quota_without_delivery(
        self, service: NotificationService, notifier: RecordingNotifier
    ) -> None:
        assert service.check("news", "user 1").allowed is True
        assert service.check("news", "user 1").allowed is False
        assert notifier.outbox == []

    def test_rejection_is_logged_with_hashed_recipient(
        self, service: NotificationService, caplog: pytest.LogCaptureFixture
    ) -> None:
        service.check("news", "alice@example.com")

        with caplog.at_level(logging.WARNING, logger="notify_gate.services.notification_service"):
            service.check("news", "alice@example.com")

        records = [r for r in caplog.records if r.getMessage() == "admission.rejected"]
        assert len(records) == 1
        assert records[0].category == "news"
        assert "alice@example.com" not in caplog.text
        assert records[0].recipient_hash != "alice@example.com"

    def test_recipient_with_lone_surrogate_is_admitted_and_logged(
        self, service: NotificationService, caplog: pytest.LogCaptureFixture
    ) -> None:
        recipient = "u\ud800"

        with caplog.at_level(logging.INFO, logger="notify_gate.services.notification_service"):
            first = service.check("news", recipient)
            second = service.check("news", recipient)

        assert first.allowed is True
        assert second.allowed is False
        assert [
            r.getMessage()
            for r in caplog.records
            if r.name == "notify_gate.services.notification_service"
        ] == [
            "admission.allowed",
            "admission.rejected",
        ]

    @pytest.mark.asyncio
    async def test_send_to_lone_surrogate_recipient_is_delivered(
        self, service: NotificationService, notifier: RecordingNotifier
    ) -> None:
        sent = await service.send("news", "u\udfff", "hello")

        assert sent.admission.allowed is True
        assert notifier.outbox[0].recipient == "u\udfff"


class TestSweep:
    def test_sweep_runs_every_n_decisions(self, clock: FakeClock, notifier: RecordingNotifier) -> None:
        gate = InMemoryAdmissionGate({"status": (2, 60)}, clock=clock)
        service = NotificationService(gate, notifier, sweep_every=3)

        service.check("status", "old")
        clock.current = 100.0
        service.check("status", "a")
        assert gate.window_state("status", "old") is not None

        service.check("status", "b")

        assert gate.window_state("status", "old") is None
        assert gate.stats()["evictions"] == 1

    def test_sweep_disabled_by_default(self, clock: FakeClock, service: NotificationService) -> None:
        service.check("marketing", "old")
        clock.current = 10_000.0
        for i in range(5):
            service.check("marketing", f"u{i}")

        assert service.gate.stats()["evictions"] == 0
