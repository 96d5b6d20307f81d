"""Tests for forge.bridge.errors module."""

import asyncio

import pytest

from forge.bridge import ErrorChannels, ErrorNotification, ErrorReportBridge
from forge.core.errors import ClassifiedError, ErrorContext, ErrorHub, ErrorKind, get_error_hub


@pytest.fixture
def bridge(hub: ErrorHub) -> ErrorReportBridge:
    return ErrorReportBridge(hub)


class TestErrorChannels:
    """Tests for channel names."""

    def test_channel_names(self):
        assert ErrorChannels.REPORT == "error:report"
        assert ErrorChannels.SUBSCRIBE == "error:subscribe"
        assert ErrorChannels.UNSUBSCRIBE == "error:unsubscribe"
        assert ErrorChannels.NOTIFICATION == "error:notification"


class TestReport:
    """Tests for inbound error reports."""

    @pytest.mark.asyncio
    async def test_report_handles_error_locally(self, bridge: ErrorReportBridge, recorded: list):
        result = await bridge.report(
            {
                "name": "ClassifiedError",
                "kind": "TASK_FAILED",
                "message": "render crashed",
                "details": {"view": "board"},
                "recoverable": False,
                "stack": "Error: render crashed\n    at Board",
            }
        )

        assert result == {"success": True}
        assert len(recorded) == 1
        error, context = recorded[0]
        assert error.kind == ErrorKind.TASK_FAILED
        assert error.message == "render crashed"
        assert error.details == {"view": "board"}
        assert context.component == "renderer"
        assert context.operation == "report"

    @pytest.mark.asyncio
    async def test_invalid_payload_rejected(self, bridge: ErrorReportBridge, recorded: list):
        with pytest.raises(ClassifiedError) as exc_info:
            await bridge.report({"kind": "NOT_A_KIND", "message": "x"})

        assert exc_info.value.kind == ErrorKind.VALIDATION_ERROR
        assert exc_info.value.message == "Invalid error report payload"
        assert exc_info.value.details["errors"]
        assert recorded == []

    def test_default_hub_is_process_wide(self):
        assert ErrorReportBridge()._hub is get_error_hub()


class TestSubscriptions:
    """Tests for outbound notifications."""

    @pytest.mark.asyncio
    async def test_subscriber_receives_notifications(self, bridge: ErrorReportBridge, hub: ErrorHub):
        sent: list[dict] = []
        assert bridge.subscribe("window-1", sent.append) == {"success": True}

        await hub.handle(
            Exception("ECONNRESET"),
            ErrorContext(component="providers", operation="chat", metadata={"attempt": 1}),
        )

        assert len(sent) == 1
        payload = sent[0]
        assert payload["channel"] == ErrorChannels.NOTIFICATION
        assert payload["error"]["kind"] == ErrorKind.NETWORK_ERROR
        assert payload["error"]["message"] == "ECONNRESET"
        assert payload["error"]["recoverable"] is True
        assert payload["context"] == {
            "component": "providers",
            "operation": "chat",
            "metadata": {"attempt": 1},
        }
        ErrorNotification.model_validate(payload)

    @pytest.mark.asyncio
    async def test_notification_without_context(self, bridge: ErrorReportBridge, hub: ErrorHub):
        sent: list[dict] = []
        bridge.subscribe("window-1", sent.append)

        await hub.handle("plain")

        assert sent[0]["context"] is None

    @pytest.mark.asyncio
    async def test_async_sender_is_awaited(self, bridge: ErrorReportBridge, hub: ErrorHub):
        sent: list[dict] = []

        async def send(payload: dict) -> None:
            sent.append(payload)

        bridge.subscribe("window-1", send)
        await hub.handle("plain")

        assert len(sent) == 1

    @pytest.mark.asyncio
    async def test_resubscribe_replaces(self, bridge: ErrorReportBridge, hub: ErrorHub):
        first: list[dict] = []
        second: list[dict] = []
        bridge.subscribe("window-1", first.append)
        bridge.subscribe("window-1", second.append)

        await hub.handle("plain")

        assert first == []
        assert len(second) == 1
        assert bridge.subscriber_count == 1
        assert hub.listener_count == 1

    @pytest.mark.asyncio
    async def test_unsubscribe(self, bridge: ErrorReportBridge, hub: ErrorHub):
        sent: list[dict] = []
        bridge.subscribe("window-1", sent.append)

        assert bridge.unsubscribe("window-1") == {"success": True}
        await hub.handle("plain")

        assert sent == []
        assert not bridge.is_subscribed("window-1")
        assert bridge.unsubscribe("window-1") == {"success": True}

    @pytest.mark.asyncio
    async def test_failing_sender_is_dropped(self, bridge: ErrorReportBridge, hub: ErrorHub):
        """Test that a subscriber whose transport is gone stops receiving."""
        calls = 0

        def send(payload: dict) -> None:
            nonlocal calls
            calls += 1
            raise ConnectionError("window closed")

        bridge.subscribe("window-1", send)

        await hub.handle("first")
        await hub.handle("second")

        assert calls == 1
        assert not bridge.is_subscribed("window-1")
        assert hub.listener_count == 0

    @pytest.mark.asyncio
    async def test_late_send_failure_keeps_newer_subscription(
        self, bridge: ErrorReportBridge, hub: ErrorHub
    ):
        """Test that a failed in-flight send only drops its own subscription."""
        release = asyncio.Event()
        started = asyncio.Event()

        async def old_send(payload: dict) -> None:
            started.set()
            await release.wait()
            raise ConnectionError("old window closed")

        received: list[dict] = []
        bridge.subscribe("window-1", old_send)

        in_flight = asyncio.create_task(hub.handle("first"))
        await started.wait()
        bridge.subscribe("window-1", received.append)
        release.set()
        await in_flight

        assert bridge.is_subscribed("window-1")
        assert bridge.subscriber_count == 1
        assert hub.listener_count == 1

        await hub.handle("second")
        assert [p["error"]["message"] for p in received] == ["second"]

    @pytest.mark.asyncio
    async def test_cleanup_drops_everything(self, bridge: ErrorReportBridge, hub: ErrorHub):
        bridge.subscribe("window-1", lambda p: None)
        bridge.subscribe("window-2", lambda p: None)
        assert hub.listener_count == 2

        bridge.cleanup()

        assert bridge.subscriber_count == 0
        assert hub.listener_count == 0

    @pytest.mark.asyncio
    async def test_reported_error_reaches_subscribers(self, bridge: ErrorReportBridge):
        sent: list[dict] = []
        bridge.subscribe("window-2", sent.append)

        await bridge.report({"kind": "GIT_CONFLICT", "message": "merge conflict"})

        assert sent[0]["error"]["kind"] == ErrorKind.GIT_CONFLICT
        assert sent[0]["context"]["component"] == "renderer"
