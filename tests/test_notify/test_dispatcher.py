"""Tests for NotificationDispatcher — ordered fallback, timeouts, formatting per channel."""

from __future__ import annotations

import asyncio

from src.core.types import Notification
from src.notify.capabilities import CapabilityRegistry
from src.notify.channels import ChannelAdapter
from src.notify.dispatcher import NotificationDispatcher
from src.notify.exceptions import ChannelConfigError, TransportError
from src.notify.formatter import MessageFormatter
from src.notify.types import ChannelCapabilities, DispatchStatus, ErrorKind, MessagePayload

# ── Helpers ─────────────────────────────────────────────────────


class FakeAdapter(ChannelAdapter):
    """In-memory adapter for testing."""

    def __init__(self, error: Exception | None = None, delay: float = 0.0) -> None:
        self.sent: list[tuple[str, MessagePayload]] = []
        self._error = error
        self._delay = delay
        self.closed = False

    async def send(self, url: str, payload: MessagePayload) -> None:
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        self.sent.append((url, payload))

    async def close(self) -> None:
        self.closed = True


def _note() -> Notification:
    return Notification(title="CPU high", message="92%", link="http://x/y")


# ── Fallback ────────────────────────────────────────────────────


class TestFallback:
    async def test_first_channel_succeeds(self) -> None:
        push = FakeAdapter()
        mail = FakeAdapter()
        disp = NotificationDispatcher({"ntfy": push, "mailto": mail})

        outcome = await disp.dispatch(_note(), ["ntfy://ntfy.sh/a", "mailto:ops@example.com"])

        assert outcome.success
        assert outcome.status is DispatchStatus.SENT
        assert len(push.sent) == 1
        assert mail.sent == []
        assert outcome.sent_via == "ntfy://ntfy.sh/a"
        assert outcome.failures == []

    async def test_falls_back_on_failure(self) -> None:
        push = FakeAdapter(error=TransportError("HTTP 502: bad gateway"))
        mail = FakeAdapter()
        disp = NotificationDispatcher({"ntfy": push, "mailto": mail})

        outcome = await disp.dispatch(_note(), ["ntfy://ntfy.sh/a", "mailto:ops@example.com"])

        assert outcome.success
        assert len(mail.sent) == 1
        assert len(outcome.failures) == 1
        failure = outcome.failures[0]
        assert failure.channel == "ntfy://ntfy.sh/a"
        assert failure.error == "HTTP 502: bad gateway"
        assert failure.error_kind is ErrorKind.TRANSPORT

    async def test_all_fail(self) -> None:
        disp = NotificationDispatcher(
            {
                "ntfy": FakeAdapter(error=TransportError("down")),
                "mailto": FakeAdapter(error=TransportError("smtp down")),
            }
        )
        outcome = await disp.dispatch(_note(), ["ntfy://ntfy.sh/a", "mailto:ops@example.com"])
        assert not outcome.success
        assert outcome.status is DispatchStatus.ALL_FAILED
        assert len(outcome.attempts) == 2
        assert outcome.last_error == "smtp down"

    async def test_no_channels_is_failure(self) -> None:
        outcome = await NotificationDispatcher({}).dispatch(_note(), [])
        assert outcome.status is DispatchStatus.ALL_FAILED
        assert outcome.attempts == []

    async def test_each_channel_tried_once(self) -> None:
        push = FakeAdapter(error=TransportError("down"))
        disp = NotificationDispatcher({"ntfy": push})
        outcome = await disp.dispatch(_note(), ["ntfy://ntfy.sh/a"])
        assert len(outcome.attempts) == 1

    async def test_unexpected_exception_contained(self) -> None:
        disp = NotificationDispatcher(
            {"ntfy": FakeAdapter(error=RuntimeError("bug")), "mailto": FakeAdapter()}
        )
        outcome = await disp.dispatch(_note(), ["ntfy://ntfy.sh/a", "mailto:ops@example.com"])
        assert outcome.success
        assert outcome.failures[0].error == "RuntimeError: bug"


# ── Configuration errors ────────────────────────────────────────


class TestConfigErrors:
    async def test_unsupported_scheme(self) -> None:
        mail = FakeAdapter()
        disp = NotificationDispatcher({"mailto": mail})
        outcome = await disp.dispatch(_note(), ["pushover://tok@user", "mailto:ops@example.com"])
        assert outcome.success
        failure = outcome.failures[0]
        assert failure.error_kind is ErrorKind.CONFIG
        assert "pushover" in (failure.error or "")

    async def test_malformed_url(self) -> None:
        disp = NotificationDispatcher({"ntfy": FakeAdapter()})
        outcome = await disp.dispatch(_note(), ["no scheme here"])
        assert not outcome.success
        assert outcome.failures[0].error_kind is ErrorKind.CONFIG

    async def test_adapter_config_error(self) -> None:
        disp = NotificationDispatcher({"ntfy": FakeAdapter(error=ChannelConfigError("no topic"))})
        outcome = await disp.dispatch(_note(), ["ntfy://ntfy.sh/"])
        assert outcome.failures[0].error_kind is ErrorKind.CONFIG
        assert outcome.last_error == "no topic"


# ── Timeout ─────────────────────────────────────────────────────


class TestTimeout:
    async def test_timeout_triggers_fallback(self) -> None:
        slow = FakeAdapter(delay=1.0)
        mail = FakeAdapter()
        disp = NotificationDispatcher({"ntfy": slow, "mailto": mail}, timeout_secs=0.01)

        outcome = await disp.dispatch(_note(), ["ntfy://ntfy.sh/a", "mailto:ops@example.com"])

        assert outcome.success
        assert slow.sent == []
        assert len(mail.sent) == 1
        assert outcome.failures[0].error_kind is ErrorKind.TRANSPORT
        assert "timed out" in (outcome.failures[0].error or "")


# ── Formatting per channel ──────────────────────────────────────


class TestPerChannelFormatting:
    async def test_capabilities_follow_scheme(self) -> None:
        push = FakeAdapter(error=TransportError("down"))
        generic = FakeAdapter()
        disp = NotificationDispatcher(
            {"ntfy": push, "generic": generic},
            formatter=MessageFormatter(action_label="Open"),
        )

        await disp.dispatch(_note(), ["ntfy://ntfy.sh/a", "generic+https://hooks.example.com/x"])

        url, payload = generic.sent[0]
        assert url == "generic+https://hooks.example.com/x"
        assert payload.body == "CPU high\n\n92%\n\nhttp://x/y"
        assert payload.params == {"template": "json", "$title": "CPU high"}

    async def test_registered_capability_changes_format(self) -> None:
        registry = CapabilityRegistry({"mailto": ChannelCapabilities()})
        mail = FakeAdapter()
        disp = NotificationDispatcher({"mailto": mail}, registry=registry)

        await disp.dispatch(_note(), ["mailto:ops@example.com"])

        _, payload = mail.sent[0]
        assert payload.body == "CPU high\n\n92%\n\nhttp://x/y"
        assert "title" not in payload.params


# ── Lifecycle ───────────────────────────────────────────────────


class TestLifecycle:
    async def test_close_all_adapters(self) -> None:
        a, b = FakeAdapter(), FakeAdapter()
        disp = NotificationDispatcher({"ntfy": a, "mailto": b})
        await disp.close()
        assert a.closed and b.closed
