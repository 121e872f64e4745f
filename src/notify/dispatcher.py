"""Notification dispatcher — ordered fallback across channels."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence

import structlog

from src.core.types import Notification
from src.notify.capabilities import (
    CapabilityRegistry,
    base_scheme,
    parse_destination,
    redact_url,
)
from src.notify.channels import ChannelAdapter
from src.notify.exceptions import ChannelConfigError, TransportError
from src.notify.formatter import MessageFormatter
from src.notify.types import ChannelAttempt, DispatchOutcome, DispatchStatus, ErrorKind

logger = structlog.get_logger(__name__)


class NotificationDispatcher:
    """Delivers a notification through the first channel that accepts it.

    - Channels are tried strictly in order, one at a time.
    - Each attempt is bounded by *timeout_secs*; a timeout is a failure.
    - A failed channel is never retried within the same call.
    - Failures are returned in the outcome, never raised.
    """

    def __init__(
        self,
        adapters: Mapping[str, ChannelAdapter],
        formatter: MessageFormatter | None = None,
        registry: CapabilityRegistry | None = None,
        timeout_secs: float = 10.0,
    ) -> None:
        self._adapters: dict[str, ChannelAdapter] = dict(adapters)
        self._formatter = formatter or MessageFormatter()
        self._registry = registry or CapabilityRegistry()
        self._timeout_secs = timeout_secs

    async def dispatch(self, note: Notification, channels: Sequence[str]) -> DispatchOutcome:
        outcome = DispatchOutcome()

        for url in channels:
            attempt = await self._attempt(note, url)
            outcome.attempts.append(attempt)
            if attempt.ok:
                outcome.status = DispatchStatus.SENT
                logger.info("notification_sent", channel=outcome.sent_via, title=note.title)
                return outcome
            logger.warning(
                "channel_send_failed",
                channel=attempt.channel,
                error=attempt.error,
                error_kind=attempt.error_kind,
                title=note.title,
            )

        outcome.status = DispatchStatus.ALL_FAILED
        logger.error(
            "notification_all_channels_failed",
            title=note.title,
            channels=len(channels),
        )
        return outcome

    async def _attempt(self, note: Notification, url: str) -> ChannelAttempt:
        channel = redact_url(url)
        try:
            parts = parse_destination(url)
            scheme = base_scheme(parts.scheme)
            adapter = self._adapters.get(scheme)
            if adapter is None:
                raise ChannelConfigError(f"unsupported notification scheme: {scheme}")

            payload = self._formatter.format(note, self._registry.lookup(scheme))
            async with asyncio.timeout(self._timeout_secs):
                await adapter.send(url, payload)
        except ChannelConfigError as exc:
            return ChannelAttempt(
                channel=channel, ok=False, error=str(exc), error_kind=ErrorKind.CONFIG
            )
        except TransportError as exc:
            return ChannelAttempt(
                channel=channel, ok=False, error=str(exc), error_kind=ErrorKind.TRANSPORT
            )
        except TimeoutError:
            return ChannelAttempt(
                channel=channel,
                ok=False,
                error=f"timed out after {self._timeout_secs}s",
                error_kind=ErrorKind.TRANSPORT,
            )
        except Exception as exc:
            logger.exception("channel_dispatch_error", channel=channel)
            return ChannelAttempt(
                channel=channel,
                ok=False,
                error=f"{type(exc).__name__}: {exc}",
                error_kind=ErrorKind.TRANSPORT,
            )
        return ChannelAttempt(channel=channel, ok=True)

    # ── Lifecycle ───────────────────────────────────────────────

    async def close(self) -> None:
        for scheme, adapter in self._adapters.items():
            try:
                await adapter.close()
            except Exception:
                logger.exception("channel_close_error", scheme=scheme)
