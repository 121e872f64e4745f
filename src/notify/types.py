"""Domain types for the notification subsystem."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ChannelCapabilities(BaseModel):
    """What a destination can render natively."""

    model_config = ConfigDict(frozen=True)

    supports_title: bool = False
    supports_link_action: bool = False
    is_structured_sink: bool = False


class MessagePayload(BaseModel):
    """A message shaped for one destination.

    ``params`` are merged into the destination URL's query string by the
    adapter that delivers it.
    """

    title: str
    body: str
    params: dict[str, str] = Field(default_factory=dict)


class DispatchStatus(StrEnum):
    """Terminal (and initial) states of a single dispatch call."""

    PENDING = "pending"
    SENT = "sent"
    ALL_FAILED = "all_failed"


class ErrorKind(StrEnum):
    CONFIG = "config"
    TRANSPORT = "transport"


class ChannelAttempt(BaseModel):
    """Result of trying one channel."""

    channel: str
    ok: bool
    error: str | None = None
    error_kind: ErrorKind | None = None


class DispatchOutcome(BaseModel):
    """Observable result of a dispatch, including every failed attempt."""

    status: DispatchStatus = DispatchStatus.PENDING
    attempts: list[ChannelAttempt] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status is DispatchStatus.SENT

    @property
    def sent_via(self) -> str | None:
        for attempt in self.attempts:
            if attempt.ok:
                return attempt.channel
        return None

    @property
    def failures(self) -> list[ChannelAttempt]:
        return [a for a in self.attempts if not a.ok]

    @property
    def last_error(self) -> str | None:
        failures = self.failures
        return failures[-1].error if failures else None
