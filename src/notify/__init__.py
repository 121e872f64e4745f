"""Notification formatting, channel adapters and fallback dispatch."""

from src.notify.capabilities import DEFAULT_CAPABILITIES, CapabilityRegistry
from src.notify.channels import (
    ChannelAdapter,
    DiscordAdapter,
    GenericWebhookAdapter,
    MailAdapter,
    NtfyAdapter,
    TelegramAdapter,
)
from src.notify.dispatcher import NotificationDispatcher
from src.notify.exceptions import ChannelConfigError, NotificationError, TransportError
from src.notify.formatter import MessageFormatter
from src.notify.types import (
    ChannelAttempt,
    ChannelCapabilities,
    DispatchOutcome,
    DispatchStatus,
    ErrorKind,
    MessagePayload,
)

__all__ = [
    "DEFAULT_CAPABILITIES",
    "CapabilityRegistry",
    "ChannelAdapter",
    "ChannelAttempt",
    "ChannelCapabilities",
    "ChannelConfigError",
    "DiscordAdapter",
    "DispatchOutcome",
    "DispatchStatus",
    "ErrorKind",
    "GenericWebhookAdapter",
    "MailAdapter",
    "MessageFormatter",
    "MessagePayload",
    "NotificationDispatcher",
    "NotificationError",
    "NtfyAdapter",
    "TelegramAdapter",
    "TransportError",
]
