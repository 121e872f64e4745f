"""Exception hierarchy for notification delivery."""

from __future__ import annotations


class NotificationError(Exception):
    """Base exception for all notification errors."""


class ChannelConfigError(NotificationError):
    """A destination URL is malformed or names an unsupported scheme."""


class TransportError(NotificationError):
    """A channel was unreachable or rejected the message."""
