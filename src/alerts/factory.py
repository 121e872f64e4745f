"""Convenience factory for wiring the alerting stack."""

from __future__ import annotations

from collections.abc import Sequence

from src.alerts.evaluator import AlertEvaluator
from src.alerts.manager import AlertManager, ChannelPlan, RecipientDirectory, RuleStore
from src.core.config import Settings
from src.core.types import Recipient
from src.notify.capabilities import CapabilityRegistry
from src.notify.channels import (
    ChannelAdapter,
    DiscordAdapter,
    GenericWebhookAdapter,
    MailAdapter,
    NtfyAdapter,
    TelegramAdapter,
)
from src.notify.dispatcher import NotificationDispatcher
from src.notify.formatter import MessageFormatter


def create_adapters(settings: Settings) -> dict[str, ChannelAdapter]:
    """One adapter per supported base scheme."""
    return {
        "ntfy": NtfyAdapter(),
        "generic": GenericWebhookAdapter(),
        "discord": DiscordAdapter(),
        "telegram": TelegramAdapter(),
        "mailto": MailAdapter(settings.smtp),
    }


def create_dispatcher(
    settings: Settings,
    registry: CapabilityRegistry | None = None,
) -> NotificationDispatcher:
    return NotificationDispatcher(
        adapters=create_adapters(settings),
        formatter=MessageFormatter(action_label=f"Open {settings.app.name}"),
        registry=registry,
        timeout_secs=settings.notifications.timeout_secs,
    )


def channel_plan(settings: Settings) -> ChannelPlan:
    """Ordered destinations: configured push URLs, then the recipient's mail."""
    push_urls = [u for u in settings.notifications.push_urls if u.strip()]
    mail_fallback = settings.notifications.mail_fallback

    def channels_for(recipient: Recipient) -> Sequence[str]:
        channels = list(push_urls)
        if mail_fallback and recipient.email:
            channels.append(f"mailto:{recipient.email}")
        return channels

    return channels_for


def create_alert_manager(
    settings: Settings,
    rule_store: RuleStore,
    recipients: RecipientDirectory,
    registry: CapabilityRegistry | None = None,
) -> AlertManager:
    """Build evaluator + dispatcher + manager from config.

    Returns:
        A ready AlertManager; call ``close()`` on shutdown.
    """
    return AlertManager(
        evaluator=AlertEvaluator(app_url=settings.app.url),
        dispatcher=create_dispatcher(settings, registry),
        rule_store=rule_store,
        recipients=recipients,
        channels_for=channel_plan(settings),
        app=settings.app,
    )
