"""Alert manager — evaluate, notify, persist for each system update."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Collection, Iterable, Mapping, Sequence
from typing import Protocol

import structlog
from pydantic import BaseModel

from src.alerts.evaluator import AlertEvaluator, RuleTransition
from src.core.config import AppConfig
from src.core.types import AlertEvent, Notification, Recipient, System, ThresholdRule
from src.notify.dispatcher import NotificationDispatcher
from src.notify.types import DispatchOutcome

logger = structlog.get_logger(__name__)

ChannelPlan = Callable[[Recipient], Sequence[str]]


class RuleStore(Protocol):
    """Persistence collaborator that owns threshold rules."""

    async def list_rules(self, system_id: str) -> list[ThresholdRule]: ...

    async def save_rule(self, rule: ThresholdRule) -> None: ...


class RecipientDirectory(Protocol):
    """Account collaborator; unknown ids are simply absent from the result."""

    async def get_recipients(self, user_ids: Collection[str]) -> Mapping[str, Recipient]: ...


class AlertResult(BaseModel):
    """What happened to one alert event.

    ``persisted`` is True only when a rule write actually happened; status
    transitions carry no state and report False.
    """

    event: AlertEvent
    outcome: DispatchOutcome
    persisted: bool


class ProbeResult(BaseModel):
    """Outcome of a manual test notification."""

    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def probe_notification(app: AppConfig) -> Notification:
    return Notification(
        title="Test Alert",
        message=f"This is a notification from {app.name}.",
        link=app.url,
    )


async def send_probe(
    dispatcher: NotificationDispatcher,
    app: AppConfig,
    url: str,
) -> ProbeResult:
    """Send a fixed test message to *url* only. Touches no rule state."""
    if not url.strip():
        return ProbeResult(error="URL is required")
    outcome = await dispatcher.dispatch(probe_notification(app), [url])
    if outcome.success:
        return ProbeResult()
    return ProbeResult(error=outcome.last_error or "notification failed")


class AlertManager:
    """Runs one evaluation cycle per system update.

    Order per transition is evaluate → notify → persist:

    - delivered (or no recipient): the new flag is saved;
    - every channel failed: the flag is left as it was, so the next cycle
      evaluates the same transition again;
    - save failed after delivery: logged, the next cycle may repeat the
      notification.
    """

    def __init__(
        self,
        evaluator: AlertEvaluator,
        dispatcher: NotificationDispatcher,
        rule_store: RuleStore,
        recipients: RecipientDirectory,
        channels_for: ChannelPlan,
        app: AppConfig | None = None,
    ) -> None:
        self._evaluator = evaluator
        self._dispatcher = dispatcher
        self._rules = rule_store
        self._recipients = recipients
        self._channels_for = channels_for
        self._app = app or AppConfig()

    async def handle_system_update(self, previous: System, current: System) -> list[AlertResult]:
        try:
            rules = await self._rules.list_rules(current.id)
        except Exception:
            logger.exception("rule_load_failed", system=current.name)
            return []
        if not rules:
            return []

        try:
            recipients = await self._recipients.get_recipients({r.user_id for r in rules})
        except Exception:
            # Evaluating without recipients would flip flags with no notification.
            logger.exception("recipient_load_failed", system=current.name)
            return []

        transitions = self._evaluator.evaluate(previous, current, rules, recipients)
        results: list[AlertResult] = []
        for transition in transitions:
            result = await self._apply(transition)
            if result is not None:
                results.append(result)
        return results

    async def handle_system_updates(
        self, updates: Iterable[tuple[System, System]]
    ) -> list[AlertResult]:
        """Evaluate several systems concurrently; they share no state."""
        batches = await asyncio.gather(
            *(self.handle_system_update(prev, cur) for prev, cur in updates)
        )
        return [result for batch in batches for result in batch]

    async def send_test_notification(self, url: str) -> ProbeResult:
        return await send_probe(self._dispatcher, self._app, url)

    async def _apply(self, transition: RuleTransition) -> AlertResult | None:
        event = transition.event
        if event is None:
            if transition.flag_changed:
                await self._persist(transition.rule)
            return None

        outcome = await self._dispatcher.dispatch(event, self._channels_for(event.recipient))
        logger.info(
            "alert_dispatched",
            rule_id=transition.rule.id,
            raised=event.is_raised,
            delivered=outcome.success,
        )

        persisted = False
        if transition.flag_changed and outcome.success:
            persisted = await self._persist(transition.rule)
        elif transition.flag_changed:
            logger.warning(
                "alert_state_kept_for_retry",
                rule_id=transition.rule.id,
                title=event.title,
            )
        return AlertResult(event=event, outcome=outcome, persisted=persisted)

    async def _persist(self, rule: ThresholdRule) -> bool:
        try:
            await self._rules.save_rule(rule)
        except Exception:
            logger.exception(
                "rule_save_failed",
                rule_id=rule.id,
                triggered=rule.triggered,
                note="next cycle may repeat this notification",
            )
            return False
        return True

    async def close(self) -> None:
        await self._dispatcher.close()
