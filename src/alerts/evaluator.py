"""Alert evaluation — turns a pair of system snapshots into rule transitions.

Pure: no I/O, and input rules are never mutated. Updated rules are
returned as copies for the caller to persist.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from urllib.parse import quote_plus

import structlog
from pydantic import BaseModel

from src.alerts.exceptions import RuleEvaluationError
from src.core.types import (
    AlertEvent,
    AlertKind,
    Recipient,
    System,
    SystemStatus,
    ThresholdRule,
)

logger = structlog.get_logger(__name__)

_STATUS_EMOJI: dict[SystemStatus, str] = {
    SystemStatus.DOWN: "\U0001F534",
    SystemStatus.UP: "\u2705",
}


class RuleTransition(BaseModel):
    """A rule whose state changed, plus the event to notify (if any).

    ``event`` is None when the rule's recipient could not be resolved; the
    updated flag must still be persisted.
    """

    rule: ThresholdRule
    event: AlertEvent | None = None

    @property
    def flag_changed(self) -> bool:
        return self.rule.kind.is_sliding_value


class AlertEvaluator:
    """Decides which rules changed state between two snapshots.

    - Status rules are edge-triggered on up→down and down→up only.
    - CPU / Memory / Disk rules are level-triggered with a single threshold:
      raise on ``value > threshold``, clear on ``value <= threshold``, and
      stay silent while the level does not cross. They are only evaluated
      while the system is up.
    """

    def __init__(self, app_url: str) -> None:
        self._app_url = app_url.rstrip("/")

    def system_link(self, system_name: str) -> str:
        return f"{self._app_url}/system/{quote_plus(system_name)}"

    def evaluate(
        self,
        previous: System,
        current: System,
        rules: Iterable[ThresholdRule],
        recipients: Mapping[str, Recipient],
    ) -> list[RuleTransition]:
        transitions: list[RuleTransition] = []
        for rule in rules:
            try:
                transition = self._evaluate_rule(previous, current, rule, recipients)
            except Exception:
                logger.exception(
                    "rule_evaluation_failed",
                    rule_id=rule.id,
                    kind=rule.kind,
                    system=current.name,
                )
                continue
            if transition is not None:
                transitions.append(transition)
        return transitions

    def _evaluate_rule(
        self,
        previous: System,
        current: System,
        rule: ThresholdRule,
        recipients: Mapping[str, Recipient],
    ) -> RuleTransition | None:
        if rule.system_id not in (previous.id, current.id):
            raise RuleEvaluationError(
                f"rule {rule.id} belongs to system {rule.system_id}, not {current.id}"
            )
        if rule.kind is AlertKind.STATUS:
            return self._status_transition(previous, current, rule, recipients)
        if current.status is not SystemStatus.UP:
            return None
        value = current.metrics.value_for(rule.kind)
        return self._sliding_value_transition(current, rule, value, recipients)

    def _status_transition(
        self,
        previous: System,
        current: System,
        rule: ThresholdRule,
        recipients: Mapping[str, Recipient],
    ) -> RuleTransition | None:
        old, new = previous.status, current.status
        if {old, new} != {SystemStatus.UP, SystemStatus.DOWN}:
            return None

        recipient = recipients.get(rule.user_id)
        if recipient is None:
            logger.debug("alert_recipient_missing", rule_id=rule.id, user_id=rule.user_id)
            return None

        name = previous.name
        state = new.value
        event = AlertEvent(
            recipient=recipient,
            system_name=name,
            kind=rule.kind,
            triggered=new is SystemStatus.DOWN,
            title=f"Connection to {name} is {state} {_STATUS_EMOJI[new]}",
            message=f"Connection to {name} is {state}",
            link=self.system_link(name),
        )
        return RuleTransition(rule=rule, event=event)

    def _sliding_value_transition(
        self,
        current: System,
        rule: ThresholdRule,
        value: float,
        recipients: Mapping[str, Recipient],
    ) -> RuleTransition | None:
        name = current.name
        kind = rule.kind.value
        if not rule.triggered and value > rule.value:
            triggered = True
            title = f"{kind} usage above threshold on {name}"
            message = f"{kind} usage on {name} is {value:.1f}%."
        elif rule.triggered and value <= rule.value:
            triggered = False
            title = f"{kind} usage below threshold on {name}"
            message = f"{kind} usage on {name} is below threshold at {value:.1f}%."
        else:
            return None

        updated = rule.model_copy(update={"triggered": triggered})
        recipient = recipients.get(rule.user_id)
        if recipient is None:
            logger.debug("alert_recipient_missing", rule_id=rule.id, user_id=rule.user_id)
            return RuleTransition(rule=updated)

        event = AlertEvent(
            recipient=recipient,
            system_name=name,
            kind=rule.kind,
            triggered=triggered,
            title=title,
            message=message,
            link=self.system_link(name),
        )
        return RuleTransition(rule=updated, event=event)
