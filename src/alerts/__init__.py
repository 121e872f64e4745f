"""Alert evaluation — rule state machine and per-update orchestration."""

from src.alerts.evaluator import AlertEvaluator, RuleTransition
from src.alerts.exceptions import AlertError, RuleEvaluationError
from src.alerts.factory import channel_plan, create_alert_manager, create_dispatcher
from src.alerts.manager import (
    AlertManager,
    AlertResult,
    ProbeResult,
    RecipientDirectory,
    RuleStore,
    send_probe,
)

__all__ = [
    "AlertError",
    "AlertEvaluator",
    "AlertManager",
    "AlertResult",
    "ProbeResult",
    "RecipientDirectory",
    "RuleEvaluationError",
    "RuleStore",
    "RuleTransition",
    "channel_plan",
    "create_alert_manager",
    "create_dispatcher",
    "send_probe",
]
