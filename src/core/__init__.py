"""Core module — config, types, logging."""

from src.core.config import Settings, get_settings, load_settings, reset_settings
from src.core.logging import setup_logging
from src.core.types import (
    AlertEvent,
    AlertKind,
    Notification,
    Recipient,
    System,
    SystemMetrics,
    SystemStatus,
    ThresholdRule,
)

__all__ = [
    "AlertEvent",
    "AlertKind",
    "Notification",
    "Recipient",
    "Settings",
    "System",
    "SystemMetrics",
    "SystemStatus",
    "ThresholdRule",
    "get_settings",
    "load_settings",
    "reset_settings",
    "setup_logging",
]
