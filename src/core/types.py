"""Domain types for monitored systems and their alert rules."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class SystemStatus(StrEnum):
    """Last observed reachability of a system.

    Only UP and DOWN take part in status transitions; every other value is
    treated as "no information".
    """

    UP = "up"
    DOWN = "down"
    UNKNOWN = "unknown"
    PAUSED = "paused"
    PENDING = "pending"


class AlertKind(StrEnum):
    """What a threshold rule watches."""

    STATUS = "Status"
    CPU = "CPU"
    MEMORY = "Memory"
    DISK = "Disk"

    @property
    def is_sliding_value(self) -> bool:
        return self is not AlertKind.STATUS


class SystemMetrics(BaseModel):
    """Latest resource usage of a system, in percent."""

    cpu: float = Field(default=0.0, ge=0.0, le=100.0)
    mem_pct: float = Field(default=0.0, ge=0.0, le=100.0)
    disk_pct: float = Field(default=0.0, ge=0.0, le=100.0)

    def value_for(self, kind: AlertKind) -> float:
        """Return the metric a sliding-value rule of *kind* compares."""
        if kind is AlertKind.CPU:
            return self.cpu
        if kind is AlertKind.MEMORY:
            return self.mem_pct
        if kind is AlertKind.DISK:
            return self.disk_pct
        raise ValueError(f"{kind} has no metric value")


class System(BaseModel):
    """Snapshot of a monitored host as delivered by change detection."""

    id: str
    name: str
    status: SystemStatus = SystemStatus.UNKNOWN
    metrics: SystemMetrics = Field(default_factory=SystemMetrics)


class ThresholdRule(BaseModel):
    """A per-system alert rule owned by one recipient.

    ``triggered`` is the only mutable state and always reflects the
    outcome of the last evaluation. Status rules never set it.
    """

    id: str
    system_id: str
    user_id: str
    kind: AlertKind
    value: float = 0.0
    triggered: bool = False


class Recipient(BaseModel):
    """The account that owns a rule and receives its notifications."""

    id: str
    email: str


class Notification(BaseModel):
    """Channel-agnostic message: subject, text and a deep link."""

    title: str
    message: str
    link: str = ""


class AlertEvent(Notification):
    """A single rule state transition, consumed immediately by dispatch."""

    recipient: Recipient
    system_name: str
    kind: AlertKind
    triggered: bool

    @property
    def is_raised(self) -> bool:
        return self.triggered
