"""
Alert & Disruption Models - Operational notifications and their triggers

Alerts are derived values: they are never persisted and never mutated once
created. Status alerts are regenerated from every snapshot, disruption alerts
are produced by the disruption response workflow.
"""

import uuid
from datetime import datetime
from typing import Optional, Dict, Any
from dataclasses import dataclass, field

from models.machine import Machine
from models.worker import Worker


ALERT_TYPES = ("info", "warning", "critical")

# Where an alert came from
SOURCE_STATUS = "status"
SOURCE_DISRUPTION = "disruption"


@dataclass(frozen=True)
class Alert:
    """
    A single operational alert shown to planners.

    Example:
        >>> Alert("critical", "Machine Breakdown", "CNC-02 requires attention")
    """

    type: str                            # info / warning / critical
    title: str
    message: str
    timestamp: datetime = field(default_factory=datetime.now)
    source: str = SOURCE_STATUS
    disruption_id: Optional[str] = None  # Correlates alerts of one disruption

    def __post_init__(self):
        if self.type not in ALERT_TYPES:
            raise ValueError(f"Alert type must be one of {ALERT_TYPES}, got: {self.type}")

    @property
    def is_critical(self) -> bool:
        return self.type == "critical"

    def to_dict(self) -> Dict[str, Any]:
        """Convert alert to dictionary."""
        return {
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "timestamp": self.timestamp.strftime("%H:%M:%S"),
            "source": self.source,
            "disruption_id": self.disruption_id,
        }

    def __str__(self) -> str:
        return f"[{self.type.upper()}] {self.title}: {self.message}"


@dataclass(frozen=True)
class Disruption:
    """
    An external event that requires rescheduling.

    Example:
        >>> Disruption("Machine Breakdown", "CNC-02")
    """

    disruption_type: str                 # Free-form category
    resource: str                        # Affected machine/worker name or id
    timestamp: datetime = field(default_factory=datetime.now)
    disruption_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

    @classmethod
    def machine_failure(cls, machine: Machine, timestamp: Optional[datetime] = None) -> 'Disruption':
        """Disruption raised when a machine breaks down."""
        return cls("Machine Breakdown", machine.name, timestamp or datetime.now())

    @classmethod
    def worker_absence(cls, worker: Worker, timestamp: Optional[datetime] = None) -> 'Disruption':
        """Disruption raised when a worker is unexpectedly absent."""
        return cls("Worker Absence", worker.name, timestamp or datetime.now())

    def __str__(self) -> str:
        return f"Disruption({self.disruption_type} on {self.resource})"
