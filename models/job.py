"""
Job Model - Represents a production job tracked on the shop floor

This module defines the Job class which encapsulates everything the control
core knows about a job: what it is, how urgent it is, where it runs and how
far along it is.

Key Attributes:
    - job_id: Unique identifier assigned by the entity store
    - title: Human readable job name
    - duration: Expected processing time (hours)
    - priority: "critical", "high", "medium" or "low"
    - status: "queued", "in_progress", "completed" or "delayed"
    - assigned_machine / assigned_worker: Current allocation (optional)
    - start_time / end_time: Lifecycle timestamps
"""

from datetime import datetime
from typing import Optional, Dict, Any, Set
from dataclasses import dataclass, field


JOB_PRIORITIES = ("critical", "high", "medium", "low")
JOB_STATUSES = ("queued", "in_progress", "completed", "delayed")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp coming from the entity store.

    Args:
        value: None, a datetime, or an ISO formatted string

    Returns:
        datetime or None
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Format a timestamp for storage (ISO-8601) or return None."""
    return value.isoformat() if value is not None else None


@dataclass
class Job:
    """
    Represents a single production job.

    Example:
        >>> job = Job(
        ...     job_id="job-1",
        ...     title="Gearbox housing",
        ...     duration=2.5,
        ...     priority="high",
        ...     machine_type="cnc",
        ...     required_skills={"cnc_programming"}
        ... )
    """

    job_id: str                          # Store identifier
    title: str                           # Display name
    duration: float                      # Processing duration in hours
    priority: str = "medium"             # critical / high / medium / low
    status: str = "queued"               # queued / in_progress / completed / delayed
    machine_type: str = ""               # Free-form machine category (e.g. "cnc")
    assigned_machine: Optional[str] = None
    assigned_worker: Optional[str] = None
    required_skills: Set[str] = field(default_factory=set)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    created_date: Optional[datetime] = None

    def __post_init__(self):
        """Validate job data after initialization."""
        if self.priority not in JOB_PRIORITIES:
            raise ValueError(f"Priority must be one of {JOB_PRIORITIES}, got: {self.priority}")

        if self.status not in JOB_STATUSES:
            raise ValueError(f"Status must be one of {JOB_STATUSES}, got: {self.status}")

        if self.duration <= 0:
            raise ValueError(f"Duration must be positive, got: {self.duration}")

        self.required_skills = set(self.required_skills or ())

        if self.start_time is not None and self.status == "queued":
            raise ValueError(f"Job {self.job_id} is queued but has a start_time")

        if self.end_time is not None and (self.start_time is None or self.status != "completed"):
            raise ValueError(
                f"Job {self.job_id} has an end_time but is not a started, completed job"
            )

    @property
    def is_active(self) -> bool:
        """Check if the job is currently being worked on."""
        return self.status == "in_progress"

    @property
    def is_finished(self) -> bool:
        return self.status == "completed"

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert job to a store record.

        Returns:
            Dictionary representation of the job
        """
        return {
            "id": self.job_id,
            "title": self.title,
            "duration": self.duration,
            "priority": self.priority,
            "status": self.status,
            "machine_type": self.machine_type,
            "assigned_machine": self.assigned_machine,
            "assigned_worker": self.assigned_worker,
            "required_skills": sorted(self.required_skills),
            "start_time": format_timestamp(self.start_time),
            "end_time": format_timestamp(self.end_time),
            "created_date": format_timestamp(self.created_date),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Job':
        """
        Create a Job instance from a store record.

        Args:
            data: Dictionary containing job data (``id`` or ``job_id`` key)

        Returns:
            Job instance
        """
        return cls(
            job_id=str(data.get("id", data.get("job_id"))),
            title=data.get("title", ""),
            duration=float(data.get("duration", 0)),
            priority=data.get("priority", "medium"),
            status=data.get("status", "queued"),
            machine_type=data.get("machine_type", ""),
            assigned_machine=data.get("assigned_machine"),
            assigned_worker=data.get("assigned_worker"),
            required_skills=set(data.get("required_skills") or ()),
            start_time=parse_timestamp(data.get("start_time")),
            end_time=parse_timestamp(data.get("end_time")),
            created_date=parse_timestamp(data.get("created_date")),
        )

    def __str__(self) -> str:
        """String representation for logging and debugging."""
        machine = f" on {self.assigned_machine}" if self.assigned_machine else ""
        return (f"Job({self.job_id}: {self.title}, {self.duration}h, "
                f"{self.priority}, {self.status}{machine})")
