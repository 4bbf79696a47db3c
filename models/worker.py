"""
Worker Model - Represents shop floor staff and their availability
"""

from typing import Optional, Dict, Any, Iterable, Set
from dataclasses import dataclass, field


WORKER_AVAILABILITY = ("available", "busy", "absent", "break")


@dataclass
class Worker:
    """
    Represents a worker who can be assigned to jobs.

    Example:
        >>> worker = Worker(
        ...     worker_id="w-1",
        ...     name="Dana Smith",
        ...     shift="morning",
        ...     skills={"welding", "assembly"}
        ... )
    """

    worker_id: str
    name: str
    shift: str = ""
    skills: Set[str] = field(default_factory=set)
    availability: str = "available"      # available / busy / absent / break
    efficiency_rating: float = 100.0     # 0-100
    current_job: Optional[str] = None

    def __post_init__(self):
        """Validate worker data after initialization."""
        if self.availability not in WORKER_AVAILABILITY:
            raise ValueError(
                f"Availability must be one of {WORKER_AVAILABILITY}, got: {self.availability}"
            )

        if not 0 <= self.efficiency_rating <= 100:
            raise ValueError(f"Efficiency rating must be 0-100, got: {self.efficiency_rating}")

        self.skills = set(self.skills or ())

    @property
    def is_available(self) -> bool:
        return self.availability == "available"

    def has_skills(self, required: Iterable[str]) -> bool:
        """
        Check if this worker holds every required skill.

        Args:
            required: Skills a job needs

        Returns:
            True if all skills are covered
        """
        return set(required) <= self.skills

    def to_dict(self) -> Dict[str, Any]:
        """Convert worker to a store record."""
        return {
            "id": self.worker_id,
            "name": self.name,
            "shift": self.shift,
            "skills": sorted(self.skills),
            "availability": self.availability,
            "efficiency_rating": self.efficiency_rating,
            "current_job": self.current_job,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Worker':
        """Create a Worker instance from a store record."""
        return cls(
            worker_id=str(data.get("id", data.get("worker_id"))),
            name=data.get("name", ""),
            shift=data.get("shift", ""),
            skills=set(data.get("skills") or ()),
            availability=data.get("availability", "available"),
            efficiency_rating=float(data.get("efficiency_rating", 100)),
            current_job=data.get("current_job"),
        )

    def __str__(self) -> str:
        return f"Worker({self.name}: {self.shift}, {self.availability})"
