"""
Machine Model - Represents production equipment on the shop floor

Key Features:
    - Capacity and current load tracking
    - Efficiency rating (0-100)
    - Operational status used by KPIs and alerts
"""

from typing import Dict, Any
from dataclasses import dataclass


MACHINE_STATUSES = ("operational", "maintenance", "breakdown", "idle")


@dataclass
class Machine:
    """
    Represents a production machine.

    Example:
        >>> machine = Machine(
        ...     machine_id="m-1",
        ...     name="CNC-01",
        ...     machine_type="cnc",
        ...     location="Bay A",
        ...     capacity=8,
        ...     current_load=6,
        ...     efficiency_rating=92
        ... )
    """

    machine_id: str                      # Store identifier
    name: str                            # Display name (e.g. "CNC-01")
    machine_type: str = ""               # Category matched against Job.machine_type
    location: str = ""
    capacity: float = 0.0                # Max concurrent load
    current_load: float = 0.0
    efficiency_rating: float = 100.0     # 0-100
    status: str = "operational"          # operational / maintenance / breakdown / idle

    def __post_init__(self):
        """Validate machine data after initialization."""
        if self.status not in MACHINE_STATUSES:
            raise ValueError(f"Status must be one of {MACHINE_STATUSES}, got: {self.status}")

        if self.capacity < 0:
            raise ValueError(f"Capacity must be non-negative, got: {self.capacity}")

        if self.current_load < 0:
            raise ValueError(f"Current load must be non-negative, got: {self.current_load}")

        if not 0 <= self.efficiency_rating <= 100:
            raise ValueError(f"Efficiency rating must be 0-100, got: {self.efficiency_rating}")

    @property
    def is_operational(self) -> bool:
        return self.status == "operational"

    @property
    def utilization_percent(self) -> float:
        """
        Current load as a percentage of capacity.

        Returns:
            Utilization percentage, 0 when the machine has no capacity
        """
        if self.capacity <= 0:
            return 0.0
        return (self.current_load / self.capacity) * 100

    def to_dict(self) -> Dict[str, Any]:
        """Convert machine to a store record."""
        return {
            "id": self.machine_id,
            "name": self.name,
            "type": self.machine_type,
            "location": self.location,
            "capacity": self.capacity,
            "current_load": self.current_load,
            "efficiency_rating": self.efficiency_rating,
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Machine':
        """Create a Machine instance from a store record."""
        return cls(
            machine_id=str(data.get("id", data.get("machine_id"))),
            name=data.get("name", ""),
            machine_type=data.get("type", data.get("machine_type", "")),
            location=data.get("location", ""),
            capacity=float(data.get("capacity", 0) or 0),
            current_load=float(data.get("current_load", 0) or 0),
            efficiency_rating=float(data.get("efficiency_rating", 100)),
            status=data.get("status", "operational"),
        )

    def __str__(self) -> str:
        return (f"Machine({self.name}: {self.machine_type}, {self.status}, "
                f"{self.current_load:g}/{self.capacity:g})")
