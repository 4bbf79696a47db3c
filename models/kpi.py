"""
KPI Model - Key Performance Indicator cards for the control surface
"""

from typing import Dict, Any
from dataclasses import dataclass


@dataclass(frozen=True)
class KPICard:
    """
    One KPI tuple as consumed by the presentation layer.

    ``metric`` is the raw number behind ``value`` and is what trends are
    computed against.
    """

    title: str
    value: str                # Display string, e.g. "75%" or "3/10"
    trend: float              # Delta against the trailing-window baseline
    style: str                # Styling hint (colour family)
    metric: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "title": self.title,
            "value": self.value,
            "trend": self.trend,
            "style": self.style,
        }

    def __str__(self) -> str:
        sign = "+" if self.trend >= 0 else ""
        return f"KPI({self.title}: {self.value}, {sign}{self.trend})"
