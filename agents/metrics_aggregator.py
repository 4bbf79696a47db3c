"""
Metrics Aggregator

Turns job/machine/worker snapshots into the KPI cards shown on the control
surface. Everything in this module is a pure function of its inputs except
MetricsHistory, which callers own and feed explicitly.

KPIs (in display order):
    - Machine Utilization: share of machines that are operational
    - Job Throughput: "active/total" jobs
    - Available Workers: workers with availability == "available"
    - Overall Efficiency: share of jobs completed or in progress

Trends are deltas against the oldest snapshot of a trailing window, so the
same history always yields the same trend.

Does NOT use LLM - deterministic computation only.
"""

import math
from collections import deque, Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Dict, Optional, Sequence

from models.job import Job
from models.machine import Machine, MACHINE_STATUSES
from models.worker import Worker, WORKER_AVAILABILITY
from models.kpi import KPICard


UTILIZATION = "Machine Utilization"
THROUGHPUT = "Job Throughput"
AVAILABLE_WORKERS = "Available Workers"
EFFICIENCY = "Overall Efficiency"

KPI_STYLES = {
    UTILIZATION: "blue",
    THROUGHPUT: "green",
    AVAILABLE_WORKERS: "yellow",
    EFFICIENCY: "purple",
}


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def safe_percentage(numerator: float, denominator: float) -> int:
    """
    Whole-number percentage with a zero guard.

    Args:
        numerator: Part
        denominator: Whole

    Returns:
        round(100 * numerator / denominator), or 0 when the whole is 0
    """
    if not denominator:
        return 0
    return round_half_up(100 * numerator / denominator)


def calculate_kpis(
    jobs: Sequence[Job],
    machines: Sequence[Machine],
    workers: Sequence[Worker],
    baseline: Optional[Dict[str, float]] = None
) -> List[KPICard]:
    """
    Calculate the KPI cards for one snapshot.

    Args:
        jobs: Job snapshot
        machines: Machine snapshot
        workers: Worker snapshot
        baseline: Metric values to compute trends against (title -> metric),
            usually MetricsHistory.baseline()

    Returns:
        KPI cards in display order
    """
    active_jobs = sum(1 for j in jobs if j.status == "in_progress")
    completed_jobs = sum(1 for j in jobs if j.status == "completed")
    total_jobs = len(jobs)
    operational = sum(1 for m in machines if m.status == "operational")
    available_workers = sum(1 for w in workers if w.availability == "available")

    utilization = safe_percentage(operational, len(machines))
    efficiency = safe_percentage(completed_jobs + active_jobs, total_jobs)

    metrics = [
        (UTILIZATION, f"{utilization}%", utilization),
        (THROUGHPUT, f"{active_jobs}/{total_jobs}", active_jobs),
        (AVAILABLE_WORKERS, str(available_workers), available_workers),
        (EFFICIENCY, f"{efficiency}%", efficiency),
    ]

    baseline = baseline or {}
    cards = []
    for title, value, metric in metrics:
        trend = round(metric - baseline[title], 1) if title in baseline else 0.0
        cards.append(KPICard(
            title=title,
            value=value,
            trend=trend,
            style=KPI_STYLES[title],
            metric=float(metric),
        ))
    return cards


def average_efficiency(machines: Sequence[Machine]) -> int:
    """Mean machine efficiency rating, 0 for an empty snapshot."""
    if not machines:
        return 0
    return round_half_up(sum(m.efficiency_rating for m in machines) / len(machines))


def total_utilization(machines: Sequence[Machine]) -> int:
    """
    Mean load/capacity utilization across machines.

    Machines without capacity count as 0% and an empty snapshot is 0.
    """
    if not machines:
        return 0
    return round_half_up(sum(m.utilization_percent for m in machines) / len(machines))


def machine_status_counts(machines: Sequence[Machine]) -> Dict[str, int]:
    """Number of machines per status (every status present, possibly 0)."""
    counts = Counter(m.status for m in machines)
    return {status: counts.get(status, 0) for status in MACHINE_STATUSES}


def worker_availability_counts(workers: Sequence[Worker]) -> Dict[str, int]:
    """Number of workers per availability state."""
    counts = Counter(w.availability for w in workers)
    return {state: counts.get(state, 0) for state in WORKER_AVAILABILITY}


def average_worker_efficiency(workers: Sequence[Worker]) -> int:
    """Mean worker efficiency rating, 0 when there are no workers."""
    if not workers:
        return 0
    return round_half_up(sum(w.efficiency_rating for w in workers) / len(workers))


@dataclass(frozen=True)
class MetricsSnapshot:
    """KPI metric values captured at one point in time."""
    timestamp: datetime
    metrics: Dict[str, float] = field(default_factory=dict)


class MetricsHistory:
    """
    Trailing window of KPI snapshots.

    The window is bounded by snapshot count (``window``, None for no bound)
    and optionally by age (``max_age``, measured back from the newest
    snapshot). The oldest snapshot still inside the window is the trend
    baseline.
    """

    def __init__(self, window: Optional[int] = 5, max_age: Optional[timedelta] = None):
        if window is not None and window < 1:
            raise ValueError(f"window must be >= 1, got: {window}")
        self.window = window
        self.max_age = max_age
        self._snapshots = deque(maxlen=window)

    def record(self, kpis: Sequence[KPICard], timestamp: Optional[datetime] = None) -> MetricsSnapshot:
        """
        Store the metric values of a KPI set.

        Args:
            kpis: Cards returned by calculate_kpis
            timestamp: Capture time (defaults to now)

        Returns:
            The stored snapshot
        """
        snapshot = MetricsSnapshot(
            timestamp=timestamp or datetime.now(),
            metrics={card.title: card.metric for card in kpis},
        )
        self._snapshots.append(snapshot)
        if self.max_age is not None:
            cutoff = snapshot.timestamp - self.max_age
            while self._snapshots[0].timestamp < cutoff:
                self._snapshots.popleft()
        return snapshot

    def baseline(self) -> Optional[Dict[str, float]]:
        """Metrics of the oldest snapshot in the window, or None."""
        if not self._snapshots:
            return None
        return dict(self._snapshots[0].metrics)

    @property
    def snapshots(self) -> List[MetricsSnapshot]:
        return list(self._snapshots)

    def __len__(self) -> int:
        return len(self._snapshots)
