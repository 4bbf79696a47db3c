"""
Production Analytics - Tabular views over the current snapshot

Builds the pandas DataFrames behind the analytics page: per-machine
utilization, jobs by priority, hourly throughput and the weekly efficiency
trend. All figures are computed from job timestamps and recorded KPI
history, so identical inputs always give identical tables.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

import pandas as pd

from models.job import Job, JOB_PRIORITIES
from models.machine import Machine
from agents.metrics_aggregator import (
    MetricsHistory,
    EFFICIENCY,
    UTILIZATION,
    average_efficiency,
    total_utilization,
    round_half_up,
)


WEEKDAYS = ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']
HOURLY_TARGET = 12


def machine_utilization_table(machines: Sequence[Machine]) -> pd.DataFrame:
    """
    Load/capacity utilization for each machine.

    Machines without capacity show 0%.
    """
    rows = [
        {
            'name': m.name,
            'utilization': round_half_up(m.utilization_percent),
            'capacity': m.capacity,
            'current': m.current_load,
        }
        for m in machines
    ]
    return pd.DataFrame(rows, columns=['name', 'utilization', 'capacity', 'current'])


def jobs_by_priority(jobs: Sequence[Job]) -> pd.DataFrame:
    """Job count per priority, most urgent first; absent priorities are omitted."""
    counts = pd.Series([j.priority for j in jobs], dtype='object').value_counts()
    rows = [
        {'name': priority, 'value': int(counts[priority])}
        for priority in JOB_PRIORITIES
        if priority in counts.index
    ]
    return pd.DataFrame(rows, columns=['name', 'value'])


def hourly_throughput(jobs: Sequence[Job], day: Optional[date] = None,
                      target: int = HOURLY_TARGET) -> pd.DataFrame:
    """
    Completed jobs per hour of day, from their end_time.

    Args:
        jobs: Job snapshot
        day: Only count jobs finished on this date (all dates if None)
        target: Hourly completion target shown alongside

    Returns:
        24 rows: hour ("H:00"), completed, target
    """
    hours = [
        j.end_time.hour
        for j in jobs
        if j.status == 'completed' and j.end_time is not None
        and (day is None or j.end_time.date() == day)
    ]
    counts = pd.Series(hours, dtype='int64').value_counts()

    return pd.DataFrame({
        'hour': [f"{hour}:00" for hour in range(24)],
        'completed': [int(counts.get(hour, 0)) for hour in range(24)],
        'target': [target] * 24,
    })


def efficiency_trend(history: MetricsHistory) -> pd.DataFrame:
    """
    Mean efficiency and utilization KPI per weekday from recorded snapshots.

    Expects a history spanning the last seven days, such as
    ProductionSession.weekly_history; a short trend window only covers the
    current day. Weekdays without snapshots show 0.

    Returns:
        7 rows: day, efficiency, utilization
    """
    frame = pd.DataFrame(
        [
            {
                'weekday': snapshot.timestamp.weekday(),
                'efficiency': snapshot.metrics.get(EFFICIENCY, 0.0),
                'utilization': snapshot.metrics.get(UTILIZATION, 0.0),
            }
            for snapshot in history.snapshots
        ],
        columns=['weekday', 'efficiency', 'utilization'],
    )
    means = frame.groupby('weekday')[['efficiency', 'utilization']].mean()

    rows = []
    for weekday, name in enumerate(WEEKDAYS):
        if weekday in means.index:
            rows.append({
                'day': name,
                'efficiency': round_half_up(means.loc[weekday, 'efficiency']),
                'utilization': round_half_up(means.loc[weekday, 'utilization']),
            })
        else:
            rows.append({'day': name, 'efficiency': 0, 'utilization': 0})
    return pd.DataFrame(rows, columns=['day', 'efficiency', 'utilization'])


@dataclass
class AnalyticsReport:
    """Everything the analytics page shows for one snapshot."""
    completed_jobs: int
    average_efficiency: int
    total_utilization: int
    machine_utilization: pd.DataFrame
    jobs_by_priority: pd.DataFrame
    hourly_throughput: pd.DataFrame
    efficiency_trend: pd.DataFrame


def build_analytics(
    jobs: Sequence[Job],
    machines: Sequence[Machine],
    history: Optional[MetricsHistory] = None,
    day: Optional[date] = None
) -> AnalyticsReport:
    """
    Build the full analytics report.

    Args:
        jobs: Job snapshot
        machines: Machine snapshot
        history: Seven days of KPI history (ProductionSession.weekly_history)
        day: Restrict hourly throughput to one date

    Returns:
        AnalyticsReport
    """
    return AnalyticsReport(
        completed_jobs=sum(1 for j in jobs if j.status == 'completed'),
        average_efficiency=average_efficiency(machines),
        total_utilization=total_utilization(machines),
        machine_utilization=machine_utilization_table(machines),
        jobs_by_priority=jobs_by_priority(jobs),
        hourly_throughput=hourly_throughput(jobs, day=day),
        efficiency_trend=efficiency_trend(history or MetricsHistory()),
    )
