"""
Alert Generator

Derives the operational alerts for a job/machine snapshot.

Rules (evaluated independently, emitted in this order):
    1. Any delayed job          -> one "warning" alert citing the count
    2. Any broken-down machine  -> one "critical" alert listing machine names
    3. More than N idle machines -> one "info" alert suggesting reallocation

Does NOT use LLM - uses deterministic rule checking for reliability.
"""

from datetime import datetime
from typing import List, Optional, Sequence

from models.job import Job
from models.machine import Machine
from models.alert import Alert, SOURCE_STATUS


DEFAULT_IDLE_THRESHOLD = 2


def generate_alerts(
    jobs: Sequence[Job],
    machines: Sequence[Machine],
    now: Optional[datetime] = None,
    idle_threshold: int = DEFAULT_IDLE_THRESHOLD
) -> List[Alert]:
    """
    Generate status alerts for a snapshot.

    Args:
        jobs: Job snapshot
        machines: Machine snapshot
        now: Generation time stamped on every alert (defaults to now)
        idle_threshold: Idle machine count that must be exceeded for rule 3

    Returns:
        Alerts in rule order (delayed, breakdown, idle)
    """
    timestamp = now or datetime.now()
    alerts = []

    # 1. Delayed jobs
    delayed_jobs = [j for j in jobs if j.status == "delayed"]
    if delayed_jobs:
        alerts.append(Alert(
            type="warning",
            title="Jobs Delayed",
            message=f"{len(delayed_jobs)} jobs are behind schedule",
            timestamp=timestamp,
            source=SOURCE_STATUS,
        ))

    # 2. Breakdowns
    broken_machines = [m for m in machines if m.status == "breakdown"]
    if broken_machines:
        alerts.append(Alert(
            type="critical",
            title="Machine Breakdown",
            message=f"{', '.join(m.name for m in broken_machines)} requires attention",
            timestamp=timestamp,
            source=SOURCE_STATUS,
        ))

    # 3. Idle capacity
    idle_machines = [m for m in machines if m.status == "idle"]
    if len(idle_machines) > idle_threshold:
        alerts.append(Alert(
            type="info",
            title="Optimization Opportunity",
            message=f"{len(idle_machines)} machines are idle - consider job reallocation",
            timestamp=timestamp,
            source=SOURCE_STATUS,
        ))

    return alerts
