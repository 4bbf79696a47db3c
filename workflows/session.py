"""
Production Session - State owned by one control-surface client

Holds the in-memory snapshot (jobs, machines, workers), the derived KPI set,
the alert feed and the "optimizing" flag. Workflows receive the session
explicitly and mutate it only through the methods below.

Consistency rules:
    - A reload replaces the snapshot wholesale and re-derives KPIs and status
      alerts from it
    - Status alerts are regenerated on every aggregation; disruption alerts are
      only ever prepended and survive reloads
    - is_optimizing is true while at least one recommendation request is in
      flight
    - Stored records that break the model invariants never fail a reload:
      contradictory job timestamps are dropped and other invalid records are
      skipped with a warning
"""

import asyncio
import dataclasses
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

from models.job import Job
from models.machine import Machine
from models.worker import Worker
from models.alert import Alert, SOURCE_STATUS
from models.kpi import KPICard
from agents.metrics_aggregator import calculate_kpis, MetricsHistory
from agents.alert_generator import generate_alerts
from store.entity_store import EntityStore, JOB, MACHINE, WORKER
from utils.config_loader import ControlSettings


logger = logging.getLogger(__name__)

T = TypeVar("T")


def normalize_job_record(record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Drop lifecycle timestamps that contradict a stored job's status.

    The store accepts free-form updates, so a job can be queued while still
    carrying a start_time, or carry an end_time without being completed.
    """
    record = dict(record)
    status = record.get("status")
    if status == "queued" and record.get("start_time"):
        logger.warning("Job %s is queued but has a start_time; ignoring it", record.get("id"))
        record["start_time"] = None
    if record.get("end_time") and (status != "completed" or not record.get("start_time")):
        logger.warning("Job %s has an inconsistent end_time; ignoring it", record.get("id"))
        record["end_time"] = None
    return record


def build_entities(records: Sequence[Dict[str, Any]], factory: Callable[[Dict[str, Any]], T],
                   record_type: str) -> List[T]:
    """Build model objects from store records, skipping the ones that do not validate."""
    entities = []
    for record in records:
        try:
            entities.append(factory(record))
        except (ValueError, TypeError, KeyError) as e:
            logger.warning("Skipping invalid %s record %s: %s", record_type, record.get("id"), e)
    return entities


class AlertFeed:
    """
    Alerts ordered newest first.

    Alerts are immutable; the feed only prepends new ones and swaps out the
    batch of status alerts on re-aggregation.
    """

    def __init__(self):
        self._alerts: List[Alert] = []

    def prepend(self, alert: Alert) -> Alert:
        """Add an alert at the head of the feed."""
        self._alerts.insert(0, alert)
        return alert

    def replace_status_alerts(self, alerts: Sequence[Alert]) -> None:
        """
        Drop existing status alerts and put a fresh batch at the head.

        The batch keeps its own (rule) order.
        """
        kept = [a for a in self._alerts if a.source != SOURCE_STATUS]
        self._alerts = list(alerts) + kept

    def for_disruption(self, disruption_id: str) -> List[Alert]:
        """Alerts raised for one disruption, newest first."""
        return [a for a in self._alerts if a.disruption_id == disruption_id]

    @property
    def alerts(self) -> List[Alert]:
        return list(self._alerts)

    def __len__(self) -> int:
        return len(self._alerts)

    def __iter__(self):
        return iter(list(self._alerts))


class ProductionSession:
    """
    Single owned state container for one client session.

    Example:
        >>> session = ProductionSession()
        >>> await session.reload(store)
        >>> session.kpis[0].value
        '75%'
    """

    def __init__(self, settings: Optional[ControlSettings] = None):
        self.settings = settings or ControlSettings()
        self.jobs: List[Job] = []
        self.machines: List[Machine] = []
        self.workers: List[Worker] = []
        self.kpis: List[KPICard] = []
        self.alert_feed = AlertFeed()
        self.history = MetricsHistory(window=self.settings.trend_window)
        # Seven days of snapshots for the weekly analytics trend
        self.weekly_history = MetricsHistory(window=None, max_age=timedelta(days=7))
        self._in_flight = 0

    # ------------------------------------------------------------------
    # Optimizing flag
    # ------------------------------------------------------------------

    @property
    def is_optimizing(self) -> bool:
        """True while any recommendation request is outstanding."""
        return self._in_flight > 0

    def begin_optimization(self) -> None:
        self._in_flight += 1

    def end_optimization(self) -> None:
        if self._in_flight == 0:
            raise RuntimeError("end_optimization() called with no request in flight")
        self._in_flight -= 1

    # ------------------------------------------------------------------
    # Snapshot handling
    # ------------------------------------------------------------------

    @property
    def alerts(self) -> List[Alert]:
        """Alert list, newest first."""
        return self.alert_feed.alerts

    def find_job(self, job_id: str) -> Optional[Job]:
        return next((j for j in self.jobs if j.job_id == job_id), None)

    def replace_job(self, job_id: str, **changes) -> Job:
        """
        Apply a local (optimistic) change to one job.

        Raises:
            KeyError: If the job is not in the snapshot
        """
        for index, job in enumerate(self.jobs):
            if job.job_id == job_id:
                updated = dataclasses.replace(job, **changes)
                self.jobs = self.jobs[:index] + [updated] + self.jobs[index + 1:]
                return updated
        raise KeyError(f"Job {job_id} not found in session")

    def load_snapshot(
        self,
        jobs: Sequence[Job],
        machines: Sequence[Machine],
        workers: Sequence[Worker],
        now: Optional[datetime] = None
    ) -> None:
        """Replace the snapshot and re-derive KPIs and status alerts."""
        self.jobs = list(jobs)
        self.machines = list(machines)
        self.workers = list(workers)
        self.reaggregate(now)

    async def reload(self, store: EntityStore) -> None:
        """
        Fetch jobs, machines and workers concurrently and re-aggregate.

        Raises:
            StorageError: If any of the list calls fails
        """
        job_records, machine_records, worker_records = await asyncio.gather(
            store.list(JOB, self.settings.job_sort_key, self.settings.job_list_limit),
            store.list(MACHINE),
            store.list(WORKER),
        )

        self.load_snapshot(
            build_entities([normalize_job_record(r) for r in job_records], Job.from_dict, JOB),
            build_entities(machine_records, Machine.from_dict, MACHINE),
            build_entities(worker_records, Worker.from_dict, WORKER),
        )
        logger.info(
            "Reloaded snapshot: %d jobs, %d machines, %d workers",
            len(self.jobs), len(self.machines), len(self.workers)
        )

    def reaggregate(self, now: Optional[datetime] = None) -> List[KPICard]:
        """
        Recompute KPIs and status alerts from the current snapshot.

        Returns:
            The new KPI cards
        """
        self.kpis = calculate_kpis(self.jobs, self.machines, self.workers, self.history.baseline())
        self.history.record(self.kpis, now)
        self.weekly_history.record(self.kpis, now)
        self.alert_feed.replace_status_alerts(
            generate_alerts(
                self.jobs,
                self.machines,
                now=now,
                idle_threshold=self.settings.idle_machine_threshold,
            )
        )
        return self.kpis
