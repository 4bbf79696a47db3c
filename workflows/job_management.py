"""
Job Management - Create jobs and change their status through the store

Status changes go through the JobLifecyclePolicy before anything is written;
the store stays the system of record and the session is reloaded after every
successful write. Store failures are surfaced to the caller, never retried.
"""

import logging
from typing import Dict, Any, List, Optional, Sequence

from models.job import Job, JOB_STATUSES
from models.worker import Worker
from agents.job_lifecycle import JobLifecyclePolicy
from store.entity_store import EntityStore, JOB
from workflows.session import ProductionSession


logger = logging.getLogger(__name__)

# Owned by the lifecycle policy, never taken from caller input
_POLICY_FIELDS = ("start_time", "end_time", "status", "id", "created_date")


class JobManager:
    """
    Job create/update operations for one session.
    """

    def __init__(self, store: EntityStore, session: ProductionSession,
                 policy: Optional[JobLifecyclePolicy] = None):
        self.store = store
        self.session = session
        self.policy = policy or JobLifecyclePolicy()

    async def create_job(self, fields: Dict[str, Any]) -> Job:
        """
        Create a new queued job.

        Args:
            fields: title, duration, priority, machine_type, required_skills...

        Returns:
            The created Job

        Raises:
            ValueError: If the fields do not describe a valid job
            StorageError: If the store rejects the record
        """
        record = {k: v for k, v in fields.items() if k not in _POLICY_FIELDS}
        record["duration"] = float(record.get("duration", 0))
        record["status"] = "queued"
        record["required_skills"] = sorted(record.get("required_skills") or [])

        # Validate before touching the store
        Job.from_dict({**record, "id": "pending"})

        created = await self.store.create(JOB, record)
        logger.info("Created job %s (%s)", created["id"], created.get("title", ""))
        await self.session.reload(self.store)
        return Job.from_dict(created)

    async def update_job(self, job_id: str, fields: Dict[str, Any]) -> Job:
        """
        Update a job, validating any status change.

        Args:
            job_id: Job to update
            fields: Partial record; "status" is checked by the lifecycle policy

        Returns:
            The updated Job as stored

        Raises:
            KeyError: If the job is not in the session snapshot
            InvalidTransition: If the status change is not allowed
            StorageError: If the store update fails
        """
        current = self.session.find_job(job_id)
        if current is None:
            raise KeyError(f"Job {job_id} not found in session")

        changes = {k: v for k, v in fields.items() if k not in _POLICY_FIELDS}
        if "status" in fields:
            changes.update(self.policy.transition(current, fields["status"]))

        if not changes:
            return current

        # Validate the merged record before persisting
        Job.from_dict({**current.to_dict(), **changes})

        updated = await self.store.update(JOB, job_id, changes)
        await self.session.reload(self.store)
        return Job.from_dict(updated)

    async def update_status(self, job_id: str, status: str) -> Job:
        """Move a job to a new status (see JobLifecyclePolicy)."""
        return await self.update_job(job_id, {"status": status})


def job_stats(jobs: Sequence[Job]) -> Dict[str, int]:
    """
    Count jobs per status.

    Returns:
        {"total": n, "queued": n, "in_progress": n, "completed": n, "delayed": n}
    """
    stats = {"total": len(jobs)}
    for status in JOB_STATUSES:
        stats[status] = sum(1 for j in jobs if j.status == status)
    return stats


def filter_jobs(
    jobs: Sequence[Job],
    workers: Sequence[Worker],
    status: str = "all",
    search: str = ""
) -> List[Job]:
    """
    Filter jobs by status and a free-text search.

    The search matches the job title or the assigned worker's name
    (case-insensitive); unassigned jobs match on "Unassigned".
    """
    names = {w.worker_id: w.name for w in workers}
    term = search.lower()

    def matches(job: Job) -> bool:
        if status != "all" and job.status != status:
            return False
        worker_name = names.get(job.assigned_worker, "Unassigned")
        return term in job.title.lower() or term in worker_name.lower()

    return [j for j in jobs if matches(j)]
