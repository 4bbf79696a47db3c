"""
Job Lifecycle Policy

Validates job status changes and computes their timestamp side effects.

    queued ──> in_progress ──> completed (terminal)
                   │   ^
                   v   │
                  delayed

The edges above are the normal flow. Any other status is a free-form
overwrite, accepted as long as the resulting job stays consistent:

    - First entry into in_progress stamps start_time (if unset)
    - Entry into completed stamps end_time and requires a start_time
    - A started job cannot go back to queued
    - completed is terminal
    - Re-applying the current status is an idempotent no-op

The policy only validates; the entity store remains the system of record.
"""

import dataclasses
from datetime import datetime
from typing import Dict, Any, Optional

from models.job import Job, JOB_STATUSES, format_timestamp
from models.exceptions import InvalidTransition


class JobLifecyclePolicy:
    """
    Status change rules for production jobs.
    """

    def rejection_reason(self, job: Job, requested: str) -> Optional[str]:
        """
        Explain why a status change is not allowed.

        Returns:
            None when the change is allowed, otherwise the reason
        """
        if requested not in JOB_STATUSES:
            return "unknown status"
        if requested == job.status:
            return None
        if job.status == "completed":
            return "completed is terminal"
        if requested == "queued" and job.start_time is not None:
            return "job was already started"
        if requested == "completed" and job.start_time is None:
            return "job was never started"
        return None

    def can_transition(self, job: Job, requested: str) -> bool:
        """Check whether a status change is permitted for this job."""
        return self.rejection_reason(job, requested) is None

    def transition(self, job: Job, new_status: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Validate a status change and compute the fields to persist.

        Args:
            job: Job in its current state
            new_status: Requested status
            now: Time used for timestamps (defaults to now)

        Returns:
            Partial record (status plus any timestamp fields) for the store

        Raises:
            InvalidTransition: If the change is not allowed
        """
        reason = self.rejection_reason(job, new_status)
        if reason is not None:
            raise InvalidTransition(job.job_id, job.status, new_status, reason)

        if new_status == job.status:
            return {}

        now = now or datetime.now()
        changes: Dict[str, Any] = {"status": new_status}

        if new_status == "in_progress" and job.start_time is None:
            changes["start_time"] = format_timestamp(now)

        if new_status == "completed":
            changes["end_time"] = format_timestamp(now)

        return changes

    def apply(self, job: Job, new_status: str, now: Optional[datetime] = None) -> Job:
        """
        Return a copy of the job moved to ``new_status``.

        Raises:
            InvalidTransition: If the change is not allowed
        """
        now = now or datetime.now()
        changes = self.transition(job, new_status, now)
        if not changes:
            return job

        updates: Dict[str, Any] = {"status": new_status}
        if "start_time" in changes:
            updates["start_time"] = now
        if "end_time" in changes:
            updates["end_time"] = now
        return dataclasses.replace(job, **updates)
