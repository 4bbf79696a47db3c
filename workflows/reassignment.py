"""
Reassignment Coordinator - Move a job between machines

Drag-initiated moves must show up instantly, but the entity store is
authoritative. Each move therefore:

    1. Applies the new assigned_machine to the session (optimistic update)
    2. Persists the change to the store
    3. Reloads the full snapshot, whether or not step 2 succeeded

A failed persistence call is not rolled back locally; the reload in step 3
overwrites the optimistic value with the stored one.
"""

import logging
from dataclasses import dataclass

from store.entity_store import EntityStore, JOB
from models.exceptions import StorageError
from workflows.session import ProductionSession


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReassignmentResult:
    """Outcome of a reassign() call."""
    job_id: str
    from_machine_id: str
    to_machine_id: str
    persisted: bool          # False for same-machine no-ops


class ReassignmentCoordinator:
    """
    Handles job-to-machine move requests for one session.
    """

    def __init__(self, store: EntityStore, session: ProductionSession):
        self.store = store
        self.session = session

    async def reassign(self, job_id: str, from_machine_id: str, to_machine_id: str) -> ReassignmentResult:
        """
        Move a job to another machine.

        Args:
            job_id: Job being moved
            from_machine_id: Machine the job was dragged from
            to_machine_id: Destination machine

        Returns:
            ReassignmentResult

        Raises:
            KeyError: If the job is not in the session snapshot
            StorageError: If persisting the move fails (after reconciling)
        """
        if from_machine_id == to_machine_id:
            return ReassignmentResult(job_id, from_machine_id, to_machine_id, persisted=False)

        # Optimistic update, visible before the store answers
        self.session.replace_job(job_id, assigned_machine=to_machine_id)
        logger.info("Reassigning job %s: %s -> %s", job_id, from_machine_id, to_machine_id)

        try:
            await self.store.update(JOB, job_id, {"assigned_machine": to_machine_id})
        except StorageError:
            logger.warning("Persisting reassignment of job %s failed; reconciling", job_id)
            raise
        finally:
            await self.session.reload(self.store)

        return ReassignmentResult(job_id, from_machine_id, to_machine_id, persisted=True)
