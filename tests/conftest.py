from __future__ import annotations

import asyncio
import sys
from datetime import datetime
from pathlib import Path

import pytest

# Ensure tests always import the local tree, not an older installed copy.
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from models.job import Job
from models.machine import Machine
from models.worker import Worker
from store.entity_store import InMemoryEntityStore, JOB, MACHINE, WORKER
from utils.config_loader import ControlSettings
from workflows.session import ProductionSession


NOW = datetime(2026, 3, 2, 10, 30)


def make_job(job_id="j-1", status="queued", **overrides) -> Job:
    fields = dict(
        job_id=job_id,
        title=f"Job {job_id}",
        duration=2.0,
        priority="medium",
        status=status,
        machine_type="cnc",
    )
    if status in ("in_progress", "delayed", "completed") and "start_time" not in overrides:
        fields["start_time"] = datetime(2026, 3, 2, 8, 0)
    if status == "completed" and "end_time" not in overrides:
        fields["end_time"] = datetime(2026, 3, 2, 9, 0)
    fields.update(overrides)
    return Job(**fields)


def make_machine(machine_id="m-1", status="operational", **overrides) -> Machine:
    fields = dict(
        machine_id=machine_id,
        name=machine_id.upper(),
        machine_type="cnc",
        location="Bay A",
        capacity=8,
        current_load=4,
        efficiency_rating=90,
        status=status,
    )
    fields.update(overrides)
    return Machine(**fields)


def make_worker(worker_id="w-1", availability="available", **overrides) -> Worker:
    fields = dict(
        worker_id=worker_id,
        name=f"Worker {worker_id}",
        shift="morning",
        skills={"cnc_programming"},
        availability=availability,
    )
    fields.update(overrides)
    return Worker(**fields)


async def wait_until(condition, timeout: float = 2.0) -> None:
    """Poll ``condition`` on the event loop until it holds."""
    async def _poll():
        while not condition():
            await asyncio.sleep(0.001)

    await asyncio.wait_for(_poll(), timeout)


@pytest.fixture
def settings() -> ControlSettings:
    return ControlSettings(settling_delay_seconds=0)


@pytest.fixture
def store() -> InMemoryEntityStore:
    return InMemoryEntityStore(seed={
        MACHINE: [
            make_machine("m-1").to_dict(),
            make_machine("m-2").to_dict(),
            make_machine("m-3", status="idle").to_dict(),
        ],
        WORKER: [
            make_worker("w-1").to_dict(),
            make_worker("w-2", availability="busy").to_dict(),
        ],
        JOB: [
            make_job("j-1", assigned_machine="m-1").to_dict(),
            make_job("j-2", status="in_progress", assigned_machine="m-2").to_dict(),
            make_job("j-3", status="delayed", assigned_machine="m-2").to_dict(),
        ],
    })


@pytest.fixture
def session(settings) -> ProductionSession:
    return ProductionSession(settings)
