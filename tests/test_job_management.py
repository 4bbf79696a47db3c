from datetime import datetime

import pytest

from models.exceptions import InvalidTransition, StorageError
from store.entity_store import JOB
from workflows.job_management import JobManager, job_stats, filter_jobs
from conftest import make_job, make_worker


@pytest.mark.asyncio
async def test_create_job_is_queued_and_reloaded(session, store):
    await session.reload(store)
    manager = JobManager(store, session)

    job = await manager.create_job({
        "title": "Bracket set",
        "duration": "1.5",
        "priority": "high",
        "machine_type": "welding",
        "status": "completed",
        "required_skills": ["welding"],
    })

    assert job.status == "queued"
    assert job.duration == 1.5
    assert job.required_skills == {"welding"}
    assert session.find_job(job.job_id) is not None


@pytest.mark.asyncio
async def test_create_invalid_job_never_reaches_store(session, store):
    await session.reload(store)

    with pytest.raises(ValueError, match="Priority"):
        await JobManager(store, session).create_job({"title": "X", "duration": 1, "priority": "urgent"})

    assert len(await store.list(JOB)) == 3


@pytest.mark.asyncio
async def test_starting_a_job_stamps_start_time_in_store(session, store):
    await session.reload(store)

    job = await JobManager(store, session).update_status("j-1", "in_progress")

    assert job.status == "in_progress"
    assert isinstance(job.start_time, datetime)
    assert session.find_job("j-1").start_time == job.start_time


@pytest.mark.asyncio
async def test_completing_a_queued_job_is_rejected(session, store):
    await session.reload(store)

    with pytest.raises(InvalidTransition):
        await JobManager(store, session).update_status("j-1", "completed")

    stored = {r["id"]: r for r in await store.list(JOB)}
    assert stored["j-1"]["status"] == "queued"


@pytest.mark.asyncio
async def test_update_passes_plain_fields_through(session, store):
    await session.reload(store)

    job = await JobManager(store, session).update_job("j-2", {"priority": "critical", "assigned_worker": "w-1"})

    assert job.priority == "critical"
    assert job.assigned_worker == "w-1"


@pytest.mark.asyncio
async def test_store_failure_is_surfaced(session, store):
    await session.reload(store)

    class _BrokenStore:
        async def update(self, record_type, record_id, fields):
            raise StorageError("write rejected")

    with pytest.raises(StorageError, match="write rejected"):
        await JobManager(_BrokenStore(), session).update_status("j-2", "delayed")


@pytest.mark.asyncio
async def test_update_unknown_job(session, store):
    await session.reload(store)

    with pytest.raises(KeyError):
        await JobManager(store, session).update_status("missing", "in_progress")


def test_job_stats():
    jobs = [make_job("j-1"), make_job("j-2", status="delayed"), make_job("j-3", status="delayed")]

    assert job_stats(jobs) == {
        "total": 3, "queued": 1, "in_progress": 0, "completed": 0, "delayed": 2,
    }


def test_filter_jobs_by_status_and_search():
    workers = [make_worker("w-1", name="Priya Nair")]
    jobs = [
        make_job("j-1", title="Pump assembly", assigned_worker="w-1"),
        make_job("j-2", title="Valve body", status="delayed"),
    ]

    assert [j.job_id for j in filter_jobs(jobs, workers, search="priya")] == ["j-1"]
    assert [j.job_id for j in filter_jobs(jobs, workers, search="VALVE")] == ["j-2"]
    assert [j.job_id for j in filter_jobs(jobs, workers, status="delayed")] == ["j-2"]
    assert [j.job_id for j in filter_jobs(jobs, workers, search="unassigned")] == ["j-2"]
