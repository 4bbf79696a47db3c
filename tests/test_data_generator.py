import random

import pytest

from store.entity_store import JOB, MACHINE, WORKER
from utils.data_generator import (
    export_jobs_to_csv,
    generate_disruption,
    generate_machines,
    generate_random_jobs,
    generate_workers,
    import_jobs_from_csv,
    seed_store,
    simulated_efficiency_trend,
)


def test_generators_are_reproducible_from_a_seed():
    first = generate_machines(5, random.Random(3))
    second = generate_machines(5, random.Random(3))

    assert first == second
    assert [m.name for m in first][:2] == ["CNC-01", "Assembly-01"]


def test_generated_jobs_target_existing_machines():
    rng = random.Random(1)
    machines = generate_machines(4, rng)

    jobs = generate_random_jobs(10, machines, rng)

    machine_ids = {m.machine_id for m in machines}
    assert all(j.assigned_machine in machine_ids for j in jobs)
    assert all(j.status == "queued" for j in jobs)


def test_jobs_need_machines():
    with pytest.raises(ValueError):
        generate_random_jobs(3, [])


def test_disruption_targets_a_known_resource():
    rng = random.Random(5)
    machines = generate_machines(2, rng)
    workers = generate_workers(2, rng)

    disruption = generate_disruption(machines, workers, rng)

    assert disruption.resource in {m.name for m in machines} | {w.name for w in workers}


def test_simulated_trend_is_a_week_of_figures():
    trend = simulated_efficiency_trend(random.Random(0))

    assert [row["day"] for row in trend][0] == "Mon"
    assert len(trend) == 7


@pytest.mark.asyncio
async def test_seed_store_holds_the_scenario():
    store = seed_store(num_machines=3, num_workers=2, num_jobs=5, rng=random.Random(9))

    assert len(await store.list(MACHINE)) == 3
    assert len(await store.list(WORKER)) == 2
    assert len(await store.list(JOB)) == 5


def test_csv_bulk_upload(tmp_path):
    path = tmp_path / "jobs.csv"
    path.write_text(
        "title,duration,priority,machine_type,required_skills\n"
        "Valve body,2.5,high,cnc,\"cnc_programming, quality_control\"\n"
        "Export crates,1,,packaging,\n"
    )

    records = import_jobs_from_csv(str(path))

    assert records[0] == {
        "title": "Valve body",
        "duration": 2.5,
        "priority": "high",
        "machine_type": "cnc",
        "required_skills": ["cnc_programming", "quality_control"],
    }
    assert records[1]["priority"] == "medium"
    assert records[1]["required_skills"] == []


def test_csv_export_can_be_uploaded_again(tmp_path):
    rng = random.Random(2)
    jobs = generate_random_jobs(3, generate_machines(2, rng), rng)
    path = tmp_path / "export.csv"

    export_jobs_to_csv(jobs, str(path))

    assert [r["title"] for r in import_jobs_from_csv(str(path))] == [j.title for j in jobs]


def test_csv_without_required_columns(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("name,hours\nX,1\n")

    with pytest.raises(ValueError, match="duration, title"):
        import_jobs_from_csv(str(path))
