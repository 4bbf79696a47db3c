"""
Demo Data Generator - Create realistic shop floor scenarios

This module provides functions to generate demo data including:
- Machines, workers and jobs for the reference entity store
- Disruption events (machine breakdowns, worker absences)
- CSV bulk upload/export of jobs

All generators take an optional ``random.Random`` so scenarios can be
reproduced from a seed.
"""

import random
from typing import List, Optional, Dict, Any
from pathlib import Path

import pandas as pd

from models.job import Job, JOB_PRIORITIES
from models.machine import Machine
from models.worker import Worker
from models.alert import Disruption
from store.entity_store import InMemoryEntityStore, JOB, MACHINE, WORKER


# Machine type configurations
MACHINE_TYPES = {
    'cnc': {'prefix': 'CNC', 'capacity': 8, 'skills': ['cnc_programming']},
    'assembly': {'prefix': 'Assembly', 'capacity': 10, 'skills': ['assembly']},
    'welding': {'prefix': 'Weld', 'capacity': 6, 'skills': ['welding']},
    'packaging': {'prefix': 'Packaging', 'capacity': 12, 'skills': ['packaging']},
}

JOB_TITLES = {
    'cnc': ['Gearbox housing', 'Shaft coupling', 'Valve body'],
    'assembly': ['Pump assembly', 'Motor mount', 'Control panel'],
    'welding': ['Frame weldment', 'Bracket set', 'Tank seam'],
    'packaging': ['Export crates', 'Pallet wrap', 'Retail boxes'],
}

WORKER_NAMES = ['Dana', 'Luis', 'Priya', 'Kenji', 'Amara', 'Tomas', 'Mei', 'Owen']
SHIFTS = ['morning', 'evening', 'night']


def generate_machines(num_machines: int, rng: Optional[random.Random] = None) -> List[Machine]:
    """
    Generate machines spread over the known machine types.

    Args:
        num_machines: Number of machines to generate
        rng: Random source (module random if None)

    Returns:
        List of Machine objects
    """
    rng = rng or random.Random()
    types = list(MACHINE_TYPES)
    per_type: Dict[str, int] = {}
    machines = []

    for i in range(num_machines):
        machine_type = types[i % len(types)]
        per_type[machine_type] = per_type.get(machine_type, 0) + 1
        config = MACHINE_TYPES[machine_type]
        capacity = config['capacity']

        machines.append(Machine(
            machine_id=f"m-{i+1:03d}",
            name=f"{config['prefix']}-{per_type[machine_type]:02d}",
            machine_type=machine_type,
            location=f"Bay {chr(ord('A') + i % 4)}",
            capacity=capacity,
            current_load=rng.randint(0, capacity),
            efficiency_rating=rng.randint(75, 98),
            status=rng.choices(
                ['operational', 'maintenance', 'breakdown', 'idle'],
                weights=[70, 10, 5, 15]
            )[0],
        ))

    return machines


def generate_workers(num_workers: int, rng: Optional[random.Random] = None) -> List[Worker]:
    """
    Generate workers with one to three skills each.

    Args:
        num_workers: Number of workers to generate
        rng: Random source

    Returns:
        List of Worker objects
    """
    rng = rng or random.Random()
    all_skills = sorted({s for config in MACHINE_TYPES.values() for s in config['skills']})
    workers = []

    for i in range(num_workers):
        workers.append(Worker(
            worker_id=f"w-{i+1:03d}",
            name=f"{WORKER_NAMES[i % len(WORKER_NAMES)]} {i+1}",
            shift=SHIFTS[i % len(SHIFTS)],
            skills=set(rng.sample(all_skills, rng.randint(1, 3))),
            availability=rng.choices(
                ['available', 'busy', 'absent', 'break'],
                weights=[50, 35, 5, 10]
            )[0],
            efficiency_rating=rng.randint(70, 99),
        ))

    return workers


def generate_random_jobs(
    num_jobs: int,
    machines: List[Machine],
    rng: Optional[random.Random] = None
) -> List[Job]:
    """
    Generate queued production jobs for the given machines.

    Each job targets the type of a random machine and is assigned to it.

    Args:
        num_jobs: Number of jobs to generate
        machines: Machines jobs may be assigned to
        rng: Random source

    Returns:
        List of Job objects
    """
    if not machines:
        raise ValueError("At least one machine is required to generate jobs")

    rng = rng or random.Random()
    jobs = []

    for i in range(num_jobs):
        machine = rng.choice(machines)
        jobs.append(Job(
            job_id=f"j-{i+1:03d}",
            title=rng.choice(JOB_TITLES.get(machine.machine_type, ['Custom job'])),
            duration=round(rng.uniform(0.5, 6.0), 1),
            priority=rng.choice(JOB_PRIORITIES),
            status="queued",
            machine_type=machine.machine_type,
            assigned_machine=machine.machine_id,
            required_skills=set(MACHINE_TYPES.get(machine.machine_type, {}).get('skills', [])),
        ))

    return jobs


def generate_disruption(
    machines: List[Machine],
    workers: List[Worker],
    rng: Optional[random.Random] = None
) -> Disruption:
    """
    Pick a random machine breakdown or worker absence.

    Returns:
        Disruption event
    """
    rng = rng or random.Random()
    if machines and (not workers or rng.random() < 0.6):
        return Disruption.machine_failure(rng.choice(machines))
    if workers:
        return Disruption.worker_absence(rng.choice(workers))
    raise ValueError("Need at least one machine or worker to disrupt")


def simulated_efficiency_trend(rng: Optional[random.Random] = None) -> List[Dict[str, Any]]:
    """
    Random weekly efficiency figures for demo screens only.

    This is a placeholder; real trends come from
    utils.analytics.efficiency_trend over recorded KPI history.
    """
    rng = rng or random.Random()
    return [
        {
            'day': day,
            'efficiency': rng.randint(75, 94),
            'utilization': rng.randint(80, 94),
        }
        for day in ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']
    ]


def seed_store(
    num_machines: int = 6,
    num_workers: int = 8,
    num_jobs: int = 15,
    rng: Optional[random.Random] = None
) -> InMemoryEntityStore:
    """
    Create an in-memory store filled with a generated scenario.

    Returns:
        InMemoryEntityStore
    """
    rng = rng or random.Random()
    machines = generate_machines(num_machines, rng)
    workers = generate_workers(num_workers, rng)
    jobs = generate_random_jobs(num_jobs, machines, rng)

    return InMemoryEntityStore(seed={
        MACHINE: [m.to_dict() for m in machines],
        WORKER: [w.to_dict() for w in workers],
        JOB: [j.to_dict() for j in jobs],
    })


def export_jobs_to_csv(jobs: List[Job], output_path: str):
    """
    Export jobs to CSV file for bulk upload.

    Args:
        jobs: List of Job objects
        output_path: Path to save CSV
    """
    data = []
    for job in jobs:
        data.append({
            'title': job.title,
            'duration': job.duration,
            'priority': job.priority,
            'machine_type': job.machine_type,
            'required_skills': ','.join(sorted(job.required_skills)),
        })

    df = pd.DataFrame(data, columns=['title', 'duration', 'priority', 'machine_type', 'required_skills'])
    df.to_csv(output_path, index=False)


def import_jobs_from_csv(input_path: str) -> List[Dict[str, Any]]:
    """
    Read a bulk upload CSV into job field dictionaries.

    Expected columns: title, duration, priority (optional, default medium),
    machine_type (optional), required_skills (comma separated, optional).

    Returns:
        Field dictionaries suitable for JobManager.create_job

    Raises:
        ValueError: If a required column is missing
    """
    df = pd.read_csv(input_path, dtype={'required_skills': str}, keep_default_na=False)

    missing = {'title', 'duration'} - set(df.columns)
    if missing:
        raise ValueError(f"CSV is missing required column(s): {', '.join(sorted(missing))}")

    records = []
    for row in df.to_dict(orient='records'):
        skills = str(row.get('required_skills', '') or '')
        records.append({
            'title': str(row['title']),
            'duration': float(row['duration']),
            'priority': row.get('priority') or 'medium',
            'machine_type': row.get('machine_type') or '',
            'required_skills': [s.strip() for s in skills.split(',') if s.strip()],
        })
    return records


# Example usage and CLI
if __name__ == "__main__":
    rng = random.Random(42)
    machines = generate_machines(6, rng)
    workers = generate_workers(8, rng)
    jobs = generate_random_jobs(15, machines, rng)

    print(f"Generated {len(machines)} machines, {len(workers)} workers, {len(jobs)} jobs")
    print(f"Sample disruption: {generate_disruption(machines, workers, rng)}")

    output_dir = Path(__file__).parent.parent / 'data'
    output_dir.mkdir(exist_ok=True)
    export_jobs_to_csv(jobs, str(output_dir / 'demo_jobs.csv'))
    print(f"Exported jobs to {output_dir / 'demo_jobs.csv'}")
