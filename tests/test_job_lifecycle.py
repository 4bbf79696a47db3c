from datetime import datetime

import pytest

from agents.job_lifecycle import JobLifecyclePolicy
from models.exceptions import InvalidTransition
from conftest import make_job


NOW = datetime(2026, 3, 2, 10, 30)


@pytest.fixture
def policy():
    return JobLifecyclePolicy()


def test_starting_a_queued_job_sets_start_time(policy):
    job = make_job("j-1")

    changes = policy.transition(job, "in_progress", now=NOW)

    assert changes == {"status": "in_progress", "start_time": NOW.isoformat()}


def test_apply_returns_updated_copy(policy):
    job = make_job("j-1")

    started = policy.apply(job, "in_progress", now=NOW)

    assert started.status == "in_progress"
    assert started.start_time == NOW
    assert job.status == "queued"


def test_completing_without_start_time_is_rejected(policy):
    job = make_job("j-1", status="in_progress", start_time=None)

    with pytest.raises(InvalidTransition, match="never started"):
        policy.transition(job, "completed", now=NOW)


def test_completing_sets_end_time(policy):
    job = make_job("j-1", status="in_progress")

    completed = policy.apply(job, "completed", now=NOW)

    assert completed.end_time == NOW
    assert completed.start_time == datetime(2026, 3, 2, 8, 0)


def test_recovering_a_delayed_job_keeps_original_start_time(policy):
    job = make_job("j-1", status="delayed")

    changes = policy.transition(job, "in_progress", now=NOW)

    assert changes == {"status": "in_progress"}


def test_completed_is_terminal(policy):
    job = make_job("j-1", status="completed")

    with pytest.raises(InvalidTransition, match="terminal"):
        policy.transition(job, "in_progress", now=NOW)


def test_queued_job_cannot_jump_to_completed(policy):
    with pytest.raises(InvalidTransition):
        policy.transition(make_job("j-1"), "completed", now=NOW)


def test_unknown_status_is_rejected(policy):
    with pytest.raises(InvalidTransition, match="unknown status"):
        policy.transition(make_job("j-1"), "paused")


def test_same_status_is_a_no_op(policy):
    job = make_job("j-1", status="in_progress")

    assert policy.transition(job, "in_progress") == {}
    assert policy.apply(job, "in_progress") is job


def test_delayed_job_can_be_completed_directly(policy):
    job = make_job("j-1", status="delayed")

    completed = policy.apply(job, "completed", now=NOW)

    assert completed.status == "completed"
    assert completed.start_time == datetime(2026, 3, 2, 8, 0)
    assert completed.end_time == NOW


def test_queued_job_can_be_marked_delayed(policy):
    changes = policy.transition(make_job("j-1"), "delayed", now=NOW)

    assert changes == {"status": "delayed"}


def test_started_job_cannot_return_to_queue(policy):
    job = make_job("j-1", status="in_progress")

    with pytest.raises(InvalidTransition, match="already started"):
        policy.transition(job, "queued", now=NOW)


def test_delayed_job_that_never_started_can_be_requeued(policy):
    job = make_job("j-1", status="delayed", start_time=None)

    assert policy.transition(job, "queued", now=NOW) == {"status": "queued"}


def test_can_transition_checks_job_state():
    policy = JobLifecyclePolicy()

    assert policy.can_transition(make_job("j-1", status="in_progress"), "delayed")
    assert policy.can_transition(make_job("j-1"), "delayed")
    assert not policy.can_transition(make_job("j-1"), "completed")
    assert not policy.can_transition(make_job("j-1", status="completed"), "queued")
