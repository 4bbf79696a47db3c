import logging

import pytest

from models.alert import Alert, SOURCE_DISRUPTION
from store.entity_store import JOB, MACHINE
from utils.config_loader import ControlSettings
from workflows.session import AlertFeed, ProductionSession
from conftest import make_job, make_machine, make_worker


def _disruption_alert(title="Disruption: Machine Breakdown"):
    return Alert("critical", title, "CNC-02 affected", source=SOURCE_DISRUPTION, disruption_id="d-1")


def test_feed_prepends_newest_first():
    feed = AlertFeed()
    first = feed.prepend(Alert("info", "first", ""))
    second = feed.prepend(Alert("info", "second", ""))

    assert feed.alerts == [second, first]


def test_status_alerts_are_replaced_but_disruption_alerts_survive():
    feed = AlertFeed()
    disruption = feed.prepend(_disruption_alert())
    feed.replace_status_alerts([Alert("warning", "Jobs Delayed", "1 jobs are behind schedule")])

    fresh = [Alert("critical", "Machine Breakdown", "CNC-02 requires attention")]
    feed.replace_status_alerts(fresh)

    assert feed.alerts == fresh + [disruption]
    assert feed.for_disruption("d-1") == [disruption]


def test_load_snapshot_derives_kpis_and_alerts(session):
    session.load_snapshot(
        [make_job("j-1", status="delayed")],
        [make_machine("m-1"), make_machine("m-2", status="breakdown")],
        [make_worker("w-1")],
    )

    assert session.kpis[0].value == "50%"
    assert [a.title for a in session.alerts] == ["Jobs Delayed", "Machine Breakdown"]
    assert len(session.history) == 1


@pytest.mark.asyncio
async def test_reload_reads_store(session, store):
    await session.reload(store)

    assert {j.job_id for j in session.jobs} == {"j-1", "j-2", "j-3"}
    assert len(session.machines) == 3
    assert len(session.workers) == 2
    assert session.kpis[1].value == "1/3"
    assert [a.title for a in session.alerts] == ["Jobs Delayed"]


@pytest.mark.asyncio
async def test_reload_respects_job_limit(store):
    session = ProductionSession(ControlSettings(settling_delay_seconds=0, job_list_limit=2))

    await session.reload(store)

    assert [j.job_id for j in session.jobs] == ["j-3", "j-2"]


def test_replace_job_unknown_id(session):
    with pytest.raises(KeyError):
        session.replace_job("nope", assigned_machine="m-1")


def test_optimizing_flag_counts_in_flight_requests(session):
    assert not session.is_optimizing

    session.begin_optimization()
    session.begin_optimization()
    session.end_optimization()
    assert session.is_optimizing

    session.end_optimization()
    assert not session.is_optimizing


def test_end_optimization_without_request_is_an_error(session):
    with pytest.raises(RuntimeError):
        session.end_optimization()


@pytest.mark.asyncio
async def test_reload_drops_start_time_of_requeued_job(session, store):
    await store.update(JOB, "j-2", {"status": "queued"})

    await session.reload(store)

    requeued = session.find_job("j-2")
    assert requeued.status == "queued"
    assert requeued.start_time is None
    assert len(session.jobs) == 3


@pytest.mark.asyncio
async def test_reload_skips_records_that_do_not_validate(session, store, caplog):
    await store.update(MACHINE, "m-2", {"status": "exploded"})
    await store.update(JOB, "j-1", {"duration": 0})

    with caplog.at_level(logging.WARNING, logger="workflows.session"):
        await session.reload(store)

    assert [m.machine_id for m in session.machines] == ["m-1", "m-3"]
    assert {j.job_id for j in session.jobs} == {"j-2", "j-3"}
    assert "Skipping invalid machine record m-2" in caplog.text
