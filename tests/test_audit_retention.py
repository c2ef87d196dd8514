import asyncio
from datetime import timedelta

import pytest

from barangay_audit.core.config import Settings
from barangay_audit.core.errors import StorageError, SweepError
from barangay_audit.jobs.audit_retention import RetentionSweeper, audit_retention_loop
from conftest import NOW, make_event


def _sweeper(repo, **kwargs) -> RetentionSweeper:
    kwargs.setdefault("startup_delay", timedelta(0))
    return RetentionSweeper(repo, clock=lambda: NOW, **kwargs)


async def test_sweep_deletes_only_events_past_retention(repo, add_events):
    old, recent = await add_events(
        make_event("CreateUser", "old", minutes_ago=100 * 24 * 60),
        make_event("CreateUser", "recent", minutes_ago=10 * 24 * 60),
    )

    deleted = await _sweeper(repo, retention=timedelta(days=90)).sweep_once()

    assert deleted == 1
    assert repo.get_all() == [recent]


async def test_sweep_is_idempotent(repo, add_events):
    await add_events(make_event("CreateUser", "old", minutes_ago=100 * 24 * 60))
    sweeper = _sweeper(repo)

    assert await sweeper.sweep_once() == 1
    assert await sweeper.sweep_once() == 0


def test_interval_and_retention_have_floors(repo):
    sweeper = RetentionSweeper(repo, interval=timedelta(minutes=5), retention=timedelta(hours=2))

    assert sweeper.interval == timedelta(hours=1)
    assert sweeper.retention == timedelta(days=1)


def test_defaults_and_settings():
    sweeper = RetentionSweeper(object())
    assert sweeper.interval == timedelta(hours=24)
    assert sweeper.retention == timedelta(days=90)

    settings = Settings(
        audit_cleanup_interval_hours=0,
        audit_retention_days=-3,
        audit_cleanup_startup_delay_seconds=1,
    )
    configured = RetentionSweeper.from_settings(object(), settings)
    assert configured.interval == timedelta(hours=1)
    assert configured.retention == timedelta(days=1)
    assert configured.startup_delay == timedelta(seconds=1)


async def test_sweep_failure_is_wrapped():
    class DownRepo:
        async def delete_older_than(self, cutoff):
            raise StorageError("mongo unreachable")

    sweeper = _sweeper(DownRepo())

    with pytest.raises(SweepError):
        await sweeper.sweep_once()
    assert sweeper.running is False


async def test_loop_survives_failed_sweeps(caplog):
    stop_event = asyncio.Event()

    class FlakyRepo:
        def __init__(self):
            self.calls = 0

        async def delete_older_than(self, cutoff):
            self.calls += 1
            if self.calls == 1:
                raise StorageError("mongo unreachable")
            stop_event.set()
            return 0

    repo = FlakyRepo()
    sweeper = _sweeper(repo)
    sweeper.interval = timedelta(seconds=0)

    await asyncio.wait_for(sweeper.run(stop_event), timeout=5)

    assert repo.calls == 2
    assert "Audit retention sweep failed" in caplog.text


async def test_stop_during_startup_delay_skips_sweeping():
    class Repo:
        calls = 0

        async def delete_older_than(self, cutoff):
            Repo.calls += 1
            return 0

    stop_event = asyncio.Event()
    sweeper = _sweeper(Repo(), startup_delay=timedelta(hours=1))

    task = asyncio.create_task(sweeper.run(stop_event))
    await asyncio.sleep(0)
    stop_event.set()
    await asyncio.wait_for(task, timeout=5)

    assert Repo.calls == 0


async def test_stop_interrupts_wait_between_sweeps(repo, add_events):
    await add_events(make_event("CreateUser", "old", minutes_ago=100 * 24 * 60))
    stop_event = asyncio.Event()
    sweeper = _sweeper(repo)

    task = asyncio.create_task(sweeper.run(stop_event))
    for _ in range(50):
        if not repo.get_all():
            break
        await asyncio.sleep(0.01)
    stop_event.set()
    await asyncio.wait_for(task, timeout=5)

    assert repo.get_all() == []


async def test_loop_helper_reads_settings(repo, add_events):
    await add_events(make_event("CreateUser", "old", minutes_ago=400 * 24 * 60))
    stop_event = asyncio.Event()
    settings = Settings(audit_cleanup_startup_delay_seconds=0, audit_retention_days=90)

    task = asyncio.create_task(audit_retention_loop(repo, settings, stop_event))
    for _ in range(50):
        if not repo.get_all():
            break
        await asyncio.sleep(0.01)
    stop_event.set()
    await asyncio.wait_for(task, timeout=5)

    assert repo.get_all() == []
