import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from rocket_ops.core.exceptions import EntityNotFound
from rocket_ops.schemas.sync import JobState
from rocket_ops.store import keys
from rocket_ops.workers.scheduler import (
    JobScheduler,
    ScheduledJob,
    build_default_jobs,
    next_daily_run,
)

START = datetime(2026, 3, 2, 7, 30, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def recording_job(name="tick", seconds=30, first_run=None, fail=False):
    calls = []

    async def handler(store, now):
        calls.append(now)
        if fail:
            raise RuntimeError("job exploded")

    first = first_run or (lambda now: now + timedelta(seconds=seconds))
    return ScheduledJob(name, handler, timedelta(seconds=seconds), first), calls


class TestNextDailyRun:
    def test_before_the_hour_is_today(self):
        assert next_daily_run(START, 8) == START.replace(hour=8, minute=0)

    def test_exactly_on_the_hour_is_today(self):
        now = START.replace(hour=8, minute=0)
        assert next_daily_run(now, 8) == now

    def test_after_the_hour_is_tomorrow(self):
        now = START.replace(hour=8, minute=0, second=1)
        assert next_daily_run(now, 8) == datetime(2026, 3, 3, 8, 0, tzinfo=timezone.utc)


class TestJobScheduler:
    @pytest.mark.asyncio
    async def test_job_fires_after_one_interval(self, store):
        clock = FakeClock(START)
        job, calls = recording_job()
        scheduler = JobScheduler(store, [job], clock=clock)

        assert await scheduler.run_due_jobs() == []
        clock.advance(seconds=30)
        assert await scheduler.run_due_jobs() == ["tick"]
        assert calls == [clock.now]
        assert scheduler.next_due("tick") == START + timedelta(seconds=60)

    @pytest.mark.asyncio
    async def test_state_is_persisted_and_resumed(self, store):
        clock = FakeClock(START)
        job, _ = recording_job()
        await JobScheduler(store, [job], clock=clock).load_state()

        clock.advance(seconds=20)
        restarted = JobScheduler(store, [job], clock=clock)
        await restarted.load_state()

        assert restarted.next_due("tick") == START + timedelta(seconds=30)
        clock.advance(seconds=10)
        assert await restarted.run_due_jobs() == ["tick"]

    @pytest.mark.asyncio
    async def test_missed_runs_fire_once_then_continue_from_now(self, store):
        stale = {"job": "tick", "next_due": (START - timedelta(hours=5)).isoformat()}
        await store.set(keys.SCHEDULER_STATE, [stale])
        clock = FakeClock(START)
        job, calls = recording_job()
        scheduler = JobScheduler(store, [job], clock=clock)
        await scheduler.load_state()

        assert await scheduler.run_due_jobs() == ["tick"]
        assert await scheduler.run_due_jobs() == []
        assert len(calls) == 1
        persisted = (await store.get(keys.SCHEDULER_STATE))[0]
        assert JobState.model_validate(persisted).next_due == START + timedelta(seconds=30)

    @pytest.mark.asyncio
    async def test_failing_job_is_recorded_and_rescheduled(self, store):
        clock = FakeClock(START)
        bad, _ = recording_job("bad", fail=True)
        good, good_calls = recording_job("good")
        scheduler = JobScheduler(store, [bad, good], clock=clock)

        clock.advance(seconds=30)
        assert await scheduler.run_due_jobs() == ["bad", "good"]

        states = {s["job"]: s for s in scheduler.status()["jobs"]}
        assert states["bad"]["last_error"] == "job exploded"
        assert states["good"]["last_error"] is None
        assert len(good_calls) == 1

    @pytest.mark.asyncio
    async def test_first_due_time_counts_from_construction(self, store):
        clock = FakeClock(START)
        job, calls = recording_job()
        scheduler = JobScheduler(store, [job], clock=clock)

        clock.advance(seconds=45)

        assert await scheduler.run_due_jobs() == ["tick"]
        assert calls == [START + timedelta(seconds=45)]
        assert scheduler.next_due("tick") == START + timedelta(seconds=60)

    @pytest.mark.asyncio
    async def test_naive_persisted_times_are_read_as_utc(self, store):
        naive = {"job": "tick", "next_due": "2026-03-02T07:00:00", "last_run": "2026-03-02T06:59:30"}
        await store.set(keys.SCHEDULER_STATE, [naive])
        job, calls = recording_job()
        scheduler = JobScheduler(store, [job], clock=FakeClock(START))
        await scheduler.load_state()

        assert scheduler.next_due("tick") == START - timedelta(minutes=30)
        assert await scheduler.run_due_jobs() == ["tick"]
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_run_job_now_keeps_schedule(self, store):
        clock = FakeClock(START)
        job, calls = recording_job()
        scheduler = JobScheduler(store, [job], clock=clock)

        state = await scheduler.run_job_now("tick")

        assert len(calls) == 1
        assert state.last_run == START
        assert state.next_due == START + timedelta(seconds=30)

    @pytest.mark.asyncio
    async def test_run_unknown_job(self, store):
        scheduler = JobScheduler(store, [], clock=FakeClock(START))
        with pytest.raises(EntityNotFound):
            await scheduler.run_job_now("nope")

    @pytest.mark.asyncio
    async def test_start_and_stop(self, store):
        job, calls = recording_job(first_run=lambda now: now)
        scheduler = JobScheduler(store, [job], tick=0.01)

        await scheduler.start()
        assert scheduler.running
        await asyncio.sleep(0.05)
        await scheduler.stop()

        assert not scheduler.running
        assert len(calls) == 1
        count = len(calls)
        await asyncio.sleep(0.03)
        assert len(calls) == count


def test_default_jobs():
    jobs = {job.name: job for job in build_default_jobs()}

    assert set(jobs) == {"full-sync", "daily-digest", "overdue-scan"}
    assert jobs["full-sync"].interval == timedelta(seconds=30)
    assert jobs["full-sync"].first_run(START) == START + timedelta(seconds=30)
    assert jobs["daily-digest"].interval == timedelta(days=1)
    assert jobs["daily-digest"].first_run(START) == START.replace(hour=8, minute=0)
    assert jobs["overdue-scan"].first_run(START) == START + timedelta(hours=1)
