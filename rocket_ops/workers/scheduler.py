import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional

from rocket_ops.core.config import (
    DAILY_DIGEST_HOUR,
    FULL_SYNC_INTERVAL,
    OVERDUE_SCAN_INTERVAL,
)
from rocket_ops.core.exceptions import EntityNotFound
from rocket_ops.schemas.sync import JobState
from rocket_ops.services.notification_service import scan_overdue_tasks, send_daily_digest
from rocket_ops.services.reconciliation import full_sync
from rocket_ops.store import keys
from rocket_ops.store.base import EntityStore

log = logging.getLogger("scheduler")

JobHandler = Callable[[EntityStore, datetime], Awaitable[Any]]


def local_now() -> datetime:
    return datetime.now().astimezone()


def next_daily_run(now: datetime, hour: int) -> datetime:
    """Today at `hour`:00 unless that is already past, else tomorrow at `hour`:00."""
    scheduled = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if now > scheduled:
        scheduled += timedelta(days=1)
    return scheduled


@dataclass
class ScheduledJob:
    name: str
    handler: JobHandler
    interval: timedelta
    first_run: Callable[[datetime], datetime]


class JobScheduler:
    """
    Runs named jobs on their own schedules from one cancellable loop.

    Each job's next due time is kept in the `scheduler-state` collection, so
    a restarted process picks up the existing schedule. A due time that was
    missed while the process was down fires once, after which the job is
    rescheduled relative to now.
    """

    def __init__(self, store: EntityStore, jobs: List[ScheduledJob],
                 clock: Callable[[], datetime] = local_now, tick: float = 1.0):
        self.store = store
        self.jobs: Dict[str, ScheduledJob] = {job.name: job for job in jobs}
        self.clock = clock
        self.tick = tick
        # first due times of jobs with no persisted state count from here
        self.created_at = clock()
        self._states: Dict[str, JobState] = {}
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def load_state(self) -> None:
        persisted = {}
        for item in await self.store.get(keys.SCHEDULER_STATE) or []:
            state = JobState.model_validate(item)
            persisted[state.job] = state

        self._states = {}
        for name, job in self.jobs.items():
            state = persisted.get(name)
            if state is None:
                state = JobState(job=name, next_due=job.first_run(self.created_at))
            else:
                log.info(f"Resuming job '{name}', next due {state.next_due.isoformat()}")
            self._states[name] = state
        await self._save_state()

    async def _save_state(self) -> None:
        await self.store.set(keys.SCHEDULER_STATE, [s.model_dump(mode="json") for s in self._states.values()])

    async def _execute(self, job: ScheduledJob, state: JobState, now: datetime) -> None:
        try:
            await job.handler(self.store, now)
            state.last_error = None
        except Exception as e:
            log.error(f"Job '{job.name}' failed: {e}")
            state.last_error = str(e)
        state.last_run = now

    async def run_due_jobs(self) -> List[str]:
        """Runs every job whose due time has come. Returns the names that ran."""
        if not self._states:
            await self.load_state()
        now = self.clock()
        ran = []
        for name, job in self.jobs.items():
            state = self._states[name]
            if state.next_due > now:
                continue
            await self._execute(job, state, now)
            next_due = state.next_due + job.interval
            if next_due <= now:
                next_due = now + job.interval
            state.next_due = next_due
            ran.append(name)
        if ran:
            await self._save_state()
        return ran

    async def run_job_now(self, name: str) -> JobState:
        """Runs one job immediately without moving its next due time."""
        job = self.jobs.get(name)
        if job is None:
            raise EntityNotFound("Job", name)
        if not self._states:
            await self.load_state()
        state = self._states[name]
        await self._execute(job, state, self.clock())
        await self._save_state()
        return state

    def next_due(self, name: str) -> Optional[datetime]:
        state = self._states.get(name)
        return state.next_due if state else None

    def status(self) -> Dict[str, Any]:
        return {
            "running": self.running,
            "jobs": [
                {**state.model_dump(mode="json"), "interval_seconds": self.jobs[name].interval.total_seconds()}
                for name, state in self._states.items()
            ],
        }

    async def _loop(self) -> None:
        while True:
            try:
                await self.run_due_jobs()
            except Exception as e:
                log.error(f"Scheduler tick failed: {e}")
            await asyncio.sleep(self.tick)

    async def start(self) -> None:
        if self.running:
            return
        await self.load_state()
        self._task = asyncio.create_task(self._loop())
        log.info(f"Scheduler started with jobs: {', '.join(self.jobs)}")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        log.info("Scheduler stopped.")


async def _full_sync_job(store: EntityStore, now: datetime) -> None:
    await full_sync(store)


def build_default_jobs() -> List[ScheduledJob]:
    full_sync_every = timedelta(seconds=FULL_SYNC_INTERVAL)
    overdue_every = timedelta(seconds=OVERDUE_SCAN_INTERVAL)
    return [
        ScheduledJob("full-sync", _full_sync_job, full_sync_every, lambda now: now + full_sync_every),
        ScheduledJob("daily-digest", send_daily_digest, timedelta(days=1),
                     lambda now: next_daily_run(now, DAILY_DIGEST_HOUR)),
        ScheduledJob("overdue-scan", scan_overdue_tasks, overdue_every, lambda now: now + overdue_every),
    ]


async def run_scheduler_service():
    """Standalone scheduler process, for deployments that run the API without it."""
    from rocket_ops.core.db import close_db, init_db
    from rocket_ops.store.tortoise_store import TortoiseEntityStore

    await init_db()
    scheduler = JobScheduler(TortoiseEntityStore(), build_default_jobs())
    await scheduler.start()
    log.info("--- Scheduler Service Started ---")
    try:
        await asyncio.Event().wait()
    finally:
        await scheduler.stop()
        await close_db()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    try:
        asyncio.run(run_scheduler_service())
    except KeyboardInterrupt:
        log.info("Scheduler service stopped.")
