from datetime import datetime, timedelta, timezone

import pytest

from rocket_ops.schemas.common import EisenhowerQuadrant
from rocket_ops.schemas.tasks import Task, User
from rocket_ops.services.notification_service import (
    digest_title,
    scan_overdue_tasks,
    send_daily_digest,
)
from rocket_ops.store import keys
from rocket_ops.store.memory import InMemoryEntityStore

NOW = datetime(2026, 10, 17, 8, 0, tzinfo=timezone.utc)


def _task(title, assignee="u1", days=1.0, **overrides):
    return Task(title=title, assignee_id=assignee, deadline=NOW + timedelta(days=days), **overrides)


def _store(users, tasks):
    return InMemoryEntityStore({
        keys.USERS: [u.model_dump(mode="json") for u in users],
        keys.TASKS: [t.model_dump(mode="json") for t in tasks],
    })


USERS = [
    User(id="u1", name="Ada", email="ada@example.org"),
    User(id="u2", name="Quiet", email="quiet@example.org", email_updates=False),
]


class TestDailyDigest:
    @pytest.mark.asyncio
    async def test_digest_collects_open_tasks_due_within_a_week(self):
        tasks = [
            _task("Soon", days=3),
            _task("Edge", days=6.5),
            _task("Later", days=7.5),
            _task("Done", days=1, status="completed"),
            _task("Overdue", days=-2),
        ]
        store = _store(USERS, tasks)

        sent = await send_daily_digest(store, NOW)

        notifications = await store.get(keys.NOTIFICATIONS)
        assert sent == 1
        assert len(notifications) == 1
        digest = notifications[0]
        assert digest["type"] == "daily-digest"
        assert digest["user_id"] == "u1"
        titles = {t.id: t.title for t in tasks}
        assert sorted(titles[i] for i in digest["task_ids"]) == ["Edge", "Overdue", "Soon"]

    @pytest.mark.asyncio
    async def test_opted_out_users_get_nothing(self):
        store = _store(USERS, [_task("Theirs", assignee="u2")])

        assert await send_daily_digest(store, NOW) == 0
        assert await store.get(keys.NOTIFICATIONS) is None

    def test_title_counts_urgent_tasks(self):
        tasks = [
            _task("Tomorrow-ish", days=0.5),
            _task("Flagged", days=5, priority=EisenhowerQuadrant.IMPORTANT_URGENT),
            _task("Calm", days=5),
        ]
        assert digest_title(tasks, NOW) == "Your Daily Tasks - Saturday, October 17, 2026 (3 tasks, 2 urgent)"

    def test_title_omits_urgent_when_none(self):
        assert digest_title([_task("Calm", days=5)], NOW) == "Your Daily Tasks - Saturday, October 17, 2026 (1 tasks)"


class TestOverdueScan:
    @pytest.mark.asyncio
    async def test_one_notification_per_user_with_overdue_work(self):
        tasks = [
            _task("Late A", days=-1),
            _task("Late B", days=-0.1, status="in-progress"),
            _task("Cancelled", days=-3, status="cancelled"),
            _task("Finished", days=-3, status="completed"),
            _task("Future", days=2),
            _task("Late but muted", assignee="u2", days=-1),
        ]
        store = _store(USERS, tasks)

        sent = await scan_overdue_tasks(store, NOW)

        notifications = await store.get(keys.NOTIFICATIONS)
        assert sent == 1
        assert notifications[0]["type"] == "task-overdue"
        assert notifications[0]["message"] == "Late A, Late B"
        assert notifications[0]["title"] == "2 overdue task(s)"

    @pytest.mark.asyncio
    async def test_nothing_overdue(self, store):
        assert await scan_overdue_tasks(store, NOW) == 0


class TestNaiveDeadlines:
    """Deadlines written without an offset are read as UTC."""

    @pytest.fixture
    def naive_store(self):
        return InMemoryEntityStore({
            keys.USERS: [u.model_dump(mode="json") for u in USERS],
            keys.TASKS: [
                {"id": "t1", "title": "Late", "assignee_id": "u1", "deadline": "2026-10-16T08:00:00"},
                {"id": "t2", "title": "Soon", "assignee_id": "u1", "deadline": "2026-10-20T08:00:00"},
            ],
        })

    def test_naive_deadline_is_made_utc(self):
        task = Task(title="Naive", assignee_id="u1", deadline="2026-10-20T08:00:00")
        assert task.deadline == datetime(2026, 10, 20, 8, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_digest_handles_naive_deadlines(self, naive_store):
        assert await send_daily_digest(naive_store, NOW) == 1
        digest = (await naive_store.get(keys.NOTIFICATIONS))[0]
        assert sorted(digest["task_ids"]) == ["t1", "t2"]

    @pytest.mark.asyncio
    async def test_overdue_scan_handles_naive_deadlines(self, naive_store):
        assert await scan_overdue_tasks(naive_store, NOW) == 1
        assert (await naive_store.get(keys.NOTIFICATIONS))[0]["message"] == "Late"
