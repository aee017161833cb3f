import logging
import math
from datetime import datetime, timedelta
from typing import List

from rocket_ops.core.config import DIGEST_WINDOW_DAYS
from rocket_ops.events.notifications import create_notification
from rocket_ops.schemas.common import EisenhowerQuadrant
from rocket_ops.schemas.tasks import Task, User
from rocket_ops.store import keys
from rocket_ops.store.base import EntityStore

log = logging.getLogger("notifications")

CLOSED_STATUSES = ("completed", "cancelled")


async def _load_users_and_tasks(store: EntityStore):
    users = [User.model_validate(u) for u in await store.get(keys.USERS) or []]
    tasks = [Task.model_validate(t) for t in await store.get(keys.TASKS) or []]
    return users, tasks


def days_until(deadline: datetime, now: datetime) -> int:
    return math.ceil((deadline - now).total_seconds() / 86400)


def digest_tasks(tasks: List[Task], user_id: str, now: datetime) -> List[Task]:
    """Open tasks of `user_id` due within the digest window (overdue ones included)."""
    return [
        t for t in tasks
        if t.assignee_id == user_id
        and t.status != "completed"
        and days_until(t.deadline, now) <= DIGEST_WINDOW_DAYS
    ]


def is_urgent(task: Task, now: datetime) -> bool:
    return (
        task.priority == EisenhowerQuadrant.IMPORTANT_URGENT
        or task.deadline <= now + timedelta(hours=24)
    )


def digest_title(tasks: List[Task], now: datetime) -> str:
    today = f"{now:%A}, {now:%B} {now.day}, {now.year}"
    urgent = sum(1 for t in tasks if is_urgent(t, now))
    suffix = f", {urgent} urgent" if urgent else ""
    return f"Your Daily Tasks - {today} ({len(tasks)} tasks{suffix})"


async def send_daily_digest(store: EntityStore, now: datetime) -> int:
    """Appends one digest notification per opted-in user with upcoming tasks. Returns how many were sent."""
    users, tasks = await _load_users_and_tasks(store)
    sent = 0
    for user in users:
        if not user.email_updates:
            continue
        due = digest_tasks(tasks, user.id, now)
        if not due:
            continue
        await create_notification(
            store,
            type="daily-digest",
            user_id=user.id,
            title=digest_title(due, now),
            message="\n".join(f"- {t.title} (due {t.deadline:%Y-%m-%d})" for t in due),
            task_ids=[t.id for t in due],
        )
        sent += 1
    log.info(f"Daily digest sent to {sent} of {len(users)} users")
    return sent


def overdue_tasks(tasks: List[Task], user_id: str, now: datetime) -> List[Task]:
    return [
        t for t in tasks
        if t.assignee_id == user_id
        and t.deadline < now
        and t.status not in CLOSED_STATUSES
    ]


async def scan_overdue_tasks(store: EntityStore, now: datetime) -> int:
    users, tasks = await _load_users_and_tasks(store)
    sent = 0
    for user in users:
        overdue = overdue_tasks(tasks, user.id, now)
        if not overdue or not user.email_updates:
            continue
        titles = ", ".join(t.title for t in overdue)
        log.info(f"User {user.name} has {len(overdue)} overdue tasks: {titles}")
        await create_notification(
            store,
            type="task-overdue",
            user_id=user.id,
            title=f"{len(overdue)} overdue task(s)",
            message=titles,
            task_ids=[t.id for t in overdue],
        )
        sent += 1
    return sent
