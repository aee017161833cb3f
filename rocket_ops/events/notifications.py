from typing import List, Optional

from rocket_ops.schemas.tasks import Notification
from rocket_ops.store import keys
from rocket_ops.store.base import EntityStore


async def create_notification(
    store: EntityStore,
    type: str,
    title: str,
    message: str = "",
    user_id: Optional[str] = None,
    task_ids: Optional[List[str]] = None,
) -> Notification:
    """
    Appends one unread notification to the shared notifications collection.

    The dashboard reads this collection; nothing here delivers email.
    """
    notification = Notification(
        type=type,
        user_id=user_id,
        title=title,
        message=message,
        task_ids=task_ids or [],
    )
    await store.mutate(keys.NOTIFICATIONS, lambda items: items + [notification.model_dump(mode="json")])
    return notification
