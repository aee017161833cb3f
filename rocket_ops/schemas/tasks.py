from typing import List, Optional

from pydantic import BaseModel, Field

from rocket_ops.schemas.common import EisenhowerQuadrant, UtcDatetime, new_id, utcnow


class Task(BaseModel):
    id: str = Field(default_factory=new_id)
    title: str
    description: str = ""
    assignee_id: str
    deadline: UtcDatetime
    status: str = "not-started"  # not-started, in-progress, under-review, completed, cancelled
    priority: EisenhowerQuadrant = EisenhowerQuadrant.NOT_IMPORTANT_NOT_URGENT
    estimated_hours: float = 0.0


class User(BaseModel):
    id: str
    name: str
    email: str
    role: str = "team-member"
    team: Optional[str] = None
    email_updates: bool = True


class Notification(BaseModel):
    """Record appended by the scheduled jobs and read by the dashboard bell."""
    id: str = Field(default_factory=new_id)
    type: str  # e.g. 'daily-digest', 'task-overdue'
    user_id: Optional[str] = None
    title: str
    message: str = ""
    task_ids: List[str] = Field(default_factory=list)
    read: bool = False
    created_at: UtcDatetime = Field(default_factory=utcnow)
