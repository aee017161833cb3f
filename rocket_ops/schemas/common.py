import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated

from pydantic import AfterValidator


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive timestamps in stored data are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# every datetime compared against the scheduler clock must be aware
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class EisenhowerQuadrant(str, Enum):
    IMPORTANT_URGENT = "important-urgent"
    IMPORTANT_NOT_URGENT = "important-not-urgent"
    NOT_IMPORTANT_URGENT = "not-important-urgent"
    NOT_IMPORTANT_NOT_URGENT = "not-important-not-urgent"
