from fastapi import Request

from rocket_ops.store.base import EntityStore
from rocket_ops.workers.scheduler import JobScheduler


def get_store(request: Request) -> EntityStore:
    """The store created in the app lifespan; tests override this dependency."""
    return request.app.state.store


def get_scheduler(request: Request) -> JobScheduler:
    return request.app.state.scheduler
