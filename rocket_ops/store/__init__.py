from .base import Collection, EntityStore
from .memory import InMemoryEntityStore
from .tortoise_store import TortoiseEntityStore

__all__ = [
    "Collection",
    "EntityStore",
    "InMemoryEntityStore",
    "TortoiseEntityStore",
]
