import copy
from typing import Dict, Optional, Tuple

from rocket_ops.store.base import Collection, EntityStore


class InMemoryEntityStore(EntityStore):
    """
    Process-local store used by tests and local tooling.

    Values are deep-copied on the way in and out so callers never hold a
    reference into the stored collections.
    """

    def __init__(self, initial: Optional[Dict[str, Collection]] = None):
        self._collections: Dict[str, Tuple[Collection, int]] = {}
        for key, items in (initial or {}).items():
            self._collections[key] = (copy.deepcopy(list(items)), 1)

    async def get_versioned(self, key: str) -> Tuple[Optional[Collection], int]:
        entry = self._collections.get(key)
        if entry is None:
            return None, 0
        items, version = entry
        return copy.deepcopy(items), version

    async def set(self, key: str, value: Collection) -> None:
        _, version = self._collections.get(key, (None, 0))
        self._collections[key] = (copy.deepcopy(list(value)), version + 1)

    async def compare_and_set(self, key: str, value: Collection, expected_version: int) -> bool:
        _, version = self._collections.get(key, (None, 0))
        if version != expected_version:
            return False
        self._collections[key] = (copy.deepcopy(list(value)), version + 1)
        return True
