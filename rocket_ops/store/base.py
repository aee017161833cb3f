import copy
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple

from rocket_ops.core.config import MAX_CAS_RETRIES
from rocket_ops.core.exceptions import ConcurrentModificationError

log = logging.getLogger("store")

Collection = List[Dict[str, Any]]
Updater = Callable[[Collection], Collection]


class EntityStore(ABC):
    """
    Keyed, whole-collection store. Every key maps to a full list of records
    plus a version counter (0 = the key was never written).

    `get`/`set` are the plain read and overwrite primitives. Writers that read
    a collection, change it and write it back should use `mutate`, which
    retries on a version conflict instead of silently overwriting whatever a
    concurrent writer stored in between.
    """

    @abstractmethod
    async def get_versioned(self, key: str) -> Tuple[Optional[Collection], int]:
        ...

    @abstractmethod
    async def set(self, key: str, value: Collection) -> None:
        ...

    @abstractmethod
    async def compare_and_set(self, key: str, value: Collection, expected_version: int) -> bool:
        """Writes `value` only if the stored version still equals `expected_version`."""

    async def get(self, key: str) -> Optional[Collection]:
        items, _ = await self.get_versioned(key)
        return items

    async def mutate(self, key: str, updater: Updater, retries: Optional[int] = None) -> Collection:
        """
        Read-compute-write with optimistic concurrency.

        `updater` receives a private copy of the current collection (empty list
        when the key is absent) and returns the new collection. It may be
        called more than once, so it must not have side effects of its own.
        Exceptions raised by `updater` propagate and nothing is written.
        """
        attempts = retries if retries is not None else MAX_CAS_RETRIES
        for attempt in range(1, attempts + 1):
            current, version = await self.get_versioned(key)
            baseline = current if current is not None else []
            updated = updater(copy.deepcopy(baseline))

            if updated == baseline:
                return updated

            if await self.compare_and_set(key, updated, version):
                return updated

            log.warning(f"Version conflict on '{key}' (attempt {attempt}/{attempts}), retrying.")

        raise ConcurrentModificationError(key, attempts)
