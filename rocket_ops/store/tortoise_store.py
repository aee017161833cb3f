from typing import Optional, Tuple

from tortoise.exceptions import IntegrityError
from tortoise.expressions import F

from rocket_ops.models.collection import StoredCollection
from rocket_ops.store.base import Collection, EntityStore


class TortoiseEntityStore(EntityStore):
    """EntityStore backed by the `stored_collections` table. Requires `init_db()` to have run."""

    async def get_versioned(self, key: str) -> Tuple[Optional[Collection], int]:
        row = await StoredCollection.get_or_none(key=key)
        if not row:
            return None, 0
        return list(row.items or []), row.version

    async def set(self, key: str, value: Collection) -> None:
        updated = await StoredCollection.filter(key=key).update(items=list(value), version=F("version") + 1)
        if updated:
            return
        try:
            await StoredCollection.create(key=key, items=list(value), version=1)
        except IntegrityError:
            # Another writer created the row first; overwrite it like any other set
            await StoredCollection.filter(key=key).update(items=list(value), version=F("version") + 1)

    async def compare_and_set(self, key: str, value: Collection, expected_version: int) -> bool:
        if expected_version == 0:
            try:
                await StoredCollection.create(key=key, items=list(value), version=1)
                return True
            except IntegrityError:
                return False

        # Conditional UPDATE: zero rows touched means someone else bumped the version
        updated = await StoredCollection.filter(key=key, version=expected_version).update(
            items=list(value), version=expected_version + 1
        )
        return updated == 1
