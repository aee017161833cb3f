# scripts/seed_data.py
import asyncio
import logging
from datetime import timedelta

from rocket_ops.core.db import close_db, init_db
from rocket_ops.schemas.common import EisenhowerQuadrant, utcnow
from rocket_ops.schemas.inventory import InventoryItem
from rocket_ops.schemas.purchase_list import PurchaseList, PurchaseListItem, Vendor
from rocket_ops.schemas.tasks import Task, User
from rocket_ops.store import keys
from rocket_ops.store.base import EntityStore
from rocket_ops.store.tortoise_store import TortoiseEntityStore

log = logging.getLogger("seed")


def _dump(models):
    return [m.model_dump(mode="json") for m in models]


async def seed(store: EntityStore):
    """Overwrites the demo collections; running it twice gives the same data."""
    vendors = [
        Vendor(id="v-digikey", name="DigiKey", category="Electronics"),
        Vendor(id="v-mcmaster", name="McMaster-Carr", category="Mechanical"),
        Vendor(id="v-fruity", name="Fruity Chutes", category="Recovery"),
    ]
    await store.set(keys.VENDORS, _dump(vendors))

    inventory = [
        InventoryItem(name="Flight Computer", vendor="v-digikey", category="Electronics",
                      unit_price=89.0, current_stock=4, quantity=10, reorder_point=5, min_stock=3),
        InventoryItem(name="LiPo Battery 2S", vendor="v-digikey", category="Electronics",
                      unit_price=24.5, current_stock=0, quantity=12, reorder_point=6, min_stock=4),
        InventoryItem(name="M4 Bolts", vendor="v-mcmaster", category="Mechanical",
                      unit_price=0.2, current_stock=250, quantity=300, reorder_point=50, min_stock=25),
        InventoryItem(name="Main Parachute 60in", vendor="v-fruity", category="Recovery",
                      unit_price=180.0, current_stock=2, quantity=2),
    ]
    await store.set(keys.INVENTORY, _dump(inventory))
    log.info(f"Seeded {len(inventory)} inventory items and {len(vendors)} vendors.")

    purchase_lists = [
        PurchaseList(
            id="pl-avionics", name="Avionics restock", vendors=["v-digikey", "v-retired"],
            items=[PurchaseListItem(item_name="LiPo Battery 2S", quantity=6, unit_price=24.5, vendor="v-digikey")],
            total_amount=147.0,
        ),
    ]
    await store.set(keys.PURCHASE_LISTS, _dump(purchase_lists))

    now = utcnow()
    users = [
        User(id="u-lead", name="Team Lead", email="lead@example.org", role="admin", team="Avionics"),
        User(id="u-rec", name="Recovery Engineer", email="recovery@example.org", team="Recovery", email_updates=False),
    ]
    tasks = [
        Task(title="Bench-test flight computer", assignee_id="u-lead", deadline=now + timedelta(days=2),
             priority=EisenhowerQuadrant.IMPORTANT_URGENT),
        Task(title="Write launch checklist", assignee_id="u-lead", deadline=now - timedelta(days=1)),
        Task(title="Pack main chute", assignee_id="u-rec", deadline=now + timedelta(days=5)),
    ]
    await store.set(keys.USERS, _dump(users))
    await store.set(keys.TASKS, _dump(tasks))
    log.info(f"Seeded {len(users)} users and {len(tasks)} tasks.")


async def main():
    await init_db()
    await seed(TortoiseEntityStore())
    await close_db()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    asyncio.run(main())
