import pytest
from unittest.mock import patch

from conftest import make_item
from rocket_ops.schemas.purchase_request import PurchaseRequest, PurchaseRequestStatus
from rocket_ops.services.reconciliation import full_sync
from rocket_ops.store import keys
from rocket_ops.store.memory import InMemoryEntityStore


def _seeded_store(**extra):
    collections = {
        keys.INVENTORY: [
            make_item(name="Battery", current_stock=0, min_stock=4, reorder_point=6, category="Electronics"),
            make_item(name="Bolt", current_stock=3, reorder_point=50, category="Mechanical"),
            make_item(name="Epoxy", current_stock=40, reorder_point=5),
        ],
        keys.VENDORS: [{"id": "V1", "name": "Vendor One"}],
        keys.PURCHASE_LISTS: [{"id": "pl1", "vendors": ["V1", "old"], "items": []}],
    }
    collections.update(extra)
    return InMemoryEntityStore(collections)


@pytest.mark.asyncio
async def test_full_sync_appends_low_stock_drafts_and_prunes():
    store = _seeded_store()

    report = await full_sync(store)

    assert report.pruned_vendor_refs == 1
    assert report.drafts_generated == 2
    assert report.drafts_appended == 2
    assert report.errors == []
    requests = await store.get(keys.PURCHASE_REQUESTS)
    assert sorted(r["item_name"] for r in requests) == ["Battery", "Bolt"]
    assert {r["team"] for r in requests} == {"Avionics", "Mechanical"}


@pytest.mark.asyncio
async def test_full_sync_is_idempotent():
    store = _seeded_store()

    await full_sync(store)
    after_first = await store.get(keys.PURCHASE_REQUESTS)
    report = await full_sync(store)
    after_second = await store.get(keys.PURCHASE_REQUESTS)

    assert len(after_second) == len(after_first)
    assert report.drafts_generated == 2
    assert report.drafts_appended == 0
    assert report.pruned_vendor_refs == 0


@pytest.mark.asyncio
async def test_only_pending_low_stock_requests_block_a_draft():
    approved = PurchaseRequest(item_name="Battery", vendor="V1", quantity=12,
                               status=PurchaseRequestStatus.APPROVED, is_low_stock_item=True)
    manual = PurchaseRequest(item_name="Bolt", vendor="V1", quantity=5)
    store = _seeded_store(**{keys.PURCHASE_REQUESTS: [
        approved.model_dump(mode="json"), manual.model_dump(mode="json"),
    ]})

    report = await full_sync(store)

    assert report.drafts_appended == 2
    assert len(await store.get(keys.PURCHASE_REQUESTS)) == 4


@pytest.mark.asyncio
async def test_full_sync_drops_duplicate_drafts():
    store = InMemoryEntityStore({keys.INVENTORY: [
        make_item(name="Battery", current_stock=0),
        make_item(name="battery", current_stock=1),
        make_item(name="Battery", current_stock=2),
    ]})

    report = await full_sync(store)

    assert report.drafts_generated == 3
    assert report.drafts_appended == 2


@pytest.mark.asyncio
async def test_failing_step_does_not_stop_the_others():
    store = _seeded_store()

    with patch("rocket_ops.services.reconciliation.sync_purchase_lists_with_vendors",
               side_effect=RuntimeError("vendor directory offline")):
        report = await full_sync(store)

    assert report.errors == ["purchase-lists: vendor directory offline"]
    assert report.drafts_appended == 2
    assert (await store.get(keys.PURCHASE_LISTS))[0]["vendors"] == ["V1", "old"]


@pytest.mark.asyncio
async def test_full_sync_on_empty_store_writes_nothing(store):
    report = await full_sync(store)

    assert report.drafts_generated == 0
    assert await store.get(keys.PURCHASE_REQUESTS) is None
