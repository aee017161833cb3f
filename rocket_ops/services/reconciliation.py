"""
Reconciliation engine: keeps inventory, purchase requests, purchase lists
and BOM requirements consistent with each other.

Every operation reads a full collection, computes the new collection and
writes it back through `EntityStore.mutate`, so a concurrent writer causes
a retry instead of a lost update. The pure `compute_*`/`find_*`/`apply_*`
helpers hold the actual rules and work on plain model lists.
"""
import logging
import math
from typing import List, Optional

from rocket_ops.core import config
from rocket_ops.core.config import (
    DEFAULT_LOCATION,
    LOW_STOCK_FALLBACK_THRESHOLD,
    LOW_STOCK_MIN_ORDER_QTY,
    MIN_MIN_STOCK,
    MIN_REORDER_POINT,
    MIN_STOCK_MULTIPLIER,
    REORDER_POINT_MULTIPLIER,
)
from rocket_ops.schemas.bom import BillOfMaterials, bom_label, bom_lines
from rocket_ops.schemas.common import EisenhowerQuadrant, utcnow
from rocket_ops.schemas.inventory import InventoryItem
from rocket_ops.schemas.purchase_list import PurchaseList
from rocket_ops.schemas.purchase_request import PurchaseRequest, PurchaseRequestStatus, Urgency
from rocket_ops.schemas.sync import AllocationOutcome, FullSyncReport
from rocket_ops.services.inference import category_from_team, team_from_category
from rocket_ops.store import keys
from rocket_ops.store.base import Collection, EntityStore

log = logging.getLogger("reconciliation")

PURCHASE_SYNC_ACTOR = "System - Purchase Request Sync"
BOM_ALLOCATION_ACTOR = "System - BOM Allocation"
BOM_SYNC_REQUESTER = "System - BOM Sync"
LOW_STOCK_REQUESTER = "System - Low Stock Monitor"


def _load_inventory(items: Collection) -> List[InventoryItem]:
    return [InventoryItem.model_validate(item) for item in items]


def _dump(models) -> Collection:
    return [m.model_dump(mode="json") for m in models]


# --- Matching -------------------------------------------------------------

def find_inventory_item(inventory: List[InventoryItem], name: str, vendor: str) -> Optional[InventoryItem]:
    """Exact (name.lower(), vendor) match used when receiving a purchase."""
    for item in inventory:
        if item.matches(name, vendor):
            return item
    return None


def find_bom_match(inventory: List[InventoryItem], name: str, vendor: str = "") -> Optional[InventoryItem]:
    """Case-insensitive name match; among same-named items the one from `vendor` wins."""
    candidates = [item for item in inventory if item.name.lower() == name.lower()]
    if not candidates:
        return None
    for item in candidates:
        if item.vendor == vendor:
            return item
    return candidates[0]


# --- Completed purchase -> inventory ---------------------------------------

def apply_purchase(inventory: List[InventoryItem], request: PurchaseRequest,
                   actor: str = PURCHASE_SYNC_ACTOR) -> InventoryItem:
    """Adds the purchased quantity to the matching item, or appends a new one."""
    now = utcnow()
    qty = request.quantity

    item = find_inventory_item(inventory, request.item_name, request.vendor)
    if item is not None:
        item.current_stock += qty
        item.quantity += qty
        item.last_updated = now
        item.updated_by = actor
        return item

    item = InventoryItem(
        name=request.item_name,
        vendor=request.vendor,
        category=category_from_team(request.team),
        unit_price=request.unit_price,
        current_stock=qty,
        quantity=qty,
        reorder_point=max(MIN_REORDER_POINT, math.floor(qty * REORDER_POINT_MULTIPLIER)),
        min_stock=max(MIN_MIN_STOCK, math.floor(qty * MIN_STOCK_MULTIPLIER)),
        location=DEFAULT_LOCATION,
        description=request.description,
        last_updated=now,
        updated_by=actor,
    )
    inventory.append(item)
    return item


async def _claim_request(store: EntityStore, request_id: str) -> bool:
    """Records `request_id` in the processed ledger. False if it was already there."""
    claimed = False

    def claim(entries: Collection) -> Collection:
        nonlocal claimed
        if any(entry.get("request_id") == request_id for entry in entries):
            claimed = False
            return entries
        claimed = True
        return entries + [{"request_id": request_id, "processed_at": utcnow().isoformat()}]

    await store.mutate(keys.PROCESSED_PURCHASE_REQUESTS, claim)
    return claimed


async def _release_request(store: EntityStore, request_id: str) -> None:
    await store.mutate(
        keys.PROCESSED_PURCHASE_REQUESTS,
        lambda entries: [e for e in entries if e.get("request_id") != request_id],
    )


async def sync_purchase_to_inventory(store: EntityStore, request: PurchaseRequest) -> Optional[InventoryItem]:
    """
    Counts a completed purchase into stock.

    With the processed-request ledger enabled, a request id that was already
    synced is skipped and None is returned. Requests without an id are always
    applied.
    """
    if request.status != PurchaseRequestStatus.COMPLETED:
        raise ValueError(f"Purchase request {request.id} is '{request.status.value}', only completed requests can be synced.")

    claimed = False
    if config.DEDUPE_COMPLETED_REQUESTS and request.id:
        claimed = await _claim_request(store, request.id)
        if not claimed:
            log.warning(f"Purchase request {request.id} was already synced to inventory, skipping.")
            return None

    result = {}

    def receive(items: Collection) -> Collection:
        inventory = _load_inventory(items)
        result["item"] = apply_purchase(inventory, request)
        return _dump(inventory)

    try:
        await store.mutate(keys.INVENTORY, receive)
    except Exception:
        if claimed:
            await _release_request(store, request.id)
        raise

    item = result["item"]
    log.info(f"Synced purchase {request.id}: {item.name}/{item.vendor} stock is now {item.current_stock}.")
    return item


# --- BOM --------------------------------------------------------------------

def compute_bom_shortfalls(bom: BillOfMaterials, inventory: List[InventoryItem]) -> List[PurchaseRequest]:
    drafts = []
    for line in bom_lines(bom):
        match = find_bom_match(inventory, line.item_name, line.vendor)
        available = match.current_stock if match else 0
        shortfall = max(line.required_quantity - available, 0)
        if shortfall == 0:
            continue
        drafts.append(PurchaseRequest(
            item_name=line.item_name,
            vendor=line.vendor,
            quantity=shortfall,
            unit_price=line.unit_price,
            team=line.team or "General",
            status=PurchaseRequestStatus.PENDING,
            urgency=Urgency.MEDIUM,
            is_low_stock_item=True,
            requested_by=BOM_SYNC_REQUESTER,
            notes=f"Shortfall for BOM {bom_label(bom)}: need {line.required_quantity}, have {available}",
        ))
    return drafts


async def sync_bom_with_inventory(store: EntityStore, bom: BillOfMaterials) -> List[PurchaseRequest]:
    """Returns purchase request drafts for every BOM line short on stock. Writes nothing."""
    inventory = _load_inventory(await store.get(keys.INVENTORY) or [])
    return compute_bom_shortfalls(bom, inventory)


def allocate_lines(bom: BillOfMaterials, inventory: List[InventoryItem],
                   actor: str = BOM_ALLOCATION_ACTOR) -> AllocationOutcome:
    """
    Decrements stock line by line. A line is taken in full or not at all, and
    each line sees the stock left by the lines before it.
    """
    outcome = AllocationOutcome()
    now = utcnow()
    for line in bom_lines(bom):
        match = find_bom_match(inventory, line.item_name, line.vendor)
        if match is None or match.current_stock < line.required_quantity:
            outcome.insufficient.append(line.item_name)
            continue
        match.current_stock -= line.required_quantity
        match.last_updated = now
        match.updated_by = actor
        outcome.allocated.append(line.item_name)
    return outcome


async def allocate_inventory_to_bom(store: EntityStore, bom: BillOfMaterials) -> AllocationOutcome:
    result = {}

    def allocate(items: Collection) -> Collection:
        inventory = _load_inventory(items)
        result["outcome"] = allocate_lines(bom, inventory)
        if not result["outcome"].allocated:
            return items
        return _dump(inventory)

    await store.mutate(keys.INVENTORY, allocate)
    outcome = result["outcome"]
    if outcome.insufficient:
        log.warning(f"BOM {bom_label(bom)}: insufficient stock for {', '.join(outcome.insufficient)}")
    return outcome


# --- Low stock --------------------------------------------------------------

def low_stock_threshold(item: InventoryItem) -> int:
    if item.min_stock is not None:
        return item.min_stock
    if item.reorder_point is not None:
        return item.reorder_point
    return LOW_STOCK_FALLBACK_THRESHOLD


def find_low_stock_drafts(inventory: List[InventoryItem]) -> List[PurchaseRequest]:
    drafts = []
    for item in inventory:
        if item.current_stock > low_stock_threshold(item):
            continue
        out_of_stock = item.current_stock == 0
        drafts.append(PurchaseRequest(
            item_name=item.name,
            vendor=item.vendor,
            quantity=max((item.reorder_point or 0) * 2, LOW_STOCK_MIN_ORDER_QTY),
            unit_price=item.unit_price,
            team=team_from_category(item.category),
            status=PurchaseRequestStatus.PENDING,
            urgency=Urgency.CRITICAL if out_of_stock else Urgency.HIGH,
            eisenhower_quadrant=(
                EisenhowerQuadrant.IMPORTANT_URGENT if out_of_stock
                else EisenhowerQuadrant.IMPORTANT_NOT_URGENT
            ),
            is_low_stock_item=True,
            description=f"Auto-generated: {item.name} is at {item.current_stock} (threshold {low_stock_threshold(item)})",
            requested_by=LOW_STOCK_REQUESTER,
        ))
    return drafts


async def generate_low_stock_purchase_requests(store: EntityStore) -> List[PurchaseRequest]:
    """Drafts only; `full_sync` decides which of them get persisted."""
    inventory = _load_inventory(await store.get(keys.INVENTORY) or [])
    return find_low_stock_drafts(inventory)


def filter_new_drafts(existing: List[PurchaseRequest], drafts: List[PurchaseRequest]) -> List[PurchaseRequest]:
    """Drops drafts already present as pending low-stock requests, and repeats among the drafts."""
    seen = {
        r.dedupe_key() for r in existing
        if r.status == PurchaseRequestStatus.PENDING and r.is_low_stock_item
    }
    fresh = []
    for draft in drafts:
        key = draft.dedupe_key()
        if key in seen:
            continue
        seen.add(key)
        fresh.append(draft)
    return fresh


# --- Purchase lists ---------------------------------------------------------

async def sync_purchase_lists_with_vendors(store: EntityStore) -> int:
    """Removes vendor ids no longer in the vendor directory. Returns how many references were removed."""
    vendors = await store.get(keys.VENDORS)
    if vendors is None:
        log.info("Vendor directory not initialised, skipping purchase list pruning.")
        return 0
    vendor_ids = {v["id"] for v in vendors}
    removed = 0

    def prune(items: Collection) -> Collection:
        nonlocal removed
        removed = 0
        lists = [PurchaseList.model_validate(item) for item in items]
        changed = False
        for purchase_list in lists:
            kept = [vid for vid in purchase_list.vendors if vid in vendor_ids]
            if len(kept) != len(purchase_list.vendors):
                removed += len(purchase_list.vendors) - len(kept)
                purchase_list.vendors = kept
                changed = True
        return _dump(lists) if changed else items

    await store.mutate(keys.PURCHASE_LISTS, prune)
    if removed:
        log.info(f"Removed {removed} stale vendor reference(s) from purchase lists.")
    return removed


# --- Periodic job -----------------------------------------------------------

async def full_sync(store: EntityStore) -> FullSyncReport:
    """
    Vendor pruning, then low-stock draft generation, then append of the drafts
    that are not already pending. A failing step is logged and recorded in the
    report; the remaining steps still run.
    """
    report = FullSyncReport()

    try:
        report.pruned_vendor_refs = await sync_purchase_lists_with_vendors(store)
    except Exception as e:
        log.error(f"Full sync: purchase list pruning failed: {e}")
        report.errors.append(f"purchase-lists: {e}")

    drafts: List[PurchaseRequest] = []
    try:
        drafts = await generate_low_stock_purchase_requests(store)
        report.drafts_generated = len(drafts)
    except Exception as e:
        log.error(f"Full sync: low-stock scan failed: {e}")
        report.errors.append(f"low-stock: {e}")

    if drafts:
        appended = 0

        def append_new(items: Collection) -> Collection:
            nonlocal appended
            existing = [PurchaseRequest.model_validate(item) for item in items]
            fresh = filter_new_drafts(existing, drafts)
            appended = len(fresh)
            return items + _dump(fresh)

        try:
            await store.mutate(keys.PURCHASE_REQUESTS, append_new)
            report.drafts_appended = appended
        except Exception as e:
            log.error(f"Full sync: appending purchase requests failed: {e}")
            report.errors.append(f"purchase-requests: {e}")

    log.info(
        f"Full sync done: pruned={report.pruned_vendor_refs} "
        f"generated={report.drafts_generated} appended={report.drafts_appended}"
    )
    return report
