import logging
import math
from typing import Callable, Dict, List, Optional

from rocket_ops.core.config import MIN_STOCK_MULTIPLIER, REORDER_POINT_MULTIPLIER
from rocket_ops.core.exceptions import EntityNotFound, InvalidStatusTransition
from rocket_ops.schemas.common import utcnow
from rocket_ops.schemas.inventory import PendingInventoryItem, Priority
from rocket_ops.schemas.purchase_list import PurchaseList
from rocket_ops.schemas.purchase_request import (
    PurchaseRequest,
    PurchaseRequestCreate,
    PurchaseRequestStatus,
    Urgency,
)
from rocket_ops.services.inference import category_from_team
from rocket_ops.services.reconciliation import sync_purchase_to_inventory
from rocket_ops.store import keys
from rocket_ops.store.base import Collection, EntityStore

log = logging.getLogger("purchase_requests")

S = PurchaseRequestStatus

# approved -> pending and rejected -> pending are the dashboard's "undo" actions
ALLOWED_TRANSITIONS: Dict[PurchaseRequestStatus, set] = {
    S.PENDING: {S.APPROVED, S.REJECTED},
    S.APPROVED: {S.ORDERED, S.PENDING},
    S.REJECTED: {S.PENDING},
    S.ORDERED: {S.COMPLETED},
    S.COMPLETED: set(),
}

URGENCY_TO_PRIORITY = {
    Urgency.CRITICAL: Priority.URGENT,
    Urgency.HIGH: Priority.IMPORTANT,
    Urgency.MEDIUM: Priority.NORMAL,
    Urgency.LOW: Priority.LOW,
}

PENDING_NOTE = "[Moved to pending inventory]"


def _find(items: Collection, request_id: str) -> Optional[int]:
    for index, item in enumerate(items):
        if item.get("id") == request_id:
            return index
    return None


async def create_purchase_request(store: EntityStore, data: PurchaseRequestCreate) -> PurchaseRequest:
    request = PurchaseRequest(**data.model_dump())
    await store.mutate(keys.PURCHASE_REQUESTS, lambda items: items + [request.model_dump(mode="json")])
    log.info(f"Created purchase request {request.id} for {request.quantity} x {request.item_name}")
    return request


async def get_purchase_request(store: EntityStore, request_id: str) -> PurchaseRequest:
    items = await store.get(keys.PURCHASE_REQUESTS) or []
    index = _find(items, request_id)
    if index is None:
        raise EntityNotFound("Purchase request", request_id)
    return PurchaseRequest.model_validate(items[index])


async def list_purchase_requests(store: EntityStore, status: Optional[PurchaseRequestStatus] = None) -> List[PurchaseRequest]:
    requests = [PurchaseRequest.model_validate(item) for item in await store.get(keys.PURCHASE_REQUESTS) or []]
    if status is not None:
        requests = [r for r in requests if r.status == status]
    return requests


def apply_transition(request: PurchaseRequest, new_status: PurchaseRequestStatus,
                     actor: Optional[str] = None, notes: Optional[str] = None) -> PurchaseRequest:
    """Validates and applies one state-machine step to `request` in place."""
    if new_status not in ALLOWED_TRANSITIONS[request.status]:
        raise InvalidStatusTransition(request.status.value, new_status.value)

    if new_status == S.APPROVED:
        request.approved_by = actor or "System"
        request.approved_date = utcnow()
    elif new_status == S.PENDING:
        request.approved_by = None
        request.approved_date = None

    request.status = new_status
    if notes:
        request.notes = notes
    return request


async def update_purchase_request_status(
    store: EntityStore,
    request_id: str,
    new_status: PurchaseRequestStatus,
    actor: Optional[str] = None,
    notes: Optional[str] = None,
) -> PurchaseRequest:
    """
    Moves a request through its workflow. Entering `completed` counts the
    purchase into inventory first; the status is only saved once stock has
    been updated, so a failed sync leaves the request `ordered` and the
    completion can be retried. The stock change is never reversed.
    """
    if new_status == S.COMPLETED:
        current = await get_purchase_request(store, request_id)
        completed = apply_transition(current.model_copy(deep=True), new_status, actor, notes)
        await sync_purchase_to_inventory(store, completed)

    result = {}

    def transition(items: Collection) -> Collection:
        index = _find(items, request_id)
        if index is None:
            raise EntityNotFound("Purchase request", request_id)
        request = apply_transition(PurchaseRequest.model_validate(items[index]), new_status, actor, notes)
        items[index] = request.model_dump(mode="json")
        result["request"] = request
        return items

    await store.mutate(keys.PURCHASE_REQUESTS, transition)
    log.info(f"Purchase request {request_id} is now '{new_status.value}'")
    return result["request"]


async def update_purchase_list(store: EntityStore, list_id: str,
                               updater: Callable[[PurchaseList], PurchaseList]) -> PurchaseList:
    result = {}

    def apply(items: Collection) -> Collection:
        index = _find(items, list_id)
        if index is None:
            raise EntityNotFound("Purchase list", list_id)
        updated = updater(PurchaseList.model_validate(items[index]))
        items[index] = updated.model_dump(mode="json")
        result["list"] = updated
        return items

    await store.mutate(keys.PURCHASE_LISTS, apply)
    return result["list"]


# --- Pending inventory ------------------------------------------------------

def build_pending_item(request: PurchaseRequest) -> PendingInventoryItem:
    qty = request.quantity
    return PendingInventoryItem(
        purchase_request_id=request.id,
        name=request.item_name,
        vendor=request.vendor,
        category=category_from_team(request.team),
        description=request.description,
        unit_price=request.unit_price,
        quantity=qty,
        reorder_point=math.ceil(qty * REORDER_POINT_MULTIPLIER),
        min_stock=math.ceil(qty * MIN_STOCK_MULTIPLIER),
        priority=URGENCY_TO_PRIORITY.get(request.urgency, Priority.NORMAL),
        eisenhower_quadrant=request.eisenhower_quadrant,
    )


async def move_to_pending_inventory(store: EntityStore, request_id: str) -> PendingInventoryItem:
    """
    Flags a completed request as moved and records it in the pending inventory.

    There is no step that counts pending items into stock: completing the
    request already added its quantity to inventory, so doing it again would
    count the same purchase twice.
    """
    result = {}

    def mark(items: Collection) -> Collection:
        index = _find(items, request_id)
        if index is None:
            raise EntityNotFound("Purchase request", request_id)
        request = PurchaseRequest.model_validate(items[index])
        if request.status != S.COMPLETED:
            raise ValueError(f"Only completed purchase requests can be moved to pending inventory (is '{request.status.value}').")
        if request.moved_to_pending:
            raise ValueError(f"Purchase request {request_id} was already moved to pending inventory.")
        request.moved_to_pending = True
        request.notes = f"{request.notes}\n{PENDING_NOTE}" if request.notes else PENDING_NOTE
        items[index] = request.model_dump(mode="json")
        result["request"] = request
        return items

    await store.mutate(keys.PURCHASE_REQUESTS, mark)
    pending = build_pending_item(result["request"])
    await store.mutate(keys.PENDING_INVENTORY, lambda items: items + [pending.model_dump(mode="json")])
    log.info(f"Moved purchase request {request_id} to pending inventory as {pending.id}")
    return pending


async def list_pending_inventory(store: EntityStore) -> List[PendingInventoryItem]:
    return [PendingInventoryItem.model_validate(item) for item in await store.get(keys.PENDING_INVENTORY) or []]
