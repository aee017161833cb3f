import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException

from rocket_ops.api.deps import get_store
from rocket_ops.core.exceptions import ConcurrentModificationError
from rocket_ops.schemas.bom import parse_bom
from rocket_ops.schemas.inventory import InventoryItem
from rocket_ops.schemas.response import SuccessResponse
from rocket_ops.services.purchase_request_service import list_pending_inventory
from rocket_ops.services.reconciliation import (
    allocate_inventory_to_bom,
    low_stock_threshold,
    sync_bom_with_inventory,
)
from rocket_ops.store import keys
from rocket_ops.store.base import EntityStore

log = logging.getLogger("uvicorn")

router = APIRouter()


async def _inventory(store: EntityStore):
    return [InventoryItem.model_validate(item) for item in await store.get(keys.INVENTORY) or []]


@router.get("/", response_model=SuccessResponse)
async def list_inventory(store: EntityStore = Depends(get_store)):
    try:
        items = await _inventory(store)
        return SuccessResponse(data=[i.model_dump(mode="json") for i in items])
    except Exception as e:
        log.error(f"Error fetching inventory: {e}")
        raise HTTPException(status_code=500, detail="Server failed to fetch inventory.")


@router.get("/low-stock", response_model=SuccessResponse)
async def list_low_stock(store: EntityStore = Depends(get_store)):
    """Items at or below their min stock (or reorder point)."""
    try:
        items = [i for i in await _inventory(store) if i.current_stock <= low_stock_threshold(i)]
        return SuccessResponse(data=[i.model_dump(mode="json") for i in items])
    except Exception as e:
        log.error(f"Error fetching low-stock items: {e}")
        raise HTTPException(status_code=500, detail="Server failed to fetch low-stock items.")


@router.get("/pending", response_model=SuccessResponse)
async def list_pending(store: EntityStore = Depends(get_store)):
    try:
        items = await list_pending_inventory(store)
        return SuccessResponse(data=[i.model_dump(mode="json") for i in items])
    except Exception as e:
        log.error(f"Error fetching pending inventory: {e}")
        raise HTTPException(status_code=500, detail="Server failed to fetch pending inventory.")


@router.post("/bom/shortfalls", response_model=SuccessResponse)
async def bom_shortfalls(payload: Dict[str, Any] = Body(...), store: EntityStore = Depends(get_store)):
    """
    Accepts either BOM shape (single line, or `items` list) and returns the
    purchase request drafts that would cover its shortfalls. Nothing is saved.
    """
    try:
        drafts = await sync_bom_with_inventory(store, parse_bom(payload))
        return SuccessResponse(data=[d.model_dump(mode="json") for d in drafts])
    except ValueError as e:
        log.error(f"Invalid BOM: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        log.error(f"Error computing BOM shortfalls: {e}")
        raise HTTPException(status_code=500, detail="Server failed to compute BOM shortfalls.")


@router.post("/bom/allocate", response_model=SuccessResponse)
async def bom_allocate(payload: Dict[str, Any] = Body(...), store: EntityStore = Depends(get_store)):
    try:
        outcome = await allocate_inventory_to_bom(store, parse_bom(payload))
        return SuccessResponse(data=outcome.model_dump())
    except ValueError as e:
        log.error(f"Invalid BOM: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except ConcurrentModificationError:
        raise
    except Exception as e:
        log.error(f"Error allocating BOM: {e}")
        raise HTTPException(status_code=500, detail="Server failed to allocate inventory.")
