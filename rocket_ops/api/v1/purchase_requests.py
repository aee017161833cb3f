import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from rocket_ops.api.deps import get_store
from rocket_ops.core.exceptions import ConcurrentModificationError, EntityNotFound
from rocket_ops.schemas.purchase_request import (
    PurchaseRequestCreate,
    PurchaseRequestStatus,
    PurchaseRequestStatusUpdate,
)
from rocket_ops.schemas.response import SuccessResponse
from rocket_ops.services.purchase_request_service import (
    create_purchase_request,
    get_purchase_request,
    list_purchase_requests,
    move_to_pending_inventory,
    update_purchase_request_status,
)
from rocket_ops.store.base import EntityStore

router = APIRouter()
log = logging.getLogger("uvicorn")


@router.get("/", response_model=SuccessResponse)
async def list_purchase_requests_endpoint(status_filter: Optional[PurchaseRequestStatus] = Query(None, alias="status"),
                                          store: EntityStore = Depends(get_store)):
    try:
        requests = await list_purchase_requests(store, status_filter)
        return SuccessResponse(data=[r.model_dump(mode="json") for r in requests])
    except Exception as e:
        log.error(f"Error listing purchase requests: {e}")
        raise HTTPException(status_code=500, detail="Server failed to list purchase requests.")


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_purchase_request_endpoint(payload: PurchaseRequestCreate, store: EntityStore = Depends(get_store)):
    try:
        request = await create_purchase_request(store, payload)
        return SuccessResponse(message="Purchase request created.", data=request.model_dump(mode="json"))
    except ValueError as e:
        log.error(f"Value error creating purchase request: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except ConcurrentModificationError:
        raise
    except Exception as e:
        log.error(f"Error creating purchase request: {e}")
        raise HTTPException(status_code=500, detail="Server failed to create purchase request.")


@router.get("/{request_id}", response_model=SuccessResponse)
async def get_purchase_request_endpoint(request_id: str, store: EntityStore = Depends(get_store)):
    try:
        request = await get_purchase_request(store, request_id)
        return SuccessResponse(data=request.model_dump(mode="json"))
    except EntityNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        log.error(f"Error fetching purchase request {request_id}: {e}")
        raise HTTPException(status_code=500, detail="Server failed to fetch purchase request.")


@router.patch("/{request_id}/status", response_model=SuccessResponse)
async def update_status_endpoint(request_id: str, payload: PurchaseRequestStatusUpdate,
                                 store: EntityStore = Depends(get_store)):
    """
    Moves a request along its workflow. Completing a request adds its
    quantity to inventory.
    """
    try:
        request = await update_purchase_request_status(
            store, request_id, payload.status, actor=payload.actor, notes=payload.notes
        )
        return SuccessResponse(
            message=f"Purchase request status updated to {request.status.value}",
            data=request.model_dump(mode="json"),
        )
    except EntityNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        log.error(f"Value error updating purchase request status: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except ConcurrentModificationError:
        raise
    except Exception as e:
        log.error(f"Error updating purchase request status: {e}")
        raise HTTPException(status_code=500, detail="Server failed to update purchase request status.")


@router.post("/{request_id}/move-to-pending", response_model=SuccessResponse)
async def move_to_pending_endpoint(request_id: str, store: EntityStore = Depends(get_store)):
    try:
        pending = await move_to_pending_inventory(store, request_id)
        return SuccessResponse(message="Moved to pending inventory.", data=pending.model_dump(mode="json"))
    except EntityNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        log.error(f"Value error moving purchase request to pending: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except ConcurrentModificationError:
        raise
    except Exception as e:
        log.error(f"Error moving purchase request to pending: {e}")
        raise HTTPException(status_code=500, detail="Server failed to move purchase request.")
