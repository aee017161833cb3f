import logging

from fastapi import APIRouter, Depends, HTTPException

from rocket_ops.api.deps import get_scheduler, get_store
from rocket_ops.core.exceptions import EntityNotFound
from rocket_ops.schemas.response import SuccessResponse
from rocket_ops.services.reconciliation import full_sync
from rocket_ops.store.base import EntityStore
from rocket_ops.workers.scheduler import JobScheduler

log = logging.getLogger("uvicorn")

router = APIRouter()


@router.post("/full", response_model=SuccessResponse)
async def run_full_sync(store: EntityStore = Depends(get_store)):
    """Runs the periodic full sync on demand (the dashboard's "Sync now")."""
    try:
        report = await full_sync(store)
        return SuccessResponse(data=report.model_dump())
    except Exception as e:
        log.error(f"Error running full sync: {e}")
        raise HTTPException(status_code=500, detail="Server failed to run full sync.")


@router.get("/scheduler", response_model=SuccessResponse)
async def scheduler_status(scheduler: JobScheduler = Depends(get_scheduler)):
    return SuccessResponse(data=scheduler.status())


@router.post("/scheduler/{job}/run", response_model=SuccessResponse)
async def run_job(job: str, scheduler: JobScheduler = Depends(get_scheduler)):
    try:
        state = await scheduler.run_job_now(job)
        return SuccessResponse(message=f"Job '{job}' ran.", data=state.model_dump(mode="json"))
    except EntityNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        log.error(f"Error running job {job}: {e}")
        raise HTTPException(status_code=500, detail=f"Server failed to run job {job}.")
