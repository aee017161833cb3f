import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, status

from rocket_ops.api.v1.inventory import router as inventory_router
from rocket_ops.api.v1.purchase_requests import router as purchase_requests_router
from rocket_ops.api.v1.sync import router as sync_router
from rocket_ops.core.config import PROJECT_NAME, SCHEDULER_ENABLED, VERSION
from rocket_ops.core.db import close_db, init_db
from rocket_ops.core.exception_handlers import setup_exception_handlers
from rocket_ops.store.tortoise_store import TortoiseEntityStore
from rocket_ops.workers.scheduler import JobScheduler, build_default_jobs

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
log = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handles startup and shutdown events."""
    log.info(f"Starting {PROJECT_NAME} v{VERSION}...")
    await init_db()  # Connect to DB and generate schemas
    app.state.store = TortoiseEntityStore()
    app.state.scheduler = JobScheduler(app.state.store, build_default_jobs())
    if SCHEDULER_ENABLED:
        await app.state.scheduler.start()
    yield
    await app.state.scheduler.stop()
    await close_db()
    log.info(f"{PROJECT_NAME} stopped.")


app = FastAPI(
    title=PROJECT_NAME,
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.include_router(purchase_requests_router, prefix="/api/v1/purchase-requests", tags=["Purchase Requests"])
app.include_router(inventory_router, prefix="/api/v1/inventory", tags=["Inventory"])
app.include_router(sync_router, prefix="/api/v1/sync", tags=["Sync & Scheduler"])

setup_exception_handlers(app)


@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """Simple health check endpoint."""
    return {"status": "ok", "app_name": PROJECT_NAME, "version": VERSION}
