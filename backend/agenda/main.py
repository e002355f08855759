import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from .config import settings
from .redis_client import redis_client
from .routers import (
    allocation,
    appointments,
    availability_rules,
    blackouts,
    organization_settings,
    salespeople,
    slots,
)
from .services.completion_checker import completion_checker_loop
from .services.scheduling import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    SlotTakenError,
)

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    task = None
    if settings.completion_checker_enabled:
        task = asyncio.create_task(completion_checker_loop())
    try:
        yield
    finally:
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass


app = FastAPI(title="Agenda API", lifespan=lifespan)

app.include_router(salespeople.router)
app.include_router(availability_rules.router)
app.include_router(blackouts.router)
app.include_router(slots.router)
app.include_router(appointments.router)
app.include_router(allocation.router)
app.include_router(organization_settings.router)


# ===== Scheduling errors → HTTP =====

@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": exc.detail})


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": exc.detail})


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    # SlotTakenError is a ConflictError; same answer, logged apart in the ledger
    kind = "storage_race" if isinstance(exc, SlotTakenError) else "unavailable"
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": exc.reason, "kind": kind},
    )


@app.get("/health")
def health():
    try:
        redis_ok = bool(redis_client.ping())
    except RedisError:
        logger.warning("Redis ping failed")
        redis_ok = False
    return {"redis": redis_ok}
