import asyncio
import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from booking_core.api.deps import AsyncSessionLocal, engine
from booking_core.api.dependencies import (
    _in_memory_bundle,
    _sql_bundle,
    build_outbox_worker,
    get_clock,
    get_message_broker,
)
from booking_core.api.routers.health import router as health_router
from booking_core.api.routers.reservations import router as reservations_router
from booking_core.api.routers.worker import router as worker_router
from booking_core.config import get_settings
from booking_core.domain.errors import DomainError
from booking_core.infrastructure.db.engine import create_tables

settings = get_settings()

# Configure structured logging
logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    "INVALID_RANGE": 422,
    "NOT_FOUND": 404,
    "CONFLICT": 409,
    "INVALID_STATUS_TRANSITION": 409,
    "IDEMPOTENCY_CONFLICT": 409,
    "PERSISTENCE_ERROR": 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize DB tables (for dev/demo purposes)
    if not settings.use_in_memory:
        await create_tables(engine)

    worker_session = None
    worker = None
    worker_task = None
    if settings.run_outbox_worker:
        if settings.use_in_memory:
            bundle = _in_memory_bundle()
        else:
            worker_session = AsyncSessionLocal()
            bundle = _sql_bundle(worker_session)
        worker = build_outbox_worker(bundle, get_message_broker(), get_clock(), settings)
        worker_task = asyncio.create_task(worker.start())

    yield

    # Cleanup
    if worker is not None:
        await worker.stop()
        await worker_task
    if worker_session is not None:
        await worker_session.close()
    await engine.dispose()


app = FastAPI(
    title="Booking Core API",
    version="0.1.0",
    lifespan=lifespan
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    status_code = ERROR_STATUS.get(exc.code, 400)
    logger.info(
        "Domain error",
        extra={"code": exc.code, "path": request.url.path, "status_code": status_code},
    )
    return JSONResponse(
        status_code=status_code,
        content={"code": exc.code, "message": exc.message, "context": exc.context},
    )


# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler to prevent stack trace exposure to clients.
    All unhandled exceptions are logged internally and return a generic error message.
    """
    error_id = str(uuid.uuid4())

    logger.error(
        "Unhandled exception occurred",
        exc_info=exc,
        extra={
            "error_id": error_id,
            "path": request.url.path,
            "method": request.method,
            "client_host": request.client.host if request.client else None,
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "message": "An unexpected error occurred. Please contact support with the error_id if the issue persists."
        }
    )


app.include_router(health_router, tags=["Health"])
app.include_router(reservations_router, prefix="/api/v1", tags=["Reservations"])
app.include_router(worker_router, prefix="/api/v1", tags=["Worker"])
