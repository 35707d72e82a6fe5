import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from removals_crm.api.v1.router import router as api_v1_router
from removals_crm.core.cache import CacheService
from removals_crm.core.config import settings as app_settings
from removals_crm.core.database import AsyncSessionLocal
from removals_crm.core.exceptions import (
    AssignmentRuleNotFoundError,
    IngestionInProgressError,
    InvalidStatusTransitionError,
    LeadNotFoundError,
    StaffNotFoundError,
)
from removals_crm.core.rate_limit import limiter
from removals_crm.dependencies import get_redis_client
from removals_crm.services.scheduled_ingestion import start_ingestion_loop

# Configure logging
logging.basicConfig(level=app_settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage the optional scheduled ingestion sweep."""
    if app_settings.INGESTION_INTERVAL_SECONDS <= 0:
        logger.info("Scheduled ingestion disabled (INGESTION_INTERVAL_SECONDS=0)")
        yield
        return

    cache = CacheService(redis_client=await get_redis_client())
    ingestion_task = asyncio.create_task(
        start_ingestion_loop(
            AsyncSessionLocal,
            cache=cache,
            interval_seconds=app_settings.INGESTION_INTERVAL_SECONDS,
        )
    )
    logger.info("Background ingestion task scheduled")
    yield
    # Shutdown: cancel the background task
    ingestion_task.cancel()
    try:
        await ingestion_task
    except asyncio.CancelledError:
        logger.info("Background ingestion task stopped")


app = FastAPI(
    title="Removals CRM Lead Ingestion",
    description="Turns partner lead emails into deduplicated leads and assigns them to staff",
    version="0.1.0",
    lifespan=lifespan,
)

# Attach rate limiter state so slowapi middleware can find it
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware – restricted to configured origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in app_settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_v1_router)


@app.exception_handler(LeadNotFoundError)
async def lead_not_found_handler(request: Request, exc: LeadNotFoundError):
    logger.warning("Lead not found: %s", exc.detail)
    return JSONResponse(
        status_code=404,
        content={"detail": exc.detail, "type": "lead_not_found"},
    )


@app.exception_handler(StaffNotFoundError)
async def staff_not_found_handler(request: Request, exc: StaffNotFoundError):
    logger.warning("Staff member not found: %s", exc.detail)
    return JSONResponse(
        status_code=404,
        content={"detail": exc.detail, "type": "staff_not_found"},
    )


@app.exception_handler(AssignmentRuleNotFoundError)
async def rule_not_found_handler(request: Request, exc: AssignmentRuleNotFoundError):
    logger.warning("Assignment rule not found: %s", exc.detail)
    return JSONResponse(
        status_code=404,
        content={"detail": exc.detail, "type": "assignment_rule_not_found"},
    )


@app.exception_handler(InvalidStatusTransitionError)
async def invalid_status_transition_handler(
    request: Request, exc: InvalidStatusTransitionError
):
    logger.warning("Invalid status transition: %s", exc.detail)
    return JSONResponse(
        status_code=400,
        content={"detail": exc.detail, "type": "invalid_status_transition"},
    )


@app.exception_handler(IngestionInProgressError)
async def ingestion_in_progress_handler(
    request: Request, exc: IngestionInProgressError
):
    logger.info("Ingestion request rejected: %s", exc.detail)
    return JSONResponse(
        status_code=409,
        content={"detail": exc.detail, "type": "ingestion_in_progress"},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("Request validation error: %s", exc.errors())
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Request validation failed",
            "errors": jsonable_encoder(exc.errors()),
            "type": "validation_error",
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Catch-all handler for unexpected/unhandled exceptions.

    Returns a generic 500 response so that raw stack traces are never
    leaked to the client.
    """
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected internal error occurred. Please try again later.",
            "type": "internal_server_error",
        },
    )
