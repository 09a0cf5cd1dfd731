"""
Wanderlust Booking API - Main Application Entry Point

A vacation-rental marketplace backend demonstrating:
- Concurrency-safe room inventory with guarded single-statement updates
- Lazy (per-view) expiry of finished bookings, with an optional periodic sweep
- Redis caching of the listing index with write-through invalidation
- Structured logging with request correlation
"""

import asyncio
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wanderlust.core.config import get_settings
from wanderlust.core.logging import setup_logging, get_logger
from wanderlust.core.metrics import metrics_endpoint
from wanderlust.api.router import api_router
from wanderlust.api.middleware import RequestLoggingMiddleware
from wanderlust.db.session import Database
from wanderlust.services.cache_service import get_redis, close_redis, get_cache_stats
from wanderlust.services.expiry_service import run_periodic_sweep

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: open the store and cache, close them on shutdown."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    database = Database.from_settings(settings).open()
    app.state.database = database

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache")

    sweeper = None
    if settings.EXPIRY_SWEEP_INTERVAL_SECONDS > 0:
        sweeper = asyncio.create_task(
            run_periodic_sweep(database, settings.EXPIRY_SWEEP_INTERVAL_SECONDS)
        )

    yield

    if sweeper is not None:
        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper
    await close_redis()
    await database.close()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Vacation-rental booking API with concurrency-safe room inventory",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "cache": cache_stats,
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "listings": "/api/v1/listings/",
    }
