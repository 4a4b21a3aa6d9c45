"""Bootforge dispatch service - FastAPI application."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from bootforge.config import Settings, settings as default_settings
from bootforge.api.v1.router import v1_router, callbacks_router
from bootforge.api.v1.health import router as health_root_router
from bootforge.db.supabase_client import create_supabase
from bootforge.display.base import RecordingDisplay
from bootforge.display.telegram import TelegramDisplay
from bootforge.errors import (
    ConfigurationError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from bootforge.jobs.orchestrator import DispatchOrchestrator
from bootforge.jobs.reconciler import StatusReconciler
from bootforge.jobs.store import InMemoryJobStore
from bootforge.jobs.supabase_store import SupabaseJobStore
from bootforge.posts.store import InMemoryPostStore, SupabasePostStore
from bootforge.providers.registry import build_registry

logger = logging.getLogger(__name__)


async def build_services(app: FastAPI, http: httpx.AsyncClient) -> None:
    """Construct stores, providers and handlers and attach them to app.state."""
    settings: Settings = app.state.settings

    if settings.job_store_backend == "supabase":
        client = await create_supabase(settings)
        store = SupabaseJobStore(client, settings.jobs_table)
        posts = SupabasePostStore(client, settings.posts_table)
    elif settings.job_store_backend == "memory":
        store = InMemoryJobStore()
        posts = InMemoryPostStore()
    else:
        raise ConfigurationError(
            f"Unknown JOB_STORE_BACKEND '{settings.job_store_backend}'"
        )

    if settings.telegram_bot_token:
        display = TelegramDisplay(
            settings.telegram_bot_token,
            settings.telegram_channel_id,
            http,
            api_url=settings.telegram_api_url,
        )
    else:
        logger.warning("TELEGRAM_BOT_TOKEN not set, status messages are only logged")
        display = RecordingDisplay(channel=settings.telegram_channel_id)

    registry = build_registry(settings, http)

    app.state.store = store
    app.state.posts = posts
    app.state.display = display
    app.state.registry = registry
    app.state.orchestrator = DispatchOrchestrator(
        store, registry, display, max_attempts=settings.max_dispatch_attempts
    )
    app.state.reconciler = StatusReconciler(store, posts, display)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    settings: Settings = app.state.settings
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    logger.info("Starting Bootforge dispatch service on port %s", settings.port)
    logger.info("Job store backend: %s", settings.job_store_backend)

    http = httpx.AsyncClient(timeout=settings.provider_timeout_seconds)
    try:
        await build_services(app, http)
        logger.info("Providers: %s", app.state.registry.ids())
        yield
    finally:
        logger.info("Shutting down Bootforge dispatch service")
        await http.aclose()


async def _not_found(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def _invalid_input(request: Request, exc: ValidationError):
    return PlainTextResponse(str(exc), status_code=400)


async def _persistence_failed(request: Request, exc: PersistenceError):
    logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Job store unavailable"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    app = FastAPI(
        title="Bootforge Dispatch Service",
        description="Queues boot animation jobs and dispatches them to CI workers",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings or default_settings

    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(ValidationError, _invalid_input)
    app.add_exception_handler(PersistenceError, _persistence_failed)

    # Mount routers
    app.include_router(health_root_router, tags=["health"])  # GET /health at root
    app.include_router(v1_router)  # All /api/v1/* endpoints
    app.include_router(callbacks_router)  # /scheduled/*, /webhooks/*
    return app


app = create_app()
