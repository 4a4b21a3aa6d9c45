"""Aggregate all API routers."""

from fastapi import APIRouter
from bootforge.api.v1.health import router as health_router
from bootforge.api.v1.jobs import router as jobs_router
from bootforge.api.scheduled import router as scheduled_router
from bootforge.api.webhooks import router as webhooks_router

v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(health_router, tags=["health"])
v1_router.include_router(jobs_router, tags=["jobs"])

# Endpoints called by the cron scheduler and the CI workers, mounted at root
callbacks_router = APIRouter()
callbacks_router.include_router(scheduled_router, tags=["scheduled"])
callbacks_router.include_router(webhooks_router, tags=["webhooks"])
