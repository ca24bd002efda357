"""
app.py - FastAPI application factory.

This is the ASGI application object imported by uvicorn.
It wires the allocation service and registers routers.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from fastapi import FastAPI

from planner.controllers.allocation_controller import router as allocation_router
from planner.services.allocation_service import VenueAllocationService
from planner.utils.config import Settings, get_settings
from planner.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Services are attached to app.state so route dependencies resolve them
    without module-level singletons.
    """
    settings = settings or get_settings()
    allocation_service = VenueAllocationService(settings=settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
    )
    app.include_router(allocation_router)
    app.state.allocation_service = allocation_service

    logger.info(
        "Application ready | backend=%s | rounding=%s | search_workers=%s",
        settings.allocation_solver_backend,
        settings.allocation_traffic_rounding,
        settings.allocation_search_workers,
    )
    return app


# Module-level app object for uvicorn
app = create_app()
