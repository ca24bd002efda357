"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import Request

from planner.services.allocation_service import VenueAllocationService
from planner.utils.config import get_settings


def get_allocation_service(request: Request) -> VenueAllocationService:
    service = getattr(request.app.state, "allocation_service", None)
    if service is None:
        service = VenueAllocationService(settings=get_settings())
        request.app.state.allocation_service = service
    return service
