"""HTTP controller layer for venue allocation."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator

from planner.controllers.dependencies import get_allocation_service
from planner.domain.models import Allocation, Corridor, Event, Location, Traffic, Venue
from planner.repository.venue_reader import VenueFormatError, parse_venues
from planner.services.allocation_service import (
    AllocationValidationError,
    SolverDependencyError,
    VenueAllocationService,
)
from planner.services.cp_sat_backend import SolverTimeoutError
from planner.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["allocation"])


class CorridorTrafficPayload(BaseModel):
    start: str = Field(min_length=1)
    end: str = Field(min_length=1)
    capacity: int = Field(gt=0)
    traffic: int = Field(gt=0)

    @field_validator("start", "end")
    @classmethod
    def validate_location_name(cls, value: str) -> str:
        if "," in value or ":" in value:
            raise ValueError("location names must not contain ',' or ':'")
        return value


class VenuePayload(BaseModel):
    name: str = Field(min_length=1)
    capacity: int = Field(gt=0)
    traffic: list[CorridorTrafficPayload] = Field(default_factory=list)

    def to_domain(self) -> Venue:
        return Venue(
            name=self.name,
            capacity=self.capacity,
            traffic=Traffic(
                (
                    Corridor(Location(item.start), Location(item.end), item.capacity),
                    item.traffic,
                )
                for item in self.traffic
            ),
        )

    @classmethod
    def from_domain(cls, venue: Venue) -> VenuePayload:
        return cls(
            name=venue.name,
            capacity=venue.capacity,
            traffic=[
                CorridorTrafficPayload(
                    start=corridor.start.name,
                    end=corridor.end.name,
                    capacity=corridor.capacity,
                    traffic=volume,
                )
                for corridor, volume in venue.traffic.canonical_items()
            ],
        )


class EventPayload(BaseModel):
    name: str = Field(min_length=1)
    size: int = Field(gt=0)


class AllocationRequest(BaseModel):
    events: list[EventPayload]
    venues: list[VenuePayload]
    solver_backend: Literal["backtracking", "cp_sat"] | None = None
    traffic_rounding: Literal["ceil", "floor", "nearest"] | None = None


class AssignmentResponse(BaseModel):
    event: str
    venue: str


class AllocateResponse(BaseModel):
    found: bool
    assignments: list[AssignmentResponse]


class AllocationsResponse(BaseModel):
    count: int = Field(ge=0)
    allocations: list[list[AssignmentResponse]]


class ParseVenuesRequest(BaseModel):
    content: str


class ParseVenuesResponse(BaseModel):
    venues: list[VenuePayload]


def _to_domain(payload: AllocationRequest) -> tuple[list[Event], list[Venue]]:
    try:
        events = [Event(name=item.name, size=item.size) for item in payload.events]
        venues = [item.to_domain() for item in payload.venues]
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return events, venues


def _assignments(allocation: Allocation) -> list[AssignmentResponse]:
    return [
        AssignmentResponse(event=event.name, venue=venue.name)
        for event, venue in allocation.items()
    ]


@router.post(
    "/allocate",
    response_model=AllocateResponse,
    status_code=status.HTTP_200_OK,
)
async def allocate(
    payload: AllocationRequest,
    service: VenueAllocationService = Depends(get_allocation_service),
) -> AllocateResponse:
    """Find one safe allocation; ``found`` is false when none exists."""
    events, venues = _to_domain(payload)
    try:
        outcome = service.allocate(
            events,
            venues,
            solver_backend=payload.solver_backend,
            traffic_rounding=payload.traffic_rounding,
        )
    except AllocationValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except (SolverDependencyError, SolverTimeoutError) as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected allocation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to allocate events",
        ) from exc

    if not outcome.found:
        return AllocateResponse(found=False, assignments=[])
    return AllocateResponse(found=True, assignments=_assignments(outcome.allocation))


@router.post(
    "/allocations",
    response_model=AllocationsResponse,
    status_code=status.HTTP_200_OK,
)
async def allocations(
    payload: AllocationRequest,
    service: VenueAllocationService = Depends(get_allocation_service),
) -> AllocationsResponse:
    """Enumerate every safe allocation."""
    events, venues = _to_domain(payload)
    try:
        found = service.allocate_all(
            events,
            venues,
            solver_backend=payload.solver_backend,
            traffic_rounding=payload.traffic_rounding,
        )
    except AllocationValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except (SolverDependencyError, SolverTimeoutError) as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected enumeration failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to enumerate allocations",
        ) from exc

    ordered = sorted(
        (_assignments(allocation) for allocation in found),
        key=lambda rows: [(row.event, row.venue) for row in rows],
    )
    return AllocationsResponse(count=len(ordered), allocations=ordered)


@router.post(
    "/venues/parse",
    response_model=ParseVenuesResponse,
    status_code=status.HTTP_200_OK,
)
async def parse_venue_description(payload: ParseVenuesRequest) -> ParseVenuesResponse:
    """Validate venue text and return its structured form."""
    try:
        venues = parse_venues(payload.content)
    except VenueFormatError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return ParseVenuesResponse(venues=[VenuePayload.from_domain(venue) for venue in venues])
