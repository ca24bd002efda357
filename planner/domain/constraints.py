"""Domain-level rules: allocator configuration, traffic scaling and safety."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from planner.domain.models import Corridor, Event, Venue


SOLVER_BACKENDS = ("backtracking", "cp_sat")
ROUNDING_MODES = ("ceil", "floor", "nearest")


@dataclass(frozen=True)
class AllocatorConfig:
    solver_backend: str = "backtracking"
    traffic_rounding: str = "ceil"
    search_workers: int = 1
    solver_max_time_seconds: int = 30
    cp_sat_workers: int = 1


def validate_allocator_config(config: AllocatorConfig) -> None:
    if config.solver_backend not in SOLVER_BACKENDS:
        raise ValueError(f"solver_backend must be one of {', '.join(SOLVER_BACKENDS)}")
    if config.traffic_rounding not in ROUNDING_MODES:
        raise ValueError(f"traffic_rounding must be one of {', '.join(ROUNDING_MODES)}")
    if config.search_workers <= 0:
        raise ValueError("search_workers must be > 0")
    if config.solver_max_time_seconds <= 0:
        raise ValueError("solver_max_time_seconds must be > 0")
    if config.cp_sat_workers <= 0:
        raise ValueError("cp_sat_workers must be > 0")


def scale_traffic(
    max_traffic: int,
    event_size: int,
    venue_capacity: int,
    rounding: str = "ceil",
) -> int:
    """Traffic a corridor carries when an event of ``event_size`` uses the venue.

    ``max_traffic`` is recorded for an event that fills the venue; smaller
    events contribute linearly less. Integer arithmetic keeps the result
    exact for every rounding mode (``nearest`` rounds halves up).
    """
    numerator = max_traffic * event_size
    if rounding == "ceil":
        return -(-numerator // venue_capacity)
    if rounding == "floor":
        return numerator // venue_capacity
    if rounding == "nearest":
        return (2 * numerator + venue_capacity) // (2 * venue_capacity)
    raise ValueError(f"unknown traffic rounding mode {rounding!r}")


def venue_contributions(
    event: Event,
    venue: Venue,
    rounding: str = "ceil",
) -> dict[Corridor, int] | None:
    """Scaled per-corridor load of hosting ``event`` at ``venue``.

    Returns ``None`` when the event does not fit the venue.
    """
    if event.size > venue.capacity:
        return None
    return {
        corridor: scale_traffic(volume, event.size, venue.capacity, rounding)
        for corridor, volume in venue.traffic.items()
    }


def corridor_capacities(venues: Iterable[Venue]) -> dict[Corridor, int]:
    """Effective capacity of every corridor mentioned by ``venues``.

    Corridors are identified by endpoints only; when venues declare different
    capacities for the same corridor the tightest one applies.
    """
    capacities: dict[Corridor, int] = {}
    for venue in venues:
        for corridor in venue.traffic:
            current = capacities.get(corridor)
            if current is None or corridor.capacity < current:
                capacities[corridor] = corridor.capacity
    return capacities


def corridor_loads(
    allocation: Mapping[Event, Venue],
    rounding: str = "ceil",
) -> dict[Corridor, int]:
    loads: dict[Corridor, int] = defaultdict(int)
    for event, venue in allocation.items():
        for corridor, volume in venue.traffic.items():
            loads[corridor] += scale_traffic(volume, event.size, venue.capacity, rounding)
    return dict(loads)


def is_safe_allocation(
    allocation: Mapping[Event, Venue],
    venues: Iterable[Venue],
    rounding: str = "ceil",
) -> bool:
    """Check every venue hosts at most one fitting event and no corridor overflows."""
    hosted = list(allocation.values())
    if len(set(hosted)) != len(hosted):
        return False
    if any(event.size > venue.capacity for event, venue in allocation.items()):
        return False

    capacities = corridor_capacities(venues)
    # Hosting venues outside the venue set still bound their own corridors.
    for corridor, capacity in corridor_capacities(hosted).items():
        capacities[corridor] = min(capacity, capacities.get(corridor, capacity))

    return all(
        load <= capacities[corridor]
        for corridor, load in corridor_loads(allocation, rounding).items()
    )
