"""Safe event-to-venue allocation search."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

from planner.domain.constraints import (
    AllocatorConfig,
    corridor_capacities,
    validate_allocator_config,
    venue_contributions,
)
from planner.domain.models import (
    Allocation,
    AllocationFound,
    AllocationOutcome,
    Corridor,
    Event,
    NoSolution,
    Venue,
)
from planner.services import cp_sat_backend
from planner.services.cp_sat_backend import SolverDependencyError
from planner.utils.config import Settings, get_settings
from planner.utils.logger import get_logger


logger = get_logger(__name__)

__all__ = [
    "AllocationValidationError",
    "BacktrackingSearch",
    "SearchStats",
    "SolverDependencyError",
    "VenueAllocationService",
    "allocate",
    "allocate_all",
    "iter_safe_allocations",
    "validate_allocation_inputs",
]


class AllocationValidationError(Exception):
    """Raised when the event or venue sequences break the allocator's preconditions."""


@dataclass
class SearchStats:
    nodes_expanded: int = 0
    branches_pruned: int = 0
    solutions: int = 0

    def merge(self, other: SearchStats) -> None:
        self.nodes_expanded += other.nodes_expanded
        self.branches_pruned += other.branches_pruned
        self.solutions += other.solutions


def validate_allocation_inputs(
    events: Optional[Sequence[Event]],
    venues: Optional[Sequence[Venue]],
) -> None:
    if events is None:
        raise AllocationValidationError("events must not be None")
    if venues is None:
        raise AllocationValidationError("venues must not be None")
    if any(event is None for event in events):
        raise AllocationValidationError("events must not contain None")
    if any(venue is None for venue in venues):
        raise AllocationValidationError("venues must not contain None")

    seen_events: set[Event] = set()
    for event in events:
        if event in seen_events:
            raise AllocationValidationError(f"duplicate event {event.name!r}")
        seen_events.add(event)

    seen_venues: set[Venue] = set()
    for venue in venues:
        if venue in seen_venues:
            raise AllocationValidationError(f"duplicate venue {venue.name!r}")
        seen_venues.add(venue)


class BacktrackingSearch:
    """Depth-first search over events in input order with incremental corridor loads.

    Scaled contributions for every (event, venue) pair are computed once up
    front and shared read-only by every walk. Each call to :meth:`walk` owns
    its frame stack and load accumulator, so independent walks may run on
    separate threads.
    """

    def __init__(
        self,
        events: Sequence[Event],
        venues: Sequence[Venue],
        rounding: str = "ceil",
    ) -> None:
        self._events = tuple(events)
        self._venues = tuple(venues)
        self._capacities = corridor_capacities(self._venues)
        self._contributions: list[list[tuple[tuple[Corridor, int], ...] | None]] = []
        for event in self._events:
            row: list[tuple[tuple[Corridor, int], ...] | None] = []
            for venue in self._venues:
                scaled = venue_contributions(event, venue, rounding)
                row.append(None if scaled is None else tuple(scaled.items()))
            self._contributions.append(row)
        self.stats = SearchStats()

    @property
    def venue_count(self) -> int:
        return len(self._venues)

    def walk(
        self,
        root_choices: Optional[Sequence[int]] = None,
        stats: Optional[SearchStats] = None,
    ) -> Iterator[Allocation]:
        """Yield safe allocations in depth-first order.

        ``root_choices`` restricts the venue indices tried for the first event.
        """
        stats = stats if stats is not None else self.stats
        event_count = len(self._events)
        if event_count == 0:
            stats.solutions += 1
            yield Allocation()
            return

        all_venues = range(len(self._venues))
        cursors = [0] * event_count
        chosen: list[Optional[int]] = [None] * event_count
        consumed = [False] * len(self._venues)
        loads: dict[Corridor, int] = {}
        depth = 0

        while depth >= 0:
            previous = chosen[depth]
            if previous is not None:
                self._release(depth, previous, loads)
                consumed[previous] = False
                chosen[depth] = None

            candidates = root_choices if depth == 0 and root_choices is not None else all_venues
            placed: Optional[int] = None
            while cursors[depth] < len(candidates):
                venue_index = candidates[cursors[depth]]
                cursors[depth] += 1
                if consumed[venue_index]:
                    continue
                stats.nodes_expanded += 1
                if not self._admits(depth, venue_index, loads):
                    stats.branches_pruned += 1
                    continue
                placed = venue_index
                break

            if placed is None:
                cursors[depth] = 0
                depth -= 1
                continue

            self._commit(depth, placed, loads)
            consumed[placed] = True
            chosen[depth] = placed
            if depth + 1 == event_count:
                stats.solutions += 1
                yield self._snapshot(chosen)
            else:
                depth += 1

    def _admits(self, depth: int, venue_index: int, loads: dict[Corridor, int]) -> bool:
        contributions = self._contributions[depth][venue_index]
        if contributions is None:
            return False
        return all(
            loads.get(corridor, 0) + amount <= self._capacities[corridor]
            for corridor, amount in contributions
        )

    def _commit(self, depth: int, venue_index: int, loads: dict[Corridor, int]) -> None:
        for corridor, amount in self._contributions[depth][venue_index] or ():
            loads[corridor] = loads.get(corridor, 0) + amount

    def _release(self, depth: int, venue_index: int, loads: dict[Corridor, int]) -> None:
        for corridor, amount in self._contributions[depth][venue_index] or ():
            loads[corridor] -= amount

    def _snapshot(self, chosen: Sequence[Optional[int]]) -> Allocation:
        return Allocation(
            (event, self._venues[venue_index])
            for event, venue_index in zip(self._events, chosen)
            if venue_index is not None
        )


def iter_safe_allocations(
    events: Sequence[Event],
    venues: Sequence[Venue],
    *,
    rounding: str = "ceil",
) -> Iterator[Allocation]:
    """Lazily enumerate safe allocations in deterministic search order."""
    validate_allocation_inputs(events, venues)
    yield from BacktrackingSearch(events, venues, rounding).walk()


def _enumerate_in_parallel(search: BacktrackingSearch, workers: int) -> frozenset[Allocation]:
    """Split the search tree on the first event's venue choice."""
    branch_stats = [SearchStats() for _ in range(search.venue_count)]

    def collect(venue_index: int) -> set[Allocation]:
        return set(search.walk(root_choices=(venue_index,), stats=branch_stats[venue_index]))

    results: set[Allocation] = set()
    with ThreadPoolExecutor(max_workers=workers) as executor:
        for branch in executor.map(collect, range(search.venue_count)):
            results.update(branch)
    for stats in branch_stats:
        search.stats.merge(stats)
    return frozenset(results)


def allocate(
    events: Sequence[Event],
    venues: Sequence[Venue],
    config: Optional[AllocatorConfig] = None,
) -> AllocationOutcome:
    """Return one safe allocation of every event, or :class:`NoSolution`."""
    config = config or AllocatorConfig()
    validate_allocator_config(config)
    validate_allocation_inputs(events, venues)

    if config.solver_backend == "cp_sat":
        return cp_sat_backend.solve_one(events, venues, config)

    search = BacktrackingSearch(events, venues, config.traffic_rounding)
    first = next(search.walk(), None)
    logger.debug(
        "Backtracking search stopped | nodes_expanded=%s | branches_pruned=%s",
        search.stats.nodes_expanded,
        search.stats.branches_pruned,
    )
    if first is None:
        return NoSolution()
    return AllocationFound(first)


def allocate_all(
    events: Sequence[Event],
    venues: Sequence[Venue],
    config: Optional[AllocatorConfig] = None,
) -> frozenset[Allocation]:
    """Return every distinct safe allocation; empty when none exists."""
    config = config or AllocatorConfig()
    validate_allocator_config(config)
    validate_allocation_inputs(events, venues)

    if config.solver_backend == "cp_sat":
        return cp_sat_backend.solve_all(events, venues, config)

    search = BacktrackingSearch(events, venues, config.traffic_rounding)
    if config.search_workers > 1 and events and venues:
        allocations = _enumerate_in_parallel(search, config.search_workers)
    else:
        allocations = frozenset(search.walk())
    logger.debug(
        "Backtracking enumeration finished | nodes_expanded=%s | branches_pruned=%s | solutions=%s",
        search.stats.nodes_expanded,
        search.stats.branches_pruned,
        search.stats.solutions,
    )
    return allocations


class VenueAllocationService:
    """Resolves allocator configuration from settings and runs searches."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()

    def build_config(
        self,
        *,
        solver_backend: Optional[str] = None,
        traffic_rounding: Optional[str] = None,
    ) -> AllocatorConfig:
        config = AllocatorConfig(
            solver_backend=solver_backend or self._settings.allocation_solver_backend,
            traffic_rounding=traffic_rounding or self._settings.allocation_traffic_rounding,
            search_workers=self._settings.allocation_search_workers,
            solver_max_time_seconds=self._settings.allocation_solver_max_time_seconds,
            cp_sat_workers=self._settings.allocation_cp_sat_workers,
        )
        try:
            validate_allocator_config(config)
        except ValueError as exc:
            raise AllocationValidationError(str(exc)) from exc
        return config

    def allocate(
        self,
        events: Sequence[Event],
        venues: Sequence[Venue],
        *,
        solver_backend: Optional[str] = None,
        traffic_rounding: Optional[str] = None,
    ) -> AllocationOutcome:
        config = self.build_config(
            solver_backend=solver_backend,
            traffic_rounding=traffic_rounding,
        )
        outcome = allocate(events, venues, config)
        logger.info(
            "Allocation completed | backend=%s | rounding=%s | events=%s | venues=%s | found=%s",
            config.solver_backend,
            config.traffic_rounding,
            len(events),
            len(venues),
            outcome.found,
        )
        return outcome

    def allocate_all(
        self,
        events: Sequence[Event],
        venues: Sequence[Venue],
        *,
        solver_backend: Optional[str] = None,
        traffic_rounding: Optional[str] = None,
    ) -> frozenset[Allocation]:
        config = self.build_config(
            solver_backend=solver_backend,
            traffic_rounding=traffic_rounding,
        )
        allocations = allocate_all(events, venues, config)
        logger.info(
            "Enumeration completed | backend=%s | rounding=%s | events=%s | venues=%s | allocations=%s",
            config.solver_backend,
            config.traffic_rounding,
            len(events),
            len(venues),
            len(allocations),
        )
        return allocations
