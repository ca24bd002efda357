"""CP-SAT formulation of the safe allocation problem."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Optional

try:
    from ortools.sat.python import cp_model
except ModuleNotFoundError:  # pragma: no cover - runtime dependency guard
    cp_model = None  # type: ignore[assignment]

from planner.domain.constraints import AllocatorConfig, corridor_capacities, venue_contributions
from planner.domain.models import (
    Allocation,
    AllocationFound,
    AllocationOutcome,
    Corridor,
    Event,
    NoSolution,
    Venue,
)
from planner.utils.logger import get_logger


logger = get_logger(__name__)


class SolverDependencyError(Exception):
    """Raised when OR-Tools is unavailable in the runtime."""


class SolverTimeoutError(Exception):
    """Raised when CP-SAT hits its time limit before settling the search."""


@dataclass(frozen=True)
class BuildArtifacts:
    model: Any
    variables: dict[tuple[int, int], Any]


def _ensure_solver_dependency() -> None:
    if cp_model is None:
        raise SolverDependencyError(
            "OR-Tools is not installed. Install 'ortools' to use the cp_sat backend."
        )


def build_model(
    *,
    events: Sequence[Event],
    venues: Sequence[Venue],
    rounding: str,
) -> Optional[BuildArtifacts]:
    """Build the assignment model, or return ``None`` when some event fits no venue."""
    _ensure_solver_dependency()
    model = cp_model.CpModel()
    variables: dict[tuple[int, int], cp_model.IntVar] = {}
    corridor_terms: dict[Corridor, list[tuple[int, Any]]] = defaultdict(list)

    for event_index, event in enumerate(events):
        for venue_index, venue in enumerate(venues):
            contributions = venue_contributions(event, venue, rounding)
            if contributions is None:
                continue
            var = model.NewBoolVar(f"x_event_{event_index}_venue_{venue_index}")
            variables[(event_index, venue_index)] = var
            for corridor, amount in contributions.items():
                corridor_terms[corridor].append((amount, var))

    for event_index, event in enumerate(events):
        event_vars = [
            var
            for (candidate_index, _), var in variables.items()
            if candidate_index == event_index
        ]
        if not event_vars:
            logger.debug("Event fits no venue | event=%s | size=%s", event.name, event.size)
            return None
        model.AddExactlyOne(event_vars)

    for venue_index in range(len(venues)):
        venue_vars = [
            var
            for (_, candidate_index), var in variables.items()
            if candidate_index == venue_index
        ]
        if len(venue_vars) > 1:
            model.AddAtMostOne(venue_vars)

    capacities = corridor_capacities(venues)
    for corridor, terms in corridor_terms.items():
        model.Add(sum(amount * var for amount, var in terms) <= capacities[corridor])

    return BuildArtifacts(model=model, variables=variables)


def _extract(
    values: Any,
    artifacts: BuildArtifacts,
    events: Sequence[Event],
    venues: Sequence[Venue],
) -> Allocation:
    return Allocation(
        (events[event_index], venues[venue_index])
        for (event_index, venue_index), var in artifacts.variables.items()
        if values(var) == 1
    )


def _configured_solver(config: AllocatorConfig) -> Any:
    solver = cp_model.CpSolver()
    solver.parameters.max_time_in_seconds = float(config.solver_max_time_seconds)
    solver.parameters.num_workers = config.cp_sat_workers
    return solver


def solve_one(
    events: Sequence[Event],
    venues: Sequence[Venue],
    config: AllocatorConfig,
) -> AllocationOutcome:
    _ensure_solver_dependency()
    if not events:
        return AllocationFound(Allocation())

    artifacts = build_model(events=events, venues=venues, rounding=config.traffic_rounding)
    if artifacts is None:
        return NoSolution()

    solver = _configured_solver(config)
    status = solver.Solve(artifacts.model)
    status_name = solver.StatusName(status)
    logger.debug("CP-SAT solve finished | status=%s", status_name)

    if status in (cp_model.OPTIMAL, cp_model.FEASIBLE):
        return AllocationFound(_extract(solver.Value, artifacts, events, venues))
    if status == cp_model.INFEASIBLE:
        return NoSolution()
    raise SolverTimeoutError(f"CP-SAT could not decide feasibility (status={status_name})")


def solve_all(
    events: Sequence[Event],
    venues: Sequence[Venue],
    config: AllocatorConfig,
) -> frozenset[Allocation]:
    _ensure_solver_dependency()
    if not events:
        return frozenset({Allocation()})

    artifacts = build_model(events=events, venues=venues, rounding=config.traffic_rounding)
    if artifacts is None:
        return frozenset()

    collected: set[Allocation] = set()

    class AllocationCollector(cp_model.CpSolverSolutionCallback):
        def on_solution_callback(self) -> None:
            collected.add(_extract(self.Value, artifacts, events, venues))

    solver = _configured_solver(config)
    # Full enumeration is only supported by the single-worker search.
    solver.parameters.num_workers = 1
    solver.parameters.enumerate_all_solutions = True
    status = solver.Solve(artifacts.model, AllocationCollector())
    status_name = solver.StatusName(status)
    logger.debug(
        "CP-SAT enumeration finished | status=%s | solutions=%s",
        status_name,
        len(collected),
    )

    if status == cp_model.OPTIMAL:
        return frozenset(collected)
    if status == cp_model.INFEASIBLE:
        return frozenset()
    raise SolverTimeoutError(
        f"CP-SAT enumeration stopped before completion (status={status_name})"
    )
