#!/usr/bin/env python3
"""Validate local venue planner environment readiness."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from planner.domain.constraints import AllocatorConfig
from planner.domain.models import Event
from planner.repository.venue_reader import parse_venues
from planner.services.allocation_service import allocate, allocate_all

SEPARATOR_LINE = "=" * 44

SAMPLE_VENUES = """\
Riverside Hall
100
Central, Riverside, 60: 60

Northgate Arena
90
Central, Riverside, 60: 54
Northgate, Central, 40: 30

"""


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True

    # CHECK 1 - Python version >= 3.11
    if sys.version_info >= (3, 11):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.11",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2 - Required packages importable
    package_specs = ["fastapi", "uvicorn", "pydantic", "ortools", "httpx", "pytest"]
    import_errors: list[str] = []
    for module_name in package_specs:
        try:
            importlib.import_module(module_name)
        except ImportError as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 3 - Venue description parsing
    venues = []
    try:
        venues = parse_venues(SAMPLE_VENUES)
        if len(venues) != 2:
            raise RuntimeError(f"expected 2 venues, got {len(venues)}")
        ok, line = _print_result("Venue parsing", True, f": {len(venues)} venues")
    except Exception as exc:
        ok, line = _print_result("Venue parsing", False, str(exc))
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 4 - Backtracking allocation
    events = [Event("Concert", 50), Event("Expo", 30)]
    backtracking = frozenset()
    try:
        outcome = allocate(events, venues)
        backtracking = allocate_all(events, venues)
        if outcome.found != bool(backtracking):
            raise RuntimeError("allocate and allocate_all disagree")
        ok, line = _print_result(
            "Backtracking search",
            True,
            f": {len(backtracking)} safe allocations",
        )
    except Exception as exc:
        ok, line = _print_result("Backtracking search", False, str(exc))
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 5 - CP-SAT agrees with backtracking
    try:
        cp_sat = allocate_all(events, venues, AllocatorConfig(solver_backend="cp_sat"))
        if cp_sat != backtracking:
            raise RuntimeError(
                f"cp_sat found {len(cp_sat)} allocations, backtracking {len(backtracking)}"
            )
        ok, line = _print_result("CP-SAT backend", True)
    except Exception as exc:
        ok, line = _print_result("CP-SAT backend", False, str(exc))
    results.append(line)
    all_passed = all_passed and ok

    print(SEPARATOR_LINE)
    print(" Venue Planner Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
