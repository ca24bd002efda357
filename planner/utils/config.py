"""Environment-driven runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    log_format: str
    allocation_solver_backend: str
    allocation_traffic_rounding: str
    allocation_search_workers: int
    allocation_solver_max_time_seconds: int
    allocation_cp_sat_workers: int


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings once per process; call ``get_settings.cache_clear()`` to reload."""
    return Settings(
        app_name=os.getenv("PLANNER_APP_NAME", "Venue Planner"),
        app_version=os.getenv("PLANNER_APP_VERSION", "1.0.0"),
        log_level=os.getenv("PLANNER_LOG_LEVEL", "INFO"),
        log_format=os.getenv("PLANNER_LOG_FORMAT", "%(asctime)s %(levelname)-8s %(name)s: %(message)s"),
        allocation_solver_backend=os.getenv("PLANNER_SOLVER_BACKEND", "backtracking"),
        allocation_traffic_rounding=os.getenv("PLANNER_TRAFFIC_ROUNDING", "ceil"),
        allocation_search_workers=_env_int("PLANNER_SEARCH_WORKERS", 1),
        allocation_solver_max_time_seconds=_env_int("PLANNER_SOLVER_MAX_TIME_SECONDS", 30),
        allocation_cp_sat_workers=_env_int("PLANNER_CP_SAT_WORKERS", 1),
    )
