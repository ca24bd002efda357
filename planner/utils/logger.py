"""Logging for the planner, shaped by ``PLANNER_LOG_LEVEL`` and ``PLANNER_LOG_FORMAT``."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from planner.utils.config import Settings, get_settings


PLANNER_NAMESPACE = "planner"

_active_settings: Optional[Settings] = None


def resolve_log_level(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"PLANNER_LOG_LEVEL must be a logging level name, got {name!r}")
    return level


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Install the planner's handler format and level.

    Only the first call takes effect. The level is also pinned on the
    ``planner`` logger so it holds when a host process (uvicorn, pytest)
    configured the root logger first.
    """

    global _active_settings
    if _active_settings is not None:
        return

    settings = settings or get_settings()
    level = resolve_log_level(settings.log_level)
    logging.basicConfig(level=level, format=settings.log_format, stream=sys.stdout)
    logging.getLogger(PLANNER_NAMESPACE).setLevel(level)
    _active_settings = settings


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``planner`` namespace."""
    configure_logging()
    if name != PLANNER_NAMESPACE and not name.startswith(PLANNER_NAMESPACE + "."):
        name = f"{PLANNER_NAMESPACE}.{name}"
    return logging.getLogger(name)
